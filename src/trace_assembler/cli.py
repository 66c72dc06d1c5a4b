#!/usr/bin/env python3
"""
Command Line Interface for the Trace Assembler
"""

import sys
import logging
import argparse
from pathlib import Path

from .assembler import AssemblerConfig, TraceAssembler
from .config import load_config
from .decoder import Selection
from .errors import TraceAssemblerError
from .records import format_hptime

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False):
    """Configure the root logger for command line use"""
    level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
        root_logger.addHandler(handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Assemble packed telemetry records into contiguous segments',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    summary_parser = subparsers.add_parser('summary', help='List the segments of a record file')
    summary_parser.add_argument('file', help='Packed record file')
    summary_parser.add_argument('--config', '-c', help='Configuration file path')
    summary_parser.add_argument('--no-data', action='store_true',
                                help='Skip sample decoding (metadata only)')
    summary_parser.add_argument('--details', action='store_true',
                                help='Show timing quality and calibration type')
    summary_parser.add_argument('--select', '-s', action='append', default=[],
                                metavar='NET.STA.LOC.CHA',
                                help='Only include matching records (globs allowed, repeatable)')
    summary_parser.add_argument('--verbose', '-v', action='store_true',
                                help='Report decode errors')
    summary_parser.add_argument('--debug', '-d', action='store_true', help='Enable DEBUG logging')
    return parser


def run_summary(args) -> int:
    config = load_config(args.config) if args.config else AssemblerConfig()
    if args.no_data:
        config.unpack_data = False
    if args.details:
        config.details = True
    if args.verbose:
        config.verbose = True

    path = Path(args.file)
    data = path.read_bytes()
    selection = Selection.from_patterns(args.select) if args.select else None

    assembler = TraceAssembler(config)
    buckets = assembler.assemble(data, selection)

    for bucket in buckets:
        if bucket.key.is_empty:
            print(f"{path}: no records")
            continue
        for segment in bucket.chain:
            start = format_hptime(segment.starttime)
            end = format_hptime(segment.endtime)
            line = (f"{bucket.key} | {start} - {end} | {segment.samprate} Hz, "
                    f"{segment.samplecnt} samples, {segment.record_count} records")
            if config.details:
                line += (f" | timing quality {segment.timing_quality}, "
                         f"calibration {segment.calibration_type}")
            print(line)

    stats = assembler.stats
    logger.info(f"{stats.records_decoded} records, {stats.segments_opened} segments, "
                f"{stats.identifiers} identifiers, {stats.parse_errors} parse errors")
    return 0


def main(argv=None) -> int:
    """Main entry point for trace-assembler command"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(getattr(args, 'debug', False))

    try:
        if args.command == 'summary':
            return run_summary(args)
    except (TraceAssemblerError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
