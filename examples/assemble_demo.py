#!/usr/bin/env python3
"""
Assembly Demo - records in, contiguous segments out

Builds a small synthetic record stream (two channels, one gap, one
out-of-order record, one timing quality change), assembles it and prints
the resulting segments.

Usage:
    python examples/assemble_demo.py
    python examples/assemble_demo.py --details
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from trace_assembler import (
    HPTMODULUS,
    Blockette,
    Record,
    TraceAssembler,
    AssemblerConfig,
    pack_records,
    record_endtime,
)

T0 = 1_700_000_000 * HPTMODULUS
RATE = 100.0
SAMPLES_PER_RECORD = 50


def make_record(channel: str, index: int, timing_quality: int = 100) -> Record:
    """Record number index of a channel, 0.5 s of samples each"""
    start = T0 + index * SAMPLES_PER_RECORD * HPTMODULUS // int(RATE)
    samples = (1000 * np.sin(np.arange(SAMPLES_PER_RECORD) / 5.0)).astype(np.int32)
    return Record(
        network='XX', station='DEMO', location='00', channel=channel,
        dataquality='D',
        starttime=start,
        endtime=record_endtime(start, RATE, SAMPLES_PER_RECORD),
        samprate=RATE, sampletype='i', samplecnt=SAMPLES_PER_RECORD,
        samples=samples,
        blockettes=[Blockette(1001, bytes([timing_quality, 0, 0, 1]))],
    )


def build_stream():
    records = []
    for i in range(6):
        records.append(make_record('HHZ', i))
        records.append(make_record('HHN', i))
    # Gap: records 6 and 7 of HHZ never arrived
    records.append(make_record('HHZ', 8))
    # Late arrival: opens its own segment
    records.append(make_record('HHZ', 7))
    # Degraded clock on HHN
    records.append(make_record('HHN', 6, timing_quality=40))
    return records


def main():
    parser = argparse.ArgumentParser(description='Trace assembly demo')
    parser.add_argument('--details', action='store_true',
                        help='Split segments on timing quality changes')
    args = parser.parse_args()

    data = pack_records(build_stream())
    print(f"Input: {len(data)} bytes")

    assembler = TraceAssembler(AssemblerConfig(details=args.details))
    for bucket in assembler.assemble(data):
        print(f"\n{bucket.key}")
        for segment in bucket.chain:
            print(f"  {segment}  ({segment.record_count} records, "
                  f"timing quality {segment.timing_quality})")
            print(f"    samples: {segment.samples[:5]} ...")

    stats = assembler.stats
    print(f"\n{stats.records_decoded} records -> {stats.segments_opened} segments")


if __name__ == '__main__':
    main()
