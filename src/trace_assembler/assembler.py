#!/usr/bin/env python3
"""
Trace Assembler - group decoded records into contiguous segments

Single sequential pass over an in-memory buffer:

    Scanning -> RecordDecoded -> route to identifier bucket
                              -> extract auxiliary fields (if configured)
                              -> continuity test against the open segment
                              -> append, or close the open segment and
                                 start a new one
             -> DecodeFailed  -> log, resume at the decoder's cursor
             -> EndOfInput    -> close every open segment

Output is one TraceBucket per identifier, in first-encounter order. An
input without any decodable record yields a single empty bucket.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from .aux_fields import AuxFieldExtractor, AuxInfo, FieldDescriptor
from .continuity import accepts
from .decoder import RecordDecoder
from .errors import AllocationError, AssemblyError, RecordDecodeError
from .materializer import Allocator, allocate_samples, materialize
from .packed import PackedRecordDecoder
from .records import Record
from .registry import IdentifierRegistry, TraceBucket, TraceKey
from .segments import Segment

logger = logging.getLogger(__name__)


@dataclass
class AssemblerConfig:
    """
    Assembly options.

    Attributes:
        unpack_data: Decode samples and build one buffer per segment
        record_length: Nominal record length hint for the decoder (0 = detect)
        verbose: Report decode failures at warning level
        details: Extract timing quality and calibration type even without
            auxiliary field descriptors
        fields: Blockette sub-fields that must match for records to merge
    """
    unpack_data: bool = True
    record_length: int = 0
    verbose: bool = False
    details: bool = False
    fields: List[FieldDescriptor] = field(default_factory=list)


@dataclass
class AssemblyStats:
    """Counters of the most recent run (the empty bucket counts as one identifier)"""
    records_decoded: int = 0
    parse_errors: int = 0
    segments_opened: int = 0
    identifiers: int = 0


class TraceAssembler:
    """
    Assembles records from a buffer into per-identifier segment chains.

    Example:
        assembler = TraceAssembler(AssemblerConfig(details=True))
        for bucket in assembler.assemble(data):
            for segment in bucket.chain:
                print(bucket.key, segment, segment.samples.shape)
    """

    def __init__(self, config: Optional[AssemblerConfig] = None,
                 decoder: Optional[RecordDecoder] = None,
                 allocate: Optional[Allocator] = None):
        self.config = config or AssemblerConfig()
        self.decoder = decoder or PackedRecordDecoder()
        self.allocate = allocate or allocate_samples
        self.extractor = AuxFieldExtractor(self.config.fields)
        self.stats = AssemblyStats()

    def assemble(self, buffer: bytes, selection: Any = None) -> List[TraceBucket]:
        """
        Run one assembly pass.

        Args:
            buffer: Input bytes holding consecutive records
            selection: Passed through to the decoder untouched

        Returns:
            Buckets in first-encounter order

        Raises:
            AllocationError: Sample buffer allocation failed; nothing is
                returned and all state of the run is released
            AssemblyError: The decoder stopped advancing through the input
        """
        self.stats = AssemblyStats()
        registry = IdentifierRegistry()
        try:
            self._scan(bytes(buffer), selection, registry)
            if self.stats.records_decoded == 0:
                logger.info("No records found in buffer")
                self.stats.identifiers = 1
                return [TraceBucket(key=TraceKey.empty())]
            self._flush(registry)
        except AssemblyError as e:
            logger.error(f"Assembly aborted: {e}")
            registry.clear()
            raise

        buckets = registry.buckets()
        self.stats.identifiers = len(buckets)
        logger.debug(
            f"Assembled {self.stats.records_decoded} records into "
            f"{self.stats.segments_opened} segments across {len(buckets)} identifiers "
            f"({self.stats.parse_errors} parse errors)")
        return buckets

    def _scan(self, buffer: bytes, selection: Any, registry: IdentifierRegistry):
        config = self.config
        extract = self.extractor.enabled(config.details)
        defaults = self.extractor.defaults()
        # Per-run scratch for extraction; segments keep their own copies
        scratch = self.extractor.new_buffer()

        offset = 0
        buflen = len(buffer)
        while offset < buflen:
            try:
                record_offset, record = self.decoder.decode(
                    buffer, offset, selection, config.unpack_data,
                    config.record_length, config.verbose)
            except RecordDecodeError as e:
                if e.offset <= offset:
                    raise AssemblyError(
                        f"Decoder did not advance past offset {offset}") from e
                if e.offset < buflen:
                    self.stats.parse_errors += 1
                    if config.verbose:
                        logger.warning(f"Error parsing record at offset {offset}: {e}")
                    else:
                        logger.debug(f"Error parsing record at offset {offset}: {e}")
                offset = e.offset
                continue

            next_offset = record_offset + record.reclen
            if next_offset <= offset:
                raise AssemblyError(
                    f"Record at offset {record_offset} does not advance the cursor "
                    f"(reclen {record.reclen})")
            offset = next_offset
            self.stats.records_decoded += 1

            aux = self.extractor.extract(record, scratch) if extract else defaults
            self._add_record(registry, record, aux)

    def _add_record(self, registry: IdentifierRegistry, record: Record, aux: AuxInfo):
        bucket = registry.lookup_or_create(TraceKey.from_tuple(record.key))
        segment = bucket.chain.last

        if accepts(segment, record, aux):
            segment.append(record)
            return

        # Close the open segment before starting its successor
        try:
            materialize(segment, self.config.unpack_data, self.allocate)
        except AllocationError:
            record.release_samples()
            raise
        bucket.chain.append(Segment.open(record, aux))
        self.stats.segments_opened += 1
        logger.debug(f"New segment for {bucket.key}: {record}")

    def _flush(self, registry: IdentifierRegistry):
        for bucket in registry.buckets():
            materialize(bucket.chain.last, self.config.unpack_data, self.allocate)


def assemble(
    buffer: bytes,
    selection: Any = None,
    unpack_data: bool = True,
    record_length: int = 0,
    verbose: bool = False,
    details: bool = False,
    allocate: Optional[Allocator] = None,
    fields: Sequence[FieldDescriptor] = (),
    decoder: Optional[RecordDecoder] = None
) -> List[TraceBucket]:
    """
    Assemble a buffer of records into segments grouped by identifier.

    Convenience wrapper around TraceAssembler; see AssemblerConfig for
    the meaning of the options.
    """
    config = AssemblerConfig(
        unpack_data=unpack_data,
        record_length=record_length,
        verbose=verbose,
        details=details,
        fields=list(fields),
    )
    return TraceAssembler(config, decoder=decoder, allocate=allocate).assemble(buffer, selection)


def iter_segments(buckets: Iterable[TraceBucket]):
    """Yield (key, segment) pairs across buckets in output order"""
    for bucket in buckets:
        for segment in bucket.chain:
            yield bucket.key, segment
