#!/usr/bin/env python3
"""
Auxiliary Field Extraction - metadata bytes used for continuity checks

Records carry metadata blockettes. Besides sample continuity, two records
only belong to the same segment when selected blockette sub-fields agree.
The sub-fields are described by (blockette type, offset, length) triples
and laid out back to back in a fixed-size comparison buffer.

Two classifications are derived alongside the buffer:
- timing quality from blockette 1001 (0xFF when absent)
- calibration type from blockettes 300/310/320/390/395 (-1 when absent)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .records import (
    CALIBRATION_BLOCKETTES,
    CALIBRATION_NONE,
    TIMING_BLOCKETTE,
    TIMING_QUALITY_UNKNOWN,
    Record,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One sub-field to copy out of a blockette body.

    Attributes:
        blkt_type: Blockette type code to look for
        offset: Byte offset inside the blockette body
        length: Number of bytes to copy
    """
    blkt_type: int
    offset: int
    length: int

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError(f"Field offset must be >= 0, got {self.offset}")
        if self.length < 0:
            raise ValueError(f"Field length must be >= 0, got {self.length}")


@dataclass(frozen=True)
class AuxInfo:
    """Extracted comparison data for one record"""
    buffer: bytes
    timing_quality: int = TIMING_QUALITY_UNKNOWN
    calibration_type: int = CALIBRATION_NONE


class AuxFieldExtractor:
    """
    Extracts the auxiliary comparison buffer from records.

    The layout is computed once from the descriptor list: field i starts
    at the sum of the lengths of fields 0..i-1.
    """

    def __init__(self, descriptors: Iterable[FieldDescriptor] = ()):
        self.descriptors: List[FieldDescriptor] = list(descriptors)
        self._positions: List[int] = []
        position = 0
        for desc in self.descriptors:
            self._positions.append(position)
            position += desc.length
        self.buffer_length = position

    def enabled(self, details: bool) -> bool:
        """Whether extraction is needed at all for this configuration"""
        return details or self.buffer_length >= 1

    def defaults(self) -> AuxInfo:
        """Comparison data used when extraction is skipped"""
        return AuxInfo(bytes(self.buffer_length))

    def new_buffer(self) -> bytearray:
        return bytearray(self.buffer_length)

    def extract(self, record: Record, out: Optional[bytearray] = None) -> AuxInfo:
        """
        Extract comparison data from a record.

        Args:
            record: Decoded record
            out: Scratch buffer of buffer_length bytes, owned by the caller.
                Only fields whose blockette is present are overwritten, so
                absent fields keep the bytes of the previous extraction.
                A fresh zeroed buffer is used when omitted.

        Returns:
            AuxInfo holding an independent copy of the extracted bytes
        """
        if out is None:
            out = self.new_buffer()
        elif len(out) != self.buffer_length:
            raise ValueError(
                f"Scratch buffer is {len(out)} bytes, expected {self.buffer_length}")

        calibration_type = CALIBRATION_NONE
        timing_quality = TIMING_QUALITY_UNKNOWN

        for blkt in record.blockettes:
            for desc, position in zip(self.descriptors, self._positions):
                if blkt.blkt_type != desc.blkt_type:
                    continue
                chunk = blkt.payload[desc.offset:desc.offset + desc.length]
                out[position:position + len(chunk)] = chunk
                if len(chunk) < desc.length:
                    logger.debug(
                        f"Blockette {blkt.blkt_type} too short for field at "
                        f"offset {desc.offset} (+{desc.length}): got {len(chunk)} bytes")

            # Last calibration blockette wins
            if blkt.blkt_type in CALIBRATION_BLOCKETTES:
                calibration_type = CALIBRATION_BLOCKETTES[blkt.blkt_type]
            elif blkt.blkt_type == TIMING_BLOCKETTE and blkt.payload:
                timing_quality = blkt.payload[0]

        return AuxInfo(bytes(out), timing_quality, calibration_type)
