#!/usr/bin/env python3
"""
Segments - maximal runs of contiguous records

A Segment collects the records of one identifier that passed the
continuity test against it. Samples stay in the individual records until
the segment is closed; see materializer.py.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np

from .aux_fields import AuxInfo
from .records import (
    CALIBRATION_NONE,
    HPTMODULUS,
    TIMING_QUALITY_UNKNOWN,
    Record,
    format_hptime,
)

logger = logging.getLogger(__name__)


def sample_interval(samprate: float) -> int:
    """Nominal sample interval in ticks, 0 for irregular data"""
    return int(HPTMODULUS / samprate) if samprate else 0


@dataclass
class Segment:
    """Contiguous, metadata-consistent run of records"""
    starttime: int
    endtime: int
    samprate: float
    sampletype: str
    samplecnt: int = 0
    hpdelta: int = 0
    timing_quality: int = TIMING_QUALITY_UNKNOWN
    calibration_type: int = CALIBRATION_NONE
    aux_buffer: bytes = b''
    records: List[Record] = field(default_factory=list)
    samples: Optional[np.ndarray] = None
    closed: bool = False

    @classmethod
    def open(cls, record: Record, aux: AuxInfo) -> 'Segment':
        """Start a segment from its first record"""
        return cls(
            starttime=record.starttime,
            endtime=record.endtime,
            samprate=record.samprate,
            sampletype=record.sampletype,
            samplecnt=record.samplecnt,
            hpdelta=sample_interval(record.samprate),
            timing_quality=aux.timing_quality,
            calibration_type=aux.calibration_type,
            aux_buffer=bytes(aux.buffer),
            records=[record],
        )

    def append(self, record: Record):
        """Extend the segment with a record that passed the continuity test"""
        if self.closed:
            raise ValueError("Cannot append to a closed segment")
        self.records.append(record)
        self.samplecnt += record.samplecnt
        self.endtime = record.endtime

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def duration(self) -> int:
        """Span from first to last sample, in ticks"""
        return self.endtime - self.starttime

    def __str__(self):
        start = format_hptime(self.starttime)
        end = format_hptime(self.endtime)
        return f"{start} - {end} | {self.samprate} Hz, {self.samplecnt} samples"


class SegmentChain:
    """Append-only, time-of-creation ordered segments of one identifier"""

    def __init__(self):
        self._segments: List[Segment] = []

    @property
    def first(self) -> Optional[Segment]:
        return self._segments[0] if self._segments else None

    @property
    def last(self) -> Optional[Segment]:
        """The open segment, if any"""
        return self._segments[-1] if self._segments else None

    def append(self, segment: Segment):
        self._segments.append(segment)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    def clear(self):
        for segment in self._segments:
            for record in segment.records:
                record.release_samples()
            segment.records.clear()
            segment.samples = None
        self._segments.clear()
