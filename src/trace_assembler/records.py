#!/usr/bin/env python3
"""
Record model - decoded telemetry records and sample types

A Record is produced by a decoder and handed to the assembler, which
owns it from then on. Times are integer ticks of HPTMODULUS per second.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import numpy as np

# High precision time: ticks per second
HPTMODULUS = 1_000_000
HPTERROR = -2145916800000000

# Sample type tag -> (bytes per sample, numpy dtype)
SAMPLE_TYPES = {
    'a': (1, np.dtype('S1')),
    'i': (4, np.dtype(np.int32)),
    'f': (4, np.dtype(np.float32)),
    'd': (8, np.dtype(np.float64)),
}

# Calibration blockette type -> calibration classification
CALIBRATION_BLOCKETTES = {
    300: 1,   # step calibration
    310: 2,   # sine calibration
    320: 3,   # pseudo-random calibration
    390: 4,   # generic calibration
    395: -2,  # calibration abort
}
TIMING_BLOCKETTE = 1001

TIMING_QUALITY_UNKNOWN = 0xFF
CALIBRATION_NONE = -1


def sample_size(sampletype: str) -> int:
    """Bytes per sample for a sample type tag"""
    try:
        return SAMPLE_TYPES[sampletype][0]
    except KeyError:
        raise ValueError(f"Unknown sample type: {sampletype!r}")


def sample_dtype(sampletype: str) -> np.dtype:
    """numpy dtype for a sample type tag"""
    try:
        return SAMPLE_TYPES[sampletype][1]
    except KeyError:
        raise ValueError(f"Unknown sample type: {sampletype!r}")


def record_endtime(starttime: int, samprate: float, samplecnt: int) -> int:
    """
    Time of the last sample of a record.

    Args:
        starttime: Time of the first sample (ticks)
        samprate: Sample rate in Hz, 0 for irregular data
        samplecnt: Number of samples

    Returns:
        End time in ticks; the start time when rate or count is zero
    """
    if samprate == 0.0 or samplecnt <= 0:
        return starttime
    span = int((samplecnt - 1) / samprate * HPTMODULUS + 0.5)
    return starttime + span


def hptime_to_datetime(hptime: int) -> datetime:
    """Convert ticks since the epoch to an aware UTC datetime"""
    seconds, ticks = divmod(hptime, HPTMODULUS)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return dt.replace(microsecond=ticks * 1_000_000 // HPTMODULUS)


def format_hptime(hptime: int) -> str:
    """ISO 8601 form of a tick time, or the raw tick count outside datetime's range"""
    try:
        return hptime_to_datetime(hptime).isoformat()
    except (ValueError, OverflowError, OSError):
        return f"{hptime} ticks"


def datetime_to_hptime(dt: datetime) -> int:
    """Convert a datetime (naive values are taken as UTC) to ticks"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    delta = dt - epoch
    return (delta.days * 86400 + delta.seconds) * HPTMODULUS + \
        delta.microseconds * HPTMODULUS // 1_000_000


@dataclass
class Blockette:
    """Metadata sub-block: type code plus raw body bytes"""
    blkt_type: int
    payload: bytes


@dataclass
class Record:
    """
    One decoded data record.

    endtime is supplied by the decoder (see record_endtime); the
    assembler never recomputes it.
    """
    network: str
    station: str
    location: str
    channel: str
    dataquality: str
    starttime: int
    endtime: int
    samprate: float
    sampletype: str
    samplecnt: int
    samples: Optional[np.ndarray] = None
    blockettes: List[Blockette] = field(default_factory=list)
    reclen: int = 0

    @property
    def key(self) -> Tuple[str, str, str, str, str]:
        return (self.network, self.station, self.location,
                self.channel, self.dataquality)

    @property
    def nbytes(self) -> int:
        """Bytes of sample data this record contributes to a segment"""
        return self.samplecnt * sample_size(self.sampletype)

    def release_samples(self):
        """Drop the decoded sample buffer"""
        self.samples = None

    def __str__(self):
        return (f"{'.'.join(self.key)} | {format_hptime(self.starttime)}"
                f" | {self.samprate} Hz, {self.samplecnt} samples")
