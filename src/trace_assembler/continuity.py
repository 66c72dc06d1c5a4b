#!/usr/bin/env python3
"""
Continuity Classifier - decide whether a record extends a segment

A record continues the open segment of its identifier only when nothing
changed (sample type, rate, timing quality, calibration state, auxiliary
fields) and it starts one sample interval after the segment ends, within
half an interval. The tolerance scales with the sample interval so that
high-rate channels get proportionally tighter absolute limits.

Records arriving out of order are never reconciled; they fail the gap
test and open a new segment.
"""

from typing import Optional, Tuple

from .aux_fields import AuxInfo
from .records import Record
from .segments import Segment

# abs(1 - rate_a / rate_b) must stay below this
RATE_TOLERANCE = 0.0001


def is_rate_tolerable(rate_a: float, rate_b: float) -> bool:
    """
    Check whether two sample rates describe the same nominal rate.

    Two zero (irregular) rates are equal; a zero rate never matches a
    non-zero one.
    """
    if rate_a == 0.0 or rate_b == 0.0:
        return rate_a == rate_b
    return abs(1.0 - rate_a / rate_b) < RATE_TOLERANCE


def time_tolerance(hpdelta: int) -> Tuple[int, int]:
    """
    Accepted (lower, upper) bounds of the gap for a sample interval.

    The lower bound is only negative when the tolerance is non-zero, so
    irregular data (hpdelta 0) needs an exact timestamp match.
    """
    tolerance = int(0.5 * hpdelta)
    lower = -tolerance if tolerance else 0
    return lower, tolerance


def time_gap(segment: Segment, record: Record) -> int:
    """Offset of record start from the expected next sample time, in ticks"""
    return record.starttime - segment.endtime - segment.hpdelta


def accepts(segment: Optional[Segment], record: Record, aux: AuxInfo) -> bool:
    """
    Decide whether record continues segment.

    Args:
        segment: Open segment of the record's identifier, or None
        record: Candidate record
        aux: Comparison data extracted from the candidate

    Returns:
        True to append the record, False to open a new segment
    """
    if segment is None:
        return False
    if segment.sampletype != record.sampletype:
        return False
    if not is_rate_tolerable(segment.samprate, record.samprate):
        return False

    lower, upper = time_tolerance(segment.hpdelta)
    gap = time_gap(segment, record)
    if not lower <= gap <= upper:
        return False

    return (segment.timing_quality == aux.timing_quality
            and segment.calibration_type == aux.calibration_type
            and segment.aux_buffer == aux.buffer)
