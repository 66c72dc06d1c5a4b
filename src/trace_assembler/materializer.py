#!/usr/bin/env python3
"""
Segment Materializer - build a segment's contiguous sample buffer

Samples are not accumulated while a segment is open. When the segment
closes, its total sample count is known, so the output buffer is
allocated exactly once and every record's samples are copied into it in
order. Each record's own buffer is released right after its copy.

This avoids growing the output buffer record by record, at the cost of
holding the raw samples of the open segment's records until it closes.
"""

import logging
from typing import Callable, Optional

import numpy as np

from .errors import AllocationError, MaterializationError
from .records import sample_dtype, sample_size
from .segments import Segment

logger = logging.getLogger(__name__)

# allocate(samplecnt, sampletype) -> buffer of samplecnt * sample_size bytes
Allocator = Callable[[int, str], np.ndarray]


def allocate_samples(samplecnt: int, sampletype: str) -> np.ndarray:
    """Default allocator: an uninitialised numpy array of the tag's dtype"""
    return np.empty(samplecnt, dtype=sample_dtype(sampletype))


def _allocate(allocate: Allocator, samplecnt: int, sampletype: str) -> np.ndarray:
    expected = samplecnt * sample_size(sampletype)
    try:
        buffer = allocate(samplecnt, sampletype)
    except Exception as e:
        raise AllocationError(
            f"Allocator failed for {samplecnt} samples of type {sampletype!r}: {e}",
            samplecnt, sampletype) from e

    if buffer is None:
        raise AllocationError(
            f"Allocator returned no buffer for {samplecnt} samples of type {sampletype!r}",
            samplecnt, sampletype)
    if not isinstance(buffer, np.ndarray):
        raise AllocationError(
            f"Allocator returned {type(buffer).__name__}, expected numpy.ndarray",
            samplecnt, sampletype)
    if buffer.nbytes != expected:
        raise AllocationError(
            f"Allocator returned {buffer.nbytes} bytes, expected {expected}",
            samplecnt, sampletype)
    if not buffer.flags.c_contiguous:
        raise AllocationError("Allocator returned a non-contiguous buffer",
                              samplecnt, sampletype)
    if not buffer.flags.writeable:
        raise AllocationError("Allocator returned a read-only buffer",
                              samplecnt, sampletype)
    return buffer


def materialize(segment: Optional[Segment], unpack_data: bool,
                allocate: Allocator = allocate_samples) -> None:
    """
    Close a segment, copying its records' samples into one buffer.

    Args:
        segment: Segment to close (None is accepted and ignored)
        unpack_data: When False nothing is allocated or released; the
            records stay with the segment for later use
        allocate: Buffer factory called once with (samplecnt, sampletype)

    Raises:
        AllocationError: The allocator failed or returned a wrong buffer
        MaterializationError: A record's samples are missing or short
    """
    if segment is None:
        return
    segment.closed = True
    if not unpack_data:
        return

    # Drop any previous buffer before requesting a new one
    segment.samples = None
    buffer = _allocate(allocate, segment.samplecnt, segment.sampletype)
    dest = buffer.reshape(-1).view(np.uint8)

    position = 0
    for record in segment.records:
        size = record.nbytes
        if size:
            if record.samples is None:
                raise MaterializationError(
                    f"Record {record} has no samples to copy",
                    segment.samplecnt, segment.sampletype)
            src = np.ascontiguousarray(record.samples).reshape(-1).view(np.uint8)
            if src.size < size:
                raise MaterializationError(
                    f"Record {record} holds {src.size} sample bytes, expected {size}",
                    segment.samplecnt, segment.sampletype)
            dest[position:position + size] = src[:size]
            position += size
        record.release_samples()

    segment.samples = buffer
    logger.debug(f"Materialized segment {segment}: {segment.record_count} records, "
                 f"{position} bytes")
