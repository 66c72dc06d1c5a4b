"""
Tests for segment materialization
"""

import numpy as np
import pytest

from trace_assembler import AuxInfo, Segment, allocate_samples, materialize
from trace_assembler.errors import AllocationError, MaterializationError


def build_segment(records):
    segment = Segment.open(records[0], AuxInfo(b''))
    for record in records[1:]:
        segment.append(record)
    return segment


class TestMaterialize:

    def test_copies_records_in_order(self, contiguous_records):
        records = contiguous_records([5, 3, 2])
        originals = [record.samples.copy() for record in records]
        segment = build_segment(records)

        materialize(segment, True)

        assert segment.closed
        assert segment.samples.dtype == np.int32
        assert segment.samples.shape == (10,)
        assert segment.samples[0:5].tobytes() == originals[0].tobytes()
        assert segment.samples[5:8].tobytes() == originals[1].tobytes()
        assert segment.samples[8:10].tobytes() == originals[2].tobytes()

    def test_releases_record_samples(self, contiguous_records):
        records = contiguous_records([4, 4])
        segment = build_segment(records)
        materialize(segment, True)

        assert all(record.samples is None for record in records)
        # Record metadata stays with the segment
        assert segment.records == records
        assert segment.records[1].samplecnt == 4

    def test_metadata_only(self, contiguous_records):
        records = contiguous_records([4, 4])
        segment = build_segment(records)
        materialize(segment, False)

        assert segment.closed
        assert segment.samples is None
        assert all(record.samples is not None for record in records)

    def test_none_segment(self):
        materialize(None, True)

    def test_allocator_called_once_with_totals(self, contiguous_records):
        calls = []

        def allocate(samplecnt, sampletype):
            calls.append((samplecnt, sampletype))
            return np.zeros(samplecnt, dtype=np.float64)

        segment = build_segment(contiguous_records([3, 3, 4], sampletype='d'))
        materialize(segment, True, allocate)

        assert calls == [(10, 'd')]
        np.testing.assert_array_equal(segment.samples, np.arange(10, dtype=np.float64))

    def test_raw_byte_buffer_allocator(self, contiguous_records):
        def allocate(samplecnt, sampletype):
            return np.zeros(samplecnt * 4, dtype=np.uint8)

        segment = build_segment(contiguous_records([2, 2]))
        materialize(segment, True, allocate)
        np.testing.assert_array_equal(segment.samples.view(np.int32), [0, 1, 2, 3])

    def test_ascii_samples(self, contiguous_records):
        segment = build_segment(contiguous_records([3, 2], sampletype='a'))
        materialize(segment, True)
        assert segment.samples.tobytes() == b'xxxxx'

    def test_replaces_previous_buffer(self, contiguous_records):
        segment = build_segment(contiguous_records([2]))
        segment.samples = np.ones(99)
        materialize(segment, True)
        assert segment.samples.shape == (2,)

    def test_allocator_raises(self, contiguous_records):
        def allocate(samplecnt, sampletype):
            raise MemoryError("out of memory")

        with pytest.raises(AllocationError) as excinfo:
            materialize(build_segment(contiguous_records([2])), True, allocate)
        assert excinfo.value.samplecnt == 2
        assert excinfo.value.sampletype == 'i'

    def test_allocator_returns_none(self, contiguous_records):
        with pytest.raises(AllocationError):
            materialize(build_segment(contiguous_records([2])), True, lambda n, t: None)

    def test_allocator_returns_wrong_size(self, contiguous_records):
        with pytest.raises(AllocationError):
            materialize(build_segment(contiguous_records([2, 2])), True,
                        lambda n, t: np.empty(n - 1, dtype=np.int32))

    def test_allocator_returns_read_only_buffer(self, contiguous_records):
        with pytest.raises(AllocationError):
            materialize(build_segment(contiguous_records([2, 2])), True,
                        lambda n, t: np.frombuffer(bytes(n * 4), dtype=np.int32))

    def test_missing_record_samples(self, contiguous_records):
        records = contiguous_records([2, 2])
        records[1].release_samples()
        with pytest.raises(MaterializationError):
            materialize(build_segment(records), True)


class TestAllocateSamples:

    def test_dtype_and_size(self):
        buffer = allocate_samples(6, 'f')
        assert buffer.dtype == np.float32
        assert buffer.nbytes == 24
