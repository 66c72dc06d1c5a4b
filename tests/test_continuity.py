"""
Tests for the continuity classifier
"""

from trace_assembler import AuxInfo, Segment, accepts, is_rate_tolerable, time_tolerance

from conftest import next_start

NO_AUX = AuxInfo(b'')


def open_segment(record, aux=NO_AUX):
    return Segment.open(record, aux)


class TestRateTolerance:

    def test_identical_rates(self):
        assert is_rate_tolerable(100.0, 100.0)

    def test_just_inside(self):
        r = 100.0
        assert is_rate_tolerable(r, r * (1 + 0.99e-4))
        assert is_rate_tolerable(r * (1 + 0.99e-4), r)

    def test_just_outside(self):
        r = 100.0
        assert not is_rate_tolerable(r, r * (1 + 1.01e-4))
        assert not is_rate_tolerable(r * (1 + 1.01e-4), r)

    def test_irregular_rates(self):
        assert is_rate_tolerable(0.0, 0.0)
        assert not is_rate_tolerable(0.0, 100.0)
        assert not is_rate_tolerable(100.0, 0.0)


class TestTimeTolerance:

    def test_half_interval(self):
        assert time_tolerance(10000) == (-5000, 5000)

    def test_truncates(self):
        assert time_tolerance(3) == (-1, 1)

    def test_zero_interval_is_exact(self):
        lower, upper = time_tolerance(0)
        assert (lower, upper) == (0, 0)

    def test_single_tick_interval(self):
        # tolerance truncates to zero: no negative slack either
        assert time_tolerance(1) == (0, 0)


class TestAccepts:
    """Merge predicate"""

    def test_no_open_segment(self, make_record):
        assert not accepts(None, make_record(), NO_AUX)

    def test_contiguous_record(self, make_record):
        first = make_record()
        segment = open_segment(first)
        assert segment.hpdelta == 10000
        assert accepts(segment, make_record(next_start(first)), NO_AUX)

    def test_gap_within_half_interval(self, make_record):
        first = make_record()
        segment = open_segment(first)
        assert accepts(segment, make_record(next_start(first) + 5000), NO_AUX)
        assert accepts(segment, make_record(next_start(first) - 5000), NO_AUX)

    def test_gap_beyond_half_interval(self, make_record):
        first = make_record()
        segment = open_segment(first)
        h = segment.hpdelta
        assert not accepts(segment, make_record(first.endtime + int(h * 1.51)), NO_AUX)
        assert not accepts(segment, make_record(next_start(first) - 5001), NO_AUX)

    def test_earlier_record_rejected(self, make_record, t0):
        segment = open_segment(make_record(t0))
        assert not accepts(segment, make_record(t0 - 50000), NO_AUX)

    def test_sample_type_mismatch(self, make_record):
        first = make_record()
        segment = open_segment(first)
        assert not accepts(segment, make_record(next_start(first), sampletype='f'), NO_AUX)

    def test_rate_mismatch(self, make_record):
        first = make_record()
        segment = open_segment(first)
        assert not accepts(segment, make_record(next_start(first), samprate=100.02), NO_AUX)

    def test_timing_quality_mismatch(self, make_record):
        first = make_record()
        segment = open_segment(first, AuxInfo(b'', timing_quality=90))
        candidate = make_record(next_start(first))
        assert accepts(segment, candidate, AuxInfo(b'', timing_quality=90))
        assert not accepts(segment, candidate, AuxInfo(b'', timing_quality=80))

    def test_calibration_mismatch(self, make_record):
        first = make_record()
        segment = open_segment(first, AuxInfo(b'', calibration_type=1))
        candidate = make_record(next_start(first))
        assert not accepts(segment, candidate, AuxInfo(b'', calibration_type=-1))

    def test_aux_buffer_mismatch(self, make_record):
        first = make_record()
        segment = open_segment(first, AuxInfo(b'\x01\x02'))
        candidate = make_record(next_start(first))
        assert accepts(segment, candidate, AuxInfo(b'\x01\x02'))
        assert not accepts(segment, candidate, AuxInfo(b'\x01\x03'))

    def test_irregular_data_needs_exact_time(self, make_record, t0):
        first = make_record(t0, samprate=0.0, samplecnt=1)
        segment = open_segment(first)
        assert segment.hpdelta == 0
        assert accepts(segment, make_record(t0, samprate=0.0, samplecnt=1), NO_AUX)
        assert not accepts(segment, make_record(t0 + 1, samprate=0.0, samplecnt=1), NO_AUX)
        assert not accepts(segment, make_record(t0 - 1, samprate=0.0, samplecnt=1), NO_AUX)

    def test_inputs_untouched(self, make_record):
        first = make_record()
        segment = open_segment(first)
        before = (segment.endtime, segment.samplecnt, segment.record_count)
        accepts(segment, make_record(next_start(first)), NO_AUX)
        assert (segment.endtime, segment.samplecnt, segment.record_count) == before
