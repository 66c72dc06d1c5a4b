"""
Tests for the trace-assembler command line
"""

import pytest

from trace_assembler import pack_records
from trace_assembler.cli import main
from trace_assembler.records import HPTMODULUS


@pytest.fixture
def record_file(tmp_path, contiguous_records, make_record, t0):
    records = contiguous_records([5, 3, 2])
    records.append(make_record(t0 + 10 * HPTMODULUS, samplecnt=4))
    records.append(make_record(t0, channel='HHN'))
    path = tmp_path / 'records.bin'
    path.write_bytes(pack_records(records))
    return path


class TestSummaryCommand:

    def test_lists_segments(self, record_file, capsys):
        assert main(['summary', str(record_file)]) == 0
        lines = capsys.readouterr().out.splitlines()

        assert len(lines) == 3
        assert lines[0].startswith('XX.STA..HHZ.D | 2023-11-14T22:13:20+00:00')
        assert '10 samples, 3 records' in lines[0]
        assert '4 samples, 1 records' in lines[1]
        assert lines[2].startswith('XX.STA..HHN.D')

    def test_selection_and_details(self, record_file, capsys):
        assert main(['summary', str(record_file), '--select', '*.*.*.HHN', '--details',
                     '--no-data']) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 1
        assert 'timing quality 255, calibration -1' in lines[0]

    def test_config_file(self, record_file, tmp_path, capsys):
        config = tmp_path / 'config.toml'
        config.write_text('[assembler]\nunpack_data = false\n')
        assert main(['summary', str(record_file), '--config', str(config)]) == 0
        assert len(capsys.readouterr().out.splitlines()) == 3

    def test_empty_file(self, tmp_path, capsys):
        path = tmp_path / 'empty.bin'
        path.write_bytes(b'')
        assert main(['summary', str(path)]) == 0
        assert 'no records' in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        assert main(['summary', str(tmp_path / 'absent.bin')]) == 1

    def test_no_command(self, capsys):
        assert main([]) == 1
