"""
Shared fixtures: record factories and an in-memory decoder.
"""

import sys
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pytest

# Add src to path for development
src_path = str(Path(__file__).parent.parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from trace_assembler import Blockette, Record, RecordDecoder, record_endtime
from trace_assembler.errors import RecordDecodeError
from trace_assembler.records import HPTMODULUS, sample_dtype

# 2023-11-14T22:13:20Z
T0 = 1_700_000_000 * HPTMODULUS


def build_record(
    starttime: int = T0,
    samplecnt: int = 5,
    samprate: float = 100.0,
    sampletype: str = 'i',
    network: str = 'XX',
    station: str = 'STA',
    location: str = '',
    channel: str = 'HHZ',
    dataquality: str = 'D',
    blockettes: Iterable[Blockette] = (),
    first_value: int = 0,
    with_samples: bool = True,
) -> Record:
    samples = None
    if with_samples:
        if sampletype == 'a':
            samples = np.array([b'x'] * samplecnt, dtype=sample_dtype('a'))
        else:
            samples = np.arange(first_value, first_value + samplecnt).astype(sample_dtype(sampletype))
    return Record(
        network=network,
        station=station,
        location=location,
        channel=channel,
        dataquality=dataquality,
        starttime=starttime,
        endtime=record_endtime(starttime, samprate, samplecnt),
        samprate=samprate,
        sampletype=sampletype,
        samplecnt=samplecnt,
        samples=samples,
        blockettes=list(blockettes),
    )


def next_start(record: Record) -> int:
    """Start time that makes a record exactly contiguous with this one"""
    return record.endtime + int(HPTMODULUS / record.samprate)


class ListDecoder(RecordDecoder):
    """
    Serves prepared records; byte i of the input stands for records[i].

    Offsets listed in fail_at raise a decode error that advances the
    cursor by one.
    """

    def __init__(self, records: List[Record], fail_at: Iterable[int] = ()):
        self.records = records
        self.fail_at = set(fail_at)
        self.calls: List[Tuple[int, Dict]] = []
        for record in records:
            record.reclen = 1

    @property
    def buffer(self) -> bytes:
        return bytes(len(self.records))

    def decode(self, buffer, offset, selection=None, unpack_data=True,
               record_length=0, verbose=False):
        self.calls.append((offset, {'selection': selection, 'unpack_data': unpack_data,
                                    'record_length': record_length, 'verbose': verbose}))
        if offset in self.fail_at:
            raise RecordDecodeError(f"bad record at {offset}", offset + 1)
        return offset, self.records[offset]


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def contiguous_records():
    """Factory for a run of back-to-back records with the given sample counts"""
    def factory(counts: Iterable[int], starttime: int = T0, **kwargs) -> List[Record]:
        records = []
        start = starttime
        first_value = 0
        for count in counts:
            record = build_record(start, samplecnt=count, first_value=first_value, **kwargs)
            records.append(record)
            start = next_start(record)
            first_value += count
        return records
    return factory


@pytest.fixture
def t0() -> int:
    return T0
