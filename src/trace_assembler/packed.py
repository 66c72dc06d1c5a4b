#!/usr/bin/env python3
"""
Packed Record Codec - simple self-describing binary record framing

Layout of one record (little-endian):

    offset  size  field
    0       4     magic b'PREC'
    4       8     network  (ASCII, NUL padded)
    12      8     station
    20      8     location
    28      8     channel
    36      1     data quality code
    37      1     sample type tag ('a', 'i', 'f', 'd')
    38      2     reserved
    40      8     start time (int64 ticks, HPTMODULUS per second)
    48      8     sample rate (float64 Hz, 0 = irregular)
    56      4     sample count
    60      2     blockette count
    62      2     reserved
    64      4     record length (bytes incl. padding, 0 = natural length)
    68      ...   blockettes: type (uint16), body length (uint16), body
    ...     ...   samples, samplecnt * sample_size bytes
    ...     ...   zero padding up to the record length

Damaged input is skipped by scanning forward to the next magic.
"""

import logging
import struct
from typing import Any, Iterable, Optional, Tuple

import numpy as np

from .decoder import RecordDecoder
from .errors import RecordDecodeError
from .records import (
    SAMPLE_TYPES,
    Blockette,
    Record,
    record_endtime,
    sample_dtype,
    sample_size,
)

logger = logging.getLogger(__name__)

MAGIC = b'PREC'
HEADER = struct.Struct('<4s8s8s8s8scc2xqdIH2xI')
BLOCKETTE_HEADER = struct.Struct('<HH')
CODE_LENGTH = 8


def _wire_dtype(sampletype: str) -> np.dtype:
    return sample_dtype(sampletype).newbyteorder('<')


def _encode_code(value: str, name: str) -> bytes:
    raw = value.encode('ascii')
    if len(raw) > CODE_LENGTH:
        raise ValueError(f"{name} {value!r} longer than {CODE_LENGTH} characters")
    return raw


def _decode_code(raw: bytes) -> str:
    return raw.rstrip(b'\x00').decode('ascii')


def pack_record(record: Record, reclen: int = 0) -> bytes:
    """
    Encode a record.

    Args:
        record: Record to encode; samples may be None only when samplecnt is 0
        reclen: Pad the record to this many bytes (0 = no padding)

    Returns:
        Encoded record bytes
    """
    if record.sampletype not in SAMPLE_TYPES:
        raise ValueError(f"Unknown sample type: {record.sampletype!r}")
    if len(record.dataquality) != 1:
        raise ValueError(f"Data quality must be one character, got {record.dataquality!r}")
    if len(record.blockettes) > 0xFFFF:
        raise ValueError("Too many blockettes")

    if record.samplecnt:
        if record.samples is None:
            raise ValueError(f"Record {record} has no samples to encode")
        data = np.asarray(record.samples).astype(_wire_dtype(record.sampletype)).tobytes()
        if len(data) != record.nbytes:
            raise ValueError(
                f"Record declares {record.samplecnt} samples but holds {len(data)} bytes")
    else:
        data = b''

    blockettes = b''.join(
        BLOCKETTE_HEADER.pack(blkt.blkt_type, len(blkt.payload)) + bytes(blkt.payload)
        for blkt in record.blockettes)

    natural = HEADER.size + len(blockettes) + len(data)
    if reclen and reclen < natural:
        raise ValueError(f"Record needs {natural} bytes, longer than reclen {reclen}")

    header = HEADER.pack(
        MAGIC,
        _encode_code(record.network, 'network'),
        _encode_code(record.station, 'station'),
        _encode_code(record.location, 'location'),
        _encode_code(record.channel, 'channel'),
        record.dataquality.encode('ascii'),
        record.sampletype.encode('ascii'),
        record.starttime,
        record.samprate,
        record.samplecnt,
        len(record.blockettes),
        reclen,
    )
    packed = header + blockettes + data
    if reclen:
        packed += bytes(reclen - natural)
    return packed


def pack_records(records: Iterable[Record], reclen: int = 0) -> bytes:
    return b''.join(pack_record(record, reclen) for record in records)


class PackedRecordDecoder(RecordDecoder):
    """
    Decoder for the packed record framing.

    Honours Selection objects (anything with a matches(record) method);
    unselected records are skipped silently.
    """

    def decode(
        self,
        buffer: bytes,
        offset: int,
        selection: Any = None,
        unpack_data: bool = True,
        record_length: int = 0,
        verbose: bool = False
    ) -> Tuple[int, Record]:
        buflen = len(buffer)
        while offset < buflen:
            if buffer[offset:offset + len(MAGIC)] != MAGIC:
                raise RecordDecodeError(f"No record header at offset {offset}",
                                        self._resync(buffer, offset))
            try:
                record = self._parse(buffer, offset, unpack_data, record_length)
            except (struct.error, ValueError, UnicodeDecodeError) as e:
                raise RecordDecodeError(f"Corrupt record at offset {offset}: {e}",
                                        self._resync(buffer, offset)) from e

            if selection is None or selection.matches(record):
                return offset, record

            if verbose:
                logger.debug(f"Skipping unselected record at offset {offset}: {record}")
            offset += record.reclen

        raise RecordDecodeError("End of buffer", buflen)

    @staticmethod
    def _resync(buffer: bytes, offset: int) -> int:
        """Offset of the next record header after offset, or end of buffer"""
        found = buffer.find(MAGIC, offset + 1)
        return found if found != -1 else len(buffer)

    @staticmethod
    def _parse(buffer: bytes, offset: int, unpack_data: bool,
               record_length: int) -> Record:
        if offset + HEADER.size > len(buffer):
            raise ValueError("truncated header")
        (_, network, station, location, channel, quality, sampletype,
         starttime, samprate, samplecnt, nblockettes, reclen) = HEADER.unpack_from(buffer, offset)

        sampletype = sampletype.decode('ascii')
        size = sample_size(sampletype)

        position = offset + HEADER.size
        blockettes = []
        for _ in range(nblockettes):
            blkt_type, length = BLOCKETTE_HEADER.unpack_from(buffer, position)
            position += BLOCKETTE_HEADER.size
            payload = bytes(buffer[position:position + length])
            if len(payload) != length:
                raise ValueError(f"truncated blockette {blkt_type}")
            blockettes.append(Blockette(blkt_type, payload))
            position += length

        natural = position - offset + samplecnt * size
        if not reclen:
            reclen = record_length or natural
        if reclen < natural:
            raise ValueError(f"record length {reclen} shorter than content ({natural} bytes)")
        if offset + reclen > len(buffer):
            raise ValueError(f"truncated record: {reclen} bytes declared")

        samples: Optional[np.ndarray] = None
        if unpack_data:
            samples = np.frombuffer(buffer, dtype=_wire_dtype(sampletype),
                                    count=samplecnt, offset=position)
            samples = samples.astype(sample_dtype(sampletype))

        return Record(
            network=_decode_code(network),
            station=_decode_code(station),
            location=_decode_code(location),
            channel=_decode_code(channel),
            dataquality=quality.decode('ascii'),
            starttime=starttime,
            endtime=record_endtime(starttime, samprate, samplecnt),
            samprate=samprate,
            sampletype=sampletype,
            samplecnt=samplecnt,
            samples=samples,
            blockettes=blockettes,
            reclen=reclen,
        )
