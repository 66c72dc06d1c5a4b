#!/usr/bin/env python3
"""
Identifier Registry - one segment chain per station identifier

Records are grouped by exact equality of network, station, location,
channel and data quality. Buckets are created on first encounter and
kept for the whole run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .segments import SegmentChain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceKey:
    """Identifier of a trace: NET.STA.LOC.CHA plus quality code"""
    network: str
    station: str
    location: str
    channel: str
    dataquality: str

    @classmethod
    def from_tuple(cls, key: Tuple[str, str, str, str, str]) -> 'TraceKey':
        return cls(*key)

    @classmethod
    def empty(cls) -> 'TraceKey':
        return cls('', '', '', '', '')

    @property
    def is_empty(self) -> bool:
        return self == TraceKey.empty()

    def __str__(self):
        return (f"{self.network}.{self.station}.{self.location}."
                f"{self.channel}.{self.dataquality}")


@dataclass
class TraceBucket:
    """An identifier and its ordered segments"""
    key: TraceKey
    chain: SegmentChain = field(default_factory=SegmentChain)

    @property
    def segments(self) -> List:
        return list(self.chain)


class IdentifierRegistry:
    """
    Maps identifiers to their buckets.

    Lookup is exact-match on the full key; iteration follows creation
    order.
    """

    def __init__(self):
        self._buckets: Dict[TraceKey, TraceBucket] = {}

    def lookup_or_create(self, key: TraceKey) -> TraceBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TraceBucket(key=key)
            self._buckets[key] = bucket
            logger.debug(f"New identifier: {key}")
        return bucket

    def buckets(self) -> List[TraceBucket]:
        return list(self._buckets.values())

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: TraceKey) -> bool:
        return key in self._buckets

    def clear(self):
        """Release every segment and record held by the registry"""
        for bucket in self._buckets.values():
            bucket.chain.clear()
        self._buckets.clear()
