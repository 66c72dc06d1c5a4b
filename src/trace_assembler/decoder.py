"""
Record Decoder Interface

Defines the contract between the assembler and whatever turns input
bytes into Records. The assembler calls decode() once per record and
treats the result as ground truth; it never looks inside the selection
object it passes through.
"""

import fnmatch
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .records import Record


class RecordDecoder(ABC):
    """
    Decodes one record starting at a buffer offset.

    Implementations skip records rejected by the selection on their own
    and report only genuine failures.
    """

    @abstractmethod
    def decode(
        self,
        buffer: bytes,
        offset: int,
        selection: Any = None,
        unpack_data: bool = True,
        record_length: int = 0,
        verbose: bool = False
    ) -> Tuple[int, Record]:
        """
        Decode the next selected record at or after offset.

        Args:
            buffer: Complete input buffer
            offset: Cursor to start decoding at
            selection: Opaque filter, interpreted by the decoder only
            unpack_data: Decode samples (False leaves Record.samples None)
            record_length: Nominal record length hint, 0 to autodetect
            verbose: Emit decoder diagnostics

        Returns:
            (record_offset, record): where the decoded record starts
            (past any skipped, unselected records) and the record. The
            assembler resumes at record_offset + record.reclen.

        Raises:
            RecordDecodeError: No valid record at offset. The error's
                offset must be past the input offset.
        """
        pass


@dataclass
class SelectionRule:
    """
    One accept pattern.

    String fields are shell-style globs. Times are ticks; None leaves
    that side of the window open.
    """
    network: str = '*'
    station: str = '*'
    location: str = '*'
    channel: str = '*'
    dataquality: Optional[str] = None
    starttime: Optional[int] = None
    endtime: Optional[int] = None

    @classmethod
    def parse(cls, pattern: str, **kwargs) -> 'SelectionRule':
        """Build a rule from 'NET.STA.LOC.CHA' (missing parts match anything)"""
        parts = pattern.split('.')
        if len(parts) > 4:
            raise ValueError(f"Invalid selection pattern: {pattern!r}")
        parts += ['*'] * (4 - len(parts))
        return cls(*parts, **kwargs)

    def matches(self, record: Record) -> bool:
        if not (fnmatch.fnmatchcase(record.network, self.network)
                and fnmatch.fnmatchcase(record.station, self.station)
                and fnmatch.fnmatchcase(record.location, self.location)
                and fnmatch.fnmatchcase(record.channel, self.channel)):
            return False
        if self.dataquality is not None and record.dataquality != self.dataquality:
            return False
        # Records overlapping the window are kept
        if self.starttime is not None and record.endtime < self.starttime:
            return False
        if self.endtime is not None and record.starttime > self.endtime:
            return False
        return True


@dataclass
class Selection:
    """A record is selected when any rule matches; no rules select all"""
    rules: List[SelectionRule] = field(default_factory=list)

    @classmethod
    def from_patterns(cls, patterns: List[str]) -> 'Selection':
        return cls([SelectionRule.parse(p) for p in patterns])

    def matches(self, record: Record) -> bool:
        if not self.rules:
            return True
        return any(rule.matches(record) for rule in self.rules)
