"""
Exception types raised by the trace assembler.

Decode errors are local to one record and never escape the driver.
Allocation errors are fatal for the whole run.
"""

from typing import Optional


class TraceAssemblerError(Exception):
    """Base class for all trace assembler errors"""


class RecordDecodeError(TraceAssemblerError):
    """
    No valid record starts at the current input offset.

    Attributes:
        offset: Input cursor after the decoder's resynchronisation. The
            driver resumes scanning here, so it must lie past the offset
            the decode was attempted at.
    """

    def __init__(self, message: str, offset: int):
        super().__init__(message)
        self.offset = offset


class AssemblyError(TraceAssemblerError):
    """Unrecoverable failure of an assembly run"""


class AllocationError(AssemblyError):
    """The sample allocator failed or returned an unusable buffer"""

    def __init__(self, message: str, samplecnt: Optional[int] = None,
                 sampletype: Optional[str] = None):
        super().__init__(message)
        self.samplecnt = samplecnt
        self.sampletype = sampletype


class MaterializationError(AllocationError):
    """A record's samples could not be copied into its segment buffer"""
