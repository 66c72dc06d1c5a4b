"""
Trace Assembler - contiguous segments from decoded telemetry records

Takes a buffer of independently decoded records (station identifier,
start time, sample rate, sample type, samples) and groups them into the
minimal set of maximal contiguous segments per identifier.

Quick Start:
    from trace_assembler import assemble

    for bucket in assemble(data, details=True):
        for segment in bucket.chain:
            print(bucket.key, segment, segment.samples[:10])
"""

__version__ = "1.0.0"

# =============================================================================
# ASSEMBLY (primary interface)
# =============================================================================
from .assembler import (
    TraceAssembler,
    AssemblerConfig,
    AssemblyStats,
    assemble,
    iter_segments,
)
from .config import load_config, config_from_dict

# =============================================================================
# DATA MODEL
# =============================================================================
from .records import (
    HPTMODULUS,
    Blockette,
    Record,
    record_endtime,
    sample_size,
    sample_dtype,
    hptime_to_datetime,
    format_hptime,
    datetime_to_hptime,
)
from .segments import Segment, SegmentChain
from .registry import IdentifierRegistry, TraceBucket, TraceKey

# =============================================================================
# BUILDING BLOCKS
# =============================================================================
from .aux_fields import AuxFieldExtractor, AuxInfo, FieldDescriptor
from .continuity import accepts, is_rate_tolerable, time_tolerance
from .materializer import materialize, allocate_samples
from .decoder import RecordDecoder, Selection, SelectionRule
from .packed import PackedRecordDecoder, pack_record, pack_records
from .errors import (
    TraceAssemblerError,
    RecordDecodeError,
    AssemblyError,
    AllocationError,
    MaterializationError,
)

__all__ = [
    # === Assembly ===
    "TraceAssembler",
    "AssemblerConfig",
    "AssemblyStats",
    "assemble",
    "iter_segments",
    "load_config",
    "config_from_dict",
    # === Data model ===
    "HPTMODULUS",
    "Blockette",
    "Record",
    "record_endtime",
    "sample_size",
    "sample_dtype",
    "hptime_to_datetime",
    "format_hptime",
    "datetime_to_hptime",
    "Segment",
    "SegmentChain",
    "IdentifierRegistry",
    "TraceBucket",
    "TraceKey",
    # === Building blocks ===
    "AuxFieldExtractor",
    "AuxInfo",
    "FieldDescriptor",
    "accepts",
    "is_rate_tolerable",
    "time_tolerance",
    "materialize",
    "allocate_samples",
    "RecordDecoder",
    "Selection",
    "SelectionRule",
    "PackedRecordDecoder",
    "pack_record",
    "pack_records",
    # === Errors ===
    "TraceAssemblerError",
    "RecordDecodeError",
    "AssemblyError",
    "AllocationError",
    "MaterializationError",
]
