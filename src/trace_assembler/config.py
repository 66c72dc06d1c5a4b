"""
Configuration loading for the trace assembler

Example config.toml:

    [assembler]
    unpack_data = true
    record_length = 512
    verbose = false
    details = true

    # Blockette 1001 'usec' byte must match for records to merge
    [[assembler.fields]]
    blockette = 1001
    offset = 1
    length = 1
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import toml

from .aux_fields import FieldDescriptor
from .assembler import AssemblerConfig

logger = logging.getLogger(__name__)

BOOL_KEYS = ('unpack_data', 'verbose', 'details')
FIELD_KEYS = ('blockette', 'offset', 'length')


def _field_from_dict(entry: Dict[str, Any], index: int) -> FieldDescriptor:
    if not isinstance(entry, dict):
        raise ValueError(f"assembler.fields[{index}] must be a table")
    missing = [key for key in FIELD_KEYS if key not in entry]
    if missing:
        raise ValueError(f"assembler.fields[{index}] missing {', '.join(missing)}")
    for key in FIELD_KEYS:
        value = entry[key]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"assembler.fields[{index}].{key} must be an integer")
    extra = set(entry) - set(FIELD_KEYS)
    if extra:
        logger.warning(f"Ignoring unknown keys in assembler.fields[{index}]: {sorted(extra)}")
    return FieldDescriptor(entry['blockette'], entry['offset'], entry['length'])


def config_from_dict(config: Dict[str, Any]) -> AssemblerConfig:
    """
    Build an AssemblerConfig from a parsed TOML document.

    Args:
        config: Parsed configuration; options live in the [assembler] table

    Returns:
        AssemblerConfig with defaults for anything not given
    """
    section = config.get('assembler', {})
    if not isinstance(section, dict):
        raise ValueError("[assembler] must be a table")

    options: Dict[str, Any] = {}
    for key in BOOL_KEYS:
        if key in section:
            if not isinstance(section[key], bool):
                raise ValueError(f"assembler.{key} must be true or false")
            options[key] = section[key]

    if 'record_length' in section:
        record_length = section['record_length']
        if isinstance(record_length, bool) or not isinstance(record_length, int) \
                or record_length < 0:
            raise ValueError("assembler.record_length must be a non-negative integer")
        options['record_length'] = record_length

    fields = section.get('fields', [])
    if not isinstance(fields, list):
        raise ValueError("assembler.fields must be an array of tables")
    options['fields'] = [_field_from_dict(entry, i) for i, entry in enumerate(fields)]

    known = set(BOOL_KEYS) | {'record_length', 'fields'}
    extra = set(section) - known
    if extra:
        logger.warning(f"Ignoring unknown assembler options: {sorted(extra)}")

    return AssemblerConfig(**options)


def load_config(path: Union[str, Path]) -> AssemblerConfig:
    """Load an AssemblerConfig from a TOML file"""
    path = Path(path)
    with open(path, 'r') as f:
        config = toml.load(f)
    logger.info(f"Loaded configuration from {path}")
    return config_from_dict(config)
