"""
Verified-boot non-volatile (VBNV) flag storage.
"""

from .fields import VbnvField, VBNV_FIELDS, FIELDS_BY_NAME, flag_names, usage_lines
from .store import (
    BootResult,
    FlagStore,
    VbnvStore,
    RECORD_SIZE,
    crc8,
    default_record,
    record_is_valid,
    lookup_field,
    mark_boot_success,
)

__all__ = [
    "VbnvField",
    "VBNV_FIELDS",
    "FIELDS_BY_NAME",
    "flag_names",
    "usage_lines",
    "BootResult",
    "FlagStore",
    "VbnvStore",
    "RECORD_SIZE",
    "crc8",
    "default_record",
    "record_is_valid",
    "lookup_field",
    "mark_boot_success",
]
