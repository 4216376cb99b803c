"""
VBNV flag namespace.

The verified-boot non-volatile record is 16 bytes. Each named flag lives in
one byte under a bit mask:

    byte 0    header (signature + settings-reset bits)
    byte 1    boot: try_count, backup/disable-dev requests, debug reset
    byte 2    recovery request
    byte 3    localization index
    byte 4    developer-mode boot options
    byte 5    TPM requests
    byte 6    recovery subcode
    byte 7    boot2: firmware result / tried slot / next slot / previous attempt
    byte 8    misc requests
    byte 15   CRC-8 over bytes 0-14
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class VbnvField:
    """One named flag inside the VBNV record."""
    name: str
    offset: int
    mask: int
    description: str
    writable: bool = True

    @property
    def shift(self) -> int:
        return (self.mask & -self.mask).bit_length() - 1

    @property
    def max_value(self) -> int:
        return self.mask >> self.shift

    def extract(self, record: bytes) -> int:
        return (record[self.offset] & self.mask) >> self.shift

    def insert(self, record: bytearray, value: int) -> None:
        byte = record[self.offset] & ~self.mask & 0xFF
        record[self.offset] = byte | ((value << self.shift) & self.mask)


VBNV_FIELDS: Tuple[VbnvField, ...] = (
    VbnvField("try_count", 1, 0x0F, "Number of times to try the next firmware slot"),
    VbnvField("backup_nvram_request", 1, 0x10, "Request a backup of the NV record"),
    VbnvField("disable_dev_request", 1, 0x40, "Request to leave developer mode"),
    VbnvField("debug_reset_mode", 1, 0x80, "Debug reset mode requested"),
    VbnvField("recovery_request", 2, 0xFF, "Recovery mode reason code requested at next boot"),
    VbnvField("localization_index", 3, 0xFF, "Firmware screen localization index"),
    VbnvField("dev_boot_usb", 4, 0x01, "Allow booting from USB in developer mode"),
    VbnvField("dev_boot_legacy", 4, 0x02, "Allow legacy boot in developer mode"),
    VbnvField("dev_boot_signed_only", 4, 0x04, "Only boot signed images in developer mode"),
    VbnvField("clear_tpm_owner_request", 5, 0x01, "Request to clear the TPM owner at next boot"),
    VbnvField("clear_tpm_owner_done", 5, 0x02, "TPM owner was cleared", writable=False),
    VbnvField("recovery_subcode", 6, 0xFF, "Recovery reason subcode"),
    VbnvField("boot_result", 7, 0x03, "Result of the current boot (0=unknown 1=success 2=failure 3=trying)"),
    VbnvField("fw_tried", 7, 0x04, "Firmware slot tried on this boot (0=A 1=B)", writable=False),
    VbnvField("try_next", 7, 0x08, "Firmware slot to try on next boot (0=A 1=B)"),
    VbnvField("prev_result", 7, 0x30, "Result of the previous boot", writable=False),
    VbnvField("prev_tried", 7, 0x40, "Firmware slot tried on the previous boot", writable=False),
    VbnvField("boot_on_ac_detect", 8, 0x02, "Boot when AC is connected"),
    VbnvField("try_ro_sync", 8, 0x04, "Try read-only EC software sync"),
    VbnvField("battery_cutoff_request", 8, 0x08, "Cut off the battery at next shutdown"),
)

FIELDS_BY_NAME: Dict[str, VbnvField] = {f.name: f for f in VBNV_FIELDS}


def flag_names(writable: bool = False) -> List[str]:
    """Names of all flags, or only the writable ones."""
    return [f.name for f in VBNV_FIELDS if f.writable or not writable]


def usage_lines(writable: bool = False) -> List[str]:
    """Usage listing of the namespace for the read or write direction."""
    return [
        f"    {f.name:<24} {f.description}"
        for f in VBNV_FIELDS
        if f.writable or not writable
    ]
