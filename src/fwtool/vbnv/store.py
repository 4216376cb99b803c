"""
VBNV flag store.

Reads and writes named flags of the verified-boot non-volatile record kept
in the RW_NVRAM flash region. The region is a run of 16-byte slots; the
current record is the one just before the first erased (0xFF) slot. Every
write lands in the next erased slot, and when none is left the region is
erased and the record is written back to slot 0.

A missing or corrupt record reads as defaults, the way the bootloader
regenerates it.
"""

import logging
from enum import IntEnum
from typing import Optional, Protocol, Tuple

from fwtool.core.errors import (
    FlashError,
    FmapError,
    InvalidFlagValue,
    PartialStateTransition,
    ReadOnlyFlag,
    UnknownFlag,
    VbnvError,
    VbnvIoError,
)
from fwtool.core.interfaces import FlashDevice
from fwtool.fmap import read_section, write_section
from fwtool.vbnv.fields import FIELDS_BY_NAME, VbnvField

logger = logging.getLogger(__name__)

RECORD_SIZE = 16
HEADER_OFFSET = 0
HEADER_SIGNATURE = 0x40
HEADER_SIGNATURE_MASK = 0xC0
CRC_OFFSET = 15
ERASED = 0xFF


class BootResult(IntEnum):
    """Firmware boot result stored in the boot_result flag."""
    UNKNOWN = 0
    SUCCESS = 1
    FAILURE = 2
    TRYING = 3


class FlagStore(Protocol):
    """Anything that can get and set named VBNV flags."""

    def get_flag(self, name: str) -> int:
        ...

    def set_flag(self, name: str, value: int) -> None:
        ...


def crc8(data: bytes) -> int:
    """CRC-8, polynomial x^8 + x^2 + x + 1 (0x07), initial value 0."""
    crc = 0
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ 0x07) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
    return crc


def default_record() -> bytearray:
    record = bytearray(RECORD_SIZE)
    record[HEADER_OFFSET] = HEADER_SIGNATURE
    record[CRC_OFFSET] = crc8(record[:CRC_OFFSET])
    return record


def record_is_valid(record: bytes) -> bool:
    if len(record) != RECORD_SIZE:
        return False
    if record[HEADER_OFFSET] & HEADER_SIGNATURE_MASK != HEADER_SIGNATURE:
        return False
    return record[CRC_OFFSET] == crc8(record[:CRC_OFFSET])


def lookup_field(name: str) -> VbnvField:
    """
    Raises:
        UnknownFlag: If ``name`` is not part of the VBNV namespace.
    """
    field = FIELDS_BY_NAME.get(name)
    if field is None:
        raise UnknownFlag(name)
    return field


class VbnvStore:
    """Named flag access to the VBNV record on a flash device."""

    def __init__(self, device: FlashDevice, section: str = "RW_NVRAM"):
        self.device = device
        self.section = section

    def _read_region(self) -> bytes:
        try:
            found = read_section(self.device, self.section)
        except (FlashError, FmapError) as e:
            raise VbnvIoError(f"Cannot read {self.section}: {e}") from e
        if found is None:
            raise VbnvIoError(f"{self.device.name}: no {self.section} region")
        region, _ = found
        if len(region) < RECORD_SIZE:
            raise VbnvIoError(
                f"{self.section} too small for a VBNV record ({len(region)} bytes)"
            )
        return region

    @staticmethod
    def _current_slot(region: bytes) -> Tuple[Optional[int], int]:
        """Return (current slot or None, slot count)."""
        slots = len(region) // RECORD_SIZE
        for i in range(slots):
            chunk = region[i * RECORD_SIZE:(i + 1) * RECORD_SIZE]
            if all(b == ERASED for b in chunk):
                return (i - 1 if i > 0 else None), slots
        return slots - 1, slots

    def read_record(self) -> bytearray:
        """Current record, or defaults when none is stored or it is corrupt."""
        region = self._read_region()
        slot, _ = self._current_slot(region)
        if slot is None:
            logger.debug(f"{self.section}: erased, using default record")
            return default_record()
        record = bytearray(region[slot * RECORD_SIZE:(slot + 1) * RECORD_SIZE])
        if not record_is_valid(record):
            logger.warning(f"{self.section}: record in slot {slot} is corrupt, using defaults")
            return default_record()
        return record

    def write_record(self, record: bytearray) -> None:
        """Seal ``record`` with its CRC and append it to the region."""
        record[HEADER_OFFSET] = (record[HEADER_OFFSET] & ~HEADER_SIGNATURE_MASK & 0xFF) | HEADER_SIGNATURE
        record[CRC_OFFSET] = crc8(record[:CRC_OFFSET])

        region = self._read_region()
        slot, slots = self._current_slot(region)
        next_slot = 0 if slot is None else slot + 1
        try:
            if next_slot >= slots:
                # Erase and rewrite in one write so a failure keeps the old slots.
                logger.debug(f"{self.section}: full, rewriting from slot 0")
                next_slot = 0
                write_section(
                    self.device,
                    self.section,
                    bytes(record).ljust(len(region), bytes([ERASED])),
                )
            else:
                write_section(self.device, self.section, bytes(record), next_slot * RECORD_SIZE)
        except (FlashError, FmapError) as e:
            raise VbnvIoError(f"Cannot write {self.section}: {e}") from e
        logger.debug(f"{self.section}: record written to slot {next_slot}")

    def get_flag(self, name: str) -> int:
        """
        Read a flag value.

        Raises:
            UnknownFlag: If the flag is not part of the namespace
            VbnvIoError: If the record cannot be read
        """
        field = lookup_field(name)
        value = field.extract(self.read_record())
        logger.debug(f"vbnv get {name} = {value}")
        return value

    def set_flag(self, name: str, value: int) -> None:
        """
        Write a flag value. The record is written back immediately.

        Raises:
            UnknownFlag: If the flag is not part of the namespace
            ReadOnlyFlag: If the flag cannot be written
            InvalidFlagValue: If the value does not fit the field
            VbnvIoError: If the record cannot be read or written
        """
        field = lookup_field(name)
        if not field.writable:
            raise ReadOnlyFlag(name)
        if not 0 <= value <= 0xFF:
            raise InvalidFlagValue(f"Value {value} for '{name}' is not an 8-bit value")
        if value > field.max_value:
            raise InvalidFlagValue(
                f"Value {value} for '{name}' out of range (0-{field.max_value})"
            )

        record = self.read_record()
        field.insert(record, value)
        self.write_record(record)
        logger.debug(f"vbnv set {name} = {value}")

    def mark_boot_success(self) -> None:
        mark_boot_success(self)


def mark_boot_success(store: FlagStore) -> None:
    """
    Record that the current boot succeeded.

    Writes boot_result = SUCCESS, then try_count = 0. The pair is not
    atomic: if the first write fails nothing else is attempted; if the
    second fails, boot_result stays SUCCESS and PartialStateTransition is
    raised. Recovery is to retry the whole operation.

    Raises:
        VbnvError: If the first write fails
        PartialStateTransition: If only the first write succeeded
    """
    store.set_flag("boot_result", BootResult.SUCCESS)
    try:
        store.set_flag("try_count", 0)
    except VbnvError as e:
        raise PartialStateTransition("boot_result", "try_count", e) from e
