"""Tests for the VBNV flag store and boot-result transition."""

import pytest

from fwtool.core.errors import (
    InvalidFlagValue,
    PartialStateTransition,
    ReadOnlyFlag,
    UnknownFlag,
    VbnvIoError,
)
from fwtool.vbnv import (
    FIELDS_BY_NAME,
    RECORD_SIZE,
    BootResult,
    VbnvStore,
    crc8,
    default_record,
    flag_names,
    mark_boot_success,
    record_is_valid,
    usage_lines,
)

from fakes import NVRAM_OFFSET, NVRAM_SIZE, FakeDevice, RecordingFlagStore, build_image


def _store(fail_write_at=None, nvram=True):
    device = FakeDevice("spi", build_image(nvram=nvram), fail_write_at=fail_write_at)
    return VbnvStore(device), device


def _slot(device, index):
    start = NVRAM_OFFSET + index * RECORD_SIZE
    return bytes(device.data[start:start + RECORD_SIZE])


class TestRecordFormat:

    def test_crc8_check_value(self):
        assert crc8(b"123456789") == 0xF4

    def test_default_record_is_valid(self):
        record = default_record()
        assert len(record) == RECORD_SIZE
        assert record[0] == 0x40
        assert record_is_valid(record)

    def test_bad_crc_is_invalid(self):
        record = default_record()
        record[3] = 7
        assert not record_is_valid(record)

    def test_bad_signature_is_invalid(self):
        record = bytearray(RECORD_SIZE)
        record[15] = crc8(bytes(record[:15]))
        assert not record_is_valid(record)

    def test_field_insert_keeps_neighbouring_bits(self):
        record = bytearray(RECORD_SIZE)
        record[7] = 0xFF
        FIELDS_BY_NAME["boot_result"].insert(record, 1)
        assert record[7] == 0xFD
        assert FIELDS_BY_NAME["boot_result"].extract(record) == 1
        assert FIELDS_BY_NAME["try_next"].extract(record) == 1

    def test_shifted_field(self):
        field = FIELDS_BY_NAME["prev_result"]
        assert field.shift == 4
        assert field.max_value == 3


class TestNamespace:

    def test_write_listing_excludes_read_only_flags(self):
        read = "\n".join(usage_lines(writable=False))
        write = "\n".join(usage_lines(writable=True))
        assert "fw_tried" in read
        assert "fw_tried" not in write
        assert "try_count" in write
        assert "boot_result" in write

    def test_flag_names(self):
        assert "try_count" in flag_names()
        assert set(flag_names(writable=True)) < set(flag_names())


class TestVbnvStore:

    def test_erased_region_reads_defaults(self):
        store, device = _store()
        assert store.get_flag("try_count") == 0
        assert store.get_flag("boot_result") == BootResult.UNKNOWN
        assert device.writes == []

    def test_set_then_get(self):
        store, device = _store()
        store.set_flag("try_count", 6)
        assert store.get_flag("try_count") == 6
        assert record_is_valid(_slot(device, 0))

    def test_each_write_appends_a_slot(self):
        store, device = _store()
        store.set_flag("try_count", 1)
        store.set_flag("try_count", 2)
        assert [offset for offset, _ in device.writes] == [NVRAM_OFFSET, NVRAM_OFFSET + RECORD_SIZE]
        assert FIELDS_BY_NAME["try_count"].extract(_slot(device, 0)) == 1
        assert store.get_flag("try_count") == 2

    def test_full_region_is_erased_and_rewritten(self):
        store, device = _store()
        slots = NVRAM_SIZE // RECORD_SIZE
        for value in range(slots):
            store.set_flag("try_count", value)
        store.set_flag("try_count", 9)

        assert store.get_flag("try_count") == 9
        assert FIELDS_BY_NAME["try_count"].extract(_slot(device, 0)) == 9
        assert _slot(device, 1) == b"\xff" * RECORD_SIZE
        assert device.writes[-1] == (NVRAM_OFFSET, _slot(device, 0).ljust(NVRAM_SIZE, b"\xff"))

    def test_failed_wrap_keeps_previous_record(self):
        store, device = _store()
        store.set_flag("recovery_request", 0x42)
        for value in range(1, NVRAM_SIZE // RECORD_SIZE):
            store.set_flag("try_count", value)
        device.fail_write_at = len(device.writes) + 1

        with pytest.raises(VbnvIoError):
            store.set_flag("try_count", 4)

        assert store.get_flag("recovery_request") == 0x42
        assert store.get_flag("try_count") == NVRAM_SIZE // RECORD_SIZE - 1

    def test_other_fields_survive_a_write(self):
        store, _ = _store()
        store.set_flag("recovery_request", 0x42)
        store.set_flag("try_count", 3)
        assert store.get_flag("recovery_request") == 0x42

    def test_corrupt_record_reads_defaults(self):
        store, device = _store()
        store.set_flag("try_count", 5)
        device.data[NVRAM_OFFSET + 15] ^= 0xFF
        assert store.get_flag("try_count") == 0

    def test_unknown_flag_does_not_touch_storage(self):
        store, device = _store()
        with pytest.raises(UnknownFlag):
            store.get_flag("nosuchflag")
        with pytest.raises(UnknownFlag):
            store.set_flag("nosuchflag", 1)
        assert device.writes == []

    def test_read_only_flag_rejected(self):
        store, _ = _store()
        with pytest.raises(ReadOnlyFlag):
            store.set_flag("fw_tried", 1)

    def test_value_must_fit_field(self):
        store, _ = _store()
        with pytest.raises(InvalidFlagValue):
            store.set_flag("try_count", 16)
        with pytest.raises(InvalidFlagValue):
            store.set_flag("recovery_request", 256)
        with pytest.raises(InvalidFlagValue):
            store.set_flag("recovery_request", -1)

    def test_missing_nvram_region_is_io_error(self):
        store, _ = _store(nvram=False)
        with pytest.raises(VbnvIoError):
            store.get_flag("try_count")

    def test_write_failure_is_io_error(self):
        store, _ = _store(fail_write_at=1)
        with pytest.raises(VbnvIoError):
            store.set_flag("try_count", 1)


class TestMarkBootSuccess:

    def test_writes_result_then_try_count(self):
        store = RecordingFlagStore({"boot_result": BootResult.TRYING, "try_count": 4})
        mark_boot_success(store)
        assert store.writes == [("boot_result", 1), ("try_count", 0)]

    def test_first_failure_stops_transition(self):
        store = RecordingFlagStore(fail_write_at=1)
        with pytest.raises(VbnvIoError) as ei:
            mark_boot_success(store)
        assert not isinstance(ei.value, PartialStateTransition)
        assert store.writes == []

    def test_second_failure_is_partial_transition(self):
        store = RecordingFlagStore({"try_count": 4}, fail_write_at=2)
        with pytest.raises(PartialStateTransition) as ei:
            mark_boot_success(store)
        assert ei.value.completed == "boot_result"
        assert ei.value.failed == "try_count"
        assert store.writes == [("boot_result", 1)]

    def test_partial_transition_is_visible_in_flash(self):
        store, device = _store()
        store.set_flag("try_count", 4)
        device.fail_write_at = 3

        with pytest.raises(PartialStateTransition):
            store.mark_boot_success()

        assert store.get_flag("boot_result") == BootResult.SUCCESS
        assert store.get_flag("try_count") == 4

    def test_retry_completes_transition(self):
        store, device = _store()
        store.set_flag("try_count", 4)
        device.fail_write_at = 3
        with pytest.raises(PartialStateTransition):
            store.mark_boot_success()

        device.fail_write_at = None
        store.mark_boot_success()
        assert store.get_flag("boot_result") == BootResult.SUCCESS
        assert store.get_flag("try_count") == 0

    def test_partial_transition_across_full_region(self):
        store, device = _store()
        for value in range(NVRAM_SIZE // RECORD_SIZE - 1):
            store.set_flag("try_count", value + 4)
        # boot_result takes the last free slot; the try_count write must wrap.
        device.fail_write_at = len(device.writes) + 2

        with pytest.raises(PartialStateTransition):
            store.mark_boot_success()

        assert store.get_flag("boot_result") == BootResult.SUCCESS
        assert store.get_flag("try_count") == 6
