"""Tests for the image-file flash backend, identity lookup and updater."""

import builtins
import errno

import pytest

from fwtool import flash
from fwtool.core.devices import DeviceRegistry
from fwtool.core.errors import FlashError
from fwtool.flash import ImageFileBackend
from fwtool.fmap import read_section, section_text
from fwtool.identity import DeviceTreeIdentity
from fwtool.update import ImageUpdater, merge_preserved
from fwtool.vbnv.store import VbnvStore

from fakes import NVRAM_OFFSET, FakeBackend, FakeDevice, build_image


class TestImageFileBackend:

    def test_read_write(self, tmp_path):
        path = tmp_path / "bios.bin"
        path.write_bytes(b"\x00" * 64)
        device = ImageFileBackend({"spi": path}).open("spi")
        try:
            assert device.size == 64
            device.write(8, b"\xAA\xBB")
            assert device.read(8, 2) == b"\xAA\xBB"
        finally:
            device.close()
        assert path.read_bytes()[8:10] == b"\xAA\xBB"

    def test_out_of_range_access(self, tmp_path):
        path = tmp_path / "bios.bin"
        path.write_bytes(b"\x00" * 16)
        device = ImageFileBackend({"spi": path}).open("spi")
        try:
            with pytest.raises(FlashError):
                device.read(10, 10)
            with pytest.raises(FlashError):
                device.write(15, b"\x00\x00")
        finally:
            device.close()

    def test_read_only_backend(self, tmp_path):
        path = tmp_path / "bios.bin"
        path.write_bytes(b"\x00" * 16)
        device = ImageFileBackend({"spi": path}, writable=False).open("spi")
        try:
            with pytest.raises(FlashError):
                device.write(0, b"\x01")
        finally:
            device.close()

    def test_unwritable_image_opens_read_only(self, tmp_path, monkeypatch):
        path = tmp_path / "bios.bin"
        path.write_bytes(b"\x5a" * 16)

        def read_only_open(file, mode="r", *args, **kwargs):
            if "+" in mode:
                raise PermissionError(13, "Permission denied", str(file))
            return builtins.open(file, mode, *args, **kwargs)

        monkeypatch.setattr(flash, "open", read_only_open, raising=False)
        device = ImageFileBackend({"spi": path}).open("spi")
        try:
            assert device.read(0, 4) == b"\x5a" * 4
            with pytest.raises(FlashError):
                device.write(0, b"\x00")
        finally:
            device.close()
        assert path.read_bytes() == b"\x5a" * 16

    def test_unconfigured_and_missing_devices(self, tmp_path):
        backend = ImageFileBackend({"spi": tmp_path / "missing.bin"})
        with pytest.raises(FlashError):
            backend.open("ec")
        with pytest.raises(FlashError):
            backend.open("spi")

    def test_vbnv_round_trip_on_file(self, tmp_path):
        path = tmp_path / "bios.bin"
        path.write_bytes(build_image())
        with DeviceRegistry(ImageFileBackend({"spi": path})) as devices:
            VbnvStore(devices.acquire("spi")).set_flag("try_next", 1)
        with DeviceRegistry(ImageFileBackend({"spi": path})) as devices:
            assert VbnvStore(devices.acquire("spi")).get_flag("try_next") == 1


class TestDeviceTreeIdentity:

    def test_read_string_strips_nul(self, tmp_path):
        (tmp_path / "firmware-type").write_bytes(b"developer\x00")
        identity = DeviceTreeIdentity(tmp_path)
        assert identity.read_string("firmware-type") == "developer"
        assert identity.read_string("hardware-id") is None

    def test_main_firmware_slot(self, tmp_path):
        identity = DeviceTreeIdentity(tmp_path)
        assert identity.main_firmware_slot() == "?"
        (tmp_path / "active-main-firmware").write_bytes(b"B\x00")
        assert identity.main_firmware_slot() == "B"


class TestImageUpdater:

    def _setup(self, tmp_path, spi_data=None, ec_data=None):
        spi = FakeDevice("spi", spi_data or build_image(strings={"RO_FRID": "old"}))
        ec = FakeDevice("ec", ec_data or build_image(nvram=False))
        backend = FakeBackend({"spi": spi, "ec": ec})
        main_image = tmp_path / "main.bin"
        ec_image = tmp_path / "ec.bin"
        main_image.write_bytes(build_image(strings={"RO_FRID": "new"}))
        ec_image.write_bytes(build_image(strings={"RO_FRID": "ec_new"}, nvram=False))
        return ImageUpdater(DeviceRegistry(backend)), spi, ec, str(main_image), str(ec_image)

    def test_apply_writes_both_images(self, tmp_path):
        updater, spi, ec, main_image, ec_image = self._setup(tmp_path)
        assert updater.apply(main_image, ec_image, force=True) == 0
        assert section_text(read_section(spi, "RO_FRID")[0]) == "new"
        assert section_text(read_section(ec, "RO_FRID")[0]) == "ec_new"

    def test_nvram_is_preserved(self, tmp_path):
        updater, spi, _, main_image, ec_image = self._setup(tmp_path)
        VbnvStore(spi).set_flag("try_count", 9)
        updater.apply(main_image, ec_image, force=True)
        assert VbnvStore(spi).get_flag("try_count") == 9

    def test_unchanged_image_skipped_without_force(self, tmp_path):
        same = build_image(strings={"RO_FRID": "new"})
        updater, spi, _, main_image, ec_image = self._setup(tmp_path, spi_data=same)
        assert updater.apply(main_image, ec_image, force=False) == 0
        assert spi.writes == []

    def test_size_mismatch(self, tmp_path):
        updater, _, _, _, ec_image = self._setup(tmp_path)
        small = tmp_path / "small.bin"
        small.write_bytes(b"\x00" * 16)
        assert updater.apply(str(small), ec_image, force=True) == -errno.EIO

    def test_missing_image_file(self, tmp_path):
        updater, spi, _, _, ec_image = self._setup(tmp_path)
        assert updater.apply(str(tmp_path / "nope.bin"), ec_image, force=True) == -errno.EIO
        assert spi.writes == []

    def test_missing_device(self, tmp_path):
        main_image = tmp_path / "main.bin"
        main_image.write_bytes(build_image())
        updater = ImageUpdater(DeviceRegistry(FakeBackend()))
        assert updater.apply(str(main_image), str(main_image), force=True) == -errno.ENODEV


def test_merge_preserved_without_fmap():
    assert merge_preserved(b"\xff" * 32, b"\x00" * 32) == b"\x00" * 32


def test_merge_preserved_copies_nvram():
    current = bytearray(build_image())
    current[NVRAM_OFFSET:NVRAM_OFFSET + 4] = b"\x01\x02\x03\x04"
    merged = merge_preserved(bytes(current), build_image(strings={"RO_FRID": "x"}))
    assert merged[NVRAM_OFFSET:NVRAM_OFFSET + 4] == b"\x01\x02\x03\x04"
