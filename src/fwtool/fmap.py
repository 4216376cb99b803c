"""
Flash map (FMAP) helpers.

An FMAP is a small binary table embedded in a firmware image that names
regions by offset and size. Layout (little-endian):

    header: signature "__FMAP__" (8), ver_major (u8), ver_minor (u8),
            base (u64), size (u32), name (32, NUL padded), nareas (u16)
    area:   offset (u32), size (u32), name (32, NUL padded), flags (u16)
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fwtool.core.errors import FmapError
from fwtool.core.interfaces import FlashDevice

logger = logging.getLogger(__name__)

FMAP_SIGNATURE = b"__FMAP__"
FMAP_VER_MAJOR = 1
FMAP_NAME_LEN = 32
FMAP_HEADER = struct.Struct("<8sBBQI32sH")
FMAP_AREA = struct.Struct("<II32sH")

FMAP_AREA_STATIC = 1 << 0
FMAP_AREA_COMPRESSED = 1 << 1
FMAP_AREA_RO = 1 << 2
FMAP_AREA_PRESERVE = 1 << 3


@dataclass(frozen=True)
class FmapArea:
    """One named region of the flash."""
    name: str
    offset: int
    size: int
    flags: int = 0

    @property
    def read_only(self) -> bool:
        return bool(self.flags & FMAP_AREA_RO)

    @property
    def static(self) -> bool:
        return bool(self.flags & FMAP_AREA_STATIC)


@dataclass(frozen=True)
class Fmap:
    """Parsed flash map."""
    name: str
    ver_major: int
    ver_minor: int
    base: int
    size: int
    offset: int = 0
    areas: Tuple[FmapArea, ...] = field(default_factory=tuple)

    def find_area(self, name: str) -> Optional[FmapArea]:
        for area in self.areas:
            if area.name == name:
                return area
        return None


def _decode_name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def _encode_name(name: str) -> bytes:
    raw = name.encode("ascii")
    if len(raw) >= FMAP_NAME_LEN:
        raise FmapError(f"FMAP name too long: '{name}'")
    return raw.ljust(FMAP_NAME_LEN, b"\x00")


def parse_fmap(blob: bytes, offset: int = 0) -> Fmap:
    """
    Parse an FMAP located at ``offset`` within ``blob``.

    Raises:
        FmapError: If the header or area table is truncated or invalid.
    """
    end = offset + FMAP_HEADER.size
    if len(blob) < end:
        raise FmapError("FMAP header truncated")

    sig, ver_major, ver_minor, base, size, raw_name, nareas = FMAP_HEADER.unpack_from(blob, offset)
    if sig != FMAP_SIGNATURE:
        raise FmapError(f"Bad FMAP signature at 0x{offset:x}")
    if ver_major != FMAP_VER_MAJOR:
        raise FmapError(f"Unsupported FMAP version {ver_major}.{ver_minor}")
    if len(blob) < end + nareas * FMAP_AREA.size:
        raise FmapError(f"FMAP area table truncated ({nareas} areas)")

    areas = []
    for i in range(nareas):
        a_offset, a_size, a_name, a_flags = FMAP_AREA.unpack_from(blob, end + i * FMAP_AREA.size)
        areas.append(FmapArea(name=_decode_name(a_name), offset=a_offset, size=a_size, flags=a_flags))

    return Fmap(
        name=_decode_name(raw_name),
        ver_major=ver_major,
        ver_minor=ver_minor,
        base=base,
        size=size,
        offset=offset,
        areas=tuple(areas),
    )


def locate_fmap(blob: bytes) -> Optional[Fmap]:
    """Return the first valid FMAP in ``blob``, or None."""
    start = blob.find(FMAP_SIGNATURE)
    while start >= 0:
        try:
            return parse_fmap(blob, start)
        except FmapError as e:
            logger.debug(f"Skipping FMAP candidate at 0x{start:x}: {e}")
        start = blob.find(FMAP_SIGNATURE, start + 1)
    return None


def find_fmap(device: FlashDevice) -> Optional[Fmap]:
    """
    Read ``device`` and return its FMAP, or None if it has none.

    Raises:
        FlashError: If the device cannot be read.
    """
    return locate_fmap(device.read(0, device.size))


def read_section(device: FlashDevice, name: str) -> Optional[Tuple[bytes, int]]:
    """
    Read the FMAP region ``name`` from ``device``.

    Returns:
        Tuple of (content, offset), or None when the device has no FMAP or
        no such region.
    """
    fmap = find_fmap(device)
    if fmap is None:
        return None
    area = fmap.find_area(name)
    if area is None:
        logger.debug(f"{device.name}: no FMAP area {name}")
        return None
    if area.offset + area.size > device.size:
        raise FmapError(f"Area {name} exceeds device size 0x{device.size:x}")
    return device.read(area.offset, area.size), area.offset


def write_section(device: FlashDevice, name: str, data: bytes, offset: int = 0) -> None:
    """
    Write ``data`` at ``offset`` inside the FMAP region ``name``.

    Raises:
        FmapError: If the region does not exist or the data does not fit.
    """
    fmap = find_fmap(device)
    if fmap is None:
        raise FmapError(f"{device.name}: no FMAP found")
    area = fmap.find_area(name)
    if area is None:
        raise FmapError(f"{device.name}: no FMAP area {name}")
    if offset < 0 or offset + len(data) > area.size:
        raise FmapError(
            f"Write of {len(data)} bytes at +0x{offset:x} overflows {name} (0x{area.size:x})"
        )
    device.write(area.offset + offset, data)


def build_fmap(
    areas: Sequence[FmapArea],
    name: str = "FMAP",
    base: int = 0,
    size: int = 0,
    ver_minor: int = 1,
) -> bytes:
    """Serialize an FMAP header and area table."""
    header = FMAP_HEADER.pack(
        FMAP_SIGNATURE,
        FMAP_VER_MAJOR,
        ver_minor,
        base,
        size,
        _encode_name(name),
        len(areas),
    )
    table = b"".join(
        FMAP_AREA.pack(a.offset, a.size, _encode_name(a.name), a.flags) for a in areas
    )
    return header + table


def format_fmap(fmap: Fmap) -> List[str]:
    """Human-readable FMAP dump, one line per area after the header."""
    lines = [
        f"FMAP '{fmap.name}' ver {fmap.ver_major}.{fmap.ver_minor} "
        f"base 0x{fmap.base:x} size 0x{fmap.size:x}"
    ]
    for a in fmap.areas:
        lines.append(
            f"{a.name:>16} @{a.offset:08x} size 0x{a.size:08x} "
            f"{'RO' if a.read_only else '':>2} {'static' if a.static else ''}".rstrip()
        )
    return lines


def section_text(content: bytes) -> str:
    """Decode a section as text, truncated at the first NUL."""
    return content.split(b"\x00", 1)[0].decode("ascii", errors="replace")
