"""
Kernel Map Scanner
===================

Brute-force search for the kernel map: the descriptor a raw kernel image
embeds near its entry point, giving the offsets of its text, rodata,
data and bss regions, the INI1 bundle and the dynamic table.

Two descriptor generations exist and are told apart only by shape:

    Legacy (12 x u32, 0x30 bytes)
        text_start, text_end, rodata_start, rodata_end, data_start,
        data_end, bss_start, bss_end, ini1_offset, dynamic_offset,
        init_array_start, init_array_end

    Modern (11 x u64, 0x58 bytes)
        text_start, text_end, rodata_start, rodata_end, data_start,
        data_end, bss_start, bss_end, ini1_offset, dynamic_offset,
        corelocal_offset

Every 4-byte aligned offset in the scan window is probed, legacy first.
The first accepted candidate wins.
"""

from __future__ import annotations

import logging
import struct
from typing import Optional, Sequence

from kernmap.core.errors import MapNotFoundError
from kernmap.core.models import KernelMap, MapVariant
from kernmap.parsers.byte_source import ByteSource

logger = logging.getLogger("kernmap.parsers.map_scanner")


# ---------------------------------------------------------------------------
# Descriptor constants
# ---------------------------------------------------------------------------

DEFAULT_SCAN_WINDOW: int = 0x2000
SCAN_ALIGNMENT: int = 4
PAGE_MASK: int = 0xFFF

LEGACY_MAP_SIZE: int = 0x30
MODERN_MAP_SIZE: int = 0x58

_LEGACY_MAP = struct.Struct("<12I")
_MODERN_MAP = struct.Struct("<11Q")

INI1_MAGIC: int = 0x31494E49  # b"INI1"
INI1_HEURISTIC_MIN: int = 0x100000
INI1_HEURISTIC_MAX: int = 0x400000

_SHARED_FIELDS: tuple[str, ...] = (
    "text_start", "text_end",
    "rodata_start", "rodata_end",
    "data_start", "data_end",
    "bss_start", "bss_end",
    "ini1_offset", "dynamic_offset",
)


# ---------------------------------------------------------------------------
# Validation predicate
# ---------------------------------------------------------------------------

def is_valid_kernel_map(fields: Sequence[int]) -> bool:
    """Structural check shared by both descriptor generations.

    *fields* holds the ten shared offsets in descriptor order.  Regions
    must start at zero, be ordered and non-empty (bss may be empty), the
    text/rodata/data boundaries must be page aligned, bss must end before
    the INI1 bundle, and the dynamic table must sit inside data but not
    inside rodata.
    """
    ts, te, rs, re_, ds, de, bs, be, i1, dn = fields[:10]

    if ts != 0:
        return False
    if ts >= te or te & PAGE_MASK:
        return False
    if te > rs or rs & PAGE_MASK:
        return False
    if rs >= re_ or re_ & PAGE_MASK:
        return False
    if re_ > ds or ds & PAGE_MASK:
        return False
    if ds >= de:
        return False
    if de > bs:
        return False
    if bs > be:
        return False
    if be > i1:
        return False
    if not (ds <= dn < de) or (rs <= dn < re_):
        return False
    return True


# ---------------------------------------------------------------------------
# MapScanner
# ---------------------------------------------------------------------------

class MapScanner:
    """Locate the kernel map in the first bytes of an image.

    Usage::

        kernel_map = MapScanner(source).scan()
        print(hex(kernel_map.offset), kernel_map.variant)

    Args:
        source: The image to scan.
        window_size: Number of leading bytes searched.  Images shorter
            than the window are searched in full.

    Raises:
        ValueError: *window_size* is not positive.
    """

    def __init__(
        self,
        source: ByteSource,
        window_size: int = DEFAULT_SCAN_WINDOW,
    ) -> None:
        if window_size < 1:
            raise ValueError(f"scan window must be positive, got {window_size:#x}")
        self._source = source
        self._window_size = window_size

    def scan(self) -> KernelMap:
        """Return the first acceptable kernel map.

        Raises:
            MapNotFoundError: No offset in the window holds one.
            ByteSourceUnderflowError: A legacy candidate's INI1 magic lies
                past the end of the image.
        """
        window = self._source.read_bytes(
            0, min(self._window_size, self._source.size)
        )

        for off in range(0, len(window) - LEGACY_MAP_SIZE, SCAN_ALIGNMENT):
            legacy = _LEGACY_MAP.unpack_from(window, off)
            if is_valid_kernel_map(legacy):
                if self._accept_legacy(legacy):
                    logger.debug("Legacy kernel map accepted at %#x", off)
                    return self._build(off, MapVariant.LEGACY, legacy)
                logger.debug(
                    "Legacy candidate at %#x rejected: no INI1 at %#x",
                    off, legacy[8],
                )
            elif off <= len(window) - MODERN_MAP_SIZE:
                modern = _MODERN_MAP.unpack_from(window, off)
                if is_valid_kernel_map(modern):
                    logger.debug("Modern kernel map accepted at %#x", off)
                    return self._build(off, MapVariant.MODERN, modern)

        raise MapNotFoundError(len(window))

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _accept_legacy(self, fields: Sequence[int]) -> bool:
        """INI1 acceptance for a legacy candidate that passed validation.

        The heuristic range covers images whose INI1 region is absent or
        zero-filled, and is checked before touching the image.
        """
        ini1_offset = fields[8]
        if INI1_HEURISTIC_MIN <= ini1_offset <= INI1_HEURISTIC_MAX:
            return True
        return self._source.read_u32(ini1_offset) == INI1_MAGIC

    @staticmethod
    def _build(
        offset: int,
        variant: MapVariant,
        fields: Sequence[int],
    ) -> KernelMap:
        shared = dict(zip(_SHARED_FIELDS, fields[:10]))
        extra: dict[str, Optional[int]] = {}
        if variant is MapVariant.LEGACY:
            extra["init_array_start"] = fields[10]
            extra["init_array_end"] = fields[11]
        else:
            extra["corelocal_offset"] = fields[10]
        return KernelMap(offset=offset, variant=variant, **shared, **extra)
