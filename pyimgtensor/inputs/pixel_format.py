from __future__ import annotations

from enum import Enum
from typing import Any


class PixelFormat(str, Enum):
    """Native pixel encodings of an in-memory raster image."""

    INT_ARGB = "int_argb"
    INT_ARGB_PRE = "int_argb_pre"
    BYTE_BGRA = "byte_bgra"
    BYTE_BGRA_PRE = "byte_bgra_pre"
    BYTE_INDEXED = "byte_indexed"
    BYTE_RGB = "byte_rgb"
    UNKNOWN = "unknown"


_FOUR_BAND_FORMATS = frozenset(
    {
        PixelFormat.INT_ARGB,
        PixelFormat.INT_ARGB_PRE,
        PixelFormat.BYTE_BGRA,
        PixelFormat.BYTE_BGRA_PRE,
        PixelFormat.BYTE_INDEXED,
    }
)


def parse_pixel_format(raw: str | PixelFormat) -> PixelFormat:
    if isinstance(raw, PixelFormat):
        return raw
    try:
        return PixelFormat(str(raw).lower())
    except Exception as exc:  # noqa: BLE001 - value validation helper
        raise ValueError(f"Unknown pixel format: {raw!r}") from exc


def coerce_pixel_format(raw: Any) -> PixelFormat:
    """Like `parse_pixel_format`, but anything unrecognized maps to ``UNKNOWN``."""

    if isinstance(raw, PixelFormat):
        return raw
    if isinstance(raw, str):
        try:
            return parse_pixel_format(raw)
        except ValueError:
            return PixelFormat.UNKNOWN
    return PixelFormat.UNKNOWN


def band_count(fmt: Any) -> int:
    """Number of channels encoded by `fmt`.

    Alpha-capable formats (packed ARGB, byte BGRA and indexed palettes) carry
    4 bands, every other recognized format carries 3. A missing or unknown
    format yields 0 so callers can degrade instead of failing.
    """

    fmt = coerce_pixel_format(fmt)
    if fmt is PixelFormat.UNKNOWN:
        return 0
    if fmt in _FOUR_BAND_FORMATS:
        return 4
    return 3


def is_packed_int(fmt: Any) -> bool:
    fmt = coerce_pixel_format(fmt)
    return fmt is PixelFormat.INT_ARGB or fmt is PixelFormat.INT_ARGB_PRE


def is_premultiplied(fmt: Any) -> bool:
    fmt = coerce_pixel_format(fmt)
    return fmt is PixelFormat.INT_ARGB_PRE or fmt is PixelFormat.BYTE_BGRA_PRE


def native_channel_order(fmt: Any) -> str:
    """Channel letters, in order, of one pixel in the interleaved byte buffer.

    Packed-int pixels are unpacked most significant byte first, and indexed
    pixels are expanded through their ARGB palette, so both read as ``ARGB``.
    """

    fmt = coerce_pixel_format(fmt)
    if fmt is PixelFormat.BYTE_BGRA or fmt is PixelFormat.BYTE_BGRA_PRE:
        return "BGRA"
    if fmt is PixelFormat.INT_ARGB or fmt is PixelFormat.INT_ARGB_PRE:
        return "ARGB"
    if fmt is PixelFormat.BYTE_INDEXED:
        return "ARGB"
    if fmt is PixelFormat.BYTE_RGB:
        return "RGB"
    return ""
