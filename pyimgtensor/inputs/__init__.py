"""Pixel format classification.

Every raster image declares its native encoding explicitly; `pyimgtensor`
never guesses it from pixel content. The band count of an image is a pure
function of that declared format.
"""

from __future__ import annotations

from .pixel_format import (
    PixelFormat,
    band_count,
    coerce_pixel_format,
    is_packed_int,
    is_premultiplied,
    native_channel_order,
    parse_pixel_format,
)

__all__ = [
    "PixelFormat",
    "band_count",
    "coerce_pixel_format",
    "is_packed_int",
    "is_premultiplied",
    "native_channel_order",
    "parse_pixel_format",
]
