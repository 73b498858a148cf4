"""Conversion between interleaved pixel buffers and channel-planar arrays.

Forward conversion reads an image's native interleaved bytes and lays them out
as ``(channels, height, width)`` with the channel order blue, green, red,
alpha. The inverse builds a new packed-ARGB image from the first three planes
of such an array.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from pyimgtensor.errors import CorruptPixelData, InvalidInput, InvalidShape
from pyimgtensor.inputs.pixel_format import (
    PixelFormat,
    band_count,
    coerce_pixel_format,
    native_channel_order,
)
from pyimgtensor.raster import PixelReader, RasterImage

logger = logging.getLogger(__name__)

PLANAR_CHANNEL_ORDER = "BGRA"
ENCODE_CHANNEL_ORDERS = ("bgr", "rgb")


def _unsigned_bytes(buffer: Any) -> np.ndarray:
    """Flatten `buffer` into uint8, reading each element as ``value & 0xFF``."""

    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    arr = np.asarray(buffer).reshape(-1)
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype.kind not in ("i", "u"):
        raise CorruptPixelData(f"Pixel buffer must hold integer bytes, got dtype={arr.dtype}")
    return (arr.astype(np.int64) & 0xFF).astype(np.uint8)


def to_planar_tensor(
    image: PixelReader,
    *,
    channels: Optional[int] = None,
    dtype: Any = np.float32,
) -> np.ndarray:
    """Convert `image` into a ``(channels, H, W)`` array in B,G,R(,A) order.

    Parameters
    ----------
    image:
        Decoded image, already normalized to its final size.
    channels:
        Number of leading planes to keep. ``None`` keeps every band of the
        pixel format; larger values are clamped to the band count.
    dtype:
        Output dtype. Values always lie in ``[0, 255]``.

    Notes
    -----
    Images whose format has no known band layout produce an empty
    ``(0, H, W)`` array instead of raising.
    """

    if image is None:
        raise InvalidInput("Unable to convert image: image is None")
    if channels is not None and int(channels) < 1:
        raise ValueError(f"channels must be >= 1 or None, got {channels!r}")

    width, height = int(image.width), int(image.height)
    fmt = coerce_pixel_format(image.pixel_format)
    bands = band_count(fmt)
    if bands == 0:
        logger.warning(
            "Unsupported pixel format %r; returning a 0-band tensor", image.pixel_format
        )
        return np.zeros((0, height, width), dtype=dtype)

    raw = _unsigned_bytes(image.read_pixels())
    expected = width * height * bands
    if raw.size != expected:
        raise CorruptPixelData(
            f"Pixel buffer holds {raw.size} bytes, expected {expected} "
            f"({width}x{height}x{bands}) for {fmt.value}"
        )

    native = native_channel_order(fmt)
    wanted = PLANAR_CHANNEL_ORDER[:bands]
    n_out = bands if channels is None else min(int(channels), bands)
    index = [native.index(c) for c in wanted[:n_out]]

    interleaved = raw.reshape(height, width, bands)
    planar = np.transpose(interleaved[..., index], (2, 0, 1))
    return np.ascontiguousarray(planar, dtype=dtype)


def to_packed_matrix(image: PixelReader) -> np.ndarray:
    """Per-pixel packed ARGB values as a ``(H, W)`` uint32 matrix."""

    if image is None:
        raise InvalidInput("Unable to convert image: image is None")
    packed = np.asarray(image.to_argb(), dtype=np.uint32)
    expected = (int(image.height), int(image.width))
    if packed.shape != expected:
        raise CorruptPixelData(f"Packed pixels have shape {packed.shape}, expected {expected}")
    return packed


def to_image(tensor: Any, *, channel_order: str = "bgr") -> RasterImage:
    """Build a new opaque ``INT_ARGB`` image from a planar tensor.

    `channel_order` names how planes 0, 1, 2 map to colors: ``"bgr"`` matches
    :func:`to_planar_tensor`; ``"rgb"`` reads plane 0 as red. Values are
    rounded and clipped to ``[0, 255]``; alpha is always 0xFF.
    """

    order = str(channel_order).lower()
    if order not in ENCODE_CHANNEL_ORDERS:
        raise ValueError(
            f"Unknown channel_order: {channel_order!r}. Choose from: {', '.join(ENCODE_CHANNEL_ORDERS)}."
        )
    if tensor is None:
        raise InvalidInput("Unable to encode tensor: tensor is None")

    arr = np.asarray(tensor)
    if arr.ndim < 3:
        raise InvalidShape(f"Tensor must be 3-D (C,H,W), got shape {arr.shape}")
    while arr.ndim > 3 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 3:
        raise InvalidShape(f"Tensor must be 3-D (C,H,W), got shape {arr.shape}")
    if arr.shape[0] < 3:
        raise InvalidShape(f"Tensor needs at least 3 channel planes, got shape {arr.shape}")
    if arr.shape[1] <= 0 or arr.shape[2] <= 0:
        raise InvalidShape(f"Tensor has an empty spatial axis: {arr.shape}")

    planes = np.nan_to_num(arr[:3].astype(np.float64))
    planes = np.clip(np.rint(planes), 0.0, 255.0).astype(np.uint32)
    if order == "bgr":
        b, g, r = planes
    else:
        r, g, b = planes

    argb = (np.uint32(0xFF) << 24) | (r << 16) | (g << 8) | b
    return RasterImage.from_argb(argb, PixelFormat.INT_ARGB)
