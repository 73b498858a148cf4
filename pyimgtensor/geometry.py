"""Geometry normalization run before pixel extraction.

Images are brought to the loader's fixed ``(height, width)``: an optional
center crop first, then a smooth resize. Pixel format and band count survive
both steps.
"""

from __future__ import annotations

import logging

import numpy as np

from pyimgtensor.errors import InvalidInput
from pyimgtensor.inputs.pixel_format import (
    PixelFormat,
    band_count,
    coerce_pixel_format,
    is_packed_int,
)
from pyimgtensor.raster import RasterImage

logger = logging.getLogger(__name__)


def _require_image(image: RasterImage | None) -> RasterImage:
    if image is None:
        raise InvalidInput("Unable to normalize image: image is None")
    return image


def _check_target(height: int, width: int) -> tuple[int, int]:
    h, w = int(height), int(width)
    if h < 0 or w < 0:
        raise ValueError(f"Target size must be >= 0, got {(h, w)}")
    return h, w


def center_crop(image: RasterImage) -> RasterImage:
    """Trim the longer axis by ``abs(width - height) // 2`` on its leading edge.

    A 100x150 (WxH) image keeps rows ``[25, 150)`` and becomes 100x125. Square
    images are returned as-is.
    """

    image = _require_image(image)
    width, height = image.width, image.height
    diff = abs(width - height) // 2
    if diff == 0:
        return image

    if width > height:
        cropped = image.crop(diff, 0, width - diff, height)
    else:
        cropped = image.crop(0, diff, width, height - diff)
    logger.debug(
        "center crop %dx%d -> %dx%d", width, height, cropped.width, cropped.height
    )
    return cropped


def scale(image: RasterImage, height: int, width: int) -> RasterImage:
    """Resize to exactly ``(height, width)`` when both are > 0 and differ.

    Uses OpenCV ``INTER_AREA``. Packed ARGB pixels are resampled per byte
    plane and stay packed; indexed images are expanded to ``BYTE_BGRA`` first
    since palette indices cannot be interpolated. Images without a
    known band layout come back as a blank ``UNKNOWN`` image of the target size.
    """

    import cv2

    image = _require_image(image)
    h, w = _check_target(height, width)
    if h <= 0 or w <= 0 or (image.height == h and image.width == w):
        return image

    fmt = coerce_pixel_format(image.pixel_format)
    if band_count(fmt) == 0:
        # No band layout to resample; keep only the target geometry.
        logger.debug("scale skipped for unsupported format %r", image.pixel_format)
        return RasterImage(np.zeros((h, w), dtype=np.uint8), PixelFormat.UNKNOWN)
    if fmt is PixelFormat.BYTE_INDEXED:
        image = image.convert(PixelFormat.BYTE_BGRA)
        fmt = image.pixel_format

    src = np.array(image.pixels)
    if is_packed_int(fmt):
        planes = src.view(np.uint8).reshape(image.height, image.width, 4)
        resized = cv2.resize(planes, (w, h), interpolation=cv2.INTER_AREA)
        out = np.ascontiguousarray(resized).view(np.uint32).reshape(h, w)
    else:
        out = cv2.resize(src, (w, h), interpolation=cv2.INTER_AREA)

    logger.debug(
        "scale %dx%d -> %dx%d (%s)", image.width, image.height, w, h, fmt.value
    )
    return RasterImage(out, fmt)


def normalize(
    image: RasterImage,
    height: int,
    width: int,
    *,
    crop_first: bool = False,
) -> RasterImage:
    """Crop (optionally) and scale `image` to the target size.

    Returns the input object unchanged when nothing needs to happen.
    """

    image = _require_image(image)
    _check_target(height, width)
    if crop_first:
        image = center_crop(image)
    return scale(image, height, width)
