"""Decode/encode adapters around OpenCV and Pillow.

These functions are the only place where file formats are touched. They turn
whatever the caller has (a path, raw bytes, a binary stream, a PIL image or an
OpenCV array) into a :class:`~pyimgtensor.raster.RasterImage` with an explicit
pixel format, and write raster images back to disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image

from pyimgtensor.errors import InvalidInput
from pyimgtensor.inputs.pixel_format import PixelFormat
from pyimgtensor.raster import RasterImage
from pyimgtensor.utils.optional_deps import require

logger = logging.getLogger(__name__)

ImageSource = Union[
    str, Path, bytes, bytearray, memoryview, BinaryIO, Image.Image, RasterImage, np.ndarray
]

# Formats whose OpenCV encoders keep a 4th (alpha) channel.
_ALPHA_SUFFIXES = (".png", ".tif", ".tiff", ".webp")


def _cv2():
    return require("cv2", purpose="image decoding/encoding")


def from_cv2_array(array: np.ndarray) -> RasterImage:
    """Wrap an OpenCV-ordered array (gray, BGR or BGRA) as a raster image.

    Gray and BGR inputs become ``BYTE_RGB``; BGRA stays ``BYTE_BGRA``. 16-bit
    inputs are reduced to their high byte.
    """

    if not isinstance(array, np.ndarray):
        raise TypeError(f"Expected np.ndarray, got {type(array)}")
    arr = array
    if arr.dtype == np.uint16:
        arr = (arr >> 8).astype(np.uint8)
    elif arr.dtype != np.uint8:
        raise ValueError(f"Expected dtype=uint8 or uint16, got {arr.dtype}")

    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]
    if arr.ndim == 2:
        return RasterImage(np.repeat(arr[..., None], 3, axis=2), PixelFormat.BYTE_RGB)
    if arr.ndim == 3 and arr.shape[2] == 3:
        return RasterImage(arr[..., ::-1], PixelFormat.BYTE_RGB)
    if arr.ndim == 3 and arr.shape[2] == 4:
        return RasterImage(arr, PixelFormat.BYTE_BGRA)
    raise ValueError(f"Expected shape (H,W), (H,W,3) or (H,W,4), got {arr.shape}")


def _indexed_palette(image: Image.Image) -> np.ndarray:
    rgb = np.asarray(image.getpalette() or [], dtype=np.uint32).reshape(-1, 3)
    palette = np.zeros(256, dtype=np.uint32)
    n = min(len(rgb), 256)
    alpha = np.full(256, 0xFF, dtype=np.uint32)

    transparency = image.info.get("transparency", None)
    if isinstance(transparency, int):
        alpha[transparency] = 0
    elif isinstance(transparency, (bytes, bytearray)):
        values = np.frombuffer(bytes(transparency), dtype=np.uint8)[:256]
        alpha[: len(values)] = values

    r, g, b = rgb[:n, 0], rgb[:n, 1], rgb[:n, 2]
    palette[:n] = (alpha[:n] << 24) | (r << 16) | (g << 8) | b
    return palette


def from_pil(image: Image.Image) -> RasterImage:
    """Convert a PIL image into a raster image.

    ``RGBA`` maps to ``BYTE_BGRA``, ``RGB`` to ``BYTE_RGB`` and palette images
    to ``BYTE_INDEXED``. Other modes are converted to RGBA when they carry
    alpha and to RGB otherwise.
    """

    if image is None:
        raise InvalidInput("Unable to convert image: image is None")

    mode = image.mode
    if mode == "P":
        indices = np.asarray(image, dtype=np.uint8)
        return RasterImage(indices, PixelFormat.BYTE_INDEXED, palette=_indexed_palette(image))
    if mode not in ("RGBA", "RGB"):
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        target = "RGBA" if has_alpha else "RGB"
        logger.debug("converting PIL mode %s -> %s", mode, target)
        image = image.convert(target)
        mode = target

    arr = np.asarray(image, dtype=np.uint8)
    if mode == "RGBA":
        return RasterImage(arr[..., [2, 1, 0, 3]], PixelFormat.BYTE_BGRA)
    return RasterImage(arr, PixelFormat.BYTE_RGB)


def to_pil(image: RasterImage) -> Image.Image:
    """Render a raster image as an RGBA PIL image."""

    if image is None:
        raise InvalidInput("Unable to convert image: image is None")
    argb = image.to_argb()
    rgba = np.stack(
        [(argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF, (argb >> 24) & 0xFF],
        axis=-1,
    ).astype(np.uint8)
    return Image.fromarray(rgba)


def _decode_bytes(data: bytes, *, origin: str) -> RasterImage:
    cv2 = _cv2()
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise InvalidInput(f"Unable to decode image from {origin}: no data")
    decoded = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise InvalidInput(f"Unable to decode image from {origin}")
    return from_cv2_array(decoded)


def decode_image(source: ImageSource) -> RasterImage:
    """Decode `source` into a raster image.

    Accepts a file path, encoded bytes, a binary stream with ``read()``, a PIL
    image, an OpenCV array or an existing :class:`RasterImage` (returned
    unchanged).
    """

    if source is None:
        raise InvalidInput("Unable to load image: source is None")
    if isinstance(source, RasterImage):
        return source
    if isinstance(source, Image.Image):
        return from_pil(source)
    if isinstance(source, np.ndarray):
        return from_cv2_array(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(source), origin="bytes")
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise InvalidInput(f"Unable to read image: {path}")
        cv2 = _cv2()
        decoded = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if decoded is None:
            raise InvalidInput(f"Unable to read image: {path}")
        logger.debug("decoded %s: shape=%s dtype=%s", path, decoded.shape, decoded.dtype)
        return from_cv2_array(decoded)
    if hasattr(source, "read"):
        try:
            data = source.read()
        except OSError as exc:
            raise InvalidInput(f"Unable to read image stream: {exc}") from exc
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidInput(f"Image stream must yield bytes, got {type(data).__name__}")
        return _decode_bytes(bytes(data), origin="stream")

    raise TypeError(f"Unsupported image source type: {type(source).__name__}")


def write_image(image: RasterImage, path: str | Path) -> Path:
    """Write `image` to `path` with OpenCV; the suffix selects the encoder.

    Alpha is kept for PNG/TIFF/WebP and dropped for other formats.
    """

    if image is None:
        raise InvalidInput("Unable to write image: image is None")
    cv2 = _cv2()
    out = Path(path)
    argb = image.to_argb()
    planes = [argb & 0xFF, (argb >> 8) & 0xFF, (argb >> 16) & 0xFF]
    if out.suffix.lower() in _ALPHA_SUFFIXES:
        planes.append((argb >> 24) & 0xFF)
    bgr = np.ascontiguousarray(np.stack(planes, axis=-1).astype(np.uint8))

    if not cv2.imwrite(str(out), bgr):
        raise OSError(f"Unable to write image: {out}")
    return out
