"""In-memory raster images.

The conversion core only touches images through the small capability
protocols below (:class:`PixelReader`, :class:`PixelWriter`).
:class:`RasterImage` is the numpy-backed implementation produced by the codec
adapters in :mod:`pyimgtensor.io.codec` and consumed by the geometry and
layout modules; tests build synthetic instances directly.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import numpy as np

from pyimgtensor.errors import InvalidInput
from pyimgtensor.inputs.pixel_format import PixelFormat, is_packed_int, parse_pixel_format


class PixelReader(Protocol):
    """Read access to a decoded image."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def pixel_format(self) -> Optional[PixelFormat]: ...

    def get_argb(self, x: int, y: int) -> int: ...

    def read_pixels(self) -> Any: ...

    def to_argb(self) -> np.ndarray: ...


class PixelWriter(Protocol):
    """Write access to a decoded image."""

    def set_argb(self, x: int, y: int, argb: int) -> None: ...


def _pack_argb(a, r, g, b) -> np.ndarray:
    a = np.asarray(a, dtype=np.uint32)
    r = np.asarray(r, dtype=np.uint32)
    g = np.asarray(g, dtype=np.uint32)
    b = np.asarray(b, dtype=np.uint32)
    return (a << 24) | (r << 16) | (g << 8) | b


def _unpack_argb(argb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    argb = np.asarray(argb, dtype=np.uint32)
    a = ((argb >> 24) & 0xFF).astype(np.uint8)
    r = ((argb >> 16) & 0xFF).astype(np.uint8)
    g = ((argb >> 8) & 0xFF).astype(np.uint8)
    b = (argb & 0xFF).astype(np.uint8)
    return a, r, g, b


def _as_argb_array(values: Any) -> np.ndarray:
    arr = np.asarray(values)
    if arr.dtype.kind == "i":
        # Signed inputs hold two's-complement ARGB (e.g. 0xFF000000 as -16777216).
        arr = arr.astype(np.int64) & 0xFFFFFFFF
    return arr.astype(np.uint32)


class RasterImage:
    """Decoded pixels stored in their native layout.

    Storage per format:

    - ``INT_ARGB`` / ``INT_ARGB_PRE``: ``(H, W)`` uint32 packed ARGB
    - ``BYTE_BGRA`` / ``BYTE_BGRA_PRE``: ``(H, W, 4)`` uint8, bytes B,G,R,A
    - ``BYTE_RGB``: ``(H, W, 3)`` uint8, bytes R,G,B
    - ``BYTE_INDEXED``: ``(H, W)`` uint8 palette indices plus a uint32 ARGB palette
    - ``UNKNOWN``: any 2-D/3-D array, readable only as raw bytes
    """

    def __init__(
        self,
        pixels: Any,
        pixel_format: str | PixelFormat,
        *,
        palette: Any = None,
    ) -> None:
        if pixels is None:
            raise InvalidInput("Raster pixels must not be None")
        fmt = parse_pixel_format(pixel_format)
        arr = np.asarray(pixels)

        if is_packed_int(fmt):
            if arr.ndim != 2:
                raise ValueError(f"Expected shape (H,W) for {fmt.value}, got {arr.shape}")
            arr = _as_argb_array(arr)
        elif fmt is PixelFormat.BYTE_BGRA or fmt is PixelFormat.BYTE_BGRA_PRE:
            if arr.ndim != 3 or arr.shape[2] != 4:
                raise ValueError(f"Expected shape (H,W,4) for {fmt.value}, got {arr.shape}")
            arr = arr.astype(np.uint8, copy=False)
        elif fmt is PixelFormat.BYTE_RGB:
            if arr.ndim != 3 or arr.shape[2] != 3:
                raise ValueError(f"Expected shape (H,W,3) for {fmt.value}, got {arr.shape}")
            arr = arr.astype(np.uint8, copy=False)
        elif fmt is PixelFormat.BYTE_INDEXED:
            if arr.ndim != 2:
                raise ValueError(f"Expected shape (H,W) for {fmt.value}, got {arr.shape}")
            if palette is None:
                raise ValueError("BYTE_INDEXED images require a palette")
            pal = _as_argb_array(palette).reshape(-1)
            if pal.size == 0 or pal.size > 256:
                raise ValueError(f"Palette must hold 1..256 colors, got {pal.size}")
            arr = arr.astype(np.uint8, copy=False)
            if arr.size and int(arr.max()) >= pal.size:
                raise ValueError(
                    f"Palette index {int(arr.max())} out of range for {pal.size} colors"
                )
            palette = pal
        elif arr.ndim not in (2, 3):
            raise ValueError(f"Expected a 2-D or 3-D pixel array, got {arr.shape}")

        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise InvalidInput(f"Raster must be non-empty, got shape {arr.shape}")

        self._pixels = np.array(arr, order="C")
        self._format = fmt
        self._palette = palette if fmt is PixelFormat.BYTE_INDEXED else None

    # ------------------------------------------------------------------
    # constructors
    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        pixel_format: str | PixelFormat = PixelFormat.INT_ARGB,
    ) -> "RasterImage":
        fmt = parse_pixel_format(pixel_format)
        w, h = int(width), int(height)
        if w <= 0 or h <= 0:
            raise InvalidInput(f"Raster size must be positive, got {(w, h)}")
        return cls.from_argb(np.zeros((h, w), dtype=np.uint32), fmt)

    @classmethod
    def from_argb(
        cls,
        argb: Any,
        pixel_format: str | PixelFormat = PixelFormat.INT_ARGB,
    ) -> "RasterImage":
        """Build an image from a ``(H, W)`` array of packed ARGB values.

        Values are stored as given; no premultiplication is applied for the
        ``*_PRE`` formats.
        """

        fmt = parse_pixel_format(pixel_format)
        packed = _as_argb_array(argb)
        if packed.ndim != 2:
            raise ValueError(f"Expected packed ARGB of shape (H,W), got {packed.shape}")
        if is_packed_int(fmt):
            return cls(packed, fmt)
        a, r, g, b = _unpack_argb(packed)
        if fmt is PixelFormat.BYTE_BGRA or fmt is PixelFormat.BYTE_BGRA_PRE:
            return cls(np.stack([b, g, r, a], axis=-1), fmt)
        if fmt is PixelFormat.BYTE_RGB:
            return cls(np.stack([r, g, b], axis=-1), fmt)
        raise ValueError(f"Cannot build {fmt.value} pixels from packed ARGB")

    # ------------------------------------------------------------------
    # PixelReader
    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), matching PIL's ``Image.size``."""

        return (self.width, self.height)

    @property
    def pixel_format(self) -> PixelFormat:
        return self._format

    @property
    def pixels(self) -> np.ndarray:
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def palette(self) -> Optional[np.ndarray]:
        return None if self._palette is None else self._palette.copy()

    def _argb_of(self, block: np.ndarray) -> np.ndarray:
        fmt = self._format
        if is_packed_int(fmt):
            return block.astype(np.uint32)
        if fmt is PixelFormat.BYTE_BGRA or fmt is PixelFormat.BYTE_BGRA_PRE:
            return _pack_argb(block[..., 3], block[..., 2], block[..., 1], block[..., 0])
        if fmt is PixelFormat.BYTE_RGB:
            return _pack_argb(0xFF, block[..., 0], block[..., 1], block[..., 2])
        if fmt is PixelFormat.BYTE_INDEXED:
            return self._palette[block]
        raise ValueError(f"Pixels in format {fmt.value} have no ARGB interpretation")

    def _check_xy(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def get_argb(self, x: int, y: int) -> int:
        x, y = int(x), int(y)
        self._check_xy(x, y)
        return int(self._argb_of(self._pixels[y : y + 1, x : x + 1])[0, 0])

    def to_argb(self) -> np.ndarray:
        """Packed ARGB values as a ``(H, W)`` uint32 array (a copy)."""

        return np.array(self._argb_of(self._pixels), dtype=np.uint32)

    def read_pixels(self) -> np.ndarray:
        """The interleaved byte buffer in the format's native channel order."""

        fmt = self._format
        if is_packed_int(fmt) or fmt is PixelFormat.BYTE_INDEXED:
            packed = np.ascontiguousarray(self._argb_of(self._pixels), dtype=">u4")
            return packed.view(np.uint8).reshape(-1)
        return np.ascontiguousarray(self._pixels).view(np.uint8).reshape(-1)

    # ------------------------------------------------------------------
    # PixelWriter
    def set_argb(self, x: int, y: int, argb: int) -> None:
        x, y = int(x), int(y)
        self._check_xy(x, y)
        value = int(argb) & 0xFFFFFFFF
        fmt = self._format
        if is_packed_int(fmt):
            self._pixels[y, x] = value
            return
        a, r, g, b = (value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF
        if fmt is PixelFormat.BYTE_BGRA or fmt is PixelFormat.BYTE_BGRA_PRE:
            self._pixels[y, x] = (b, g, r, a)
        elif fmt is PixelFormat.BYTE_RGB:
            self._pixels[y, x] = (r, g, b)
        else:
            raise ValueError(f"Cannot write ARGB pixels into a {fmt.value} image")

    # ------------------------------------------------------------------
    def crop(self, x: int, y: int, width: int, height: int) -> "RasterImage":
        """Return a new image holding pixels ``[x, x+width) x [y, y+height)``."""

        x, y, w, h = int(x), int(y), int(width), int(height)
        if x < 0 or y < 0 or w <= 0 or h <= 0 or x + w > self.width or y + h > self.height:
            raise ValueError(
                f"Crop box {(x, y, w, h)} does not fit a {self.width}x{self.height} image"
            )
        block = self._pixels[y : y + h, x : x + w]
        return RasterImage(block, self._format, palette=self._palette)

    def convert(self, pixel_format: str | PixelFormat) -> "RasterImage":
        fmt = parse_pixel_format(pixel_format)
        if fmt is self._format:
            return self
        return RasterImage.from_argb(self.to_argb(), fmt)

    def __repr__(self) -> str:
        return (
            f"RasterImage(width={self.width}, height={self.height}, "
            f"pixel_format={self._format.value!r})"
        )
