"""High-level image loader.

:class:`ImageLoader` ties the pieces together: decode the source, normalize
its geometry to the configured size, then convert the pixels into a numpy
array (or the reverse for encoding).

Example
-------
>>> loader = ImageLoader(height=224, width=224, channels=3, center_crop=True)
>>> tensor = loader.load("cat.png")      # (3, 224, 224) float32, B,G,R planes
>>> vector = loader.load_row_vector("cat.png")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import numpy as np

from pyimgtensor.config import LoaderConfig, load_loader_config
from pyimgtensor.errors import InvalidShape
from pyimgtensor.geometry import normalize, scale
from pyimgtensor.inputs.pixel_format import band_count
from pyimgtensor.io.codec import ImageSource, decode_image, write_image
from pyimgtensor.layout import to_image, to_packed_matrix, to_planar_tensor
from pyimgtensor.raster import RasterImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageMatrix:
    """A converted array together with the geometry it was produced from."""

    array: np.ndarray
    bands: int
    height: int
    width: int


class ImageLoader:
    """Convert images into arrays using a fixed :class:`LoaderConfig`.

    Parameters
    ----------
    height, width:
        Target size. ``0`` for either disables resizing.
    channels:
        ``3`` produces planar ``(3, H, W)`` B,G,R arrays. Any other value
        produces ``(H, W)`` matrices of packed ARGB integers.
    center_crop:
        Trim the longer axis before resizing.
    dtype:
        dtype of planar outputs (packed matrices are always uint32).
    channel_order:
        How :meth:`encode` reads planes 0..2 (``"bgr"`` or ``"rgb"``).
    """

    def __init__(
        self,
        height: int = 0,
        width: int = 0,
        channels: int = 3,
        center_crop: bool = False,
        *,
        dtype: str = "float32",
        channel_order: str = "bgr",
        config: Optional[LoaderConfig] = None,
    ) -> None:
        if config is None:
            config = LoaderConfig(
                height=height,
                width=width,
                channels=channels,
                center_crop=center_crop,
                dtype=dtype,
                channel_order=channel_order,
            )
        self.config = config
        self._dtype = np.dtype(config.dtype)

    @classmethod
    def from_config(cls, config: LoaderConfig) -> "ImageLoader":
        return cls(config=config)

    @classmethod
    def from_file(cls, path: str | Path) -> "ImageLoader":
        return cls(config=load_loader_config(path))

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def channels(self) -> int:
        return self.config.channels

    def __repr__(self) -> str:
        cfg = self.config
        return (
            f"ImageLoader(height={cfg.height}, width={cfg.width}, "
            f"channels={cfg.channels}, center_crop={cfg.center_crop})"
        )

    # ------------------------------------------------------------------
    # decode direction
    def prepare(self, source: ImageSource) -> RasterImage:
        """Decode `source` and bring it to the configured geometry."""

        cfg = self.config
        image = decode_image(source)
        normalized = normalize(image, cfg.height, cfg.width, crop_first=cfg.center_crop)
        logger.debug(
            "prepared %r (source %dx%d)", normalized, image.width, image.height
        )
        return normalized

    def _convert(self, image: RasterImage) -> np.ndarray:
        if self.config.channels == 3:
            return to_planar_tensor(image, channels=3, dtype=self._dtype)
        return to_packed_matrix(image)

    def load(self, source: ImageSource) -> np.ndarray:
        """Load `source` as ``(3, H, W)`` B,G,R planes or a packed ``(H, W)`` matrix."""

        return self._convert(self.prepare(source))

    as_matrix = load

    def load_row_vector(self, source: ImageSource) -> np.ndarray:
        return self.load(source).ravel()

    def to_bgr(self, source: ImageSource) -> np.ndarray:
        """Planar B,G,R(,A) array with every band of the image's pixel format."""

        return to_planar_tensor(self.prepare(source), dtype=self._dtype)

    def to_raveled_tensor(self, source: ImageSource) -> np.ndarray:
        return self.to_bgr(source).ravel()

    def load_multiple_channels(self, source: ImageSource) -> np.ndarray:
        """Planar array with up to ``config.channels`` planes."""

        return to_planar_tensor(
            self.prepare(source), channels=self.config.channels, dtype=self._dtype
        )

    def load_image_matrix(self, source: ImageSource) -> ImageMatrix:
        """Convert `source` and report its band count and final geometry.

        In planar mode the array holds every band, so ``array.shape[0] == bands``.
        """

        image = self.prepare(source)
        if self.config.channels == 3:
            array = to_planar_tensor(image, dtype=self._dtype)
        else:
            array = to_packed_matrix(image)
        return ImageMatrix(
            array=array,
            bands=band_count(image.pixel_format),
            height=image.height,
            width=image.width,
        )

    def as_image_mini_batches(
        self,
        source: ImageSource,
        num_mini_batches: int,
        num_rows_per_slice: int,
    ) -> np.ndarray:
        """Replicate the first `num_rows_per_slice` rows into a mini-batch.

        Returns an array of shape ``(num_mini_batches, num_rows_per_slice, W)``
        built from the packed ARGB matrix of `source`.
        """

        n, rows = int(num_mini_batches), int(num_rows_per_slice)
        if n <= 0 or rows <= 0:
            raise InvalidShape(
                f"num_mini_batches and num_rows_per_slice must be > 0, got {(n, rows)}"
            )
        matrix = to_packed_matrix(self.prepare(source))
        if rows > matrix.shape[0]:
            raise InvalidShape(
                f"num_rows_per_slice={rows} exceeds image height {matrix.shape[0]}"
            )
        return np.repeat(matrix[None, :rows, :], n, axis=0)

    # ------------------------------------------------------------------
    # encode direction
    def encode(self, tensor: Any) -> RasterImage:
        """Build an opaque image from a planar tensor, scaled to the configured size."""

        cfg = self.config
        image = to_image(tensor, channel_order=cfg.channel_order)
        return scale(image, cfg.height, cfg.width)

    def save(self, tensor: Any, path: str | Path) -> Path:
        return write_image(self.encode(tensor), path)
