"""pyimgtensor - convert decoded images into planar numpy arrays and back.

Keep top-level imports lightweight: the codec adapters pull in OpenCV and
Pillow. We lazy-load these exports on demand so that `import pyimgtensor` and
the pure layout helpers work without them.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

__all__ = [
    # Modules
    "geometry",
    "inputs",
    "io",
    "layout",
    # Facade
    "ImageLoader",
    "ImageMatrix",
    "LoaderConfig",
    # Data model
    "PixelFormat",
    "RasterImage",
    "band_count",
    # Conversion
    "normalize",
    "to_image",
    "to_packed_matrix",
    "to_planar_tensor",
    # Errors
    "CorruptPixelData",
    "InvalidInput",
    "InvalidShape",
    "PyImgTensorError",
]


_LAZY_SUBMODULES = {
    "geometry",
    "inputs",
    "io",
    "layout",
}

_LAZY_EXPORTS = {
    "ImageLoader": ("loader", "ImageLoader"),
    "ImageMatrix": ("loader", "ImageMatrix"),
    "LoaderConfig": ("config", "LoaderConfig"),
    "PixelFormat": ("inputs.pixel_format", "PixelFormat"),
    "band_count": ("inputs.pixel_format", "band_count"),
    "RasterImage": ("raster", "RasterImage"),
    "normalize": ("geometry", "normalize"),
    "to_image": ("layout", "to_image"),
    "to_packed_matrix": ("layout", "to_packed_matrix"),
    "to_planar_tensor": ("layout", "to_planar_tensor"),
    "CorruptPixelData": ("errors", "CorruptPixelData"),
    "InvalidInput": ("errors", "InvalidInput"),
    "InvalidShape": ("errors", "InvalidShape"),
    "PyImgTensorError": ("errors", "PyImgTensorError"),
}


def __getattr__(name: str) -> Any:  # pragma: no cover - thin delegation
    if name in _LAZY_SUBMODULES:
        module = import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module

    target = _LAZY_EXPORTS.get(name)
    if target is not None:
        module_name, attr = target
        module = import_module(f"{__name__}.{module_name}")
        value = getattr(module, attr)
        globals()[name] = value
        return value

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover - tooling convenience
    return sorted(set(globals()) | set(__all__))
