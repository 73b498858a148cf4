"""Exceptions raised by `pyimgtensor`.

All errors derive from :class:`PyImgTensorError` and from `ValueError`, so
callers that already guard conversions with ``except ValueError`` keep working.
"""

from __future__ import annotations


class PyImgTensorError(Exception):
    """Base class for conversion errors."""


class InvalidInput(PyImgTensorError, ValueError):
    """The image (or its source) is missing or cannot be read."""


class InvalidShape(PyImgTensorError, ValueError):
    """A tensor has the wrong rank or dimensions for the requested operation."""


class CorruptPixelData(PyImgTensorError, ValueError):
    """An extracted pixel buffer disagrees with ``width * height * bands``."""


__all__ = [
    "CorruptPixelData",
    "InvalidInput",
    "InvalidShape",
    "PyImgTensorError",
]
