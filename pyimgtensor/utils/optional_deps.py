"""Dependency import helpers.

The codec adapters import OpenCV lazily so that `import pyimgtensor` and the
pure layout code work without loading it. When a decoder (or the YAML config
reader) is missing the caller gets an install hint naming the distribution
instead of a bare ``ModuleNotFoundError``.
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Optional, Tuple

# Import name -> distribution name on the package index.
_DISTRIBUTIONS = {
    "cv2": "opencv-python",
    "PIL": "Pillow",
    "yaml": "PyYAML",
}


def optional_import(module_name: str) -> Tuple[Optional[ModuleType], Optional[ImportError]]:
    """Import `module_name`; return ``(module, None)`` or ``(None, error)``."""

    try:
        return import_module(module_name), None
    except ImportError as exc:
        return None, exc


def pip_name(module_name: str) -> str:
    root = str(module_name).split(".", 1)[0]
    return _DISTRIBUTIONS.get(root, root)


def install_hint(module_name: str, extra: Optional[str] = None) -> str:
    if extra:
        return f"pip install 'pyimgtensor[{extra}]'"
    return f"pip install '{pip_name(module_name)}'"


def require(module_name: str, *, extra: Optional[str] = None, purpose: Optional[str] = None) -> ModuleType:
    """Import `module_name` or raise ImportError with an install hint."""

    module, error = optional_import(module_name)
    if module is not None:
        return module

    needed_for = f" for {purpose}" if purpose else ""
    raise ImportError(
        f"{pip_name(module_name)} ('{module_name}') is required{needed_for}.\n"
        f"Install it via:\n  {install_hint(module_name, extra)}\n"
        f"Original error: {error}"
    ) from error
