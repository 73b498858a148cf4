from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import numpy as np

from pyimgtensor.layout import ENCODE_CHANNEL_ORDERS
from pyimgtensor.utils.optional_deps import require


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{name} must be a dict/object, got {type(value).__name__}")
    return value


def _parse_int(value: Any, *, name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be int, got {value!r}")
    try:
        parsed = int(value)
    except Exception as exc:  # noqa: BLE001 - validation boundary
        raise ValueError(f"{name} must be int, got {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _parse_bool(value: Any, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class LoaderConfig:
    """Settings shared by every conversion made through one loader.

    A zero `height`/`width` disables resizing. `channels == 3` selects the
    planar BGR path; any other value selects packed ARGB matrices.
    """

    height: int = 0
    width: int = 0
    channels: int = 3
    center_crop: bool = False
    dtype: str = "float32"
    channel_order: str = "bgr"

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", _parse_int(self.height, name="height", minimum=0))
        object.__setattr__(self, "width", _parse_int(self.width, name="width", minimum=0))
        object.__setattr__(self, "channels", _parse_int(self.channels, name="channels", minimum=1))
        object.__setattr__(
            self, "center_crop", _parse_bool(self.center_crop, name="center_crop")
        )

        try:
            dtype = np.dtype(self.dtype)
        except TypeError as exc:
            raise ValueError(f"dtype must be a numpy dtype, got {self.dtype!r}") from exc
        if dtype.kind not in ("f", "i", "u"):
            raise ValueError(f"dtype must be numeric, got {dtype}")
        object.__setattr__(self, "dtype", dtype.name)

        order = str(self.channel_order).lower()
        if order not in ENCODE_CHANNEL_ORDERS:
            raise ValueError(
                f"channel_order must be one of {ENCODE_CHANNEL_ORDERS}, got {self.channel_order!r}"
            )
        object.__setattr__(self, "channel_order", order)

    @property
    def resize_enabled(self) -> bool:
        return self.height > 0 and self.width > 0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "LoaderConfig":
        """Build a config from a dict, or from its ``loader`` section if present."""

        top = _require_mapping(payload, name="config")
        section = top.get("loader", top)
        section = _require_mapping(section, name="loader")

        known = {"height", "width", "channels", "center_crop", "dtype", "channel_order"}
        unknown = sorted(str(k) for k in section.keys() if k not in known)
        if unknown:
            raise ValueError(f"Unknown loader config keys: {', '.join(unknown)}")
        return cls(**{str(k): v for k, v in section.items()})

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "width": self.width,
            "channels": self.channels,
            "center_crop": self.center_crop,
            "dtype": self.dtype,
            "channel_order": self.channel_order,
        }


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_yaml(path: Path) -> Any:
    yaml = require("yaml", extra="yaml", purpose="YAML config files")
    return yaml.safe_load(path.read_text(encoding="utf-8"))


_READERS: dict[str, Callable[[Path], Any]] = {
    ".json": _read_json,
    ".yml": _read_yaml,
    ".yaml": _read_yaml,
}


def load_config(path: str | Path, *, section: Optional[str] = None) -> dict[str, Any]:
    """Read a JSON or YAML config file into a dict.

    With `section`, return that sub-mapping when the file has one and the whole
    document otherwise. An empty file reads as ``{}``.
    """

    config_path = Path(path)
    reader = _READERS.get(config_path.suffix.lower())
    if reader is None:
        raise ValueError(
            f"Unsupported config extension {config_path.suffix!r} for {str(config_path)!r}; "
            f"expected one of {', '.join(sorted(_READERS))}"
        )

    data = reader(config_path)
    if data is None:
        return {}
    data = dict(_require_mapping(data, name=f"config {str(config_path)!r}"))
    if section is not None and section in data:
        return dict(_require_mapping(data[section], name=section))
    return data


def load_loader_config(path: str | Path) -> LoaderConfig:
    return LoaderConfig.from_mapping(load_config(path, section="loader"))
