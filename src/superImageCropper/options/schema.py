"""Schema helpers for crop and GIF encoder options."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from ..config import DEFAULT_CROP_OPTIONS, DEFAULT_GIF_OPTIONS
from ..errors import ConfigError

_NUMBER: dict[str, Any] = {"type": "number"}
_SCALE: dict[str, Any] = {"type": "number", "not": {"const": 0}}
_COLOR: dict[str, Any] = {"type": ["string", "null"]}

CROP_OPTIONS_SCHEMA: dict[str, Any] = {
    "$id": "superImageCropper/crop-options.schema.json",
    "type": "object",
    "required": ["width", "height", "scaleX", "scaleY", "x", "y", "rotate"],
    "properties": {
        "width": {"type": "number", "minimum": 0},
        "height": {"type": "number", "minimum": 0},
        "scaleX": _SCALE,
        "scaleY": _SCALE,
        "x": _NUMBER,
        "y": _NUMBER,
        "left": _NUMBER,
        "top": _NUMBER,
        "rotate": _NUMBER,
        "background": _COLOR,
    },
    "additionalProperties": True,
}

GIF_OPTIONS_SCHEMA: dict[str, Any] = {
    "$id": "superImageCropper/gif-options.schema.json",
    "type": "object",
    "properties": {
        "repeat": {"type": "integer", "minimum": -1, "maximum": 65535},
        "quality": {"type": "integer", "minimum": 1, "maximum": 30},
        "workers": {"type": "integer", "minimum": 0},
        "workerScript": {"type": "string"},
        "background": {"type": "string"},
        "width": {"type": ["integer", "null"], "minimum": 1},
        "height": {"type": ["integer", "null"], "minimum": 1},
        "transparent": _COLOR,
        "dither": {"type": ["boolean", "string"]},
        "globalPalette": {"type": "boolean"},
        "debug": {"type": "boolean"},
    },
    "additionalProperties": False,
}

_crop_validator = Draft202012Validator(CROP_OPTIONS_SCHEMA)
_gif_validator = Draft202012Validator(GIF_OPTIONS_SCHEMA)


def _validate(validator: Draft202012Validator, data: dict[str, Any], label: str) -> None:
    try:
        validator.validate(data)
    except ValidationError as exc:
        location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid {label} at {location}: {exc.message}") from exc


def merge_crop_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *layers* over :data:`DEFAULT_CROP_OPTIONS` and validate the result.

    Later layers win.  ``None`` values inside a layer are skipped so that a
    partially filled mapping never erases a lower-priority value.
    """

    merged: dict[str, Any] = deepcopy(DEFAULT_CROP_OPTIONS)
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                continue
            merged[key] = value
    _validate(_crop_validator, merged, "crop options")
    return merged


def merge_gif_options(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_GIF_OPTIONS` and validate the result."""

    merged: dict[str, Any] = deepcopy(DEFAULT_GIF_OPTIONS)
    if data:
        merged.update(data)
    _validate(_gif_validator, merged, "gif options")
    return merged


__all__ = [
    "CROP_OPTIONS_SCHEMA",
    "GIF_OPTIONS_SCHEMA",
    "merge_crop_options",
    "merge_gif_options",
]
