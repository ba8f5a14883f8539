from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..config import DEFAULT_OUTPUT_TYPE, DEFAULT_QUALITY
from ..errors import ConfigError
from .interfaces import UIGeometryProvider

SourceRef = Union[str, Path, bytes]


class OutputType(str, Enum):
    BASE64 = "base64"
    BLOB = "blob"
    BLOB_URL = "blobURL"

    @classmethod
    def coerce(cls, value: Any) -> OutputType:
        if value is None:
            return cls(DEFAULT_OUTPUT_TYPE)
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ConfigError(f"Unknown output type {value!r}; expected one of {allowed}") from exc


# camelCase keys accepted for parity with the JavaScript API
_ALIASES: Dict[str, str] = {
    "cropperInstance": "cropper_instance",
    "crossOrigin": "cross_origin",
    "cropperJsOpts": "cropper_js_opts",
    "gifJsOptions": "gif_js_options",
    "outputType": "output_type",
}


@dataclass
class CropperOptions:
    cropper_instance: Optional[UIGeometryProvider] = None
    src: Optional[SourceRef] = None
    cross_origin: Optional[str] = None
    cropper_js_opts: Optional[Dict[str, Any]] = None
    gif_js_options: Optional[Dict[str, Any]] = None
    output_type: Optional[str] = None
    quality: Optional[float] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> CropperOptions:
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown cropper option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    @property
    def resolved_output_type(self) -> OutputType:
        return OutputType.coerce(self.output_type)

    @property
    def resolved_quality(self) -> float:
        """Return ``quality`` as a ``[0, 1]`` ratio."""
        quality = DEFAULT_QUALITY if self.quality is None else self.quality
        try:
            numeric = float(quality)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"quality must be a number, got {quality!r}") from exc
        if not 0 <= numeric <= 100:
            raise ConfigError(f"quality must be within [0, 100], got {numeric}")
        return numeric / 100.0
