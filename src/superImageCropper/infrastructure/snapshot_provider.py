"""Geometry provider backed by a serialised cropper.js state."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

from ..application.interfaces import UIGeometryProvider
from ..errors import ConfigError


class SnapshotGeometryProvider(UIGeometryProvider):
    """
    Immutable snapshot of a cropping widget.

    Web front-ends typically post ``cropper.getData()``, ``getImageData()``
    and ``getCropBoxData()`` next to the image URL; this adapter turns that
    payload back into a provider so the server side can crop with the exact
    geometry the user saw.
    """

    def __init__(
        self,
        url: str,
        data: Mapping[str, Any],
        image_data: Mapping[str, Any],
        crop_box_data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        if not url:
            raise ConfigError("A geometry snapshot needs the url of its image")
        self._url = str(url)
        self._data = dict(data)
        self._image_data = dict(image_data)
        self._crop_box_data = dict(crop_box_data or {})

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> SnapshotGeometryProvider:
        """Build a provider from ``{"url", "data", "imageData", "cropBoxData"}``."""
        try:
            return cls(
                url=payload["url"],
                data=payload["data"],
                image_data=payload["imageData"],
                crop_box_data=payload.get("cropBoxData"),
            )
        except KeyError as exc:
            raise ConfigError(f"Geometry snapshot is missing {exc.args[0]!r}") from exc

    @property
    def url(self) -> str:
        return self._url

    def get_data(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def get_image_data(self) -> Dict[str, Any]:
        return deepcopy(self._image_data)

    def get_crop_box_data(self) -> Dict[str, Any]:
        return deepcopy(self._crop_box_data)
