from abc import ABC, abstractmethod
from typing import Any, Dict


class UIGeometryProvider(ABC):
    """Interface for a live cropping widget (cropper.js or an adapter of it).

    When an instance is handed to the cropper it is authoritative: its
    ``url`` replaces the caller ``src`` and ``get_data()`` overrides any
    caller supplied crop options.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Source reference the widget is bound to."""
        pass

    @abstractmethod
    def get_data(self) -> Dict[str, Any]:
        """
        Return the crop transform in natural image pixels.
        Keys follow cropper.js: x, y, width, height, rotate, scaleX, scaleY.
        """
        pass

    @abstractmethod
    def get_image_data(self) -> Dict[str, Any]:
        """Return width, height (displayed) and naturalWidth, naturalHeight."""
        pass

    @abstractmethod
    def get_crop_box_data(self) -> Dict[str, Any]:
        """Return the crop box rect (left, top, width, height) in displayed pixels."""
        pass
