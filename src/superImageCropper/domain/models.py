"""Value objects exchanged between the decoder, cropper and encoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class CropGeometry:
    """Normalised crop transform in natural image pixels.

    ``left``/``top`` locate the crop window on the rotated surface, ``rotate``
    is always within ``[0, 360)`` and ``background`` is a colour string or
    ``None`` for a transparent fill.
    """

    width: float
    height: float
    scale_x: float = 1.0
    scale_y: float = 1.0
    x: float = 0.0
    y: float = 0.0
    left: float = 0.0
    top: float = 0.0
    rotate: float = 0.0
    background: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> CropGeometry:
        """Build a geometry from cropper.js style keys (``scaleX``, ``scaleY``)."""
        background = values.get("background")
        return cls(
            width=float(values["width"]),
            height=float(values["height"]),
            scale_x=float(values.get("scaleX", 1.0)),
            scale_y=float(values.get("scaleY", 1.0)),
            x=float(values.get("x", 0.0)),
            y=float(values.get("y", 0.0)),
            left=float(values.get("left", values.get("x", 0.0))),
            top=float(values.get("top", values.get("y", 0.0))),
            rotate=float(values.get("rotate", 0.0)),
            background=str(background) if background is not None else None,
        )


@dataclass(frozen=True)
class ImageDescriptor:
    width: float
    height: float
    natural_width: int
    natural_height: int

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ImageDescriptor:
        natural_width = int(values.get("naturalWidth", values.get("width", 0)))
        natural_height = int(values.get("naturalHeight", values.get("height", 0)))
        return cls(
            width=float(values.get("width", natural_width)),
            height=float(values.get("height", natural_height)),
            natural_width=natural_width,
            natural_height=natural_height,
        )


@dataclass(frozen=True)
class CropBoxData:
    """Crop box rectangle in displayed (UI) pixels."""

    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> CropBoxData:
        return cls(
            left=float(values.get("left", 0.0)),
            top=float(values.get("top", 0.0)),
            width=float(values.get("width", 0.0)),
            height=float(values.get("height", 0.0)),
        )


@dataclass(frozen=True)
class CropContext:
    """Everything the cropper needs for one ``crop()`` call."""

    geometry: CropGeometry
    image_data: ImageDescriptor
    crop_box: CropBoxData


@dataclass
class ParsedFrame:
    """Fully composited RGBA frame produced by the decoder."""

    pixels: np.ndarray
    delay_ms: int
    disposal_method: int = 0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def nbytes(self) -> int:
        return int(self.pixels.nbytes)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels, "RGBA")


@dataclass
class ParsedFrameInfo:
    width: int
    height: int
    frames: list[ParsedFrame] = field(default_factory=list)
    delays: list[int] = field(default_factory=list)
    loop_count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.frames)


@dataclass
class CroppedFrame:
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_image(cls, image: Image.Image) -> CroppedFrame:
        return cls(pixels=np.asarray(image.convert("RGBA"), dtype=np.uint8).copy())

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels, "RGBA")


@dataclass(frozen=True)
class StaticCropResult:
    """Cropped static raster plus its final pixel size."""

    image: Image.Image
    width: int
    height: int


@dataclass(frozen=True)
class Blob:
    """Opaque binary payload with its MIME type."""

    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)
