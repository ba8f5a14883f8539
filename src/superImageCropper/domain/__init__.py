"""Domain value objects."""

from .models import (
    Blob,
    CropBoxData,
    CropContext,
    CroppedFrame,
    CropGeometry,
    ImageDescriptor,
    ParsedFrame,
    ParsedFrameInfo,
    StaticCropResult,
)

__all__ = [
    "Blob",
    "CropBoxData",
    "CropContext",
    "CropGeometry",
    "CroppedFrame",
    "ImageDescriptor",
    "ParsedFrame",
    "ParsedFrameInfo",
    "StaticCropResult",
]
