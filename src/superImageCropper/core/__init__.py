"""Core imaging primitives: geometry, frame cropping and the GIF codec."""

from .cropper import FrameCropper
from .geometry import CropPlan, normalize_rotate

__all__ = ["CropPlan", "FrameCropper", "normalize_rotate"]
