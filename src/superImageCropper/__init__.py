"""Crop static images and animated GIFs with cropper.js geometry."""

from .application.dtos import CropperOptions, OutputType
from .application.interfaces import UIGeometryProvider
from .application.super_image_cropper import SuperImageCropper
from .core.cropper import FrameCropper
from .core.gif.decoder import Decoder
from .core.gif.encoder import SyntheticGIF
from .domain.models import Blob, CroppedFrame, ParsedFrame, ParsedFrameInfo
from .errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    LoadError,
    SuperImageCropperError,
)
from .infrastructure.snapshot_provider import SnapshotGeometryProvider
from .io.output import BlobStore

__version__ = "0.1.0"

__all__ = [
    "Blob",
    "BlobStore",
    "ConfigError",
    "CroppedFrame",
    "CropperOptions",
    "DecodeError",
    "Decoder",
    "EncodeError",
    "FrameCropper",
    "LoadError",
    "OutputType",
    "ParsedFrame",
    "ParsedFrameInfo",
    "SnapshotGeometryProvider",
    "SuperImageCropper",
    "SuperImageCropperError",
    "SyntheticGIF",
    "UIGeometryProvider",
]
