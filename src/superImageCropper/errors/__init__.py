"""Custom exception hierarchy for superImageCropper."""

from __future__ import annotations


class SuperImageCropperError(Exception):
    """Base class for all custom errors raised by superImageCropper."""


class ConfigError(SuperImageCropperError):
    """Raised when the crop options are missing, inconsistent or invalid."""


class LoadError(SuperImageCropperError):
    """Raised when the source image cannot be fetched or its type sniffed."""


class DecodeError(SuperImageCropperError):
    """Raised when a GIF byte stream is malformed or truncated."""


class EncodeError(SuperImageCropperError):
    """Raised when the cropped frames cannot be serialised."""


__all__ = [
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "LoadError",
    "SuperImageCropperError",
]
