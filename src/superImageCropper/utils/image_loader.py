"""Helpers for reading image sources and sniffing their type with Pillow."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from ..config import GIF_MIME_TYPE, HTTP_FETCH_TIMEOUT_SEC
from ..domain.models import ImageDescriptor
from ..errors import LoadError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..io.output import BlobStore

_LOGGER = logging.getLogger(__name__)

# EXIF orientations that swap the width and height of the stored raster.
_TRANSPOSING_ORIENTATIONS = {5, 6, 7, 8}

Source = Union[str, Path, bytes, bytearray, memoryview]


@dataclass(frozen=True)
class LoadedImage:
    """Raw bytes of a source image plus what Pillow could tell about them."""

    data: bytes
    format: str
    mime_type: str
    descriptor: ImageDescriptor

    @property
    def is_gif(self) -> bool:
        return self.mime_type == GIF_MIME_TYPE


def read_source(
    source: Source,
    *,
    blob_store: Optional["BlobStore"] = None,
    timeout: float = HTTP_FETCH_TIMEOUT_SEC,
) -> bytes:
    """Return the bytes behind *source*.

    *source* may be raw bytes, a filesystem path, a ``file://``, ``http(s)://``
    or ``data:`` URL, or a ``blob:`` URL registered in *blob_store*.
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, Path):
        return _read_path(source)

    text = str(source)
    if not text:
        raise LoadError("Empty image source")
    lowered = text[:8].lower()
    if lowered.startswith("data:"):
        return _decode_data_url(text)
    if lowered.startswith(("http://", "https://")):
        return _fetch(text, timeout)
    if lowered.startswith("blob:"):
        if blob_store is None:
            raise LoadError(f"Cannot resolve {text} without a blob store")
        return blob_store.resolve(text).data
    if lowered.startswith("file://"):
        return _read_path(Path(unquote_to_bytes(urlparse(text).path).decode("utf-8")))
    return _read_path(Path(text))


def _read_path(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise LoadError(f"Cannot read image file {path}: {exc}") from exc


def _fetch(url: str, timeout: float) -> bytes:
    _LOGGER.debug("Fetching remote image %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise LoadError(f"Failed to fetch {url}: {exc}") from exc
    return response.content


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise LoadError("Malformed data URL: missing ',' separator")
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as exc:
            raise LoadError(f"Malformed base64 payload in data URL: {exc}") from exc
    return unquote_to_bytes(payload)


def sniff_image(data: bytes) -> LoadedImage:
    """Identify *data* with Pillow and describe its natural size."""

    try:
        with Image.open(BytesIO(data)) as img:
            fmt = img.format or ""
            mime = Image.MIME.get(fmt) or img.get_format_mimetype() or ""
            width, height = img.size
            orientation = img.getexif().get(0x0112) if fmt != "GIF" else None
    except (UnidentifiedImageError, OSError) as exc:
        raise LoadError(f"Unrecognised image data: {exc}") from exc
    if not mime:
        raise LoadError(f"Cannot determine the MIME type of {fmt or 'unknown'} image")
    if orientation in _TRANSPOSING_ORIENTATIONS:
        width, height = height, width
    descriptor = ImageDescriptor(
        width=float(width),
        height=float(height),
        natural_width=width,
        natural_height=height,
    )
    return LoadedImage(data=data, format=fmt, mime_type=mime, descriptor=descriptor)


def load_image(source: Source, *, blob_store: Optional["BlobStore"] = None) -> LoadedImage:
    """Read and identify *source*; raises :class:`LoadError` on failure."""

    image = sniff_image(read_source(source, blob_store=blob_store))
    _LOGGER.debug(
        "Loaded %s image %dx%d (%d bytes)",
        image.mime_type,
        image.descriptor.natural_width,
        image.descriptor.natural_height,
        len(image.data),
    )
    return image


def open_rgba_surface(data: bytes) -> Image.Image:
    """Decode *data* into an RGBA raster with EXIF orientation applied.

    This is the equivalent of drawing the loaded image onto a fresh canvas.
    """

    try:
        with Image.open(BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            surface = img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        raise LoadError(f"Pillow failed to decode image data: {exc}") from exc
    return surface
