"""Serialisation of crop results into the caller's requested representation."""

from __future__ import annotations

import base64
import logging
import threading
import uuid
from typing import Union

from ..application.dtos import OutputType
from ..config import BLOB_URL_PREFIX
from ..domain.models import Blob
from ..errors import LoadError

_LOGGER = logging.getLogger(__name__)

CropOutput = Union[str, Blob]


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Return ``data:<mime>;base64,<payload>`` for *data*."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class BlobStore:
    """In-memory registry that hands out ``blob:`` URLs for binary payloads.

    This plays the role of ``URL.createObjectURL``: a URL stays resolvable
    until it is revoked.  The store is thread-safe.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, Blob] = {}
        self._lock = threading.Lock()

    def create_object_url(self, blob: Blob) -> str:
        url = f"{BLOB_URL_PREFIX}{uuid.uuid4()}"
        with self._lock:
            self._blobs[url] = blob
        _LOGGER.debug("Registered %s (%d bytes, %s)", url, blob.size, blob.mime_type)
        return url

    def resolve(self, url: str) -> Blob:
        with self._lock:
            blob = self._blobs.get(url)
        if blob is None:
            raise LoadError(f"Unknown or revoked blob URL: {url}")
        return blob

    def revoke(self, url: str) -> None:
        with self._lock:
            self._blobs.pop(url, None)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


def serialize(data: bytes, mime_type: str, output_type: OutputType, store: BlobStore) -> CropOutput:
    """Wrap encoded *data* as a data URI, a :class:`Blob` or a blob URL."""
    if output_type is OutputType.BASE64:
        return to_data_uri(data, mime_type)
    blob = Blob(data=data, mime_type=mime_type)
    if output_type is OutputType.BLOB:
        return blob
    return store.create_object_url(blob)
