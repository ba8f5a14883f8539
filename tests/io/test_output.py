import base64
from concurrent.futures import ThreadPoolExecutor

import pytest

from superImageCropper.application.dtos import OutputType
from superImageCropper.config import BLOB_URL_PREFIX
from superImageCropper.domain.models import Blob
from superImageCropper.errors import ConfigError, LoadError
from superImageCropper.io.output import BlobStore, serialize, to_data_uri


def test_to_data_uri():
    uri = to_data_uri(b"\x00\x01gif", "image/gif")
    assert uri == "data:image/gif;base64," + base64.b64encode(b"\x00\x01gif").decode()


def test_serialize_output_types():
    store = BlobStore()

    assert serialize(b"abc", "image/png", OutputType.BASE64, store).startswith("data:image/png;base64,")

    blob = serialize(b"abc", "image/png", OutputType.BLOB, store)
    assert blob == Blob(b"abc", "image/png")
    assert blob.size == 3
    assert len(store) == 0

    url = serialize(b"abc", "image/png", OutputType.BLOB_URL, store)
    assert url.startswith(BLOB_URL_PREFIX)
    assert url in store
    assert store.resolve(url).data == b"abc"


def test_blob_store_revoke():
    store = BlobStore()
    url = store.create_object_url(Blob(b"x", "image/gif"))

    store.revoke(url)
    store.revoke(url)

    assert url not in store
    with pytest.raises(LoadError):
        store.resolve(url)


def test_blob_store_urls_are_unique_across_threads():
    store = BlobStore()
    with ThreadPoolExecutor(max_workers=4) as pool:
        urls = list(pool.map(lambda i: store.create_object_url(Blob(bytes([i]), "image/gif")), range(64)))

    assert len(set(urls)) == 64
    assert len(store) == 64


def test_output_type_coercion():
    assert OutputType.coerce(None) is OutputType.BLOB_URL
    assert OutputType.coerce("base64") is OutputType.BASE64
    assert OutputType.coerce(OutputType.BLOB) is OutputType.BLOB
    with pytest.raises(ConfigError):
        OutputType.coerce("png")
