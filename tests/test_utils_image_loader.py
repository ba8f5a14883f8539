import base64
from io import BytesIO
from urllib.parse import quote_from_bytes

import pytest
import requests
from PIL import Image

from superImageCropper.domain.models import Blob
from superImageCropper.errors import LoadError
from superImageCropper.io.output import BlobStore
from superImageCropper.utils import image_loader
from superImageCropper.utils.image_loader import (
    load_image,
    open_rgba_surface,
    read_source,
    sniff_image,
)


def test_read_source_variants(tmp_path, png_bytes):
    path = tmp_path / "image.png"
    path.write_bytes(png_bytes)

    assert read_source(png_bytes) == png_bytes
    assert read_source(bytearray(png_bytes)) == png_bytes
    assert read_source(path) == png_bytes
    assert read_source(str(path)) == png_bytes
    assert read_source(path.as_uri()) == png_bytes


def test_data_urls(png_bytes):
    encoded = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    quoted = "data:image/png," + quote_from_bytes(png_bytes)

    assert read_source(encoded) == png_bytes
    assert read_source(quoted) == png_bytes


def test_malformed_data_url():
    with pytest.raises(LoadError):
        read_source("data:image/png;base64")


def test_blob_urls(png_bytes):
    store = BlobStore()
    url = store.create_object_url(Blob(png_bytes, "image/png"))

    assert read_source(url, blob_store=store) == png_bytes
    with pytest.raises(LoadError):
        read_source(url)
    store.revoke(url)
    with pytest.raises(LoadError):
        read_source(url, blob_store=store)


def test_missing_file(tmp_path):
    with pytest.raises(LoadError):
        read_source(tmp_path / "missing.gif")
    with pytest.raises(LoadError):
        read_source("")


class _FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_http_sources(monkeypatch, png_bytes):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(png_bytes)

    monkeypatch.setattr(image_loader.requests, "get", fake_get)

    assert read_source("https://example.com/a.png", timeout=3.0) == png_bytes
    assert calls == [("https://example.com/a.png", 3.0)]


def test_http_errors_become_load_errors(monkeypatch):
    monkeypatch.setattr(image_loader.requests, "get", lambda url, timeout: _FakeResponse(b"", 404))
    with pytest.raises(LoadError):
        read_source("http://example.com/missing.gif")

    def refuse(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(image_loader.requests, "get", refuse)
    with pytest.raises(LoadError):
        read_source("http://example.com/missing.gif")


def test_sniff_types(jpeg_bytes, png_bytes, animated_gif_bytes):
    assert sniff_image(jpeg_bytes).mime_type == "image/jpeg"
    assert sniff_image(png_bytes).mime_type == "image/png"
    gif = sniff_image(animated_gif_bytes)
    assert gif.is_gif
    assert (gif.descriptor.natural_width, gif.descriptor.natural_height) == (100, 100)


def test_sniff_rejects_non_images():
    with pytest.raises(LoadError):
        sniff_image(b"definitely not an image")


def test_exif_rotation_swaps_dimensions():
    exif = Image.Exif()
    exif[0x0112] = 6
    buffer = BytesIO()
    Image.new("RGB", (40, 20), (10, 20, 30)).save(buffer, format="JPEG", exif=exif)
    data = buffer.getvalue()

    loaded = sniff_image(data)
    surface = open_rgba_surface(data)

    assert (loaded.descriptor.natural_width, loaded.descriptor.natural_height) == (20, 40)
    assert surface.size == (20, 40)
    assert surface.mode == "RGBA"


def test_load_image(tmp_path, jpeg_bytes):
    path = tmp_path / "photo.jpg"
    path.write_bytes(jpeg_bytes)

    loaded = load_image(path)

    assert loaded.data == jpeg_bytes
    assert loaded.format == "JPEG"
    assert not loaded.is_gif
