import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

FRAME_COLORS = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]


def build_gif(
    size=(100, 100),
    colors=FRAME_COLORS,
    duration=100,
    loop=0,
) -> bytes:
    """Return an animated GIF with one solid frame per colour."""
    frames = [Image.new("RGB", size, color) for color in colors]
    buffer = BytesIO()
    params = {"save_all": True, "append_images": frames[1:], "duration": duration}
    if loop is not None:
        params["loop"] = loop
    frames[0].save(buffer, format="GIF", **params)
    return buffer.getvalue()


def build_raster(fmt: str, size=(120, 80), color=(200, 50, 50), mode="RGB", **params) -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.fixture
def gif_factory():
    return build_gif


@pytest.fixture
def animated_gif_bytes() -> bytes:
    return build_gif()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return build_raster("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    """80x60 RGBA PNG: opaque red left half, transparent right half."""
    image = Image.new("RGBA", (80, 60), (0, 0, 0, 0))
    image.paste((255, 0, 0, 255), (0, 0, 40, 60))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
