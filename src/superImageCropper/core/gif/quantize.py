"""Colour quantisation of RGBA frames into GIF palettes using Pillow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from ...config import ALPHA_THRESHOLD
from ...utils.colors import RGBA


@dataclass(frozen=True)
class IndexedFrame:
    """Palette indices for one frame plus the palette they refer to."""

    width: int
    height: int
    indices: bytes
    palette: bytes
    transparent_index: Optional[int] = None

    @property
    def color_count(self) -> int:
        return len(self.palette) // 3


def palette_size_for_quality(quality: int) -> int:
    """Map the gif.js ``quality`` (1 best .. 30 fastest) to a palette size.

    Every ten quality steps drop one bit of colour depth: 1-10 keep 256
    colours, 11-20 keep 128 and 21-30 keep 64.
    """

    q = max(1, min(30, int(quality)))
    return 256 >> ((q - 1) // 10)


def _flatten(frame: Image.Image, background: RGBA) -> Image.Image:
    base = Image.new("RGBA", frame.size, (background[0], background[1], background[2], 255))
    return Image.alpha_composite(base, frame).convert("RGB")


def _transparency_mask(
    frame: Image.Image, rgb: np.ndarray, key_color: Optional[RGBA]
) -> np.ndarray:
    mask = np.asarray(frame.getchannel("A")) < ALPHA_THRESHOLD
    if key_color is not None:
        mask |= np.all(rgb == np.array(key_color[:3], dtype=np.uint8), axis=-1)
    return mask


def build_palette_image(
    frame: Image.Image,
    *,
    colors: int,
    background: RGBA,
    kmeans: int = 0,
) -> Image.Image:
    """Return a ``P`` image whose palette fits *frame*; used for global palettes."""

    rgb = _flatten(frame, background)
    return rgb.quantize(colors=colors, method=Image.Quantize.MEDIANCUT, kmeans=kmeans)


def quantize_frame(
    frame: Image.Image,
    *,
    colors: int = 256,
    background: RGBA = (255, 255, 255, 255),
    key_color: Optional[RGBA] = None,
    dither: bool = False,
    palette_image: Optional[Image.Image] = None,
    kmeans: int = 0,
) -> IndexedFrame:
    """Reduce an RGBA *frame* to at most *colors* palette entries.

    Pixels that are (nearly) fully transparent, or that match *key_color*,
    share one extra palette slot that is reported as ``transparent_index``.
    Semi-transparent pixels are flattened onto *background*.  When
    *palette_image* is given its palette is reused instead of computing a new
    one, which is how a global colour table is shared across frames.
    """

    frame = frame.convert("RGBA")
    rgb_image = _flatten(frame, background)
    mask = _transparency_mask(frame, np.asarray(rgb_image), key_color)
    has_transparency = bool(mask.any())

    dither_mode = Image.Dither.FLOYDSTEINBERG if dither else Image.Dither.NONE
    if palette_image is None:
        budget = min(colors, 255) if has_transparency else colors
        adaptive = rgb_image.quantize(
            colors=budget, method=Image.Quantize.MEDIANCUT, kmeans=kmeans
        )
        if dither:
            adaptive = rgb_image.quantize(palette=adaptive, dither=dither_mode)
        indexed = adaptive
        source_palette = adaptive
    else:
        indexed = rgb_image.quantize(palette=palette_image, dither=dither_mode)
        source_palette = palette_image

    palette = bytes(source_palette.getpalette() or [])[: 3 * 256]
    indices = np.asarray(indexed, dtype=np.uint8).copy()

    transparent_index: Optional[int] = None
    if has_transparency:
        transparent_index = min(len(palette) // 3, 255)
        indices[mask] = transparent_index

    used = int(indices.max()) + 1 if indices.size else 1
    entries = max(used, 2)
    if len(palette) < 3 * entries:
        palette = palette + bytes(3 * entries - len(palette))
    if palette_image is None:
        palette = palette[: 3 * entries]

    return IndexedFrame(
        width=frame.width,
        height=frame.height,
        indices=indices.tobytes(),
        palette=palette,
        transparent_index=transparent_index,
    )
