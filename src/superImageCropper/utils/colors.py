"""Colour string parsing shared by the cropper and the GIF encoder."""

from __future__ import annotations

from typing import Optional

from PIL import ImageColor

from ..errors import ConfigError

RGBA = tuple[int, int, int, int]

_NO_FILL = {"", "none", "transparent"}


def parse_color(value: Optional[str]) -> Optional[RGBA]:
    """Return *value* as an RGBA tuple, or ``None`` for "no fill".

    Accepts every CSS form Pillow understands plus the ``0xRRGGBB`` notation
    used by gif.js.
    """

    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _NO_FILL:
        return None
    if text.lower().startswith("0x"):
        text = "#" + text[2:]
    try:
        color = ImageColor.getrgb(text)
    except ValueError as exc:
        raise ConfigError(f"Unrecognised colour {value!r}") from exc
    if len(color) == 3:
        return (color[0], color[1], color[2], 255)
    return (color[0], color[1], color[2], color[3])
