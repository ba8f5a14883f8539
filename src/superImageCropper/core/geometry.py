"""Crop geometry normalisation and the per-call crop plan."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from ..domain.models import CropBoxData, CropContext, CropGeometry, ImageDescriptor
from ..options.schema import merge_crop_options
from ..utils.colors import RGBA, parse_color

_LOGGER = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round like ``Math.round``: halves go towards positive infinity."""
    return int(math.floor(float(value) + 0.5))


def normalize_rotate(value: float) -> float:
    """Return *value* expressed in ``[0, 360)`` degrees.

    Negative angles wrap with a truncating remainder (``-90`` becomes ``270``
    and ``-370`` becomes ``350``); a full turn collapses to ``0``.
    """

    angle = float(value)
    if angle < 0:
        angle = 360.0 + math.fmod(angle, 360.0)
    angle = math.fmod(angle, 360.0)
    return angle + 0.0


def rotated_size(width: float, height: float, degrees: float) -> tuple[int, int]:
    """Return the bounding box of a ``width`` x ``height`` rect rotated by *degrees*."""

    angle = normalize_rotate(degrees)
    if angle % 90 == 0:
        if angle in (90.0, 270.0):
            return round_half_up(height), round_half_up(width)
        return round_half_up(width), round_half_up(height)
    radians = math.radians(angle)
    cos_a = abs(math.cos(radians))
    sin_a = abs(math.sin(radians))
    return (
        round_half_up(width * cos_a + height * sin_a),
        round_half_up(width * sin_a + height * cos_a),
    )


def merge_geometry(
    caller_options: Optional[Mapping[str, Any]],
    ui_data: Optional[Mapping[str, Any]],
    natural_size: tuple[int, int],
) -> dict[str, Any]:
    """Merge defaults, caller options and live UI data into crop options.

    Later sources win.  The window origin is taken from ``x``/``y``,
    missing or zero ``width``/``height`` fall back to the natural size and
    ``rotate`` is normalised.
    """

    merged = merge_crop_options(caller_options, ui_data)
    natural_width, natural_height = natural_size
    if not merged.get("width"):
        merged["width"] = natural_width
    if not merged.get("height"):
        merged["height"] = natural_height
    merged["left"] = merged["x"]
    merged["top"] = merged["y"]
    merged["rotate"] = normalize_rotate(merged["rotate"])
    return merged


def build_context(
    options: Mapping[str, Any],
    image_data: Mapping[str, Any],
    crop_box: Optional[Mapping[str, Any]] = None,
) -> CropContext:
    geometry = CropGeometry.from_mapping(options)
    if crop_box is None:
        crop_box = {
            "left": geometry.left,
            "top": geometry.top,
            "width": geometry.width,
            "height": geometry.height,
        }
    return CropContext(
        geometry=geometry,
        image_data=ImageDescriptor.from_mapping(image_data),
        crop_box=CropBoxData.from_mapping(crop_box),
    )


@dataclass(frozen=True)
class CropPlan:
    """Pixel-level recipe shared by every frame of one crop operation."""

    source_size: tuple[int, int]
    scaled_size: tuple[int, int]
    flip_x: bool
    flip_y: bool
    rotate: float
    surface_size: tuple[int, int]
    window: tuple[int, int, int, int]
    background: Optional[RGBA]

    @property
    def output_size(self) -> tuple[int, int]:
        return self.window[2], self.window[3]

    @property
    def is_identity(self) -> bool:
        return (
            self.scaled_size == self.source_size
            and not (self.flip_x or self.flip_y)
            and self.rotate == 0
        )


def plan_crop(geometry: CropGeometry, source_size: tuple[int, int]) -> CropPlan:
    width, height = source_size
    scaled = (
        max(1, round_half_up(width * abs(geometry.scale_x))),
        max(1, round_half_up(height * abs(geometry.scale_y))),
    )
    rotate = normalize_rotate(geometry.rotate)
    surface = rotated_size(scaled[0], scaled[1], rotate)
    window = (
        round_half_up(geometry.left),
        round_half_up(geometry.top),
        max(1, round_half_up(geometry.width)),
        max(1, round_half_up(geometry.height)),
    )
    plan = CropPlan(
        source_size=(width, height),
        scaled_size=scaled,
        flip_x=geometry.scale_x < 0,
        flip_y=geometry.scale_y < 0,
        rotate=rotate,
        surface_size=surface,
        window=window,
        background=parse_color(geometry.background),
    )
    _LOGGER.debug("Crop plan for %dx%d source: %s", width, height, plan)
    return plan


__all__ = [
    "CropPlan",
    "build_context",
    "merge_geometry",
    "normalize_rotate",
    "plan_crop",
    "rotated_size",
    "round_half_up",
]
