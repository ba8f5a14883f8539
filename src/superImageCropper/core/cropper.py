"""Apply one crop plan to GIF frames or a static raster surface."""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image, ImageOps

from ..domain.models import CropContext, CroppedFrame, ParsedFrameInfo, StaticCropResult
from ..errors import ConfigError
from .geometry import CropPlan, plan_crop

_LOGGER = logging.getLogger(__name__)

_TRANSPARENT = (0, 0, 0, 0)

# Clockwise quarter turns expressed as Pillow transposes (which turn counter-clockwise).
_QUARTER_TURNS = {
    90.0: Image.Transpose.ROTATE_270,
    180.0: Image.Transpose.ROTATE_180,
    270.0: Image.Transpose.ROTATE_90,
}


def _transform(image: Image.Image, plan: CropPlan) -> Image.Image:
    if image.size != plan.scaled_size:
        image = image.resize(plan.scaled_size, Image.Resampling.LANCZOS)
    if plan.flip_x:
        image = ImageOps.mirror(image)
    if plan.flip_y:
        image = ImageOps.flip(image)
    if plan.rotate == 0:
        return image
    transpose = _QUARTER_TURNS.get(plan.rotate)
    if transpose is not None:
        return image.transpose(transpose)
    return image.rotate(-plan.rotate, resample=Image.Resampling.BICUBIC, expand=True)


def render_surface(image: Image.Image, plan: CropPlan) -> Image.Image:
    """Draw *image* scaled, flipped and rotated, centred on the intermediate surface."""

    image = image.convert("RGBA")
    if plan.is_identity and plan.background is None:
        return image
    image = _transform(image, plan)
    width, height = plan.surface_size
    offset = ((width - image.width) // 2, (height - image.height) // 2)
    if plan.background is None:
        surface = Image.new("RGBA", plan.surface_size, _TRANSPARENT)
        surface.paste(image, offset)
        return surface
    surface = Image.new("RGBA", plan.surface_size, plan.background)
    layer = Image.new("RGBA", plan.surface_size, _TRANSPARENT)
    layer.paste(image, offset)
    return Image.alpha_composite(surface, layer)


def extract_window(surface: Image.Image, plan: CropPlan) -> Image.Image:
    """Copy the crop window out of *surface*; area outside it gets the background."""

    left, top, width, height = plan.window
    output = Image.new("RGBA", (width, height), plan.background or _TRANSPARENT)
    x0, y0 = max(left, 0), max(top, 0)
    x1, y1 = min(left + width, surface.width), min(top + height, surface.height)
    if x1 > x0 and y1 > y0:
        output.paste(surface.crop((x0, y0, x1, y1)), (x0 - left, y0 - top))
    return output


class FrameCropper:
    """Crop GIF frames or a static surface with a geometry bound by :meth:`init`.

    The same instance can be re-used across operations; each :meth:`init`
    replaces the geometry and drops plans derived from the previous one.
    """

    def __init__(self) -> None:
        self._context: Optional[CropContext] = None
        self._plans: dict[tuple[int, int], CropPlan] = {}

    def init(self, context: CropContext) -> None:
        self._context = context
        self._plans.clear()
        _LOGGER.debug(
            "Cropper bound to %s (crop box %s)", context.geometry, context.crop_box
        )

    def plan_for(self, size: tuple[int, int]) -> CropPlan:
        if self._context is None:
            raise ConfigError("FrameCropper.init() must be called before cropping")
        plan = self._plans.get(size)
        if plan is None:
            plan = plan_crop(self._context.geometry, size)
            self._plans[size] = plan
        return plan

    def crop_gif(self, info: ParsedFrameInfo) -> list[CroppedFrame]:
        plan = self.plan_for((info.width, info.height))
        cropped: list[CroppedFrame] = []
        for index, frame in enumerate(info.frames):
            surface = render_surface(frame.to_image(), plan)
            cropped.append(CroppedFrame.from_image(extract_window(surface, plan)))
            _LOGGER.debug("Cropped frame %d to %dx%d", index, *plan.output_size)
        return cropped

    def crop_static_image(self, surface: Image.Image) -> StaticCropResult:
        plan = self.plan_for(surface.size)
        rendered = render_surface(surface, plan)
        left, top, width, height = plan.window
        box = (
            max(left, 0),
            max(top, 0),
            min(left + width, rendered.width),
            min(top + height, rendered.height),
        )
        if box[2] <= box[0] or box[3] <= box[1]:
            raise ConfigError(
                f"Crop window {plan.window} does not intersect the "
                f"{rendered.width}x{rendered.height} image"
            )
        image = rendered.crop(box)
        return StaticCropResult(image=image, width=image.width, height=image.height)
