"""Public entry point that crops static images and animated GIFs."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import fields
from io import BytesIO
from typing import Any, Optional, Union

from PIL import Image

from ..config import FALLBACK_MIME_TYPE
from ..core.cropper import FrameCropper
from ..core.geometry import build_context, merge_geometry
from ..core.gif.decoder import Decoder
from ..core.gif.encoder import SyntheticGIF
from ..errors import ConfigError
from ..io.output import BlobStore, CropOutput, serialize
from ..options.schema import merge_gif_options
from ..utils.image_loader import LoadedImage, load_image, open_rgba_surface
from .dtos import CropperOptions, OutputType
from .interfaces import UIGeometryProvider

_LOGGER = logging.getLogger(__name__)

# Pillow formats that keep an alpha channel are written as-is; JPEG has none
# and is flattened onto black like a canvas export.
_OPAQUE_FORMATS = {"JPEG"}
_LOSSY_FORMATS = {"JPEG", "WEBP"}

OptionsInput = Union[CropperOptions, Mapping[str, Any], None]


def _pillow_format(mime_type: str) -> Optional[str]:
    Image.init()
    for fmt, mime in Image.MIME.items():
        if mime == mime_type and fmt in Image.SAVE:
            return fmt
    return None


def encode_static(image: Image.Image, mime_type: str, quality: float) -> tuple[bytes, str]:
    """Encode *image* as *mime_type*, or as PNG when Pillow cannot write it.

    *quality* is a ``[0, 1]`` ratio applied to lossy formats.
    """

    fmt = _pillow_format(mime_type)
    if fmt is None:
        _LOGGER.warning("Cannot write %s output; falling back to %s", mime_type, FALLBACK_MIME_TYPE)
        fmt, mime_type = "PNG", FALLBACK_MIME_TYPE

    if fmt in _OPAQUE_FORMATS:
        base = Image.new("RGBA", image.size, (0, 0, 0, 255))
        image = Image.alpha_composite(base, image.convert("RGBA")).convert("RGB")

    params: dict[str, Any] = {}
    if fmt in _LOSSY_FORMATS:
        params["quality"] = int(round(quality * 100))

    buffer = BytesIO()
    try:
        image.save(buffer, format=fmt, **params)
    except (OSError, ValueError) as exc:
        if fmt == "PNG":
            raise
        _LOGGER.warning("Pillow could not write %s (%s); falling back to PNG", fmt, exc)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        mime_type = FALLBACK_MIME_TYPE
    return buffer.getvalue(), mime_type


class SuperImageCropper:
    """Crop images using cropper.js geometry.

    GIF sources are decoded, every frame is cropped with the same plan and
    the result is re-encoded as an animation; any other type goes through a
    single raster crop.  The :class:`FrameCropper` is created lazily and
    re-initialised on every call, so concurrent ``crop()`` calls on one
    instance must be avoided.
    """

    def __init__(
        self,
        frame_cropper: Optional[FrameCropper] = None,
        blob_store: Optional[BlobStore] = None,
    ) -> None:
        self._frame_cropper = frame_cropper
        self._blob_store = blob_store or BlobStore()

    @property
    def blob_store(self) -> BlobStore:
        return self._blob_store

    async def crop(self, options: OptionsInput = None, **kwargs: Any) -> CropOutput:
        opts = self._coerce_options(options, kwargs)
        self._validate(opts)

        provider = opts.cropper_instance
        output_type = opts.resolved_output_type
        quality = opts.resolved_quality
        gif_options = dict(opts.gif_js_options or {})
        merge_gif_options(gif_options)
        if opts.cross_origin is not None:
            _LOGGER.debug("crossOrigin=%s has no effect outside a browser", opts.cross_origin)

        source = provider.url if provider is not None else opts.src
        started = time.perf_counter()
        loaded = await asyncio.to_thread(load_image, source, blob_store=self._blob_store)

        if provider is not None:
            image_data = provider.get_image_data()
            ui_data: Optional[Mapping[str, Any]] = provider.get_data()
            crop_box = provider.get_crop_box_data() or None
            caller_options = None
        else:
            image_data = _descriptor_mapping(loaded)
            ui_data = None
            crop_box = None
            caller_options = opts.cropper_js_opts

        natural = (
            int(image_data.get("naturalWidth") or loaded.descriptor.natural_width),
            int(image_data.get("naturalHeight") or loaded.descriptor.natural_height),
        )
        merged = merge_geometry(caller_options, ui_data, natural)
        cropper = self._cropper()
        cropper.init(build_context(merged, image_data, crop_box))

        if loaded.is_gif:
            result = await self._crop_gif(loaded, cropper, gif_options, output_type, quality)
        else:
            result = await self._crop_static(loaded, cropper, output_type, quality)
        _LOGGER.info(
            "Cropped %s source in %.1fms",
            loaded.mime_type,
            (time.perf_counter() - started) * 1000.0,
        )
        return result

    def _cropper(self) -> FrameCropper:
        if self._frame_cropper is None:
            self._frame_cropper = FrameCropper()
        return self._frame_cropper

    @staticmethod
    def _coerce_options(options: OptionsInput, extra: Mapping[str, Any]) -> CropperOptions:
        if isinstance(options, CropperOptions):
            if not extra:
                return options
            values = {f.name: getattr(options, f.name) for f in fields(options)}
        elif options is None:
            values = {}
        elif isinstance(options, Mapping):
            values = dict(options)
        else:
            raise ConfigError(
                f"crop() options must be a mapping or CropperOptions, got {type(options).__name__}"
            )
        values.update(extra)
        return CropperOptions.from_mapping(values)

    @staticmethod
    def _validate(opts: CropperOptions) -> None:
        if opts.cropper_instance is not None:
            if not isinstance(opts.cropper_instance, UIGeometryProvider):
                raise ConfigError("cropper_instance must implement UIGeometryProvider")
            if opts.src is not None or opts.cropper_js_opts is not None:
                _LOGGER.debug("cropper_instance given; ignoring src and cropper_js_opts")
            return
        if opts.cropper_js_opts is None:
            raise ConfigError("cropper_js_opts is required when no cropper_instance is given")
        if opts.src is None or (isinstance(opts.src, str) and not opts.src):
            raise ConfigError("src is required when no cropper_instance is given")

    async def _crop_gif(
        self,
        loaded: LoadedImage,
        cropper: FrameCropper,
        gif_options: dict[str, Any],
        output_type: OutputType,
        quality: float,
    ) -> CropOutput:
        info = await asyncio.to_thread(Decoder(loaded.data).decompress_frames)
        frames = await asyncio.to_thread(cropper.crop_gif, info)
        if "repeat" not in gif_options and info.loop_count is not None:
            gif_options["repeat"] = info.loop_count
        encoder = SyntheticGIF(
            frames,
            info.delays,
            gif_options,
            output_type,
            quality,
            blob_store=self._blob_store,
        )
        return await encoder.bootstrap()

    async def _crop_static(
        self,
        loaded: LoadedImage,
        cropper: FrameCropper,
        output_type: OutputType,
        quality: float,
    ) -> CropOutput:
        surface = await asyncio.to_thread(open_rgba_surface, loaded.data)
        result = await asyncio.to_thread(cropper.crop_static_image, surface)
        data, mime_type = await asyncio.to_thread(
            encode_static, result.image, loaded.mime_type, quality
        )
        _LOGGER.debug("Static crop %dx%d encoded as %s", result.width, result.height, mime_type)
        return serialize(data, mime_type, output_type, self._blob_store)


def _descriptor_mapping(loaded: LoadedImage) -> dict[str, Any]:
    descriptor = loaded.descriptor
    return {
        "width": descriptor.width,
        "height": descriptor.height,
        "naturalWidth": descriptor.natural_width,
        "naturalHeight": descriptor.natural_height,
    }
