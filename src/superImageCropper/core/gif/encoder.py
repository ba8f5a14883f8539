"""GIF89a writer that turns cropped RGBA frames back into an animation."""

from __future__ import annotations

import asyncio
import logging
import struct
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Optional

from PIL import Image

from ...application.dtos import OutputType
from ...config import DEFAULT_FRAME_DELAY_MS, GIF_MIME_TYPE
from ...domain.models import CroppedFrame
from ...errors import EncodeError
from ...io.output import BlobStore, CropOutput, serialize
from ...options.schema import merge_gif_options
from ...utils.colors import parse_color
from ...utils.console_logger import ensure_console_logger
from . import lzw
from .quantize import IndexedFrame, build_palette_image, palette_size_for_quality, quantize_frame

_LOGGER = logging.getLogger(__name__)

DISPOSAL_KEEP = 1
DISPOSAL_BACKGROUND = 2

_NETSCAPE_HEADER = b"\x21\xFF\x0BNETSCAPE2.0\x03\x01"
_SUB_BLOCK_SIZE = 255


def _table_bits(entries: int) -> int:
    return max(1, (max(entries, 2) - 1).bit_length())


def _padded_table(palette: bytes, bits: int) -> bytes:
    size = 3 * (1 << bits)
    return palette[:size] + bytes(size - min(len(palette), size))


def _sub_blocks(data: bytes) -> bytes:
    out = bytearray()
    for start in range(0, len(data), _SUB_BLOCK_SIZE):
        chunk = data[start:start + _SUB_BLOCK_SIZE]
        out.append(len(chunk))
        out += chunk
    out.append(0)
    return bytes(out)


def ms_to_centiseconds(delay_ms: float) -> int:
    return max(0, min(0xFFFF, int(round(float(delay_ms) / 10.0))))


def write_gif(
    frames: Sequence[IndexedFrame],
    delays_cs: Sequence[int],
    *,
    repeat: int = 0,
    global_palette: bool = False,
) -> bytes:
    """Serialise indexed *frames* into a GIF89a byte string.

    The first frame's palette (or the shared palette) becomes the global
    colour table; other frames carry local tables.  ``repeat`` follows gif.js:
    ``-1`` writes no loop extension, ``0`` loops forever.
    """

    if not frames:
        raise EncodeError("Cannot write a GIF without frames")
    if len(delays_cs) != len(frames):
        raise EncodeError(f"Got {len(delays_cs)} delays for {len(frames)} frames")

    width, height = frames[0].width, frames[0].height
    if global_palette:
        global_source = max((frame.palette for frame in frames), key=len)
    else:
        global_source = frames[0].palette
    global_bits = _table_bits(len(global_source) // 3)

    out = bytearray(b"GIF89a")
    out += struct.pack("<HHBBB", width, height, 0x80 | 0x70 | (global_bits - 1), 0, 0)
    out += _padded_table(global_source, global_bits)
    if repeat >= 0:
        out += _NETSCAPE_HEADER + struct.pack("<H", repeat) + b"\x00"

    # Disposal runs after a frame is shown, so a transparent pixel in any
    # frame would reveal its predecessor unless every frame clears itself.
    any_transparent = any(frame.transparent_index is not None for frame in frames)
    disposal = DISPOSAL_BACKGROUND if any_transparent else DISPOSAL_KEEP

    for index, (frame, delay) in enumerate(zip(frames, delays_cs)):
        transparent = frame.transparent_index is not None
        out += struct.pack(
            "<BBBBHBB",
            0x21,
            0xF9,
            4,
            (disposal << 2) | (1 if transparent else 0),
            delay,
            frame.transparent_index if transparent else 0,
            0,
        )

        use_local = not global_palette and index > 0
        if use_local:
            bits = _table_bits(frame.color_count)
            descriptor_flags = 0x80 | (bits - 1)
        else:
            bits = global_bits
            descriptor_flags = 0
        out += struct.pack("<BHHHHB", 0x2C, 0, 0, frame.width, frame.height, descriptor_flags)
        if use_local:
            out += _padded_table(frame.palette, bits)

        min_code_size = max(2, bits)
        out.append(min_code_size)
        out += _sub_blocks(lzw.compress(frame.indices, min_code_size))

    out.append(0x3B)
    return bytes(out)


class SyntheticGIF:
    """Quantise cropped frames and assemble them into a GIF.

    Quantisation fans out over a thread pool bounded by the gif.js
    ``workers`` option; results are gathered back in input order so the
    output never depends on worker completion order.

    ``quality`` is accepted so the constructor mirrors the static export
    call; GIF output is controlled by the gif.js ``quality`` option instead
    and the argument is ignored.
    """

    def __init__(
        self,
        frames: Sequence[CroppedFrame],
        delays: Sequence[float] = (),
        gif_options: Optional[Mapping[str, Any]] = None,
        output_type: OutputType | str | None = None,
        quality: Optional[float] = None,
        blob_store: Optional[BlobStore] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._frames = list(frames)
        self._delays = list(delays)
        self._options = merge_gif_options(gif_options)
        self._output_type = OutputType.coerce(output_type)
        self._blob_store = blob_store or BlobStore()
        self._executor = executor
        if self._options["debug"]:
            ensure_console_logger(_LOGGER, "superImageCropper.gif-debug")

    def frame_delays(self) -> list[int]:
        """Return one delay (ms) per frame, padding missing entries."""
        count = len(self._frames)
        delays = [int(round(float(delay))) for delay in self._delays[:count]]
        if len(delays) < count:
            _LOGGER.debug(
                "Padding %d missing frame delays with %dms",
                count - len(delays),
                DEFAULT_FRAME_DELAY_MS,
            )
            delays.extend([DEFAULT_FRAME_DELAY_MS] * (count - len(delays)))
        return delays

    async def bootstrap(self) -> CropOutput:
        if not self._frames:
            raise EncodeError("Cannot encode a GIF from an empty frame sequence")

        started = time.perf_counter()
        images = self._prepare_images()
        indexed = await self._quantize_all(images)
        delays_cs = [ms_to_centiseconds(delay) for delay in self.frame_delays()]
        data = await asyncio.to_thread(
            write_gif,
            indexed,
            delays_cs,
            repeat=int(self._options["repeat"]),
            global_palette=bool(self._options["globalPalette"]),
        )
        _LOGGER.debug(
            "Encoded %d frames (%dx%d) into %d bytes in %.1fms",
            len(indexed),
            indexed[0].width,
            indexed[0].height,
            len(data),
            (time.perf_counter() - started) * 1000.0,
        )
        return serialize(data, GIF_MIME_TYPE, self._output_type, self._blob_store)

    def _prepare_images(self) -> list[Image.Image]:
        first = self._frames[0]
        size = (first.width, first.height)
        for position, frame in enumerate(self._frames):
            if (frame.width, frame.height) != size:
                raise EncodeError(
                    f"Frame {position} is {frame.width}x{frame.height}, expected {size[0]}x{size[1]}"
                )
        target = (
            int(self._options.get("width") or size[0]),
            int(self._options.get("height") or size[1]),
        )
        images = [frame.to_image() for frame in self._frames]
        if target != size:
            images = [image.resize(target, Image.Resampling.LANCZOS) for image in images]
        return images

    async def _quantize_all(self, images: list[Image.Image]) -> list[IndexedFrame]:
        quality = int(self._options["quality"])
        colors = palette_size_for_quality(quality)
        background = parse_color(self._options["background"]) or (255, 255, 255, 255)
        kwargs: dict[str, Any] = {
            "colors": colors,
            "background": background,
            "key_color": parse_color(self._options["transparent"]),
            "dither": bool(self._options["dither"]),
            "kmeans": max(0, 10 - quality),
        }
        if self._options["globalPalette"]:
            # leave one slot free for the transparent index
            kwargs["colors"] = min(colors, 255)
            kwargs["palette_image"] = await asyncio.to_thread(
                partial(
                    build_palette_image,
                    images[0],
                    colors=kwargs["colors"],
                    background=background,
                    kmeans=kwargs["kmeans"],
                )
            )

        workers = int(self._options["workers"])
        if workers <= 0:
            return await asyncio.to_thread(
                lambda: [quantize_frame(image, **kwargs) for image in images]
            )

        loop = asyncio.get_running_loop()
        owns_executor = self._executor is None
        executor = self._executor or ThreadPoolExecutor(
            max_workers=min(workers, len(images)),
            thread_name_prefix="gif-quantize",
        )
        try:
            futures = [
                loop.run_in_executor(executor, partial(quantize_frame, image, **kwargs))
                for image in images
            ]
            # gather keeps the submission order
            return list(await asyncio.gather(*futures))
        finally:
            if owns_executor:
                executor.shutdown(wait=False)
