"""GIF container parser producing fully composited RGBA frames.

The decoder walks the block structure of a GIF87a/GIF89a stream, LZW-decodes
every image block and replays the frame disposal rules on a logical-screen
canvas so each emitted :class:`ParsedFrame` is a standalone image rather than
a delta against the previous frame.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ...domain.models import ParsedFrame, ParsedFrameInfo
from ...errors import DecodeError
from ...utils.image_loader import Source, read_source
from . import lzw

_LOGGER = logging.getLogger(__name__)

SIGNATURES = (b"GIF87a", b"GIF89a")

EXTENSION_INTRODUCER = 0x21
IMAGE_SEPARATOR = 0x2C
TRAILER = 0x3B

GRAPHIC_CONTROL_LABEL = 0xF9
APPLICATION_LABEL = 0xFF

DISPOSAL_NONE = 0
DISPOSAL_KEEP = 1
DISPOSAL_BACKGROUND = 2
DISPOSAL_PREVIOUS = 3

_LOOP_APPLICATIONS = (b"NETSCAPE2.0", b"ANIMEXTS1.0")


class _TruncatedStream(DecodeError):
    """Raised internally when the stream ends in the middle of a block."""


class _Reader:
    """Cursor over the raw GIF bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self._data)

    def read(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self._data):
            raise _TruncatedStream(
                f"GIF stream truncated: needed {size} bytes at offset {self.pos}"
            )
        chunk = self._data[self.pos:end]
        self.pos = end
        return chunk

    def u8(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return struct.unpack("<H", self.read(2))[0]

    def sub_blocks(self) -> bytes:
        chunks = []
        while True:
            size = self.u8()
            if size == 0:
                return b"".join(chunks)
            chunks.append(self.read(size))


@dataclass
class _GraphicControl:
    disposal: int = DISPOSAL_NONE
    delay_cs: int = 0
    transparent_index: Optional[int] = None


def _color_table(reader: _Reader, size_exp: int) -> np.ndarray:
    """Return a 256x4 RGBA lookup table; missing entries are opaque black."""

    count = 1 << (size_exp + 1)
    raw = np.frombuffer(reader.read(3 * count), dtype=np.uint8).reshape(count, 3)
    table = np.zeros((256, 4), dtype=np.uint8)
    table[:, 3] = 255
    table[:count, :3] = raw
    return table


def _deinterlace_rows(height: int) -> np.ndarray:
    """Row order of an interlaced image: every 8th from 0, 8th from 4, 4th from 2, 2nd from 1."""
    return np.concatenate(
        [
            np.arange(0, height, 8),
            np.arange(4, height, 8),
            np.arange(2, height, 4),
            np.arange(1, height, 2),
        ]
    )


class Decoder:
    """Decode a GIF *source* into timed RGBA frames."""

    def __init__(self, source: Source) -> None:
        self._source = source

    def decompress_frames(self) -> ParsedFrameInfo:
        data = read_source(self._source)
        reader = _Reader(data)
        try:
            return self._parse(reader)
        except _TruncatedStream as exc:
            raise DecodeError(str(exc)) from exc

    def _parse(self, reader: _Reader) -> ParsedFrameInfo:
        if reader.read(6) not in SIGNATURES:
            raise DecodeError("Not a GIF stream: missing GIF87a/GIF89a signature")

        screen_width = reader.u16()
        screen_height = reader.u16()
        packed = reader.u8()
        reader.u8()  # background colour index; browsers composite onto transparency
        reader.u8()  # pixel aspect ratio
        global_table = _color_table(reader, packed & 0x07) if packed & 0x80 else None

        if screen_width == 0 or screen_height == 0:
            raise DecodeError(f"Invalid logical screen size {screen_width}x{screen_height}")

        info = ParsedFrameInfo(width=screen_width, height=screen_height)
        canvas = np.zeros((screen_height, screen_width, 4), dtype=np.uint8)
        control: Optional[_GraphicControl] = None
        # disposal of the previously drawn frame, applied before the next draw
        pending: Optional[tuple[int, tuple[int, int, int, int], Optional[np.ndarray]]] = None

        while True:
            if reader.at_end:
                if not info.frames:
                    raise DecodeError("GIF stream ended before any image block")
                _LOGGER.warning("GIF stream has no trailer; using %d decoded frames", len(info.frames))
                break
            introducer = reader.u8()
            if introducer == TRAILER:
                break
            if introducer == EXTENSION_INTRODUCER:
                label = reader.u8()
                if label == GRAPHIC_CONTROL_LABEL:
                    control = self._graphic_control(reader)
                elif label == APPLICATION_LABEL:
                    loops = self._application(reader)
                    if loops is not None:
                        info.loop_count = loops
                else:
                    # comment, plain text and unknown extensions
                    reader.sub_blocks()
                continue
            if introducer != IMAGE_SEPARATOR:
                raise DecodeError(
                    f"Unknown block introducer 0x{introducer:02X} at offset {reader.pos - 1}"
                )

            if pending is not None:
                self._dispose(canvas, *pending)
                pending = None

            control = control or _GraphicControl()
            rect, snapshot = self._draw_image(reader, canvas, global_table, control)
            frame = ParsedFrame(
                pixels=canvas.copy(),
                delay_ms=control.delay_cs * 10,
                disposal_method=control.disposal,
            )
            info.frames.append(frame)
            info.delays.append(frame.delay_ms)
            _LOGGER.debug(
                "Frame %d: rect=%s delay=%dms disposal=%d",
                len(info.frames) - 1,
                rect,
                frame.delay_ms,
                frame.disposal_method,
            )
            pending = (control.disposal, rect, snapshot)
            control = None

        if not info.frames:
            raise DecodeError("GIF stream contains no image blocks")
        return info

    @staticmethod
    def _graphic_control(reader: _Reader) -> _GraphicControl:
        block_size = reader.u8()
        if block_size != 4:
            raise DecodeError(f"Bad graphic control extension size {block_size}")
        packed = reader.u8()
        delay_cs = reader.u16()
        transparent_index = reader.u8()
        # remaining sub-blocks (normally just the terminator)
        reader.sub_blocks()
        return _GraphicControl(
            disposal=(packed >> 2) & 0x07,
            delay_cs=delay_cs,
            transparent_index=transparent_index if packed & 0x01 else None,
        )

    @staticmethod
    def _application(reader: _Reader) -> Optional[int]:
        block_size = reader.u8()
        identifier = reader.read(block_size)
        payload = reader.sub_blocks()
        if identifier[:11] in _LOOP_APPLICATIONS and len(payload) >= 3 and payload[0] == 1:
            return payload[1] | (payload[2] << 8)
        return None

    @staticmethod
    def _draw_image(
        reader: _Reader,
        canvas: np.ndarray,
        global_table: Optional[np.ndarray],
        control: _GraphicControl,
    ) -> tuple[tuple[int, int, int, int], Optional[np.ndarray]]:
        left = reader.u16()
        top = reader.u16()
        width = reader.u16()
        height = reader.u16()
        packed = reader.u8()
        local_table = _color_table(reader, packed & 0x07) if packed & 0x80 else None
        interlaced = bool(packed & 0x40)
        min_code_size = reader.u8()
        data = reader.sub_blocks()

        table = local_table if local_table is not None else global_table
        if table is None:
            raise DecodeError("Image block has neither a local nor a global colour table")

        snapshot = canvas.copy() if control.disposal == DISPOSAL_PREVIOUS else None
        rect = (left, top, width, height)
        pixel_count = width * height
        if pixel_count == 0:
            return rect, snapshot

        indices = lzw.decompress(data, min_code_size, max_pixels=pixel_count)
        decoded = len(indices)
        if decoded < pixel_count:
            _LOGGER.warning("Image data short by %d pixels; leaving them undrawn", pixel_count - decoded)

        flat = np.zeros(pixel_count, dtype=np.uint8)
        flat[:decoded] = np.frombuffer(bytes(indices), dtype=np.uint8)
        drawn = np.zeros(pixel_count, dtype=bool)
        drawn[:decoded] = True
        if control.transparent_index is not None:
            drawn &= flat != control.transparent_index

        rgba = table[flat].reshape(height, width, 4)
        mask = drawn.reshape(height, width)
        if interlaced:
            order = _deinterlace_rows(height)
            rgba_rows = np.empty_like(rgba)
            mask_rows = np.empty_like(mask)
            rgba_rows[order] = rgba
            mask_rows[order] = mask
            rgba, mask = rgba_rows, mask_rows

        screen_h, screen_w = canvas.shape[:2]
        x0, y0 = min(left, screen_w), min(top, screen_h)
        x1, y1 = min(left + width, screen_w), min(top + height, screen_h)
        if x1 > x0 and y1 > y0:
            region = canvas[y0:y1, x0:x1]
            sub_mask = mask[: y1 - y0, : x1 - x0]
            region[sub_mask] = rgba[: y1 - y0, : x1 - x0][sub_mask]
        return rect, snapshot

    @staticmethod
    def _dispose(
        canvas: np.ndarray,
        disposal: int,
        rect: tuple[int, int, int, int],
        snapshot: Optional[np.ndarray],
    ) -> None:
        if disposal == DISPOSAL_BACKGROUND:
            left, top, width, height = rect
            canvas[top:top + height, left:left + width] = 0
        elif disposal == DISPOSAL_PREVIOUS and snapshot is not None:
            canvas[...] = snapshot
