"""Tests for the GIF LZW codec."""

import numpy as np
import pytest

from superImageCropper.core.gif import lzw
from superImageCropper.errors import DecodeError


def test_long_stream_survives_table_resets():
    # enough distinct pairs to fill the 4096-entry table several times
    rng = np.random.RandomState(7)
    indices = rng.randint(0, 256, size=30000).astype(np.uint8).tobytes()

    encoded = lzw.compress(indices, 8)
    decoded = lzw.decompress(encoded, 8)

    assert bytes(decoded) == indices


def test_repeated_run_uses_pending_code():
    indices = bytes([1] * 50 + [2, 3] * 20)

    decoded = lzw.decompress(lzw.compress(indices, 2), 2)

    assert bytes(decoded) == indices


def test_compression_shrinks_uniform_data():
    indices = bytes(10000)
    assert len(lzw.compress(indices, 2)) < len(indices) // 10


def test_max_pixels_truncates_output():
    indices = bytes(range(4)) * 10
    decoded = lzw.decompress(lzw.compress(indices, 2), 2, max_pixels=7)
    assert bytes(decoded) == indices[:7]


def test_code_beyond_table_raises():
    # 3-bit codes: clear (4) followed by 7, which is not defined yet
    data = bytes([4 | (7 << 3)])
    with pytest.raises(DecodeError):
        lzw.decompress(data, 2)


def test_invalid_min_code_size():
    with pytest.raises(DecodeError):
        lzw.decompress(b"\x00", 0)
    with pytest.raises(ValueError):
        lzw.compress(b"\x00", 9)


def test_exhausted_data_returns_partial_output():
    encoded = lzw.compress(bytes([1, 2, 3, 0] * 8), 2)
    decoded = lzw.decompress(encoded[:2], 2)
    assert len(decoded) < 32
