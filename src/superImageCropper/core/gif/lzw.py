"""Variable-width LZW codec used by GIF image data.

Codes are packed least-significant bit first.  The code width grows by one
bit as soon as the code table holds ``2 ** width`` entries, up to 12 bits;
once 4096 codes are assigned the encoder emits a clear code and starts over.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...errors import DecodeError

MAX_CODE_BITS = 12
MAX_TABLE_SIZE = 1 << MAX_CODE_BITS


def decompress(data: bytes, min_code_size: int, max_pixels: int | None = None) -> bytearray:
    """Return the palette indices encoded in *data*.

    Decoding stops at the end-of-information code, when the data runs out,
    or once *max_pixels* indices were produced.  A code that refers past the
    next free table slot raises :class:`DecodeError`.
    """

    if not 1 <= min_code_size <= 11:
        raise DecodeError(f"Invalid LZW minimum code size: {min_code_size}")

    clear_code = 1 << min_code_size
    end_code = clear_code + 1
    base_table: list[bytes] = [bytes((i,)) for i in range(clear_code)] + [b"", b""]

    table = list(base_table)
    code_size = min_code_size + 1
    code_mask = (1 << code_size) - 1
    prev: bytes | None = None

    out = bytearray()
    limit = max_pixels if max_pixels is not None else -1
    bit_buffer = 0
    bit_count = 0
    pos = 0
    total = len(data)

    while limit < 0 or len(out) < limit:
        while bit_count < code_size:
            if pos >= total:
                return out
            bit_buffer |= data[pos] << bit_count
            pos += 1
            bit_count += 8
        code = bit_buffer & code_mask
        bit_buffer >>= code_size
        bit_count -= code_size

        if code == clear_code:
            table = list(base_table)
            code_size = min_code_size + 1
            code_mask = (1 << code_size) - 1
            prev = None
            continue
        if code == end_code:
            break

        if code < len(table):
            entry = table[code]
            if prev is not None and len(table) < MAX_TABLE_SIZE:
                table.append(prev + entry[:1])
        elif code == len(table) and prev is not None:
            # KwKwK: the code being defined is used right away
            entry = prev + prev[:1]
            if len(table) < MAX_TABLE_SIZE:
                table.append(entry)
        else:
            raise DecodeError(f"Invalid LZW code {code} (table size {len(table)})")

        out += entry
        prev = entry
        if len(table) == (1 << code_size) and code_size < MAX_CODE_BITS:
            code_size += 1
            code_mask = (1 << code_size) - 1

    if limit >= 0 and len(out) > limit:
        del out[limit:]
    return out


class _BitWriter:
    def __init__(self) -> None:
        self.out = bytearray()
        self._buffer = 0
        self._count = 0

    def write(self, code: int, size: int) -> None:
        self._buffer |= code << self._count
        self._count += size
        while self._count >= 8:
            self.out.append(self._buffer & 0xFF)
            self._buffer >>= 8
            self._count -= 8

    def flush(self) -> bytes:
        if self._count:
            self.out.append(self._buffer & 0xFF)
            self._buffer = 0
            self._count = 0
        return bytes(self.out)


def compress(indices: Iterable[int], min_code_size: int) -> bytes:
    """LZW-compress palette *indices* for a GIF image block."""

    if not 2 <= min_code_size <= 8:
        raise ValueError(f"GIF minimum code size must be within [2, 8], got {min_code_size}")

    clear_code = 1 << min_code_size
    end_code = clear_code + 1

    writer = _BitWriter()
    code_size = min_code_size + 1
    next_code = end_code + 1
    table: dict[int, int] = {}

    writer.write(clear_code, code_size)
    prefix = -1
    for value in indices:
        if prefix < 0:
            prefix = value
            continue
        key = (prefix << 8) | value
        code = table.get(key)
        if code is not None:
            prefix = code
            continue
        writer.write(prefix, code_size)
        if next_code < MAX_TABLE_SIZE:
            table[key] = next_code
            next_code += 1
            if next_code > (1 << code_size) and code_size < MAX_CODE_BITS:
                code_size += 1
        else:
            writer.write(clear_code, code_size)
            table.clear()
            code_size = min_code_size + 1
            next_code = end_code + 1
        prefix = value

    if prefix >= 0:
        writer.write(prefix, code_size)
    writer.write(end_code, code_size)
    return writer.flush()
