from __future__ import annotations

import logging
import struct
import zlib
from typing import List, Tuple

from civ7save.errors import CorruptChunkFramingError, DecompressionError

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
CHUNK_LENGTH_SIZE = 4
# A length field at or below this value ends the chunk region.
TERMINATOR_MAX = 1
# Non-final stored block with no data: BFINAL=0, BTYPE=00, LEN=0, NLEN=0xFFFF.
EMPTY_STORED_BLOCK = b"\x00\x00\x00\xff\xff"


def _read_dword(data: bytes, offset: int) -> Tuple[int, int]:
    if offset + CHUNK_LENGTH_SIZE > len(data):
        raise CorruptChunkFramingError(
            f"Chunk length field at 0x{offset:x} runs past the end of the data ({len(data)} bytes)."
        )
    value = struct.unpack_from("<I", data, offset)[0]
    return value, offset + CHUNK_LENGTH_SIZE


def decode_chunks(data: bytes) -> Tuple[bytes, int, int]:
    """
    Join a length-prefixed chunk region back into one compressed stream.

    Layout: [u32 length][payload] repeated until a length <= 1. The first
    length read is the chunk size the writer used. The returned byte count
    covers the data chunks only; the terminator word stays with whatever
    follows the region.

    Returns (compressed, consumed, chunk_size).
    """
    chunks: List[bytes] = []
    length, cursor = _read_dword(data, 0)
    chunk_size = length
    consumed = 0
    while length > TERMINATOR_MAX:
        end = cursor + length
        if end > len(data):
            raise CorruptChunkFramingError(
                f"Chunk at 0x{cursor:x} declares {length} bytes but only {len(data) - cursor} remain."
            )
        chunks.append(bytes(data[cursor:end]))
        consumed = end
        length, cursor = _read_dword(data, end)
    log.debug("decoded %d chunk(s), chunk size %d, %d bytes consumed", len(chunks), chunk_size, consumed)
    return b"".join(chunks), consumed, chunk_size


def pad_for_framing(compressed: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """
    Append an empty stored block when the last chunk would be a single byte.

    A one-byte record reads back as a terminator. The stream must end on a
    byte boundary (a sync flush does), so the extra block inflates to nothing.
    """
    if chunk_size > TERMINATOR_MAX and len(compressed) % chunk_size == 1:
        return bytes(compressed) + EMPTY_STORED_BLOCK
    return compressed


def encode_chunks(compressed: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """Split a compressed stream into [u32 length][payload] records of chunk_size bytes."""
    if chunk_size <= TERMINATOR_MAX:
        raise ValueError(f"Chunk size must be at least {TERMINATOR_MAX + 1}, got {chunk_size}.")
    lengths: List[int] = []
    remaining = len(compressed)
    while remaining > chunk_size:
        lengths.append(chunk_size)
        remaining -= chunk_size
    if remaining:
        lengths.append(remaining)
    if lengths and lengths[-1] <= TERMINATOR_MAX:
        raise ValueError(
            f"A {len(compressed)} byte stream leaves a single-byte chunk at size {chunk_size}; pad it first."
        )

    buffer = bytearray()
    cursor = 0
    for length in lengths:
        buffer.extend(struct.pack("<I", length))
        buffer.extend(compressed[cursor : cursor + length])
        cursor += length
    log.debug("encoded %d bytes into %d chunk(s) of up to %d bytes", len(compressed), len(lengths), chunk_size)
    return bytes(buffer)


def decompress(stream: bytes) -> bytes:
    """Inflate a zlib stream that may end on a sync flush (no final block, no checksum)."""
    inflater = zlib.decompressobj()
    try:
        return inflater.decompress(stream) + inflater.flush()
    except zlib.error as exc:
        raise DecompressionError(f"Compressed body is malformed: {exc}") from exc


def compress(data: bytes) -> bytes:
    """Deflate data and finish with a sync flush, matching the game's writer."""
    deflater = zlib.compressobj()
    return deflater.compress(bytes(data)) + deflater.flush(zlib.Z_SYNC_FLUSH)
