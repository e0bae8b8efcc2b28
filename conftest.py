from __future__ import annotations

import random
import struct
from typing import Dict, Optional, Sequence

import pytest

from civ7save.chunks import EMPTY_STORED_BLOCK, compress, encode_chunks, pad_for_framing
from civ7save.markers import GOLD_MARKER, INFLUENCE_MARKER, LEADER_MARKER, PLAYER_SLOT_MARKERS

FILLER = b"\xaa"
TERMINATOR = struct.pack("<I", 0)
FOOTER_TAIL = b"FOOTER-DATA\x01\x02\x03"
ZLIB_HEADER = b"\x78\x9c"
STORED_BLOCK_MAX = 0xFFFF


def noise(size: int, seed: int = 7) -> bytes:
    # Incompressible, so the first chunk is always a full 64 KiB.
    return random.Random(seed).getrandbits(8 * size).to_bytes(size, "little")


def stored_stream(length: int) -> bytes:
    """
    A zlib stream of exactly `length` bytes made of stored blocks, ending in
    an empty block the way a sync flush does.
    """
    blocks = 0
    payload = length - len(ZLIB_HEADER) - len(EMPTY_STORED_BLOCK)
    while payload > 0:
        blocks += 1
        payload -= STORED_BLOCK_MAX + 5
    data_size = length - len(ZLIB_HEADER) - len(EMPTY_STORED_BLOCK) - 5 * blocks
    data = noise(data_size, seed=length)
    stream = bytearray(ZLIB_HEADER)
    for start in range(0, data_size, STORED_BLOCK_MAX):
        piece = data[start : start + STORED_BLOCK_MAX]
        stream += b"\x00" + struct.pack("<HH", len(piece), len(piece) ^ 0xFFFF) + piece
    stream += EMPTY_STORED_BLOCK
    assert len(stream) == length
    return bytes(stream)


def build_header(leaders: Dict[int, str]) -> bytes:
    """CIV7 header with a slot marker, leader marker 50 bytes later and the leader name per slot."""
    header = bytearray(b"CIV7" + FILLER * 12)
    for slot, name in sorted(leaders.items()):
        header += PLAYER_SLOT_MARKERS[slot] + FILLER * 46
        header += LEADER_MARKER + FILLER * 16
        header += b"LEADER_" + name.encode("ascii") + b"\x00"
        header += FILLER * 8
    return bytes(header)


def build_body(gold: Sequence[int] = (), influence: Sequence[int] = (), size: int = 80_000) -> bytearray:
    """Random body with one gold and one influence counter per entry, stored at marker + 24."""
    body = bytearray(noise(size))
    cursor = 128
    for marker, amounts in ((GOLD_MARKER, gold), (INFLUENCE_MARKER, influence)):
        for amount in amounts:
            body[cursor : cursor + 4] = marker
            body[cursor + 4 : cursor + 24] = b"\x00" * 20
            body[cursor + 24 : cursor + 28] = struct.pack("<I", amount << 8)
            cursor += 64
    return body


def build_raw(header: bytes, body: bytes, footer: Optional[bytes] = None, chunk_size: int = 0x10000) -> bytes:
    if footer is None:
        footer = TERMINATOR + FOOTER_TAIL
    return header + encode_chunks(pad_for_framing(compress(body), chunk_size), chunk_size) + footer


@pytest.fixture
def leaders() -> Dict[int, str]:
    return {0: "AUGUSTUS", 1: "HATSHEPSUT", 4: "TECUMSEH"}


@pytest.fixture
def header(leaders) -> bytes:
    return build_header(leaders)


@pytest.fixture
def body() -> bytearray:
    return build_body(gold=[200, 1500, 0x7FFFFF], influence=[10, 20, 30])


@pytest.fixture
def raw_save(header, body) -> bytes:
    return build_raw(header, body)


@pytest.fixture
def save_path(tmp_path, raw_save):
    path = tmp_path / "AUTOSAVE_0001.Civ7Save"
    path.write_bytes(raw_save)
    return path
