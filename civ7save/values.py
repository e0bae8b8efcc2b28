from __future__ import annotations

import struct
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from civ7save.errors import FieldNotFoundError, ValueOutOfRangeError

if TYPE_CHECKING:
    from civ7save.markers import Player

MIN_VALUE = 0
MAX_VALUE = 0x800000  # 8,388,608
VALUE_WORD_SIZE = 4
FLAG_PLUS_ONE = 0xFF
# 0x7FFFFF with the +1 flag set, i.e. MAX_VALUE. Stored as FF FF FF 7F.
SATURATED_WORD = 0x7FFFFFFF


def decode_value(word: int) -> int:
    """
    Decode a 24-bit counter stored in the top three bytes of a 32-bit word.

    The low byte is a flag: 0xFF means the value is one more than the stored
    magnitude (used at the top of the range). Any other flag is ignored.
    e.g. 00 FF FF 7F -> 0x7FFFFF, FF FF FF 7F -> 0x800000
    """
    magnitude = word >> 8
    if word & 0xFF == FLAG_PLUS_ONE:
        return magnitude + 1
    return magnitude


def encode_value(value: int) -> bytes:
    """Return the 4 on-disk bytes for a counter value."""
    if value < MIN_VALUE or value > MAX_VALUE:
        raise ValueOutOfRangeError(
            f"Value out of bounds: {value}. Must be between {MIN_VALUE} and {MAX_VALUE}, inclusive."
        )
    if value < MAX_VALUE:
        return struct.pack("<I", value << 8)
    return struct.pack("<I", SATURATED_WORD)


def _check_offset(body: bytes, offset: Optional[int]) -> int:
    if offset is None:
        raise FieldNotFoundError("Field offset was not resolved for this save.")
    if offset < 0 or offset + VALUE_WORD_SIZE > len(body):
        raise FieldNotFoundError(f"Field offset 0x{offset:x} is outside the body ({len(body)} bytes).")
    return offset


def read_value(body: bytes, offset: Optional[int]) -> int:
    offset = _check_offset(body, offset)
    return decode_value(struct.unpack_from("<I", body, offset)[0])


def write_value(body: bytearray, offset: Optional[int], value: int) -> None:
    # Both checks run before the body is touched.
    offset = _check_offset(body, offset)
    encoded = encode_value(value)
    body[offset : offset + VALUE_WORD_SIZE] = encoded


def parse_amount(text: str) -> int:
    """Validate user input for a counter; raises ValueError or ValueOutOfRangeError."""
    try:
        value = int(text.strip().replace(",", ""))
    except ValueError:
        raise ValueError(f"Not a whole number: {text!r}") from None
    if value < MIN_VALUE or value > MAX_VALUE:
        raise ValueOutOfRangeError(f"Value must be a number between {MIN_VALUE} and {MAX_VALUE}.")
    return value


class ResourceField(Enum):
    """Per-player counters the editor can change."""

    GOLD = "gold"
    INFLUENCE = "influence"

    @property
    def label(self) -> str:
        if self is ResourceField.GOLD:
            return "gold treasury"
        return "accumulated influence"

    @property
    def bounds(self) -> Tuple[int, int]:
        return MIN_VALUE, MAX_VALUE

    def offset_of(self, player: "Player") -> Optional[int]:
        if self is ResourceField.GOLD:
            return player.gold_offset
        return player.influence_offset
