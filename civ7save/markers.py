from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

log = logging.getLogger(__name__)

GOLD_MARKER = bytes([0x35, 0xCF, 0xC8, 0x6E])
INFLUENCE_MARKER = bytes([0x50, 0x3C, 0xA8, 0x4A])
LEADER_MARKER = bytes([0x0F, 0xFB, 0x8C, 0xC1])
PLAYER_SLOT_MARKERS: Sequence[bytes] = (
    bytes([0xB8, 0x61, 0xF0, 0xF4]),  # slot 1
    bytes([0x2E, 0x51, 0xF7, 0x83]),  # slot 2
    bytes([0xD4, 0xAB, 0x9F, 0x19]),  # slot 3
    bytes([0x02, 0x30, 0xF9, 0x6D]),  # slot 4
    bytes([0xA1, 0xA5, 0x9D, 0xF3]),  # slot 5
    bytes([0x37, 0x95, 0x9A, 0x84]),  # slot 6
    bytes([0x8D, 0xC4, 0x93, 0x1D]),  # slot 7
    bytes([0x1B, 0xF4, 0x94, 0x6A]),  # slot 8
)
MAX_PLAYERS = len(PLAYER_SLOT_MARKERS)

LEADER_PREFIX = "LEADER_"
LEADER_NAME_GAP = 20  # from the first byte of the leader marker to the name
COUNTER_VALUE_SKIP = 24  # from the first byte of a counter marker to its value word
COUNTER_WORD_SIZE = 4


@dataclass(frozen=True)
class Player:
    slot: int
    leader: str
    gold_offset: Optional[int] = None
    influence_offset: Optional[int] = None

    @property
    def slot_number(self) -> int:
        return self.slot + 1


def find_positions(data: bytes, marker: bytes, skip: int, limit: int) -> List[int]:
    """
    Return up to `limit` positions of `marker` in `data`, each shifted by `skip`.

    Each search resumes where the previous match ended, so overlapping
    occurrences are not reported twice.
    """
    positions: List[int] = []
    cursor = 0
    while cursor < len(data) and len(positions) < limit:
        found = data.find(marker, cursor)
        if found == -1:
            break
        positions.append(found + skip)
        cursor = found + len(marker)
    return positions


def read_leader_name(header: bytes, slot_marker: bytes) -> Optional[str]:
    """Leader name for a slot without the LEADER_ prefix, or None if it cannot be resolved."""
    slot_pos = header.find(slot_marker)
    if slot_pos == -1:
        return None
    leader_pos = header.find(LEADER_MARKER, slot_pos)
    if leader_pos == -1:
        return None
    name_start = leader_pos + LEADER_NAME_GAP
    name_end = header.find(b"\x00", name_start)
    if name_end == -1:
        return None
    name = header[name_start:name_end].decode("utf-8", errors="replace")
    if name.startswith(LEADER_PREFIX):
        name = name[len(LEADER_PREFIX) :]
    return name or None


def _counter_offsets(body: bytes, marker: bytes) -> List[Optional[int]]:
    offsets: List[Optional[int]] = []
    for pos in find_positions(body, marker, COUNTER_VALUE_SKIP, MAX_PLAYERS):
        # A value word that would run past the body is treated as missing.
        offsets.append(pos if pos + COUNTER_WORD_SIZE <= len(body) else None)
    return offsets


def locate_players(header: bytes, body: bytes) -> List[Player]:
    """
    Resolve the player slots present in a save.

    Slots come from the header in fixed marker order. Gold and influence
    counters are found in the body and handed out by ordinal: the Nth
    resolved player takes the Nth counter of each kind. Nothing in the file
    ties a counter to a slot, so a save that lays counters out in another
    order gets its values mismatched.
    """
    gold = _counter_offsets(body, GOLD_MARKER)
    influence = _counter_offsets(body, INFLUENCE_MARKER)
    log.debug("found %d gold and %d influence counter(s)", len(gold), len(influence))

    players: List[Player] = []
    for slot, marker in enumerate(PLAYER_SLOT_MARKERS):
        leader = read_leader_name(header, marker)
        if leader is None:
            log.debug("slot %d has no resolvable leader, skipped", slot + 1)
            continue
        ordinal = len(players)
        players.append(
            Player(
                slot=slot,
                leader=leader,
                gold_offset=gold[ordinal] if ordinal < len(gold) else None,
                influence_offset=influence[ordinal] if ordinal < len(influence) else None,
            )
        )

    if len(gold) < len(players) or len(influence) < len(players):
        log.warning(
            "%d player(s) but only %d gold and %d influence counter(s) found",
            len(players),
            len(gold),
            len(influence),
        )
    return players
