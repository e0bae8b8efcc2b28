#!/usr/bin/env python3
"""
Read-only inspection of a Civilization VII save.

Prints the container layout (header/body/footer sizes, chunk size) and the
players the locator resolves, with their gold and influence counters. Handy
for checking a save before and after an edit.
"""

from __future__ import annotations

import argparse
import json
import logging
import struct
import sys
from pathlib import Path
from typing import Dict, List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from civ7save.chunks import decode_chunks
from civ7save.data import COMPRESSED_DATA_START, SaveFile
from civ7save.errors import SaveError
from civ7save.values import ResourceField


def hexdump_slice(data: bytes, start: int, length: int = 32, width: int = 16) -> str:
    start = max(0, start)
    end = min(len(data), start + length)
    lines = []
    for off in range(start, end, width):
        chunk = data[off : min(off + width, end)]
        hexpart = " ".join(f"{b:02x}" for b in chunk)
        asciip = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"0x{off:08x}  {hexpart:<{width * 3}}  |{asciip}|")
    return "\n".join(lines)


def chunk_lengths(raw: bytes) -> List[int]:
    """Length fields of the data chunks, in file order."""
    start = raw.find(COMPRESSED_DATA_START)
    if start == -1:
        return []
    _compressed, consumed, _size = decode_chunks(raw[start:])
    lengths = []
    cursor = start
    stop = start + consumed
    while cursor < stop:
        length = struct.unpack_from("<I", raw, cursor)[0]
        lengths.append(length)
        cursor += 4 + length
    return lengths


def _field_info(save: SaveFile, offset: Optional[int]) -> Dict[str, object]:
    if offset is None:
        return {"offset": None, "value": None}
    return {"offset": offset, "value": save.read_value(offset)}


def describe_save(save: SaveFile, raw: bytes) -> Dict[str, object]:
    """Summarise an already parsed save; raw is the file it was parsed from."""
    players = []
    for player in save.players:
        players.append(
            {
                "slot": player.slot_number,
                "leader": player.leader,
                "gold": _field_info(save, ResourceField.GOLD.offset_of(player)),
                "influence": _field_info(save, ResourceField.INFLUENCE.offset_of(player)),
            }
        )
    return {
        "path": str(save.path),
        "file_size": len(raw),
        "header_size": len(save.header),
        "body_size": len(save.body),
        "footer_size": len(save.footer),
        "chunk_size": save.chunk_size,
        "chunks": chunk_lengths(raw),
        "players": players,
    }


def summarise_save(info: Dict[str, object]) -> str:
    lines = [
        f"Save: {info['path']} ({info['file_size']} bytes)",
        f"  Header : {info['header_size']} bytes",
        f"  Body   : {info['body_size']} bytes uncompressed",
        f"  Footer : {info['footer_size']} bytes",
        f"  Chunks : {len(info['chunks'])} (size {info['chunk_size']})",
        "",
        "Players:",
    ]
    players = info["players"]
    if not players:
        lines.append("  (none found)")
    for player in players:
        gold = player["gold"]
        influence = player["influence"]
        lines.append(
            f"  [{player['slot']}] {player['leader']:<24} "
            f"gold {_format_field(gold)}  influence {_format_field(influence)}"
        )
    lines.append("")
    return "\n".join(lines)


def _format_field(field: Dict[str, object]) -> str:
    if field["offset"] is None:
        return "n/a"
    return f"{field['value']} @0x{field['offset']:x}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect a Civilization VII save file.")
    parser.add_argument("savefile", type=Path, help="Path to the Civ7Save file")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit structured JSON instead of the human-readable summary.",
    )
    parser.add_argument(
        "--hexdump",
        type=int,
        default=0,
        metavar="N",
        help="Also dump N body bytes around each resolved counter.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging to stderr")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        raw = args.savefile.read_bytes()
        save = SaveFile.from_bytes(raw, path=args.savefile)
        info = describe_save(save, raw)
    except (SaveError, OSError) as exc:
        print(f"[ERR] {exc}", file=sys.stderr)
        sys.exit(2)

    if args.json:
        print(json.dumps(info, indent=2))
        return

    print(summarise_save(info))
    if args.hexdump:
        for player in save.players:
            for resource in ResourceField:
                offset = resource.offset_of(player)
                if offset is None:
                    continue
                print(f"{player.leader} {resource.label}:")
                print(hexdump_slice(save.body, offset - args.hexdump // 2, args.hexdump))


if __name__ == "__main__":
    main()
