#!/usr/bin/env python3
"""
Console editor for Civilization VII save files.

Features:
    - Edit each player's gold treasury and accumulated influence.
    - --extract: dump the header, decompressed body and footer to
      1-header.dat, 2-body.dat and 3-footer.dat for manual inspection.
    - --stitch: rebuild the save from those three files.

The parsing/writing helpers live in civ7save.data; unknown regions of the
file are carried through untouched so saves round-trip safely.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from civ7save.data import PART_FILES, SaveFile, extract_parts, stitch_parts
from civ7save.errors import SaveError
from civ7save.markers import Player
from civ7save.values import ResourceField, parse_amount

__version__ = "1.1.0"

log = logging.getLogger("civ7_save_editor")

BACKUP_SUFFIX = ".bak"
BACK = "b"

MenuOption = Tuple[str, Any]


def prompt_menu(prompt: str, options: Sequence[MenuOption], allow_back: bool = False) -> Optional[Any]:
    """Show a numbered menu until a valid choice is made. Returns None for 'back'."""
    while True:
        print("\n" + prompt)
        for index, (label, _value) in enumerate(options, start=1):
            print(f"  ({index}) {label}")
        if allow_back:
            print(f"  ({BACK}) Back")
        answer = input("Enter your choice: ").strip()
        if allow_back and answer.lower() == BACK:
            return None
        if answer.isdecimal() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1][1]
        print("Invalid selection. Please try again.", file=sys.stderr)


def edit_value(save: SaveFile, resource: ResourceField, player: Player) -> bool:
    """Ask for a new amount until it is valid or cancelled. Returns True if the body changed."""
    current = save.get(player, resource)
    low, high = resource.bounds
    while True:
        answer = input(
            f"Enter new amount for {resource.label} ({current}) between {low} and {high} "
            f"(or '{BACK}' to cancel): "
        )
        if answer.strip().lower() == BACK:
            return False
        try:
            value = parse_amount(answer)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            continue
        save.set(player, resource, value)
        print(f"{resource.label} updated to {value} for {player.leader}.")
        return True


def player_menu(save: SaveFile, resource: ResourceField) -> None:
    if not save.players:
        print("No player data found.", file=sys.stderr)
        return
    options: List[MenuOption] = [(player.leader, player) for player in save.players]
    while True:
        player = prompt_menu(f"Select player slot to edit {resource.value}:", options, allow_back=True)
        if player is None:
            return
        try:
            edit_value(save, resource, player)
        except SaveError as exc:
            print(f"Error: {exc}", file=sys.stderr)


def write_save(save: SaveFile, target: Path, backup: bool = True) -> Path:
    if backup and target.exists():
        backup_path = target.with_suffix(target.suffix + BACKUP_SUFFIX)
        shutil.copy2(target, backup_path)
        log.info("backup written to %s", backup_path)
    save.save(target)
    print(f"{target} rewritten.")
    return target


def main_menu(save: SaveFile, target: Path, backup: bool = True) -> bool:
    """Run the editor loop. Returns True if the save was written."""
    options: List[MenuOption] = [
        ("Edit gold treasury", ResourceField.GOLD),
        ("Edit accumulated influence", ResourceField.INFLUENCE),
        ("Save and exit", "save"),
        ("Exit without saving", "quit"),
    ]
    while True:
        choice = prompt_menu("Main Menu - Please select an option:", options)
        if isinstance(choice, ResourceField):
            player_menu(save, choice)
        elif choice == "save":
            write_save(save, target, backup=backup)
            return True
        elif choice == "quit":
            answer = input("Are you sure you want to exit without saving? (y/n): ")
            if answer.strip().lower() == "y":
                return False


def run(args: argparse.Namespace) -> int:
    save_path: Path = args.savefile
    if args.stitch:
        save = stitch_parts(save_path.parent, path=save_path)
        write_save(save, save_path, backup=not args.no_backup)
        return 0

    save = SaveFile.load(save_path)
    if args.extract:
        written = extract_parts(save, save_path.parent)
        print("Files extracted: " + " ".join(str(p) for p in written))
        return 0

    print("Create a backup of your save file before making any changes.")
    main_menu(save, save_path, backup=not args.no_backup)
    return 0


def build_parser() -> argparse.ArgumentParser:
    header, body, footer = PART_FILES
    parser = argparse.ArgumentParser(
        prog="civ7-save-editor",
        description="Edit gold and influence in a Civilization VII save file.",
    )
    parser.add_argument("savefile", type=Path, help="Path to the Civ7Save file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--extract",
        action="store_true",
        help=f"Write '{header}', '{body}' and '{footer}' next to the save. The body is uncompressed.",
    )
    mode.add_argument(
        "--stitch",
        action="store_true",
        help=f"Rebuild the save from '{header}', '{body}' and '{footer}' (written by --extract).",
    )
    parser.add_argument("--no-backup", action="store_true", help=f"Do not copy the save to *{BACKUP_SUFFIX} first")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    print(f"Civ7 Save Editor v{__version__}")
    try:
        return run(args)
    except (SaveError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nAborted, nothing written.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
