from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from civ7save import chunks, values
from civ7save.chunks import DEFAULT_CHUNK_SIZE, TERMINATOR_MAX
from civ7save.errors import InvalidMagicError, MissingCompressionMarkerError
from civ7save.markers import Player, locate_players
from civ7save.values import ResourceField

log = logging.getLogger(__name__)

CIV7_MAGIC = b"CIV7"
# First chunk length (0x10000) followed by the zlib header for the default level.
COMPRESSED_DATA_START = bytes([0x00, 0x00, 0x01, 0x00, 0x78, 0x9C])

HEADER_PART_FILE = "1-header.dat"
BODY_PART_FILE = "2-body.dat"
FOOTER_PART_FILE = "3-footer.dat"
PART_FILES = (HEADER_PART_FILE, BODY_PART_FILE, FOOTER_PART_FILE)
PARTIAL_SUFFIX = ".partial"


def split_container(raw: bytes) -> Tuple[bytes, bytes, bytes, int]:
    """
    Split a raw save into (header, body, footer, chunk_size).

    The header runs up to the compressed region marker and is kept verbatim.
    The body is returned decompressed. The footer starts right after the
    last data chunk, so it begins with the region's terminator word.
    """
    if raw[:4] != CIV7_MAGIC:
        raise InvalidMagicError("Not a Civilization 7 save file.")
    compressed_start = raw.find(COMPRESSED_DATA_START)
    if compressed_start == -1:
        raise MissingCompressionMarkerError("Invalid Civilization 7 save file format: compressed data not found.")

    header = bytes(raw[:compressed_start])
    region = raw[compressed_start:]
    compressed, consumed, chunk_size = chunks.decode_chunks(region)
    body = chunks.decompress(compressed)
    footer = bytes(region[consumed:])
    log.debug(
        "header %d bytes, body %d bytes (%d compressed), footer %d bytes",
        len(header),
        len(body),
        len(compressed),
        len(footer),
    )
    return header, body, footer, chunk_size


@dataclass
class SaveFile:
    header: bytes
    body: bytearray
    footer: bytes
    players: List[Player] = field(default_factory=list)
    chunk_size: Optional[int] = None
    path: Optional[Path] = None

    @classmethod
    def from_bytes(cls, raw: bytes, path: Optional[Path] = None) -> "SaveFile":
        header, body, footer, chunk_size = split_container(raw)
        return cls(
            header=header,
            body=bytearray(body),
            footer=footer,
            players=locate_players(header, body),
            chunk_size=chunk_size if chunk_size > TERMINATOR_MAX else None,
            path=path,
        )

    @classmethod
    def from_parts(cls, header: bytes, body: bytes, footer: bytes, path: Optional[Path] = None) -> "SaveFile":
        """Build a container from already separated parts; it has no learned chunk size."""
        return cls(
            header=bytes(header),
            body=bytearray(body),
            footer=bytes(footer),
            players=locate_players(header, body),
            path=path,
        )

    @classmethod
    def load(cls, path: Path) -> "SaveFile":
        return cls.from_bytes(path.read_bytes(), path=path)

    @property
    def effective_chunk_size(self) -> int:
        return self.chunk_size or DEFAULT_CHUNK_SIZE

    def to_bytes(self) -> bytes:
        chunk_size = self.effective_chunk_size
        compressed = chunks.pad_for_framing(chunks.compress(self.body), chunk_size)
        return self.header + chunks.encode_chunks(compressed, chunk_size) + self.footer

    def save(self, path: Optional[Path] = None) -> Path:
        target = path or self.path
        if target is None:
            raise ValueError("No path supplied for saving SaveFile.")
        blob = self.to_bytes()
        # The target is only replaced once the new bytes are fully on disk.
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        try:
            partial.write_bytes(blob)
            os.replace(partial, target)
        except OSError:
            partial.unlink(missing_ok=True)
            raise
        return target

    def read_value(self, offset: Optional[int]) -> int:
        return values.read_value(self.body, offset)

    def write_value(self, offset: Optional[int], value: int) -> None:
        values.write_value(self.body, offset, value)

    def get(self, player: Player, resource: ResourceField) -> int:
        return self.read_value(resource.offset_of(player))

    def set(self, player: Player, resource: ResourceField, value: int) -> None:
        self.write_value(resource.offset_of(player), value)


def load(raw: bytes) -> SaveFile:
    return SaveFile.from_bytes(raw)


def read_value(save: SaveFile, offset: Optional[int]) -> int:
    return save.read_value(offset)


def write_value(save: SaveFile, offset: Optional[int], value: int) -> None:
    save.write_value(offset, value)


def serialize(save: SaveFile) -> bytes:
    return save.to_bytes()


def extract_parts(save: SaveFile, directory: Union[str, Path]) -> List[Path]:
    """Write the header, decompressed body and footer as separate files."""
    directory = Path(directory)
    written = []
    for name, blob in zip(PART_FILES, (save.header, save.body, save.footer)):
        target = directory / name
        target.write_bytes(bytes(blob))
        written.append(target)
    return written


def stitch_parts(directory: Union[str, Path], path: Optional[Path] = None) -> SaveFile:
    """Rebuild a container from the files written by extract_parts."""
    directory = Path(directory)
    header, body, footer = ((directory / name).read_bytes() for name in PART_FILES)
    return SaveFile.from_parts(header, body, footer, path=path)
