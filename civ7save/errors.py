"""Exceptions raised while reading or editing Civ7 save files."""

from __future__ import annotations


class SaveError(Exception):
    """Base exception for save load/edit errors."""


class SaveFormatError(SaveError, ValueError):
    """Raised when the container cannot be parsed; the load is aborted."""


class InvalidMagicError(SaveFormatError):
    """Raised when the file does not start with the CIV7 magic."""


class MissingCompressionMarkerError(SaveFormatError):
    """Raised when the start of the compressed region cannot be located."""


class CorruptChunkFramingError(SaveFormatError):
    """Raised when a chunk length field points past the end of the data."""


class DecompressionError(SaveFormatError):
    """Raised when the DEFLATE stream is malformed."""


class ValueOutOfRangeError(SaveError, ValueError):
    """Raised when a counter value cannot be represented on disk."""


class FieldNotFoundError(SaveError, LookupError):
    """Raised when a player has no resolved offset for a field."""
