"""Exception types raised by the card wallet core."""

from __future__ import annotations


class OfflineCardsError(Exception):
    """Base class for all errors raised by offlinecards."""


class InvalidInputError(OfflineCardsError, ValueError):
    """Caller supplied data that cannot be processed (e.g. empty text)."""


class GenerationFailedError(OfflineCardsError, RuntimeError):
    """Symbol generation or rasterisation produced no usable image."""


class ExportError(OfflineCardsError):
    """Base class for export failures."""


class NoCardsToExportError(ExportError, ValueError):
    """Export was called with an empty card list."""


class EncodingFailedError(ExportError):
    """The export document could not be serialised."""


class CardImportError(OfflineCardsError):
    """Base class for import failures."""


class DecodingFailedError(CardImportError, ValueError):
    """Import content is not a valid interchange document."""


class FileReadFailedError(CardImportError, OSError):
    """The import file could not be read."""


class ImportStateError(OfflineCardsError, RuntimeError):
    """A merge decision was made in the wrong import state."""


class DuplicateCardError(OfflineCardsError, ValueError):
    """A card with the same number already exists in the store."""
