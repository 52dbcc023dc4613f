"""Offline loyalty-card wallet: barcode rendering and JSON import/export."""

from .config import DatabaseConfig, ExportConfig, RenderConfig, WalletConfig, load_config
from .errors import (
    CardImportError,
    DecodingFailedError,
    DuplicateCardError,
    EncodingFailedError,
    ExportError,
    FileReadFailedError,
    GenerationFailedError,
    ImportStateError,
    InvalidInputError,
    NoCardsToExportError,
    OfflineCardsError,
)
from .interchange import (
    export_cards,
    export_cards_to_file,
    find_duplicates,
    import_cards,
    import_cards_from_file,
    is_duplicate,
)
from .merge import DuplicateChoice, ImportSession, ImportState, MergePlan, plan_import
from .models import Card, ExportContainer, ExportRecord
from .renderer import CodeRenderer, Resolution, render
from .store import CardStore
from .symbols import SymbolEncoder, Symbology, create_encoder

__all__ = [
    "Card",
    "ExportRecord",
    "ExportContainer",
    "CodeRenderer",
    "Resolution",
    "Symbology",
    "SymbolEncoder",
    "create_encoder",
    "render",
    "export_cards",
    "export_cards_to_file",
    "import_cards",
    "import_cards_from_file",
    "is_duplicate",
    "find_duplicates",
    "ImportSession",
    "ImportState",
    "DuplicateChoice",
    "MergePlan",
    "plan_import",
    "CardStore",
    "WalletConfig",
    "DatabaseConfig",
    "RenderConfig",
    "ExportConfig",
    "load_config",
    "OfflineCardsError",
    "InvalidInputError",
    "GenerationFailedError",
    "ExportError",
    "NoCardsToExportError",
    "EncodingFailedError",
    "CardImportError",
    "DecodingFailedError",
    "FileReadFailedError",
    "ImportStateError",
    "DuplicateCardError",
]
