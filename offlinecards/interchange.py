"""JSON export/import of the card collection and duplicate detection."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import (
    DecodingFailedError,
    EncodingFailedError,
    FileReadFailedError,
    NoCardsToExportError,
)
from .models import (
    EXPORT_VERSION,
    Card,
    ExportContainer,
    ExportRecord,
    parse_iso8601,
)

logger = logging.getLogger(__name__)


def export_cards(cards: list[Card]) -> bytes:
    """Serialise cards into a versioned interchange document.

    Keys are sorted at every level so exports of the same cards diff cleanly.

    Raises:
        NoCardsToExportError: If ``cards`` is empty.
        EncodingFailedError: If the document can't be serialised.
    """
    if not cards:
        raise NoCardsToExportError("There are no cards to export")

    container = ExportContainer(cards=[c.to_export_record() for c in cards])
    try:
        text = json.dumps(
            container.to_dict(), sort_keys=True, indent=2, ensure_ascii=False
        )
        data = text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingFailedError(f"Failed to encode export document: {e}") from e

    logger.info("Exported %d cards (%d bytes)", len(cards), len(data))
    return data


def export_cards_to_file(cards: list[Card], directory: str | Path) -> Path:
    """Export cards to ``cards_export_<timestamp>.json`` in ``directory``.

    Returns:
        Path to the written file.
    """
    data = export_cards(cards)
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).timestamp()
    path = directory / f"cards_export_{stamp:.6f}.json"
    suffix = 1
    while True:
        try:
            with open(path, "xb") as f:
                f.write(data)
            return path
        except FileExistsError:
            path = directory / f"cards_export_{stamp:.6f}_{suffix}.json"
            suffix += 1


def import_cards(data: bytes | str) -> list[Card]:
    """Parse an interchange document into cards, preserving order.

    Photo entries that aren't valid base64 are dropped; everything else
    must be well formed.

    Raises:
        DecodingFailedError: On invalid JSON, schema mismatch, or bad dates.
    """
    try:
        raw = json.loads(data)
    except (ValueError, RecursionError) as e:
        raise DecodingFailedError(f"Import file is not valid JSON: {e}") from e

    container = _parse_container(raw)
    cards = [Card.from_export_record(r) for r in container.cards]
    logger.info("Imported %d cards (document version %d)", len(cards), container.version)
    return cards


def import_cards_from_file(path: str | Path) -> list[Card]:
    """Read an interchange file and parse it.

    Raises:
        FileReadFailedError: If the file can't be read.
        DecodingFailedError: If the file content is invalid.
    """
    path = Path(path).expanduser()
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileReadFailedError(f"Failed to read import file: {path}") from e
    return import_cards(data)


def is_duplicate(card: Card, existing: list[Card]) -> bool:
    """True if a card with the same number is already in ``existing``."""
    return any(c.card_number == card.card_number for c in existing)


def find_duplicates(imported: list[Card], existing: list[Card]) -> list[str]:
    """Card numbers from ``imported`` (in its order) also found in ``existing``."""
    existing_numbers = {c.card_number for c in existing}
    return [c.card_number for c in imported if c.card_number in existing_numbers]


def _field(obj: dict, key: str, types: type | tuple[type, ...], where: str) -> Any:
    if key not in obj:
        raise DecodingFailedError(f"{where}: missing key {key!r}")
    value = obj[key]
    # bool is an int subclass; only accept it where bool is asked for
    if isinstance(value, bool) and bool not in (
        types if isinstance(types, tuple) else (types,)
    ):
        raise DecodingFailedError(f"{where}: {key!r} has the wrong type")
    if not isinstance(value, types):
        raise DecodingFailedError(f"{where}: {key!r} has the wrong type")
    return value


def _optional_field(obj: dict, key: str, types: type, where: str) -> Any:
    if obj.get(key) is None:
        return None
    return _field(obj, key, types, where)


def _parse_record(obj: Any, index: int) -> ExportRecord:
    where = f"cards[{index}]"
    if not isinstance(obj, dict):
        raise DecodingFailedError(f"{where}: expected an object")

    photos = _optional_field(obj, "photoDataBase64", list, where)
    if photos is not None and not all(isinstance(p, str) for p in photos):
        raise DecodingFailedError(f"{where}: photoDataBase64 must contain strings")

    created_at = _field(obj, "createdAt", str, where)
    parse_iso8601(created_at)

    return ExportRecord(
        card_number=_field(obj, "cardNumber", str, where),
        store_name=_field(obj, "storeName", str, where),
        holder_name=_optional_field(obj, "holderName", str, where),
        use_qr_code=_field(obj, "useQRCode", bool, where),
        color_hex=_field(obj, "colorHex", str, where),
        photo_data_base64=photos,
        created_at=created_at,
    )


def _parse_container(raw: Any) -> ExportContainer:
    if not isinstance(raw, dict):
        raise DecodingFailedError("Import document must be a JSON object")

    version = _field(raw, "version", int, "document")
    if version > EXPORT_VERSION:
        raise DecodingFailedError(
            f"Unsupported export version {version} (newest supported: {EXPORT_VERSION})"
        )
    export_date = parse_iso8601(_field(raw, "exportDate", str, "document"))
    items = _field(raw, "cards", list, "document")

    return ExportContainer(
        cards=[_parse_record(item, i) for i, item in enumerate(items)],
        version=version,
        export_date=export_date,
    )
