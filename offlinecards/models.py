"""Data models for loyalty cards and their interchange representation."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .colors import DEFAULT_COLOR_HEX, normalize_hex_color
from .errors import DecodingFailedError, InvalidInputError

EXPORT_VERSION = 1


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_iso8601(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso8601(text: str) -> datetime:
    """Parse an ISO-8601 timestamp with an explicit UTC offset.

    Raises:
        DecodingFailedError: If the text is not a timezone-aware timestamp.
    """
    if not isinstance(text, str):
        raise DecodingFailedError(f"Expected an ISO-8601 string, got {text!r}")
    cleaned = text.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(cleaned)
    except ValueError as e:
        raise DecodingFailedError(f"Invalid ISO-8601 date: {text!r}") from e
    if value.tzinfo is None:
        raise DecodingFailedError(f"ISO-8601 date has no timezone: {text!r}")
    return value.astimezone(timezone.utc)


def _clean_fields(
    card_number: str,
    store_name: str,
    holder_name: str | None,
    color_hex: str,
    photo_data: list[bytes] | None,
) -> tuple[str, str, str | None, str, list[bytes] | None]:
    number = card_number.strip()
    store = store_name.strip()
    holder = (holder_name or "").strip()
    if not number:
        raise InvalidInputError("Card number must not be empty")
    if not store:
        raise InvalidInputError("Store name must not be empty")
    color = normalize_hex_color(color_hex)
    if color is None:
        raise InvalidInputError(f"Invalid colour (expected #RRGGBB): {color_hex!r}")
    photos = list(photo_data) if photo_data else None
    return number, store, holder or None, color, photos


@dataclass
class Card:
    """A loyalty card stored in the wallet."""

    card_number: str
    store_name: str
    holder_name: str | None = None
    use_qr_code: bool = False
    color_hex: str = DEFAULT_COLOR_HEX
    photo_data: list[bytes] | None = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        card_number: str,
        store_name: str,
        holder_name: str | None = None,
        use_qr_code: bool = False,
        color_hex: str = DEFAULT_COLOR_HEX,
        photo_data: list[bytes] | None = None,
    ) -> Card:
        """Build a card from user input, trimming and validating fields.

        Raises:
            InvalidInputError: If the card number or store name is blank,
                or the colour is not ``#RRGGBB``.
        """
        number, store, holder, color, photos = _clean_fields(
            card_number, store_name, holder_name, color_hex, photo_data
        )
        return cls(
            card_number=number,
            store_name=store,
            holder_name=holder,
            use_qr_code=use_qr_code,
            color_hex=color,
            photo_data=photos,
        )

    def update(
        self,
        card_number: str,
        store_name: str,
        holder_name: str | None = None,
        use_qr_code: bool = False,
        color_hex: str = DEFAULT_COLOR_HEX,
        photo_data: list[bytes] | None = None,
    ) -> None:
        """Edit the card in place. ``created_at`` is left unchanged."""
        number, store, holder, color, photos = _clean_fields(
            card_number, store_name, holder_name, color_hex, photo_data
        )
        self.card_number = number
        self.store_name = store
        self.holder_name = holder
        self.use_qr_code = use_qr_code
        self.color_hex = color
        self.photo_data = photos

    def to_export_record(self) -> ExportRecord:
        return ExportRecord(
            card_number=self.card_number,
            store_name=self.store_name,
            holder_name=self.holder_name,
            use_qr_code=self.use_qr_code,
            color_hex=self.color_hex,
            photo_data_base64=(
                [base64.b64encode(p).decode("ascii") for p in self.photo_data]
                if self.photo_data is not None
                else None
            ),
            created_at=format_iso8601(self.created_at),
        )

    @classmethod
    def from_export_record(cls, record: ExportRecord) -> Card:
        """Convert a wire record back into a card.

        Fields are trimmed and validated like :meth:`create`. Photo entries
        that are not valid base64 are dropped. The exported ``created_at``
        is kept instead of being reset to the import time.

        Raises:
            DecodingFailedError: If the card number or store name is blank,
                the colour is not ``#RRGGBB``, or ``created_at`` is not a
                valid timestamp.
        """
        photos: list[bytes] | None = None
        if record.photo_data_base64 is not None:
            photos = []
            for encoded in record.photo_data_base64:
                try:
                    photos.append(base64.b64decode(encoded, validate=True))
                except (binascii.Error, ValueError):
                    continue
        try:
            number, store, holder, color, photos = _clean_fields(
                record.card_number,
                record.store_name,
                record.holder_name,
                record.color_hex,
                photos,
            )
        except InvalidInputError as e:
            raise DecodingFailedError(f"Card {record.card_number!r}: {e}") from e
        return cls(
            card_number=number,
            store_name=store,
            holder_name=holder,
            use_qr_code=record.use_qr_code,
            color_hex=color,
            photo_data=photos,
            created_at=parse_iso8601(record.created_at),
        )


@dataclass
class ExportRecord:
    """Wire representation of a Card inside an interchange document."""

    card_number: str
    store_name: str
    holder_name: str | None
    use_qr_code: bool
    color_hex: str
    photo_data_base64: list[str] | None
    created_at: str  # ISO8601

    def to_dict(self) -> dict:
        return {
            "cardNumber": self.card_number,
            "storeName": self.store_name,
            "holderName": self.holder_name,
            "useQRCode": self.use_qr_code,
            "colorHex": self.color_hex,
            "photoDataBase64": self.photo_data_base64,
            "createdAt": self.created_at,
        }


@dataclass
class ExportContainer:
    """Top-level interchange document."""

    cards: list[ExportRecord]
    version: int = EXPORT_VERSION
    export_date: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "exportDate": format_iso8601(self.export_date),
            "cards": [r.to_dict() for r in self.cards],
        }
