"""Card collection CRUD operations."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import DuplicateCardError
from ..models import Card, format_iso8601, parse_iso8601
from ..store import CardStore
from .schema import ensure_schema

if TYPE_CHECKING:
    from ..merge import MergePlan

logger = logging.getLogger(__name__)


class CardDB(CardStore):
    """Manages the cards and card_photos tables."""

    def __init__(self, db_path: str | Path = "~/.config/offlinecards/cards.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def all_cards(self, search: str | None = None) -> list[Card]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM cards ORDER BY store_name COLLATE NOCASE, card_number"
        ).fetchall()
        if search:
            # casefold in Python; SQLite's LIKE only folds ASCII
            needle = search.casefold()
            rows = [r for r in rows if needle in r["store_name"].casefold()]
        photos = self._load_photos(conn, [r["id"] for r in rows])
        return [_row_to_card(r, photos.get(r["id"])) for r in rows]

    def get(self, card_number: str) -> Card | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM cards WHERE card_number = ?", (card_number,)
        ).fetchone()
        if row is None:
            return None
        photos = self._load_photos(conn, [row["id"]])
        return _row_to_card(row, photos.get(row["id"]))

    def count(self) -> int:
        conn = self._get_conn()
        return conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]

    def insert(self, card: Card) -> None:
        """Insert a new card.

        Raises:
            DuplicateCardError: If the card number is already stored.
        """
        conn = self._get_conn()
        with conn:
            self._insert(conn, card)

    def update(self, card_number: str, card: Card) -> None:
        """Replace the stored card, keeping its original ``created_at``.

        Raises:
            KeyError: If no card is stored under ``card_number``.
            DuplicateCardError: If the new number belongs to another card.
        """
        conn = self._get_conn()
        with conn:
            row = conn.execute(
                "SELECT id FROM cards WHERE card_number = ?", (card_number,)
            ).fetchone()
            if row is None:
                raise KeyError(card_number)
            try:
                conn.execute(
                    """UPDATE cards
                       SET card_number = ?, store_name = ?, holder_name = ?,
                           use_qr_code = ?, color_hex = ?
                       WHERE id = ?""",
                    (
                        card.card_number,
                        card.store_name,
                        card.holder_name,
                        int(card.use_qr_code),
                        card.color_hex,
                        row["id"],
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateCardError(
                    f"Card {card.card_number} already exists"
                ) from e
            conn.execute("DELETE FROM card_photos WHERE card_id = ?", (row["id"],))
            self._insert_photos(conn, row["id"], card.photo_data)

    def delete(self, card: Card) -> None:
        """Delete a card (and its photos) by card number."""
        conn = self._get_conn()
        with conn:
            conn.execute(
                "DELETE FROM cards WHERE card_number = ?", (card.card_number,)
            )

    def apply(self, plan: MergePlan) -> None:
        """Apply an import plan in a single transaction.

        Either every deletion and insertion is committed or none is.

        Raises:
            DuplicateCardError: If an insertion clashes with a stored card.
        """
        conn = self._get_conn()
        with conn:
            for card in plan.deletions:
                conn.execute(
                    "DELETE FROM cards WHERE card_number = ?", (card.card_number,)
                )
            for card in plan.insertions:
                self._insert(conn, card)
        logger.info(
            "Applied import: %d deleted, %d inserted",
            len(plan.deletions),
            len(plan.insertions),
        )

    def _insert(self, conn: sqlite3.Connection, card: Card) -> None:
        try:
            cur = conn.execute(
                """INSERT INTO cards
                   (card_number, store_name, holder_name, use_qr_code,
                    color_hex, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    card.card_number,
                    card.store_name,
                    card.holder_name,
                    int(card.use_qr_code),
                    card.color_hex,
                    format_iso8601(card.created_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateCardError(f"Card {card.card_number} already exists") from e
        self._insert_photos(conn, cur.lastrowid, card.photo_data)

    @staticmethod
    def _insert_photos(
        conn: sqlite3.Connection, card_id: int, photos: list[bytes] | None
    ) -> None:
        for position, data in enumerate(photos or []):
            conn.execute(
                "INSERT INTO card_photos (card_id, position, data) VALUES (?, ?, ?)",
                (card_id, position, data),
            )

    @staticmethod
    def _load_photos(
        conn: sqlite3.Connection, card_ids: list[int]
    ) -> dict[int, list[bytes]]:
        if not card_ids:
            return {}
        placeholders = ", ".join("?" for _ in card_ids)
        rows = conn.execute(
            f"""SELECT card_id, data FROM card_photos
                WHERE card_id IN ({placeholders})
                ORDER BY card_id, position""",
            card_ids,
        ).fetchall()
        photos: dict[int, list[bytes]] = {}
        for row in rows:
            photos.setdefault(row["card_id"], []).append(bytes(row["data"]))
        return photos


def _row_to_card(row: sqlite3.Row, photos: list[bytes] | None) -> Card:
    return Card(
        card_number=row["card_number"],
        store_name=row["store_name"],
        holder_name=row["holder_name"],
        use_qr_code=bool(row["use_qr_code"]),
        color_hex=row["color_hex"],
        photo_data=photos or None,
        created_at=parse_iso8601(row["created_at"]),
    )
