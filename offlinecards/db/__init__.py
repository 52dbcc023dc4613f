"""SQLite storage for the card collection."""

from .cards import CardDB
from .schema import ensure_schema

__all__ = [
    "CardDB",
    "ensure_schema",
]
