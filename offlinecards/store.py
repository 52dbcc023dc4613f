"""Persistence interface consumed by the import merge flow and the CLI."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .merge import MergePlan
    from .models import Card


class CardStore(ABC):
    """Abstract base for the live card collection.

    Implementations enforce card number uniqueness.
    """

    @abstractmethod
    def all_cards(self, search: str | None = None) -> list[Card]:
        """Return cards sorted by store name.

        Args:
            search: Case-insensitive substring to match against store names.
        """
        ...

    @abstractmethod
    def get(self, card_number: str) -> Card | None:
        ...

    @abstractmethod
    def insert(self, card: Card) -> None:
        ...

    @abstractmethod
    def update(self, card_number: str, card: Card) -> None:
        """Replace the card stored under ``card_number`` with ``card``."""
        ...

    @abstractmethod
    def delete(self, card: Card) -> None:
        ...

    def apply(self, plan: MergePlan) -> None:
        """Apply an import plan: all deletions, then all insertions.

        Implementations that can should do this atomically.
        """
        for card in plan.deletions:
            self.delete(card)
        for card in plan.insertions:
            self.insert(card)
