"""Import merge policy: erase / duplicate decisions as a state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .errors import ImportStateError
from .interchange import find_duplicates
from .models import Card

logger = logging.getLogger(__name__)


class ImportState(Enum):
    IDLE = "idle"
    PENDING_ERASE_DECISION = "pending_erase_decision"
    PENDING_DUPLICATE_DECISION = "pending_duplicate_decision"
    APPLIED = "applied"
    CANCELLED = "cancelled"


class DuplicateChoice(Enum):
    OVERWRITE = "overwrite"
    SKIP = "skip"
    CANCEL = "cancel"


@dataclass
class MergePlan:
    """Store mutations produced by an import; deletions run first."""

    deletions: list[Card] = field(default_factory=list)
    insertions: list[Card] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.deletions and not self.insertions


def collapse_self_duplicates(cards: list[Card]) -> list[Card]:
    """Keep only the last card for each card number, in last-seen order."""
    last_index = {c.card_number: i for i, c in enumerate(cards)}
    return [c for i, c in enumerate(cards) if last_index[c.card_number] == i]


class ImportSession:
    """Drive one import from parsed cards to a MergePlan.

    Usage::

        session = ImportSession(imported, store.all_cards())
        session.begin()
        if session.state is ImportState.PENDING_ERASE_DECISION:
            session.decide_erase(False)
        if session.state is ImportState.PENDING_DUPLICATE_DECISION:
            session.resolve_duplicates(DuplicateChoice.SKIP)
        if session.plan is not None:
            store.apply(session.plan)
    """

    def __init__(self, imported: list[Card], existing: list[Card]) -> None:
        self._imported = collapse_self_duplicates(imported)
        if len(self._imported) != len(imported):
            logger.warning(
                "Import contains %d repeated card numbers; keeping the last of each",
                len(imported) - len(self._imported),
            )
        self._existing = list(existing)
        self._erased: list[Card] = []
        self._remaining: list[Card] = list(existing)
        self._duplicates: list[str] = []
        self._state = ImportState.IDLE
        self._plan: MergePlan | None = None

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def imported(self) -> list[Card]:
        return list(self._imported)

    @property
    def duplicates(self) -> list[str]:
        """Card numbers that clash with the remaining existing cards."""
        return list(self._duplicates)

    @property
    def plan(self) -> MergePlan | None:
        """The resulting plan once APPLIED; None otherwise."""
        return self._plan

    def _expect(self, *states: ImportState) -> None:
        if self._state not in states:
            expected = " / ".join(s.value for s in states)
            raise ImportStateError(
                f"Import is {self._state.value}, expected {expected}"
            )

    def begin(self) -> ImportState:
        """Start the import. Skips the erase question for an empty store."""
        self._expect(ImportState.IDLE)
        if not self._existing:
            self._finish(self._imported)
        else:
            self._state = ImportState.PENDING_ERASE_DECISION
        return self._state

    def decide_erase(self, erase: bool) -> ImportState:
        """Answer whether to erase all existing cards before importing."""
        self._expect(ImportState.PENDING_ERASE_DECISION)
        if erase:
            logger.info("Erasing %d existing cards before import", len(self._existing))
            self._erased = list(self._existing)
            self._remaining = []

        self._duplicates = find_duplicates(self._imported, self._remaining)
        if self._duplicates:
            self._state = ImportState.PENDING_DUPLICATE_DECISION
        else:
            self._finish(self._imported)
        return self._state

    def resolve_duplicates(self, choice: DuplicateChoice) -> ImportState:
        """Answer how to handle cards that already exist."""
        self._expect(ImportState.PENDING_DUPLICATE_DECISION)
        duplicate_set = set(self._duplicates)
        logger.info("%d duplicate cards: %s", len(duplicate_set), choice.value)

        match choice:
            case DuplicateChoice.OVERWRITE:
                conflicting = [
                    c for c in self._remaining if c.card_number in duplicate_set
                ]
                self._finish(self._imported, extra_deletions=conflicting)
            case DuplicateChoice.SKIP:
                self._finish(
                    [c for c in self._imported if c.card_number not in duplicate_set]
                )
            case DuplicateChoice.CANCEL:
                self.cancel()
        return self._state

    def cancel(self) -> ImportState:
        """Discard the pending import; the store is left untouched."""
        self._expect(
            ImportState.PENDING_ERASE_DECISION,
            ImportState.PENDING_DUPLICATE_DECISION,
        )
        self._state = ImportState.CANCELLED
        self._plan = None
        logger.info("Import cancelled")
        return self._state

    def _finish(
        self, insertions: list[Card], extra_deletions: list[Card] | None = None
    ) -> None:
        self._plan = MergePlan(
            deletions=self._erased + (extra_deletions or []),
            insertions=list(insertions),
        )
        self._state = ImportState.APPLIED
        logger.info(
            "Import plan ready: %d deletions, %d insertions",
            len(self._plan.deletions),
            len(self._plan.insertions),
        )


def plan_import(
    imported: list[Card],
    existing: list[Card],
    *,
    erase: bool = False,
    on_duplicate: DuplicateChoice = DuplicateChoice.CANCEL,
) -> MergePlan | None:
    """Run a whole import with decisions given up front.

    Returns:
        The MergePlan to apply, or None if the import was cancelled.
    """
    session = ImportSession(imported, existing)
    session.begin()
    if session.state is ImportState.PENDING_ERASE_DECISION:
        session.decide_erase(erase)
    if session.state is ImportState.PENDING_DUPLICATE_DECISION:
        session.resolve_duplicates(on_duplicate)
    return session.plan
