"""
Review session types.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from kotoba.srs.card_state import Card, ReviewRecord
from kotoba.srs.constants import Stage


class SessionPhase(str, Enum):
    """Where a review session is in the reveal/answer protocol."""
    AWAITING_REVEAL = "awaiting_reveal"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionItem:
    """
    A single card presentation within a session.

    incorrect_count is the card's session-scoped miss count at the time
    it was (re-)queued.
    """
    card: Card
    incorrect_count: int = 0


@dataclass
class SessionResults:
    """Running totals for one session."""
    correct: int = 0
    incorrect: int = 0
    burned: int = 0

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float:
        """Percentage of answers that were correct (0 when nothing answered)."""
        if self.answered == 0:
            return 0.0
        return round(100.0 * self.correct / self.answered, 1)


@dataclass
class ReviewSession:
    """
    One in-memory review session over a snapshot of due cards.

    Nothing here is persisted; answers are written through as they happen.
    """
    current: Optional[SessionItem]
    queue: deque[SessionItem]
    total_cards: int
    started_at: datetime
    is_revealed: bool = False
    incorrect_counts: dict[int, int] = field(default_factory=dict)
    results: SessionResults = field(default_factory=SessionResults)
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def current_card(self) -> Optional[Card]:
        return self.current.card if self.current is not None else None

    @property
    def is_complete(self) -> bool:
        return self.current is None

    @property
    def phase(self) -> SessionPhase:
        if self.current is None:
            return SessionPhase.COMPLETE
        if self.is_revealed:
            return SessionPhase.AWAITING_ANSWER
        return SessionPhase.AWAITING_REVEAL

    @property
    def remaining(self) -> int:
        """Cards still to be shown, including the current one."""
        return len(self.queue) + (0 if self.current is None else 1)

    def incorrect_count_for(self, card_id: int) -> int:
        return self.incorrect_counts.get(card_id, 0)


@dataclass(frozen=True)
class AnswerOutcome:
    """What a single answer submission did."""
    record: ReviewRecord
    new_stage: Stage
    updated_card: Optional[Card]  # Set only when the card store was mutated
    session: ReviewSession

    @property
    def persisted(self) -> bool:
        return self.updated_card is not None

    @property
    def is_complete(self) -> bool:
        return self.session.is_complete
