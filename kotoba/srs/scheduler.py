"""
Scheduler - Stage Transition Logic

Pure scheduling functions (no database calls, no mutable state).

Rules:
- Correct answer: advance one stage, capped at BURNED
- Incorrect answer: drop ceil(misses / 2) stages, doubled from Guru up,
  never below Apprentice 1
- Due date: now + the stage interval; burned cards are never due
"""

from __future__ import annotations
import math
from datetime import datetime
from typing import Optional

from kotoba.srs.card_state import Card, ensure_utc, utcnow
from kotoba.srs.constants import (
    GURU_PENALTY_FROM,
    MIN_REVIEW_STAGE,
    Stage,
    get_interval,
)


def next_stage(
    current_stage: int,
    is_correct: bool,
    incorrect_count: int = 0
) -> Stage:
    """
    Compute the stage after an answer.

    Args:
        current_stage: Stage the card is at (0-9)
        is_correct: Whether the answer was correct
        incorrect_count: Misses of this card in the current session,
            including the one being scored

    Returns:
        The new Stage
    """
    stage = Stage(current_stage)

    if is_correct:
        return Stage(min(stage + 1, Stage.BURNED))

    adjustment = math.ceil(incorrect_count / 2)
    penalty_factor = 2 if stage >= GURU_PENALTY_FROM else 1
    return Stage(max(MIN_REVIEW_STAGE, stage - adjustment * penalty_factor))


def next_due_date(stage: int, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Compute when a card at `stage` is next due.

    Args:
        stage: Stage the card is moving to
        now: Reference time (defaults to now, UTC)

    Returns:
        Due timestamp, or None for burned cards
    """
    interval = get_interval(stage)
    if interval is None:
        return None

    if now is None:
        now = utcnow()
    return ensure_utc(now) + interval


def is_due(card: Card, now: Optional[datetime] = None) -> bool:
    """True when the card is not burned and its due date has passed."""
    if card.is_burned or card.due_date is None:
        return False
    if now is None:
        now = utcnow()
    return card.due_date <= ensure_utc(now)
