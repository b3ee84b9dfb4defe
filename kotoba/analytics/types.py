"""
Types for deck statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


SuccessWindow = Literal["all", "7d", "30d"]


@dataclass(frozen=True)
class DeckStats:
    """
    Snapshot of the deck by stage group.

    Group counts cover active (non-burned) cards only.
    """
    total_cards: int
    active_cards: int
    burned_cards: int
    due_now: int
    due_reviews: int
    new_cards: int
    apprentice: int
    guru: int
    master: int
    enlightened: int


@dataclass(frozen=True)
class StatsOverview:
    """
    Overview and performance figures for the stats page.
    """
    total_reviews: int
    reviews_today: int
    study_days: int
    current_streak: int
    best_streak: int
    success_rate_all_time: float
    success_rate_7_days: float
    success_rate_30_days: float
