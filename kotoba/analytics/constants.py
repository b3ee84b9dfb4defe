"""
Constants for deck statistics.
"""

from __future__ import annotations

from typing import Final, Optional


# Success-rate windows -> trailing days (None = all history)
SUCCESS_WINDOW_DAYS: Final[dict[str, Optional[int]]] = {
    "all": None,
    "7d": 7,
    "30d": 30,
}

DEFAULT_FORECAST_DAYS: Final[int] = 30

DAILY_STATS_COLUMNS: Final[list[str]] = [
    "date",
    "reviews_count",
    "correct_count",
    "incorrect_count",
]

CARD_COLUMNS: Final[list[str]] = ["card_id", "stage", "due_date"]
