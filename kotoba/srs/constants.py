"""
SRS Constants - Stage Table

The fixed 10-stage WaniKani-style schedule used by the deck.
Every value here is static data: stage -> interval, stage -> group.
"""

from __future__ import annotations

from datetime import timedelta
from enum import IntEnum
from typing import Final, Optional


# ---- Stages ----

class Stage(IntEnum):
    """Learning maturity of a deck card."""
    NEW = 0
    APPRENTICE_1 = 1
    APPRENTICE_2 = 2
    APPRENTICE_3 = 3
    APPRENTICE_4 = 4
    GURU_1 = 5
    GURU_2 = 6
    MASTER = 7
    ENLIGHTENED = 8
    BURNED = 9


MIN_REVIEW_STAGE: Final[Stage] = Stage.APPRENTICE_1  # Floor for incorrect answers
GURU_PENALTY_FROM: Final[Stage] = Stage.GURU_1       # Misses count double from here on


# ---- Review Intervals ----
# Time from a review until the card is due again. None = never due.

STAGE_INTERVALS: Final[dict[Stage, Optional[timedelta]]] = {
    Stage.NEW: timedelta(0),                 # Immediately due
    Stage.APPRENTICE_1: timedelta(hours=4),
    Stage.APPRENTICE_2: timedelta(hours=8),
    Stage.APPRENTICE_3: timedelta(days=1),
    Stage.APPRENTICE_4: timedelta(days=2),
    Stage.GURU_1: timedelta(days=7),
    Stage.GURU_2: timedelta(days=14),
    Stage.MASTER: timedelta(days=30),
    Stage.ENLIGHTENED: timedelta(days=120),
    Stage.BURNED: None,
}


# ---- Groups ----

GROUP_NEW: Final[str] = "new"
GROUP_APPRENTICE: Final[str] = "apprentice"
GROUP_GURU: Final[str] = "guru"
GROUP_MASTER: Final[str] = "master"
GROUP_ENLIGHTENED: Final[str] = "enlightened"
GROUP_BURNED: Final[str] = "burned"

STAGE_GROUPS: Final[dict[Stage, str]] = {
    Stage.NEW: GROUP_NEW,
    Stage.APPRENTICE_1: GROUP_APPRENTICE,
    Stage.APPRENTICE_2: GROUP_APPRENTICE,
    Stage.APPRENTICE_3: GROUP_APPRENTICE,
    Stage.APPRENTICE_4: GROUP_APPRENTICE,
    Stage.GURU_1: GROUP_GURU,
    Stage.GURU_2: GROUP_GURU,
    Stage.MASTER: GROUP_MASTER,
    Stage.ENLIGHTENED: GROUP_ENLIGHTENED,
    Stage.BURNED: GROUP_BURNED,
}

# Groups reported in deck statistics (active cards only)
ACTIVE_REVIEW_GROUPS: Final[list[str]] = [
    GROUP_APPRENTICE,
    GROUP_GURU,
    GROUP_MASTER,
    GROUP_ENLIGHTENED,
]

STAGE_NAMES: Final[dict[Stage, str]] = {
    Stage.NEW: "New",
    Stage.APPRENTICE_1: "Apprentice 1",
    Stage.APPRENTICE_2: "Apprentice 2",
    Stage.APPRENTICE_3: "Apprentice 3",
    Stage.APPRENTICE_4: "Apprentice 4",
    Stage.GURU_1: "Guru 1",
    Stage.GURU_2: "Guru 2",
    Stage.MASTER: "Master",
    Stage.ENLIGHTENED: "Enlightened",
    Stage.BURNED: "Burned",
}


def get_interval(stage: int) -> Optional[timedelta]:
    """Review interval for a stage (None for burned). Raises ValueError if out of range."""
    return STAGE_INTERVALS[Stage(stage)]


def get_group(stage: int) -> str:
    """Group label for a stage. Raises ValueError if out of range."""
    return STAGE_GROUPS[Stage(stage)]


def get_stage_name(stage: int) -> str:
    """Display name for a stage, e.g. 'Guru 2'."""
    return STAGE_NAMES[Stage(stage)]
