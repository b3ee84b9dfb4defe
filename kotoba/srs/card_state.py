"""
Card State - Domain values for the deck

Plain dataclasses handed to callers. ORM rows never leave the
persistence modules; they are converted with the from_row helpers.

Timestamps are stored as fixed-width ISO-8601 UTC strings so that
string ordering in SQL matches chronological ordering.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from kotoba.srs.constants import Stage, get_group


# ---- Timestamp helpers ----

def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to the stored sortable form."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None:
        return None
    return ensure_utc(datetime.fromisoformat(value))


def day_key(value: datetime) -> str:
    """UTC calendar day (YYYY-MM-DD) of a timestamp."""
    return ensure_utc(value).date().isoformat()


def day_start_iso(day: date) -> str:
    """Stored form of midnight UTC at the start of a calendar day."""
    return to_iso(datetime(day.year, day.month, day.day, tzinfo=timezone.utc))


# ---- Domain values ----

@dataclass(frozen=True)
class Card:
    """
    A learner item in the deck.

    dictionary_id references the external vocabulary catalog; the engine
    never looks it up. due_date is None if and only if the card is burned.
    """
    id: int
    dictionary_id: int
    added_at: datetime
    stage: Stage
    due_date: Optional[datetime]
    current_incorrect_count: int = 0

    # Enrichment, opaque to the engine
    example_sentence: Optional[str] = None
    translated_sentence: Optional[str] = None
    image_path: Optional[str] = None

    @property
    def group(self) -> str:
        return get_group(self.stage)

    @property
    def is_burned(self) -> bool:
        return self.stage == Stage.BURNED

    @classmethod
    def from_row(cls, row) -> "Card":
        return cls(
            id=row.id,
            dictionary_id=row.dictionary_id,
            added_at=from_iso(row.added_at),
            stage=Stage(row.stage),
            due_date=from_iso(row.due_date),
            current_incorrect_count=row.current_incorrect_count or 0,
            example_sentence=row.example_sentence,
            translated_sentence=row.translated_sentence,
            image_path=row.image_path,
        )


@dataclass(frozen=True)
class ReviewRecord:
    """One answered attempt, as stored in the review ledger."""
    id: int
    card_id: int
    reviewed_at: datetime
    stage_before: Stage
    stage_after: Stage
    is_correct: bool
    incorrect_count: int

    @classmethod
    def from_row(cls, row) -> "ReviewRecord":
        return cls(
            id=row.id,
            card_id=row.card_id,
            reviewed_at=from_iso(row.reviewed_at),
            stage_before=Stage(row.stage_before),
            stage_after=Stage(row.stage_after),
            is_correct=bool(row.is_correct),
            incorrect_count=row.incorrect_count or 0,
        )


@dataclass(frozen=True)
class DailyBucket:
    """Materialized per-day review totals."""
    date: str
    reviews_count: int
    correct_count: int
    incorrect_count: int

    @classmethod
    def from_row(cls, row) -> "DailyBucket":
        return cls(
            date=row.date,
            reviews_count=row.reviews_count or 0,
            correct_count=row.correct_count or 0,
            incorrect_count=row.incorrect_count or 0,
        )
