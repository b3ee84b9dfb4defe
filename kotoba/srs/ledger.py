"""
Ledger - Review History and Daily Stats

Append-only log of answered attempts. Every append also increments the
daily_stats bucket for the review's UTC day in the same transaction, so
the cache and the log either both change or neither does.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from kotoba.srs.card_state import DailyBucket, ReviewRecord, day_key, to_iso, utcnow
from kotoba.srs.constants import Stage
from kotoba.srs.database import atomic, reading
from kotoba.srs.models import DailyStats, ReviewHistory

logger = logging.getLogger(__name__)

DayLike = Union[str, date]


def _day_str(value: DayLike) -> str:
    return value if isinstance(value, str) else value.isoformat()


def _increment_bucket(db: Session, day: str, is_correct: bool) -> None:
    """Add one review to a day's bucket (creates the bucket if missing)."""
    correct = 1 if is_correct else 0
    bucket = db.get(DailyStats, day)
    if bucket is None:
        db.add(DailyStats(
            date=day,
            reviews_count=1,
            correct_count=correct,
            incorrect_count=1 - correct,
        ))
        return

    # SQL-side increments: emitted as "col = col + n" on flush
    bucket.reviews_count = DailyStats.reviews_count + 1
    bucket.correct_count = DailyStats.correct_count + correct
    bucket.incorrect_count = DailyStats.incorrect_count + (1 - correct)


# ---- Writes ----

def append(
    db: Session,
    card_id: int,
    stage_before: int,
    stage_after: int,
    is_correct: bool,
    incorrect_count: int,
    now: Optional[datetime] = None
) -> ReviewRecord:
    """
    Record one answered attempt.

    Args:
        db: Open session
        card_id: Reviewed card
        stage_before: Card stage when shown
        stage_after: Stage computed by the scheduler for this answer
        is_correct: Whether the answer was correct
        incorrect_count: Session-scoped misses of this card at this attempt
        now: Review time (defaults to now, UTC)

    Returns:
        The stored ReviewRecord
    """
    if now is None:
        now = utcnow()

    row = ReviewHistory(
        card_id=card_id,
        reviewed_at=to_iso(now),
        stage_before=int(Stage(stage_before)),
        stage_after=int(Stage(stage_after)),
        is_correct=bool(is_correct),
        incorrect_count=incorrect_count,
    )

    with atomic(db, "Append review"):
        db.add(row)
        _increment_bucket(db, day_key(now), is_correct)

    logger.debug(
        "Logged review of card %s: %s -> %s (correct=%s)",
        card_id, stage_before, stage_after, is_correct
    )
    return ReviewRecord.from_row(row)


def rebuild_daily_stats(db: Session) -> int:
    """
    Recompute every daily bucket from the review history.

    Recovery path for a damaged cache; normal operation only increments.

    Returns:
        Number of buckets written
    """
    totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])

    with atomic(db, "Rebuild daily stats"):
        for reviewed_at, is_correct in db.query(ReviewHistory.reviewed_at, ReviewHistory.is_correct):
            day = reviewed_at[:10]
            totals[day][0] += 1
            if is_correct:
                totals[day][1] += 1

        db.query(DailyStats).delete()
        for day, (reviews, correct) in totals.items():
            db.add(DailyStats(
                date=day,
                reviews_count=reviews,
                correct_count=correct,
                incorrect_count=reviews - correct,
            ))

    logger.info("Rebuilt %d daily stats buckets from review history", len(totals))
    return len(totals)


# ---- Reads ----

def query_by_card(db: Session, card_id: int) -> list[ReviewRecord]:
    """Review history of one card, newest first."""
    with reading(db, "Query card history"):
        rows = db.query(ReviewHistory).filter(
            ReviewHistory.card_id == card_id
        ).order_by(ReviewHistory.reviewed_at.desc(), ReviewHistory.id.desc()).all()
    return [ReviewRecord.from_row(r) for r in rows]


def query_recent(db: Session, limit: int = 100) -> list[ReviewRecord]:
    """Most recent reviews across the deck, newest first."""
    with reading(db, "Query recent reviews"):
        rows = db.query(ReviewHistory).order_by(
            ReviewHistory.reviewed_at.desc(), ReviewHistory.id.desc()
        ).limit(limit).all()
    return [ReviewRecord.from_row(r) for r in rows]


def query_all(db: Session, since: Optional[datetime] = None) -> list[ReviewRecord]:
    """Full review history (optionally from `since`), oldest first."""
    query = db.query(ReviewHistory)
    if since is not None:
        query = query.filter(ReviewHistory.reviewed_at >= to_iso(since))
    with reading(db, "Query review history"):
        rows = query.order_by(ReviewHistory.reviewed_at.asc(), ReviewHistory.id.asc()).all()
    return [ReviewRecord.from_row(r) for r in rows]


def query_learned_count(db: Session, start: datetime, end: datetime) -> int:
    """
    Count cards learned in [start, end).

    A card is learned at its first-ever correct answer that moved it out
    of the New stage; later such transitions (after a reset) don't count.
    """
    first_learned = db.query(
        ReviewHistory.card_id.label("card_id"),
        func.min(ReviewHistory.reviewed_at).label("first_at"),
    ).filter(
        ReviewHistory.stage_before == int(Stage.NEW),
        ReviewHistory.stage_after > int(Stage.NEW),
        ReviewHistory.is_correct.is_(True),
    ).group_by(ReviewHistory.card_id).subquery()

    with reading(db, "Count learned cards"):
        count = db.query(func.count()).select_from(first_learned).filter(
            first_learned.c.first_at >= to_iso(start),
            first_learned.c.first_at < to_iso(end),
        ).scalar()
    return count or 0


def summarize(db: Session, since: Optional[datetime] = None) -> tuple[int, int]:
    """
    Ledger totals.

    Returns:
        (reviews, correct) over all history, or from `since` onwards
    """
    query = db.query(
        func.count(ReviewHistory.id),
        func.sum(case((ReviewHistory.is_correct.is_(True), 1), else_=0)),
    )
    if since is not None:
        query = query.filter(ReviewHistory.reviewed_at >= to_iso(since))
    with reading(db, "Summarize reviews"):
        reviews, correct = query.one()
    return int(reviews or 0), int(correct or 0)


def get_bucket(db: Session, day: DayLike) -> Optional[DailyBucket]:
    """Daily bucket for a UTC day, or None if no review happened that day."""
    with reading(db, "Load daily bucket"):
        row = db.query(DailyStats).filter(DailyStats.date == _day_str(day)).first()
        return DailyBucket.from_row(row) if row is not None else None


def fetch_buckets(
    db: Session,
    start: Optional[DayLike] = None,
    end: Optional[DayLike] = None
) -> list[DailyBucket]:
    """Daily buckets between start and end (inclusive), oldest first."""
    query = db.query(DailyStats)
    if start is not None:
        query = query.filter(DailyStats.date >= _day_str(start))
    if end is not None:
        query = query.filter(DailyStats.date <= _day_str(end))
    with reading(db, "Fetch daily buckets"):
        return [DailyBucket.from_row(r) for r in query.order_by(DailyStats.date.asc()).all()]
