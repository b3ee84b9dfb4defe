"""
Service layer for deck statistics.

Every figure is computed on demand from the review ledger, the daily
stats cache and the card store. Nothing here writes.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import pandas as pd
from sqlalchemy.orm import Session

from kotoba.analytics.constants import DEFAULT_FORECAST_DAYS, SUCCESS_WINDOW_DAYS
from kotoba.analytics.metrics import (
    compute_best_streak,
    compute_current_streak,
    compute_due_counts,
    compute_forecast,
    compute_group_counts,
    compute_heatmap,
    compute_study_days,
    compute_success_rate,
)
from kotoba.analytics.queries import load_cards_df, load_daily_stats_df
from kotoba.analytics.types import DeckStats, StatsOverview, SuccessWindow
from kotoba.srs import ledger
from kotoba.srs.card_state import ensure_utc, utcnow
from kotoba.srs.constants import GROUP_NEW


def _now(now: Optional[datetime]) -> datetime:
    return utcnow() if now is None else ensure_utc(now)


def total_reviews(db: Session) -> int:
    reviews, _ = ledger.summarize(db)
    return reviews


def reviews_today(db: Session, now: Optional[datetime] = None) -> int:
    bucket = ledger.get_bucket(db, _now(now).date())
    return bucket.reviews_count if bucket is not None else 0


def study_days(db: Session) -> int:
    return compute_study_days(load_daily_stats_df(db))


def success_rate(
    db: Session,
    window: SuccessWindow = "all",
    now: Optional[datetime] = None
) -> float:
    """
    Percent correct over the ledger window ('all', '7d' or '30d').
    """
    if window not in SUCCESS_WINDOW_DAYS:
        raise ValueError(f"Unknown success-rate window: {window!r}")

    days = SUCCESS_WINDOW_DAYS[window]
    since = None if days is None else _now(now) - timedelta(days=days)
    reviews, correct = ledger.summarize(db, since=since)
    return compute_success_rate(reviews, correct)


def current_streak(db: Session, now: Optional[datetime] = None) -> int:
    return compute_current_streak(load_daily_stats_df(db), _now(now).date())


def best_streak(db: Session) -> int:
    return compute_best_streak(load_daily_stats_df(db))


def heatmap(db: Session, year: Optional[int] = None, now: Optional[datetime] = None) -> pd.Series:
    """
    Daily review counts for a calendar year (defaults to the current year).
    """
    if year is None:
        year = _now(now).year
    return compute_heatmap(load_daily_stats_df(db), year)


def forecast(
    db: Session,
    days: int = DEFAULT_FORECAST_DAYS,
    now: Optional[datetime] = None
) -> pd.Series:
    """
    Cards falling due on each of the next `days` days, today first.
    """
    return compute_forecast(load_cards_df(db), _now(now).date(), days)


def deck_stats(db: Session, now: Optional[datetime] = None) -> DeckStats:
    """
    Card totals, due counts and per-group counts over active cards.
    """
    cards_df = load_cards_df(db)
    total = int(len(cards_df))
    groups = compute_group_counts(cards_df)
    active = sum(groups.values())
    due_now, due_reviews = compute_due_counts(cards_df, _now(now))

    return DeckStats(
        total_cards=total,
        active_cards=active,
        burned_cards=total - active,
        due_now=due_now,
        due_reviews=due_reviews,
        new_cards=groups[GROUP_NEW],
        apprentice=groups["apprentice"],
        guru=groups["guru"],
        master=groups["master"],
        enlightened=groups["enlightened"],
    )


def learned_count(db: Session, start: datetime, end: datetime) -> int:
    """Cards that first left the New stage within [start, end)."""
    return ledger.query_learned_count(db, start, end)


def build_overview(db: Session, now: Optional[datetime] = None) -> StatsOverview:
    """
    Build all overview and performance figures for the stats page.
    """
    now = _now(now)
    daily_df = load_daily_stats_df(db)

    return StatsOverview(
        total_reviews=total_reviews(db),
        reviews_today=reviews_today(db, now),
        study_days=compute_study_days(daily_df),
        current_streak=compute_current_streak(daily_df, now.date()),
        best_streak=compute_best_streak(daily_df),
        success_rate_all_time=success_rate(db, "all", now),
        success_rate_7_days=success_rate(db, "7d", now),
        success_rate_30_days=success_rate(db, "30d", now),
    )
