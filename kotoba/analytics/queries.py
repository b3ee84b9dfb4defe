"""
Data-loading helpers for deck statistics.
"""

from __future__ import annotations

import pandas as pd
from sqlalchemy.orm import Session

from kotoba.analytics.constants import CARD_COLUMNS, DAILY_STATS_COLUMNS
from kotoba.srs import deck, ledger


def load_daily_stats_df(db: Session) -> pd.DataFrame:
    """
    Load the daily stats buckets into a dataframe sorted by day.

    The date column holds naive midnight timestamps (UTC calendar days).
    """
    buckets = ledger.fetch_buckets(db)
    if not buckets:
        return pd.DataFrame(columns=DAILY_STATS_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "date": b.date,
                "reviews_count": b.reviews_count,
                "correct_count": b.correct_count,
                "incorrect_count": b.incorrect_count,
            }
            for b in buckets
        ]
    )
    df["date"] = pd.to_datetime(df["date"], format="%Y-%m-%d").astype("datetime64[ns]")
    return df.sort_values("date").reset_index(drop=True)


def load_cards_df(db: Session) -> pd.DataFrame:
    """
    Load every deck card's stage and due date.

    due_date is tz-aware UTC, NaT for burned cards.
    """
    cards = deck.fetch_all(db)
    if not cards:
        return pd.DataFrame(columns=CARD_COLUMNS)

    df = pd.DataFrame(
        [{"card_id": c.id, "stage": int(c.stage), "due_date": c.due_date} for c in cards]
    )
    df["due_date"] = pd.to_datetime(df["due_date"], utc=True)
    return df
