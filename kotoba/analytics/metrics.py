"""
Metric computations for deck statistics.

Pure functions over the dataframes built in queries.py (no I/O).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pandas as pd

from kotoba.srs.constants import ACTIVE_REVIEW_GROUPS, GROUP_NEW, Stage, get_group


def compute_success_rate(reviews: int, correct: int) -> float:
    """
    Percentage of correct answers, one decimal. 0 when there are no reviews.
    """
    if reviews <= 0:
        return 0.0
    return round(100.0 * correct / reviews, 1)


def review_days(daily_df: pd.DataFrame) -> pd.Series:
    """
    Sorted unique calendar days that had at least one review.
    """
    if daily_df.empty:
        return pd.Series(dtype="datetime64[ns]")
    active = daily_df.loc[daily_df["reviews_count"] > 0, "date"]
    return active.drop_duplicates().sort_values().reset_index(drop=True)


def compute_study_days(daily_df: pd.DataFrame) -> int:
    """Number of days with reviews."""
    return int(len(review_days(daily_df)))


def compute_current_streak(daily_df: pd.DataFrame, today: date) -> int:
    """
    Consecutive review days ending today.

    Walks backward from today and stops at the first day without reviews,
    so a day off today means a streak of 0.
    """
    days = {ts.date() for ts in review_days(daily_df)}
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_best_streak(daily_df: pd.DataFrame) -> int:
    """
    Longest run of consecutive review days anywhere in history.
    """
    days = review_days(daily_df)
    if days.empty:
        return 0
    # A new run starts wherever the gap to the previous day is not exactly one day
    run_ids = (days.diff() != pd.Timedelta(days=1)).cumsum()
    return int(run_ids.value_counts().max())


def compute_heatmap(daily_df: pd.DataFrame, year: int) -> pd.Series:
    """
    Review count for every day of a calendar year (missing days are 0).
    """
    day_index = pd.date_range(start=f"{year}-01-01", end=f"{year}-12-31", freq="D", name="date")
    if daily_df.empty:
        return pd.Series(0, index=day_index, dtype="int64", name="reviews_count")

    counts = daily_df.set_index("date")["reviews_count"]
    return counts.reindex(day_index, fill_value=0).astype("int64").rename("reviews_count")


def compute_forecast(cards_df: pd.DataFrame, today: date, days: int) -> pd.Series:
    """
    Number of non-burned cards falling due on each of the next `days` days.

    Offset 0 is today. Cards overdue from earlier days are not counted.
    """
    day_index = pd.date_range(start=pd.Timestamp(today), periods=max(days, 0), freq="D", name="date")
    if cards_df.empty or len(day_index) == 0:
        return pd.Series(0, index=day_index, dtype="int64", name="due_count")

    active = cards_df[(cards_df["stage"] < int(Stage.BURNED)) & cards_df["due_date"].notna()]
    due_days = active["due_date"].dt.tz_convert("UTC").dt.tz_localize(None).dt.normalize().astype("datetime64[ns]")
    counts = due_days.value_counts()
    return counts.reindex(day_index, fill_value=0).astype("int64").rename("due_count")


def compute_group_counts(cards_df: pd.DataFrame) -> dict[str, int]:
    """
    Active cards per stage group ('new' plus the review groups).
    """
    groups = [GROUP_NEW] + ACTIVE_REVIEW_GROUPS
    if cards_df.empty:
        return {g: 0 for g in groups}

    active = cards_df[cards_df["stage"] < int(Stage.BURNED)]
    counts = active["stage"].map(get_group).value_counts()
    return {g: int(counts.get(g, 0)) for g in groups}


def compute_due_counts(cards_df: pd.DataFrame, now: datetime) -> tuple[int, int]:
    """
    Cards due at `now`.

    Returns:
        (all due cards, due cards excluding stage 0)
    """
    if cards_df.empty:
        return 0, 0

    due = cards_df[
        (cards_df["stage"] < int(Stage.BURNED))
        & cards_df["due_date"].notna()
        & (cards_df["due_date"] <= pd.Timestamp(now))
    ]
    due_reviews = due[due["stage"] > int(Stage.NEW)]
    return int(len(due)), int(len(due_reviews))
