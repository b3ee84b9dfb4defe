"""
Analytics package exports.
"""

from kotoba.analytics.service import (
    best_streak,
    build_overview,
    current_streak,
    deck_stats,
    forecast,
    heatmap,
    learned_count,
    reviews_today,
    study_days,
    success_rate,
    total_reviews,
)
from kotoba.analytics.types import DeckStats, StatsOverview, SuccessWindow

__all__ = [
    "best_streak",
    "build_overview",
    "current_streak",
    "deck_stats",
    "forecast",
    "heatmap",
    "learned_count",
    "reviews_today",
    "study_days",
    "success_rate",
    "total_reviews",
    "DeckStats",
    "StatsOverview",
    "SuccessWindow",
]
