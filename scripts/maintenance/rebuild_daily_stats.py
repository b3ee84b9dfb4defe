"""
Rebuild the daily_stats cache from review history.

Use after restoring a backup or editing review_history by hand. The
buckets are recomputed from scratch; review history itself is untouched.

Usage:
    python -m scripts.maintenance.rebuild_daily_stats

    # Only report mismatches, don't write
    python -m scripts.maintenance.rebuild_daily_stats --check
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter

from kotoba import srs
from kotoba.srs import ledger


def find_mismatches(db) -> list[tuple[str, int, int]]:
    """
    Compare cached bucket totals with the review history.

    Returns:
        (day, cached reviews, logged reviews) for every day that differs
    """
    logged = Counter(r.reviewed_at.date().isoformat() for r in ledger.query_all(db))
    cached = {b.date: b.reviews_count for b in ledger.fetch_buckets(db)}

    mismatches = []
    for day in sorted(set(logged) | set(cached)):
        if cached.get(day, 0) != logged.get(day, 0):
            mismatches.append((day, cached.get(day, 0), logged.get(day, 0)))
    return mismatches


def main():
    parser = argparse.ArgumentParser(description="Rebuild daily stats from review history")
    parser.add_argument("--check", action="store_true",
                        help="Report mismatched days without rebuilding")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    srs.init_db()
    with srs.session_scope() as db:
        mismatches = find_mismatches(db)

        if mismatches:
            print(f"Found {len(mismatches)} mismatched days:")
            for day, cached, logged in mismatches:
                print(f"  {day}: cached={cached}, logged={logged}")
        else:
            print("✓ Daily stats match review history")

        if args.check:
            return

        written = ledger.rebuild_daily_stats(db)
        print(f"\n✓ Rebuilt {written} daily buckets")


if __name__ == "__main__":
    main()
