"""
Seed the deck with demo cards and review history.

Creates cards spread over every stage (the first card of each
reviewable stage is due right away, two are burned) and roughly three
months of random past reviews, so the stats page has something to show.

Usage:
    # Seed the test database
    TEST_MODE=true python -m scripts.data.seed_demo_deck

    # Custom size / reproducible run
    python -m scripts.data.seed_demo_deck --cards-per-stage 5 --days 90 --seed 7

    # Empty the deck first
    python -m scripts.data.seed_demo_deck --reset
"""

from __future__ import annotations

import argparse
import logging
import random
from datetime import timedelta

from kotoba import srs
from kotoba.srs import ledger
from kotoba.srs.card_state import utcnow
from kotoba.srs.constants import Stage
from kotoba.srs.scheduler import next_stage

# Demo catalog references start high to stay clear of real entries
FIRST_DICTIONARY_ID = 900000


def seed_cards(db, cards_per_stage: int, now) -> list[srs.Card]:
    """Create demo cards for every stage up to Enlightened, plus two burned."""
    cards = []
    dictionary_id = FIRST_DICTIONARY_ID

    for stage in range(Stage.NEW, Stage.BURNED):
        for i in range(cards_per_stage):
            # The first card of each stage is made due now by backdating creation
            created = now - srs.get_interval(stage) if i == 0 else now
            cards.append(srs.create_card(db, dictionary_id, stage=stage, now=created))
            dictionary_id += 1

    for _ in range(2):
        cards.append(srs.create_card(db, dictionary_id, stage=Stage.BURNED, now=now))
        dictionary_id += 1

    return cards


def seed_history(db, cards: list[srs.Card], days: int, rng: random.Random, now) -> int:
    """Write random past reviews (about 80% correct) through the ledger."""
    written = 0
    for offset in range(days, 0, -1):
        # Skip some days so streaks have gaps
        if rng.random() < 0.2:
            continue
        day = now - timedelta(days=offset)
        for _ in range(rng.randint(3, 25)):
            card = rng.choice(cards)
            stage = Stage(rng.randint(Stage.APPRENTICE_1, Stage.ENLIGHTENED))
            is_correct = rng.random() < 0.8
            misses = 0 if is_correct else 1
            reviewed_at = day.replace(hour=rng.randint(6, 22), minute=rng.randint(0, 59))
            ledger.append(
                db,
                card_id=card.id,
                stage_before=stage,
                stage_after=next_stage(stage, is_correct, misses),
                is_correct=is_correct,
                incorrect_count=misses,
                now=reviewed_at,
            )
            written += 1
    return written


def main():
    parser = argparse.ArgumentParser(description="Seed the deck with demo data")
    parser.add_argument("--cards-per-stage", type=int, default=3)
    parser.add_argument("--days", type=int, default=90, help="Days of review history")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--reset", action="store_true", help="Empty the deck first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    rng = random.Random(args.seed)
    now = utcnow()

    srs.init_db()
    with srs.session_scope() as db:
        if args.reset:
            srs.reset_deck(db)

        try:
            cards = seed_cards(db, args.cards_per_stage, now)
        except srs.AlreadyExistsError as exc:
            print(f"✗ {exc}")
            print("Demo cards already exist; run with --reset to start over")
            return

        print(f"✓ Created {len(cards)} cards")
        reviews = seed_history(db, cards, args.days, rng, now)
        print(f"✓ Logged {reviews} reviews over {args.days} days")
        print(f"\nCards due now: {srs.count_due(db, now)}")


if __name__ == "__main__":
    main()
