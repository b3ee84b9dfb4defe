"""
Reset the deck database.

DANGEROUS: This deletes every card and all review history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.maintenance.reset_deck_db

    # Drop and recreate the tables instead of emptying them
    python -m scripts.maintenance.reset_deck_db --drop-tables

    # Skip the confirmation prompt
    python -m scripts.maintenance.reset_deck_db --yes
"""

from __future__ import annotations

import argparse
import logging

from kotoba import srs


def main():
    parser = argparse.ArgumentParser(description="Reset the deck database")
    parser.add_argument("--drop-tables", action="store_true",
                        help="Drop and recreate all tables (schema changes)")
    parser.add_argument("--yes", action="store_true",
                        help="Do not ask for confirmation")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("WARNING: Reset Deck Database")
    print("=" * 60)
    print()
    print(f"Database: {srs.get_database_url()}")
    print()
    print("This will DELETE:")
    print("  - All deck cards (stages and due dates)")
    print("  - All review history")
    print("  - All daily stats buckets")
    print()

    if not args.yes:
        response = input("Are you sure you want to reset? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return

    print("\nResetting database...")
    if args.drop_tables:
        srs.reset_db()
    else:
        srs.init_db()
        with srs.session_scope() as db:
            srs.reset_deck(db)
    print("✓ Database reset complete!")
    print("\nThe deck is now empty.")


if __name__ == "__main__":
    main()
