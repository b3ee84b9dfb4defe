"""
SRS - Stage-based Spaced Repetition for the vocabulary deck

Main API for the deck engine:
- Fixed 10-stage schedule (New, Apprentice 1-4, Guru 1-2, Master, Enlightened, Burned)
- Pure stage transitions and due dates
- Card store and append-only review ledger with a daily stats cache

Quick start:
    from kotoba import srs

    srs.init_db()

    with srs.session_scope() as db:
        card = srs.create_card(db, dictionary_id=1042)
        due = srs.fetch_due(db)
"""

# Scheduling (algorithm only, no DB calls)
from kotoba.srs.scheduler import is_due, next_due_date, next_stage

# Database setup
from kotoba.srs.database import (
    get_database_url,
    get_engine,
    get_session,
    init_db,
    is_test_mode,
    reset_db,
    session_scope,
)

# Card store
from kotoba.srs.deck import (
    apply_review_outcome,
    card_exists,
    count_due,
    create_card,
    delete_by_dictionary_id,
    delete_card,
    fetch_active,
    fetch_all,
    fetch_burned,
    fetch_due,
    fetch_new,
    find_by_dictionary_id,
    get_card,
    reset_deck,
    resurrect,
    update_card_content,
)

# Stage table
from kotoba.srs.constants import (
    STAGE_GROUPS,
    STAGE_INTERVALS,
    STAGE_NAMES,
    Stage,
    get_group,
    get_interval,
    get_stage_name,
)

# Domain values and errors
from kotoba.srs.card_state import Card, DailyBucket, ReviewRecord
from kotoba.srs.exceptions import (
    AlreadyExistsError,
    DeckError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
)


__all__ = [
    # Scheduling
    "next_stage",
    "next_due_date",
    "is_due",

    # Database
    "get_database_url",
    "get_engine",
    "get_session",
    "init_db",
    "is_test_mode",
    "reset_db",
    "session_scope",

    # Card store
    "apply_review_outcome",
    "card_exists",
    "count_due",
    "create_card",
    "delete_by_dictionary_id",
    "delete_card",
    "fetch_active",
    "fetch_all",
    "fetch_burned",
    "fetch_due",
    "fetch_new",
    "find_by_dictionary_id",
    "get_card",
    "reset_deck",
    "resurrect",
    "update_card_content",

    # Stage table
    "Stage",
    "STAGE_GROUPS",
    "STAGE_INTERVALS",
    "STAGE_NAMES",
    "get_group",
    "get_interval",
    "get_stage_name",

    # Values
    "Card",
    "DailyBucket",
    "ReviewRecord",

    # Errors
    "DeckError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidStateError",
    "PersistenceError",
]
