"""
Deck - Card Store

Persistence boundary for deck cards: create, delete, fetch and the
post-review mutation. This module handles ONLY database I/O; stage and
due-date arithmetic comes from the scheduler module.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kotoba.srs.card_state import Card, to_iso, utcnow
from kotoba.srs.constants import Stage
from kotoba.srs.database import atomic, reading
from kotoba.srs.exceptions import AlreadyExistsError, InvalidStateError, NotFoundError
from kotoba.srs.models import DailyStats, DeckCard as DeckCardModel, ReviewHistory
from kotoba.srs.scheduler import next_due_date

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("example_sentence", "translated_sentence", "image_path")


def _get_row(db: Session, card_id: int) -> DeckCardModel:
    row = db.get(DeckCardModel, card_id)
    if row is None:
        raise NotFoundError(f"Card {card_id} not found")
    return row


def _check_due_invariant(stage: Stage, due_date: Optional[datetime]) -> None:
    if (stage == Stage.BURNED) != (due_date is None):
        raise InvalidStateError(
            f"Stage {int(stage)} with due date {due_date!r}: "
            "due date must be empty exactly when the card is burned"
        )


# ---- Create / delete ----

def create_card(
    db: Session,
    dictionary_id: int,
    *,
    stage: int = Stage.APPRENTICE_1,
    example_sentence: Optional[str] = None,
    translated_sentence: Optional[str] = None,
    image_path: Optional[str] = None,
    now: Optional[datetime] = None
) -> Card:
    """
    Add a catalog entry to the deck.

    Args:
        db: Open session
        dictionary_id: Catalog reference (must not already be in the deck)
        stage: Starting stage (Apprentice 1 unless importing)
        example_sentence, translated_sentence, image_path: Optional content
        now: Creation time (defaults to now, UTC)

    Returns:
        The created Card

    Raises:
        AlreadyExistsError: dictionary_id already has a card
    """
    if now is None:
        now = utcnow()
    stage = Stage(stage)

    row = DeckCardModel(
        dictionary_id=dictionary_id,
        added_at=to_iso(now),
        due_date=to_iso(next_due_date(stage, now)),
        stage=int(stage),
        current_incorrect_count=0,
        example_sentence=example_sentence,
        translated_sentence=translated_sentence,
        image_path=image_path,
    )

    with atomic(db, "Create card"):
        existing = db.query(DeckCardModel.id).filter(
            DeckCardModel.dictionary_id == dictionary_id
        ).first()
        if existing is not None:
            raise AlreadyExistsError(f"Dictionary entry {dictionary_id} is already in the deck")

        db.add(row)
        try:
            db.flush()
        except IntegrityError as exc:
            raise AlreadyExistsError(
                f"Dictionary entry {dictionary_id} is already in the deck"
            ) from exc

    logger.debug("Added card %s for dictionary entry %s at stage %s", row.id, dictionary_id, int(stage))
    return Card.from_row(row)


def delete_card(db: Session, card_id: int) -> None:
    """Remove a card from the deck. Its review history is kept."""
    with atomic(db, "Delete card"):
        db.delete(_get_row(db, card_id))


def delete_by_dictionary_id(db: Session, dictionary_id: int) -> bool:
    """Remove the card for a catalog entry. Returns False if there was none."""
    with atomic(db, "Delete card"):
        deleted = db.query(DeckCardModel).filter(
            DeckCardModel.dictionary_id == dictionary_id
        ).delete()
    return deleted > 0


def reset_deck(db: Session) -> None:
    """
    DANGEROUS: Remove every card, every review and every daily bucket.
    """
    with atomic(db, "Reset deck"):
        db.query(ReviewHistory).delete()
        db.query(DailyStats).delete()
        db.query(DeckCardModel).delete()
    logger.info("Deck reset: all cards and review history removed")


# ---- Reads ----

def get_card(db: Session, card_id: int) -> Card:
    """Load one card. Raises NotFoundError if missing."""
    with reading(db, "Load card"):
        return Card.from_row(_get_row(db, card_id))


def card_exists(db: Session, card_id: int) -> bool:
    """True when the card is still in the deck."""
    with reading(db, "Check card"):
        return db.query(DeckCardModel.id).filter(DeckCardModel.id == card_id).first() is not None


def find_by_dictionary_id(db: Session, dictionary_id: int) -> Optional[Card]:
    """Card for a catalog entry, or None if it is not in the deck."""
    with reading(db, "Find card"):
        row = db.query(DeckCardModel).filter(
            DeckCardModel.dictionary_id == dictionary_id
        ).first()
    return Card.from_row(row) if row is not None else None


def fetch_all(db: Session) -> list[Card]:
    """Every card in the deck, newest first."""
    with reading(db, "Fetch cards"):
        rows = db.query(DeckCardModel).order_by(
            DeckCardModel.added_at.desc(), DeckCardModel.id.desc()
        ).all()
    return [Card.from_row(r) for r in rows]


def fetch_active(db: Session) -> list[Card]:
    """Cards that are not burned, newest first."""
    with reading(db, "Fetch active cards"):
        rows = db.query(DeckCardModel).filter(
            DeckCardModel.stage < int(Stage.BURNED)
        ).order_by(DeckCardModel.added_at.desc(), DeckCardModel.id.desc()).all()
    return [Card.from_row(r) for r in rows]


def _due_query(db: Session, now: datetime):
    return db.query(DeckCardModel).filter(
        DeckCardModel.stage < int(Stage.BURNED),
        DeckCardModel.due_date.isnot(None),
        DeckCardModel.due_date <= to_iso(now),
    )


def fetch_due(db: Session, now: Optional[datetime] = None) -> list[Card]:
    """
    Cards due for review at `now` (not burned, due date passed).

    Returns:
        Cards sorted by due date (most overdue first)
    """
    if now is None:
        now = utcnow()
    with reading(db, "Fetch due cards"):
        rows = _due_query(db, now).order_by(DeckCardModel.due_date.asc(), DeckCardModel.id.asc()).all()
    return [Card.from_row(r) for r in rows]


def count_due(db: Session, now: Optional[datetime] = None) -> int:
    """Number of cards due at `now`."""
    if now is None:
        now = utcnow()
    with reading(db, "Count due cards"):
        return _due_query(db, now).count()


def fetch_new(db: Session) -> list[Card]:
    """Stage-0 cards, oldest added first."""
    with reading(db, "Fetch new cards"):
        rows = db.query(DeckCardModel).filter(
            DeckCardModel.stage == int(Stage.NEW)
        ).order_by(DeckCardModel.added_at.asc(), DeckCardModel.id.asc()).all()
    return [Card.from_row(r) for r in rows]


def fetch_burned(db: Session) -> list[Card]:
    """Burned cards, newest first."""
    with reading(db, "Fetch burned cards"):
        rows = db.query(DeckCardModel).filter(
            DeckCardModel.stage == int(Stage.BURNED)
        ).order_by(DeckCardModel.added_at.desc(), DeckCardModel.id.desc()).all()
    return [Card.from_row(r) for r in rows]


# ---- Mutations ----

def apply_review_outcome(
    db: Session,
    card_id: int,
    new_stage: int,
    new_due_date: Optional[datetime]
) -> Card:
    """
    Persist the scheduling outcome of a review.

    This is the only path that changes stage/due date after creation
    (besides resurrect). The durable incorrect counter is reset.

    Raises:
        NotFoundError: card does not exist
        InvalidStateError: due date does not match the burned/not-burned stage
    """
    new_stage = Stage(new_stage)
    _check_due_invariant(new_stage, new_due_date)

    with atomic(db, "Apply review outcome"):
        row = _get_row(db, card_id)
        row.stage = int(new_stage)
        row.due_date = to_iso(new_due_date)
        row.current_incorrect_count = 0

    return Card.from_row(row)


def resurrect(db: Session, card_id: int, now: Optional[datetime] = None) -> Card:
    """
    Bring a burned card back to Apprentice 1 with a fresh due date.

    Raises:
        NotFoundError: card does not exist
        InvalidStateError: card is not burned
    """
    if now is None:
        now = utcnow()

    with atomic(db, "Resurrect card"):
        row = _get_row(db, card_id)
        if row.stage != int(Stage.BURNED):
            raise InvalidStateError(f"Card {card_id} is not burned (stage {row.stage})")
        row.stage = int(Stage.APPRENTICE_1)
        row.due_date = to_iso(next_due_date(Stage.APPRENTICE_1, now))
        row.current_incorrect_count = 0

    logger.info("Resurrected card %s", card_id)
    return Card.from_row(row)


def update_card_content(db: Session, card_id: int, **fields) -> Card:
    """
    Edit a card's enrichment content.

    Only example_sentence, translated_sentence and image_path may be
    passed; a None value clears the field, an omitted field is kept.
    """
    unknown = set(fields) - set(CONTENT_FIELDS)
    if unknown:
        raise ValueError(f"Not editable card fields: {sorted(unknown)}")

    with atomic(db, "Update card content"):
        row = _get_row(db, card_id)
        for name, value in fields.items():
            setattr(row, name, value)

    return Card.from_row(row)
