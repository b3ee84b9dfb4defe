"""
Review session lifecycle.

State machine:
    (no session) -> AWAITING_REVEAL -> AWAITING_ANSWER -> AWAITING_REVEAL | COMPLETE

Persistence rule per answer:
1. Always append a ledger record (one transaction)
2. Only on a correct answer, persist the new stage/due date (second transaction)

A miss is re-queued and shown again later in the same session; the card
keeps its stored stage until it is eventually answered correctly.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
import logging
import random
from typing import Optional

from sqlalchemy.orm import Session

from kotoba.session.types import AnswerOutcome, ReviewSession, SessionItem, SessionResults
from kotoba.srs import deck, ledger
from kotoba.srs.card_state import utcnow
from kotoba.srs.constants import Stage
from kotoba.srs.exceptions import InvalidStateError, NotFoundError
from kotoba.srs.scheduler import next_due_date, next_stage

logger = logging.getLogger(__name__)


def start_session(
    db: Session,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None
) -> Optional[ReviewSession]:
    """
    Start a review session over every card due at `now`.

    Args:
        db: Open session
        now: Snapshot time (defaults to now, UTC)
        rng: Random source for the shuffle (defaults to the module RNG)

    Returns:
        The new ReviewSession, or None when nothing is due
    """
    if now is None:
        now = utcnow()

    due_cards = deck.fetch_due(db, now)
    if not due_cards:
        logger.info("No cards due at %s; session not started", now.isoformat())
        return None

    (rng or random).shuffle(due_cards)
    items = deque(SessionItem(card) for card in due_cards)
    current = items.popleft()

    session = ReviewSession(
        current=current,
        queue=items,
        total_cards=len(due_cards),
        started_at=now,
    )
    logger.info("Started review session %s with %d cards", session.session_id, session.total_cards)
    return session


def reveal(session: ReviewSession) -> ReviewSession:
    """
    Show the answer face of the current card. Calling it twice is a no-op.
    """
    if session.is_complete:
        raise InvalidStateError("Session is complete; nothing to reveal")
    session.is_revealed = True
    return session


def _advance(session: ReviewSession) -> None:
    session.current = session.queue.popleft() if session.queue else None
    session.is_revealed = False


def submit_answer(
    db: Session,
    session: ReviewSession,
    is_correct: bool,
    now: Optional[datetime] = None
) -> AnswerOutcome:
    """
    Score the current card and move to the next one.

    Args:
        db: Open session
        session: Active review session (modified in place)
        is_correct: Self-graded result
        now: Answer time (defaults to now, UTC)

    Returns:
        AnswerOutcome with the ledger record and, for correct answers,
        the updated card

    Raises:
        InvalidStateError: session complete or answer not revealed yet
        PersistenceError: store failure; the session does not advance. If
            only the card update failed, the ledger record stays written
        NotFoundError: card was removed from the deck mid-session; nothing
            is written and the session moves on to the next card
    """
    if session.is_complete:
        raise InvalidStateError("Session is complete; no card to answer")
    if not session.is_revealed:
        raise InvalidStateError("Reveal the card before submitting an answer")
    if now is None:
        now = utcnow()

    card = session.current.card

    # A card removed from the deck mid-session is dropped before anything is written
    if not deck.card_exists(db, card.id):
        session.incorrect_counts.pop(card.id, None)
        _advance(session)
        logger.info("Session %s: card %s no longer in the deck; skipped", session.session_id, card.id)
        raise NotFoundError(f"Card {card.id} was removed from the deck")

    misses = session.incorrect_count_for(card.id)
    if not is_correct:
        misses += 1

    new_stage = next_stage(card.stage, is_correct, misses)

    record = ledger.append(
        db,
        card_id=card.id,
        stage_before=card.stage,
        stage_after=new_stage,
        is_correct=is_correct,
        incorrect_count=misses,
        now=now,
    )

    updated_card = None
    if is_correct:
        updated_card = deck.apply_review_outcome(
            db, card.id, new_stage, next_due_date(new_stage, now)
        )
        session.results.correct += 1
        if new_stage == Stage.BURNED:
            session.results.burned += 1
    else:
        session.incorrect_counts[card.id] = misses
        session.queue.append(SessionItem(card, incorrect_count=misses))
        session.results.incorrect += 1

    logger.debug(
        "Session %s: card %s %s (%s -> %s)",
        session.session_id, card.id, "correct" if is_correct else "incorrect",
        int(card.stage), int(new_stage)
    )

    _advance(session)
    if session.is_complete:
        logger.info(
            "Completed review session %s: %d correct, %d incorrect, %d burned",
            session.session_id, session.results.correct,
            session.results.incorrect, session.results.burned
        )

    return AnswerOutcome(
        record=record,
        new_stage=new_stage,
        updated_card=updated_card,
        session=session,
    )


def end_session(session: ReviewSession) -> SessionResults:
    """
    End (or cancel) a session. Answers already submitted stay persisted;
    nothing else is written.
    """
    if not session.is_complete:
        logger.info(
            "Review session %s ended early with %d cards remaining",
            session.session_id, session.remaining
        )
    session.current = None
    session.queue.clear()
    session.is_revealed = False
    return session.results


class SessionSlot:
    """
    Caller-owned holder for at most one active review session.

    Starting a session while one is active is rejected unless replace=True,
    in which case the old session is discarded explicitly.
    """

    def __init__(self):
        self._session: Optional[ReviewSession] = None

    @property
    def session(self) -> Optional[ReviewSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def _require(self) -> ReviewSession:
        if self._session is None:
            raise NotFoundError("No active review session")
        return self._session

    def start(
        self,
        db: Session,
        now: Optional[datetime] = None,
        rng: Optional[random.Random] = None,
        replace: bool = False
    ) -> Optional[ReviewSession]:
        """Start a session in this slot. Returns None when nothing is due."""
        if self._session is not None:
            if not replace:
                raise InvalidStateError("A review session is already active")
            logger.info("Discarding active review session %s", self._session.session_id)
            end_session(self._session)
            self._session = None

        self._session = start_session(db, now=now, rng=rng)
        return self._session

    def reveal(self) -> ReviewSession:
        return reveal(self._require())

    def submit_answer(
        self,
        db: Session,
        is_correct: bool,
        now: Optional[datetime] = None
    ) -> AnswerOutcome:
        session = self._require()
        try:
            outcome = submit_answer(db, session, is_correct, now=now)
        finally:
            if session.is_complete:
                self._session = None
        return outcome

    def end(self) -> SessionResults:
        results = end_session(self._require())
        self._session = None
        return results
