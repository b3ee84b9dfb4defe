"""Review session orchestration."""

from kotoba.session.controller import (
    SessionSlot,
    end_session,
    reveal,
    start_session,
    submit_answer,
)
from kotoba.session.types import (
    AnswerOutcome,
    ReviewSession,
    SessionItem,
    SessionPhase,
    SessionResults,
)

__all__ = [
    "SessionSlot",
    "start_session",
    "reveal",
    "submit_answer",
    "end_session",
    "AnswerOutcome",
    "ReviewSession",
    "SessionItem",
    "SessionPhase",
    "SessionResults",
]
