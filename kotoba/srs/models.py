"""
SQLAlchemy ORM Models for the Deck Database

Defines the deck card table, the append-only review history and the
daily stats cache.
"""

from sqlalchemy import Boolean, Column, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DeckCard(Base):
    """
    Durable learner progress for one catalog entry.

    due_date is NULL exactly when stage == 9 (burned).
    """
    __tablename__ = 'deck_cards'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign reference into the vocabulary catalog (one card per entry)
    dictionary_id = Column(Integer, nullable=False, unique=True)

    added_at = Column(String(40), nullable=False)  # ISO-8601 UTC, immutable
    due_date = Column(String(40), nullable=True)   # ISO-8601 UTC, NULL when burned
    stage = Column(Integer, nullable=False, default=1)
    current_incorrect_count = Column(Integer, nullable=False, default=0)

    # Card-specific content, carried through unchanged
    example_sentence = Column(Text, nullable=True)
    translated_sentence = Column(Text, nullable=True)
    image_path = Column(String(1024), nullable=True)

    __table_args__ = (
        Index('idx_deck_cards_due_date', 'due_date'),
        Index('idx_deck_cards_stage', 'stage'),
    )

    def __repr__(self):
        return f"<DeckCard(id={self.id}, dictionary_id={self.dictionary_id}, stage={self.stage})>"


class ReviewHistory(Base):
    """
    Log entry for a single answered attempt (append-only).

    card_id is a plain reference: history rows outlive card deletion so
    past statistics stay intact.
    """
    __tablename__ = 'review_history'

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_id = Column(Integer, nullable=False)
    reviewed_at = Column(String(40), nullable=False)
    stage_before = Column(Integer, nullable=False)
    stage_after = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    incorrect_count = Column(Integer, nullable=True)  # Session-scoped misses at this attempt

    __table_args__ = (
        Index('idx_review_history_reviewed_at', 'reviewed_at'),
        Index('idx_review_history_card_id', 'card_id'),
    )

    def __repr__(self):
        return (
            f"<ReviewHistory(id={self.id}, card={self.card_id}, "
            f"{self.stage_before}->{self.stage_after}, correct={self.is_correct})>"
        )


class DailyStats(Base):
    """Per-day review totals, incremented alongside each history insert."""
    __tablename__ = 'daily_stats'

    date = Column(String(10), primary_key=True)  # YYYY-MM-DD (UTC)
    reviews_count = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DailyStats({self.date}, reviews={self.reviews_count})>"
