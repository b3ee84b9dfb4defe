"""
Tests for the review ledger and the daily stats cache.
"""
from datetime import date, timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from kotoba.srs import ledger
from kotoba.srs.constants import Stage
from kotoba.srs.exceptions import PersistenceError
from kotoba.srs.models import DailyStats, ReviewHistory
from tests.conftest import NOW


def _log(db, card_id=1, correct=True, when=NOW, before=1, after=None, misses=0):
    if after is None:
        after = before + 1 if correct else before
    return ledger.append(db, card_id, before, after, correct, misses, now=when)


class TestAppend:

    def test_record_fields(self, db):
        record = _log(db, card_id=3, correct=False, before=4, after=3, misses=1)

        assert record.id is not None
        assert record.card_id == 3
        assert record.reviewed_at == NOW
        assert record.stage_before == Stage.APPRENTICE_4
        assert record.stage_after == Stage.APPRENTICE_3
        assert record.is_correct is False
        assert record.incorrect_count == 1

    def test_bucket_matches_appends(self, db):
        for correct in (True, True, False, True, False):
            _log(db, correct=correct)

        bucket = ledger.get_bucket(db, NOW.date())
        assert bucket.reviews_count == 5
        assert bucket.correct_count == 3
        assert bucket.incorrect_count == 2

    def test_buckets_split_by_utc_day(self, db):
        _log(db, when=NOW.replace(hour=23, minute=59))
        _log(db, when=NOW.replace(hour=23, minute=59) + timedelta(minutes=2))

        assert ledger.get_bucket(db, "2026-10-18").reviews_count == 1
        assert ledger.get_bucket(db, date(2026, 10, 19)).reviews_count == 1

    def test_no_bucket_for_quiet_day(self, db):
        _log(db)
        assert ledger.get_bucket(db, NOW.date() - timedelta(days=1)) is None


class TestQueries:

    def test_query_by_card_newest_first(self, db):
        first = _log(db, card_id=1, when=NOW)
        second = _log(db, card_id=1, when=NOW + timedelta(hours=4))
        _log(db, card_id=2)

        assert [r.id for r in ledger.query_by_card(db, 1)] == [second.id, first.id]

    def test_query_recent_limit(self, db):
        for i in range(5):
            _log(db, card_id=i, when=NOW + timedelta(minutes=i))

        recent = ledger.query_recent(db, limit=3)
        assert [r.card_id for r in recent] == [4, 3, 2]

    def test_query_all_since(self, db):
        _log(db, when=NOW - timedelta(days=10))
        recent = _log(db, when=NOW)

        assert [r.id for r in ledger.query_all(db, since=NOW - timedelta(days=1))] == [recent.id]
        assert len(ledger.query_all(db)) == 2

    def test_summarize(self, db):
        _log(db, correct=True, when=NOW - timedelta(days=10))
        _log(db, correct=False, when=NOW - timedelta(days=10))
        _log(db, correct=True, when=NOW)

        assert ledger.summarize(db) == (3, 2)
        assert ledger.summarize(db, since=NOW - timedelta(days=7)) == (1, 1)

    def test_summarize_empty(self, db):
        assert ledger.summarize(db) == (0, 0)

    def test_fetch_buckets_range_inclusive(self, db):
        for offset in range(5):
            _log(db, when=NOW - timedelta(days=offset))

        buckets = ledger.fetch_buckets(db, start="2026-10-15", end=date(2026, 10, 17))
        assert [b.date for b in buckets] == ["2026-10-15", "2026-10-16", "2026-10-17"]


class TestLearnedCount:

    def test_counts_first_transition_out_of_new(self, db):
        start = NOW - timedelta(days=1)
        end = NOW + timedelta(days=1)

        _log(db, card_id=1, before=0, after=1, when=NOW)
        _log(db, card_id=2, before=0, after=1, when=NOW)
        # A miss on a new card is not learning it
        _log(db, card_id=3, correct=False, before=0, after=1, misses=1, when=NOW)
        # Ordinary review
        _log(db, card_id=4, before=2, after=3, when=NOW)

        assert ledger.query_learned_count(db, start, end) == 2

    def test_later_relearning_not_counted(self, db):
        first = NOW - timedelta(days=30)
        _log(db, card_id=1, before=0, after=1, when=first)
        _log(db, card_id=1, before=0, after=1, when=NOW)

        assert ledger.query_learned_count(db, NOW - timedelta(days=1), NOW + timedelta(days=1)) == 0
        assert ledger.query_learned_count(db, first, first + timedelta(seconds=1)) == 1

    def test_end_is_exclusive(self, db):
        _log(db, card_id=1, before=0, after=1, when=NOW)
        assert ledger.query_learned_count(db, NOW - timedelta(hours=1), NOW) == 0
        assert ledger.query_learned_count(db, NOW, NOW + timedelta(hours=1)) == 1


class TestRebuild:

    def test_rebuild_repairs_damaged_cache(self, db):
        for offset, correct in [(0, True), (0, False), (1, True), (3, True)]:
            _log(db, correct=correct, when=NOW - timedelta(days=offset))
        expected = ledger.fetch_buckets(db)

        # Damage the cache: wrong totals, a stray day, a missing day
        db.get(DailyStats, "2026-10-18").reviews_count = 99
        db.add(DailyStats(date="2020-01-01", reviews_count=1, correct_count=1, incorrect_count=0))
        db.delete(db.get(DailyStats, "2026-10-15"))
        db.commit()

        written = ledger.rebuild_daily_stats(db)

        assert written == 3
        assert ledger.fetch_buckets(db) == expected

    def test_rebuild_empty_history(self, db):
        assert ledger.rebuild_daily_stats(db) == 0
        assert ledger.fetch_buckets(db) == []


class TestAppendAtomicity:

    @staticmethod
    def _fail(mapper, connection, target):
        raise OperationalError("daily_stats", {}, Exception("disk I/O error"))

    def test_failed_bucket_insert_drops_history_row(self, db):
        event.listen(DailyStats, "before_insert", self._fail)
        try:
            with pytest.raises(PersistenceError):
                _log(db)
        finally:
            event.remove(DailyStats, "before_insert", self._fail)

        assert ledger.query_recent(db) == []
        assert ledger.fetch_buckets(db) == []

    def test_failed_bucket_increment_drops_history_row(self, db):
        _log(db)

        event.listen(DailyStats, "before_update", self._fail)
        try:
            with pytest.raises(PersistenceError):
                _log(db, correct=False)
        finally:
            event.remove(DailyStats, "before_update", self._fail)

        assert len(ledger.query_recent(db)) == 1
        bucket = ledger.get_bucket(db, NOW.date())
        assert (bucket.reviews_count, bucket.correct_count, bucket.incorrect_count) == (1, 1, 0)


class TestReadFailures:

    def test_reads_raise_persistence_error(self, db):
        _log(db)
        ReviewHistory.__table__.drop(db.get_bind())

        with pytest.raises(PersistenceError):
            ledger.query_recent(db)
        with pytest.raises(PersistenceError):
            ledger.summarize(db)
        with pytest.raises(PersistenceError):
            ledger.rebuild_daily_stats(db)
