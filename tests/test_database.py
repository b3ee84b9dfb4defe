"""
Tests for database configuration and transaction handling.
"""
import pytest
from sqlalchemy import inspect

from kotoba.srs import database, deck
from kotoba.srs.exceptions import NotFoundError, PersistenceError
from kotoba.srs.models import DailyStats, DeckCard


class TestDatabaseUrl:

    def test_default_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("TEST_MODE", raising=False)
        assert database.get_database_url() == database.DEFAULT_DATABASE_URL

    def test_env_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/kotoba")
        monkeypatch.setenv("TEST_MODE", "false")
        assert database.get_database_url() == "postgresql://u:p@localhost/kotoba"

    def test_test_mode_swaps_database_name(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/kotoba")
        monkeypatch.setenv("TEST_MODE", "true")
        assert database.is_test_mode()
        assert database.get_database_url() == "postgresql://u:p@localhost/test_kotoba"


class TestSchema:

    def test_tables_created(self, engine):
        tables = set(inspect(engine).get_table_names())
        assert {"deck_cards", "review_history", "daily_stats"} <= tables

    def test_init_db_is_idempotent(self, engine):
        database.init_db(engine)
        database.init_db(engine)

    def test_reset_db_empties_tables(self, engine, db):
        db.add(DailyStats(date="2026-10-18", reviews_count=1, correct_count=1, incorrect_count=0))
        db.commit()
        db.close()

        database.reset_db(engine)

        assert db.query(DailyStats).count() == 0

    def test_file_database_directory_created(self, tmp_path):
        path = tmp_path / "nested" / "deck.db"
        engine = database.create_deck_engine(f"sqlite:///{path}")
        database.init_db(engine)
        assert path.exists()
        engine.dispose()


class TestAtomic:

    def test_commits_on_success(self, db):
        with database.atomic(db, "Insert"):
            db.add(DailyStats(date="2026-10-18", reviews_count=1, correct_count=1, incorrect_count=0))
        db.expunge_all()
        assert db.get(DailyStats, "2026-10-18").reviews_count == 1

    def test_domain_errors_roll_back_and_pass_through(self, db):
        with pytest.raises(NotFoundError):
            with database.atomic(db, "Insert"):
                db.add(DailyStats(date="2026-10-18", reviews_count=1, correct_count=1, incorrect_count=0))
                db.flush()
                raise NotFoundError("gone")
        assert db.query(DailyStats).count() == 0

    def test_store_errors_become_persistence_errors(self, db):
        db.add(DailyStats(date="2026-10-18", reviews_count=1, correct_count=1, incorrect_count=0))
        db.commit()
        db.expunge_all()

        with pytest.raises(PersistenceError):
            with database.atomic(db, "Insert duplicate"):
                db.add(DailyStats(date="2026-10-18", reviews_count=2, correct_count=2, incorrect_count=0))
                db.flush()

    def test_read_errors_become_persistence_errors(self, db):
        DailyStats.__table__.drop(db.get_bind())

        with pytest.raises(PersistenceError):
            with database.reading(db, "Load buckets"):
                db.query(DailyStats).all()

    def test_reading_passes_domain_errors_through(self, db):
        with pytest.raises(NotFoundError):
            with database.reading(db, "Load card"):
                raise NotFoundError("gone")

    def test_card_store_reads_on_broken_store(self, db):
        card = deck.create_card(db, 1)
        DeckCard.__table__.drop(db.get_bind())
        db.expunge_all()

        for read in (deck.fetch_all, deck.fetch_active, deck.fetch_due, deck.count_due,
                     deck.fetch_new, deck.fetch_burned):
            with pytest.raises(PersistenceError):
                read(db)
        with pytest.raises(PersistenceError):
            deck.get_card(db, card.id)
        with pytest.raises(PersistenceError):
            deck.find_by_dictionary_id(db, 1)


class TestSessionFactory:

    def test_factory_is_reused_per_engine(self, engine):
        assert database.get_session_factory(engine) is database.get_session_factory(engine)

    def test_get_session_binds_engine(self, engine):
        session = database.get_session(engine)
        try:
            assert session.get_bind() is engine
        finally:
            session.close()
