import pytest
from sqlalchemy import inspect, select

from scheme_store.db.sqlite import SQLiteBackend
from scheme_store.index.models import ManagedRecordRow


def _make_db() -> SQLiteBackend:
    db = SQLiteBackend(":memory:")
    db.init_db()
    return db


class TestInitDB:
    def test_init_creates_tables(self):
        db = _make_db()
        inspector = inspect(db.get_engine())
        assert "managed_records" in inspector.get_table_names()

    def test_init_is_idempotent(self):
        db = _make_db()
        db.init_db()
        assert "managed_records" in inspect(db.get_engine()).get_table_names()


class TestManagedRecordRowCRUD:
    def test_create_and_read(self):
        db = _make_db()
        with db.session_scope() as session:
            row = ManagedRecordRow(address="public://a.txt")
            session.add(row)
            session.flush()
            row_id = row.id

        with db.session_scope() as session:
            loaded = session.get(ManagedRecordRow, row_id)
            assert loaded is not None
            assert loaded.address == "public://a.txt"
            assert loaded.created_at is not None
            assert len(loaded.id) == 36


class TestSessionScope:
    def test_rolls_back_on_error(self):
        db = _make_db()
        with pytest.raises(RuntimeError):
            with db.session_scope() as session:
                session.add(ManagedRecordRow(address="public://a.txt"))
                session.flush()
                raise RuntimeError("boom")

        with db.session_scope() as session:
            assert session.scalars(select(ManagedRecordRow)).all() == []

    def test_reset_db_drops_rows(self):
        db = _make_db()
        with db.session_scope() as session:
            session.add(ManagedRecordRow(address="public://a.txt"))
        db.reset_db()
        with db.session_scope() as session:
            assert session.scalars(select(ManagedRecordRow)).all() == []

    def test_context_manager_disposes(self):
        with _make_db() as db:
            assert db.get_engine() is not None
