"""Tests for the process-wide engine and session factory."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from trip_settlement import database


@pytest.fixture
def sqlite_engine(monkeypatch):
    monkeypatch.setattr(
        database,
        "get_engine",
        lambda database_url=None: create_async_engine("sqlite+aiosqlite:///:memory:"),
    )


class TestInitDb:
    async def test_engine_created_once(self, sqlite_engine):
        engine, factory = database.init_db()
        try:
            assert database.init_db() == (engine, factory)
        finally:
            await database.dispose_db()

        assert database._engine is None
        assert database._session_factory is None

    def test_engine_without_session_factory(self, monkeypatch):
        monkeypatch.setattr(database, "_engine", object())
        monkeypatch.setattr(database, "_session_factory", None)

        with pytest.raises(RuntimeError, match="Session factory missing"):
            database.init_db()
