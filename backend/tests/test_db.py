"""Tests for database setup."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import inspect

from sellerhub import db


class TestCreateDbAndTables:
    """Tests for startup table creation."""

    def test_creates_tables_on_sqlite(self, db_engine):
        db.create_db_and_tables(db_engine)

        tables = inspect(db_engine).get_table_names()
        assert "meli_auth_states" in tables
        assert "marketplace_credentials" in tables

    def test_rejects_dialect_without_upsert(self):
        """Unsupported databases fail at startup, not after a token exchange."""
        bind = MagicMock()
        bind.dialect.name = "mssql"

        with patch.object(db.SQLModel.metadata, "create_all") as mock_create_all:
            with pytest.raises(RuntimeError) as exc_info:
                db.create_db_and_tables(bind)

        assert "mssql" in str(exc_info.value)
        mock_create_all.assert_not_called()


class TestDialectInsert:
    """Tests for picking the dialect's upsert-capable insert."""

    def test_sqlite(self, db_session):
        from sqlalchemy.dialects.sqlite import insert

        assert db.dialect_insert(db_session) is insert

    def test_unsupported_dialect(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "oracle"

        with pytest.raises(RuntimeError):
            db.dialect_insert(session)
