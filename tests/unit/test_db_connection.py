from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from casemaster.config.loader import DatabaseConfig
from casemaster.db.connection import db_connection, db_disabled, resolve_dsn

_PG_ENV = ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _PG_ENV:
        monkeypatch.delenv(name, raising=False)


def test_database_url_wins(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
    monkeypatch.setenv("PGDSN", "host=other")
    assert resolve_dsn(DatabaseConfig(dsn="host=cfg")) == "postgresql://u@h/db"


def test_config_dsn_used_without_env():
    assert resolve_dsn(DatabaseConfig(dsn="host=cfg dbname=x")) == "host=cfg dbname=x"


def test_individual_env_over_config(monkeypatch):
    monkeypatch.setenv("PGHOST", "envhost")
    monkeypatch.setenv("PGPASSWORD", "pw")
    dsn = resolve_dsn(DatabaseConfig(host="cfghost", port=6543, user="app", database="cases"))
    assert dsn == "host=envhost port=6543 user=app dbname=cases password=pw"


def test_defaults_without_password():
    assert resolve_dsn(DatabaseConfig()) == "host=localhost port=5432 user=postgres dbname=postgres"


def test_db_disabled(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    assert db_disabled() is True
    monkeypatch.setenv("DISABLE_DB_CONNECT", "0")
    assert db_disabled() is False


def test_db_connection_commits_and_closes():
    conn = MagicMock()
    with patch("casemaster.db.connection.psycopg2.connect", return_value=conn):
        with db_connection(DatabaseConfig()) as cur:
            cur.execute("SELECT 1")
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    conn.cursor.return_value.close.assert_called_once()
    conn.close.assert_called_once()


def test_db_connection_rolls_back_on_error():
    conn = MagicMock()
    with patch("casemaster.db.connection.psycopg2.connect", return_value=conn):
        with pytest.raises(RuntimeError):
            with db_connection(DatabaseConfig()):
                raise RuntimeError("query failed")
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    conn.close.assert_called_once()
