"""Tests for dialect rendering of the database clock."""

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from oauth2_token_store.db.functions import utcnow


def test_utcnow_renders_now_on_postgres():
    sql = str(select(utcnow()).compile(dialect=postgresql.dialect()))
    assert "now()" in sql


def test_utcnow_renders_microsecond_text_on_sqlite():
    """Same 'YYYY-MM-DD HH:MM:SS.ffffff' shape SQLite stores DateTime values in."""
    sql = str(select(utcnow()).compile(dialect=sqlite.dialect()))
    assert "STRFTIME('%Y-%m-%d %H:%M:%f000', 'now')" in sql
