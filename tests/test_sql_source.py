"""
Tests for the SQLite structured data source.
"""

import sqlite3

import aiosqlite
import pytest

from bitcoin_agent.tools.sql_source import (
    NO_TABLES,
    SCHEMA_UNAVAILABLE,
    SQLiteDataSource,
    _path_from_url,
)

from conftest import SAMPLE_SCHEMA


@pytest.fixture
def metrics_db(tmp_path):
    """A small daily price table."""
    path = tmp_path / "metrics.db"
    with sqlite3.connect(path) as conn:
        conn.execute("CREATE TABLE daily_prices (day TEXT NOT NULL, close_usd REAL)")
        conn.executemany(
            "INSERT INTO daily_prices VALUES (?, ?)",
            [("2024-06-01", 67500.0), ("2024-06-02", 67800.0), ("2024-06-03", 68100.0)],
        )
    conn.close()
    return path


class TestDescribeSchema:
    """Schema probe"""

    @pytest.mark.asyncio
    async def test_lists_tables_and_columns(self, metrics_db):
        probe = await SQLiteDataSource(f"sqlite:///{metrics_db}").describe_schema()

        assert probe.accessible is True
        assert probe.description == SAMPLE_SCHEMA

    @pytest.mark.asyncio
    async def test_column_defaults(self, tmp_path):
        path = tmp_path / "fees.db"
        with sqlite3.connect(path) as conn:
            conn.execute("CREATE TABLE fees (block INTEGER NOT NULL, sat_vb REAL DEFAULT 1, note)")
        conn.close()

        probe = await SQLiteDataSource(str(path)).describe_schema()

        assert "  - block (INTEGER, not null)" in probe.description
        assert "  - sat_vb (REAL, nullable, default: 1)" in probe.description
        assert "  - note (ANY, nullable)" in probe.description

    @pytest.mark.asyncio
    async def test_missing_database(self, tmp_path):
        path = tmp_path / "missing.db"

        probe = await SQLiteDataSource(str(path)).describe_schema()

        assert probe.accessible is False
        assert probe.description == SCHEMA_UNAVAILABLE
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_empty_database(self, tmp_path):
        path = tmp_path / "empty.db"
        sqlite3.connect(path).close()

        probe = await SQLiteDataSource(str(path)).describe_schema()

        assert probe.accessible is False
        assert probe.description == NO_TABLES


class TestExecuteQuery:
    """Read-only queries"""

    @pytest.mark.asyncio
    async def test_rows_as_dicts(self, metrics_db):
        source = SQLiteDataSource(str(metrics_db))

        rows = await source.execute_query("SELECT day, close_usd FROM daily_prices ORDER BY day")

        assert rows[0] == {"day": "2024-06-01", "close_usd": 67500.0}
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_row_cap(self, metrics_db):
        source = SQLiteDataSource(str(metrics_db), max_rows=2)

        rows = await source.execute_query("SELECT * FROM daily_prices")

        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_writes_are_rejected(self, metrics_db):
        source = SQLiteDataSource(str(metrics_db))

        with pytest.raises(aiosqlite.Error):
            await source.execute_query("DELETE FROM daily_prices")

        rows = await source.execute_query("SELECT COUNT(*) AS n FROM daily_prices")
        assert rows == [{"n": 3}]

    @pytest.mark.asyncio
    async def test_invalid_sql(self, metrics_db):
        with pytest.raises(aiosqlite.Error):
            await SQLiteDataSource(str(metrics_db)).execute_query("SELECT * FROM nope")


class TestPathFromUrl:

    def test_relative_url(self):
        assert str(_path_from_url("sqlite:///./data/bitcoin_metrics.db")) == "data/bitcoin_metrics.db"

    def test_absolute_url(self):
        assert str(_path_from_url("sqlite:////var/lib/metrics.db")) == "/var/lib/metrics.db"

    def test_plain_path(self):
        assert str(_path_from_url("metrics.db")) == "metrics.db"

    def test_other_scheme(self):
        with pytest.raises(ValueError):
            _path_from_url("postgresql://localhost/metrics")
