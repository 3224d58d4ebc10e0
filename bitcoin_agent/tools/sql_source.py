"""
Structured Data Source
======================

Read-only access to the SQL database of Bitcoin metrics (prices, fees,
hashrate, supply...). Uses aiosqlite for async operations.

The researcher first probes the schema. Only when the probe finds tables is
the ``query_sql`` tool offered to the model, and the schema listing is
embedded in the researcher prompt so the model can write valid queries.

The database is always opened with ``mode=ro``: model-written SQL can read
but never modify data.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from bitcoin_agent.config import get_settings

logger = logging.getLogger(__name__)


SCHEMA_UNAVAILABLE = "Unable to access database schema. Using external data sources instead."
SCHEMA_ERROR = "Error accessing database schema. Using external data sources instead."
NO_TABLES = "No tables found in the public schema. Using external data sources instead."

SCHEMA_QUERY = """
SELECT name FROM sqlite_master
WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""


@dataclass(frozen=True)
class SchemaProbe:
    """Outcome of the lightweight accessibility probe."""
    accessible: bool
    description: str


def _path_from_url(url: str) -> Path:
    """Resolve ``sqlite:///relative.db`` / ``sqlite:////abs.db`` / plain paths."""
    if url.startswith("sqlite:///"):
        return Path(url[len("sqlite:///"):])
    if url.startswith("sqlite://"):
        return Path(url[len("sqlite://"):])
    if "://" in url:
        raise ValueError(f"Unsupported structured data URL: {url}")
    return Path(url)


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SQLiteDataSource:
    """
    Structured data source backed by a SQLite file.

    Usage:
        source = SQLiteDataSource("sqlite:///./data/bitcoin_metrics.db")
        probe = await source.describe_schema()
        if probe.accessible:
            rows = await source.execute_query("SELECT * FROM daily_prices LIMIT 5")
    """

    def __init__(
        self,
        url: Optional[str] = None,
        max_rows: Optional[int] = None,
    ):
        settings = get_settings()
        self._path = _path_from_url(url or settings.structured_db_url)
        self._max_rows = max_rows or settings.sql_max_rows

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(f"file:{self._path}?mode=ro", uri=True)

    async def describe_schema(self) -> SchemaProbe:
        """
        Probe the database and describe its tables and columns.

        Never raises: an unreachable database is reported as inaccessible.
        """
        if not self._path.exists():
            logger.info(f"Structured data source not found at {self._path}")
            return SchemaProbe(accessible=False, description=SCHEMA_UNAVAILABLE)

        try:
            async with self._connect() as db:
                tables = await db.execute_fetchall(SCHEMA_QUERY)
                if not tables:
                    return SchemaProbe(accessible=False, description=NO_TABLES)

                lines = []
                for (table_name,) in tables:
                    columns = await db.execute_fetchall(
                        f"PRAGMA table_info({_quote_identifier(table_name)})"
                    )
                    lines.append(f"TABLE: {table_name}")
                    lines.append("COLUMNS:")
                    for _, name, data_type, not_null, default, _ in columns:
                        nullable = "not null" if not_null else "nullable"
                        default_text = f", default: {default}" if default is not None else ""
                        lines.append(f"  - {name} ({data_type or 'ANY'}, {nullable}{default_text})")
                    lines.append("")

        except aiosqlite.Error as e:
            logger.error(f"Error probing structured data source: {e}")
            return SchemaProbe(accessible=False, description=SCHEMA_ERROR)

        return SchemaProbe(accessible=True, description="\n".join(lines))

    async def execute_query(self, query: str) -> list[dict[str, Any]]:
        """
        Run a read-only SQL query.

        Args:
            query: SQL text written by the model

        Returns:
            Up to ``max_rows`` rows as column -> value dicts

        Raises:
            aiosqlite.Error: If the query is invalid or tries to write
        """
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query) as cursor:
                rows = await cursor.fetchmany(self._max_rows)

        logger.info(f"SQL query returned {len(rows)} rows")
        return [dict(row) for row in rows]
