"""SQLite file behind the knowledge corpora and the generation event log.

One connection per process, shared by the repository and the event log.
Schema changes are numbered migrations applied in order at startup.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# V1: Knowledge corpora
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
CREATE TABLE IF NOT EXISTS knowledge_documents (
    id                TEXT PRIMARY KEY,
    title             TEXT NOT NULL,
    content           TEXT NOT NULL,
    document_type     TEXT NOT NULL DEFAULT 'best_practice',
    target_tools_json TEXT NOT NULL DEFAULT '[]',
    categories_json   TEXT NOT NULL DEFAULT '[]',
    complexity_level  TEXT NOT NULL DEFAULT '',
    embedding_json    TEXT NOT NULL DEFAULT '[]',
    content_hash      TEXT NOT NULL UNIQUE,
    quality_score     REAL NOT NULL DEFAULT 0.5,
    retrieval_count   INTEGER NOT NULL DEFAULT 0,
    last_retrieved_at TEXT,
    is_active         INTEGER NOT NULL DEFAULT 1,
    created_at        TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS prompt_templates (
    id                      TEXT PRIMARY KEY,
    name                    TEXT NOT NULL,
    content                 TEXT NOT NULL,
    template_type           TEXT NOT NULL DEFAULT 'feature',
    target_tool             TEXT NOT NULL DEFAULT '',
    use_case                TEXT NOT NULL DEFAULT '',
    project_complexity      TEXT NOT NULL DEFAULT '',
    embedding_json          TEXT NOT NULL DEFAULT '[]',
    required_variables_json TEXT NOT NULL DEFAULT '[]',
    optional_variables_json TEXT NOT NULL DEFAULT '[]',
    usage_count             INTEGER NOT NULL DEFAULT 0,
    success_rate            REAL NOT NULL DEFAULT 0.0,
    is_active               INTEGER NOT NULL DEFAULT 1,
    created_at              TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_documents_active  ON knowledge_documents(is_active);
CREATE INDEX IF NOT EXISTS idx_templates_active  ON prompt_templates(is_active);
CREATE INDEX IF NOT EXISTS idx_templates_tool    ON prompt_templates(target_tool);
"""

# ---------------------------------------------------------------------------
# V2: Generation event log (one row per completed request)
# ---------------------------------------------------------------------------

_SCHEMA_V2 = """
CREATE TABLE IF NOT EXISTS generation_events (
    id               TEXT PRIMARY KEY,
    timestamp        TEXT NOT NULL DEFAULT (datetime('now')),
    tool_id          TEXT NOT NULL,
    stage            TEXT NOT NULL,
    confidence_score REAL NOT NULL,
    prompt_length    INTEGER NOT NULL,
    success          INTEGER NOT NULL,
    latency_ms       REAL,
    input_hash       TEXT,
    metadata_json    TEXT
);

CREATE INDEX IF NOT EXISTS idx_events_timestamp ON generation_events(timestamp);
CREATE INDEX IF NOT EXISTS idx_events_tool      ON generation_events(tool_id);
"""

# (version, description, DDL); applied in order, each at most once.
_MIGRATIONS: tuple[tuple[int, str, str], ...] = (
    (1, "knowledge corpora", _SCHEMA_V1),
    (2, "generation_events table", _SCHEMA_V2),
)
SCHEMA_VERSION = _MIGRATIONS[-1][0]

_MEMORY = ":memory:"


class DatabaseError(Exception):
    """The knowledge database is unusable (not opened, or closed)."""


def _connect(db_path: str) -> sqlite3.Connection:
    if db_path == _MEMORY:
        target = _MEMORY
    else:
        db_file = Path(db_path).expanduser()
        db_file.parent.mkdir(parents=True, exist_ok=True)
        target = str(db_file)
    # Tool handlers may run off the thread that opened the connection.
    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if target != _MEMORY:
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


class KnowledgeDatabase:
    """Owns the SQLite connection for documents, templates and events.

    ``":memory:"`` gives a private throwaway database, which is what the
    tests use. ``initialize`` is idempotent; the instance is also a context
    manager that opens on entry and closes on exit.
    """

    def __init__(self, db_path: str = _MEMORY) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError(f"Knowledge database {self.db_path!r} is not open")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def initialize(self) -> None:
        """Open the connection and bring the schema up to SCHEMA_VERSION."""
        if self._conn is not None:
            return
        self._conn = _connect(self.db_path)
        try:
            self._migrate()
        except sqlite3.Error:
            self.close()
            raise
        logger.info("Knowledge database open: %s (schema v%d)", self.db_path, SCHEMA_VERSION)

    def _migrate(self) -> None:
        conn = self.connection
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER NOT NULL, applied_at TEXT NOT NULL DEFAULT (datetime('now')))"
        )
        current = self.get_schema_version()
        for version, description, ddl in _MIGRATIONS:
            if version <= current:
                continue
            conn.executescript(ddl)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.commit()
            logger.info("Applied knowledge schema v%d: %s", version, description)

    def get_schema_version(self) -> int:
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Knowledge database closed: %s", self.db_path)

    def __enter__(self) -> KnowledgeDatabase:
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
