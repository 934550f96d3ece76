"""Analytics sink — one event per completed generation request.

No raw idea text is stored: the request input is reduced to a SHA-256 hash
of its canonical JSON.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from promptcraft.core.storage.database import KnowledgeDatabase

logger = logging.getLogger(__name__)


def hash_input(data: Any) -> str:
    """SHA-256 hash of canonical JSON, or empty string if not serialisable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AnalyticsEvent:
    """A single generation event."""

    tool_id: str
    stage: str
    confidence_score: float
    prompt_length: int
    success: bool
    latency_ms: float | None = None
    input_hash: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class AnalyticsSink(Protocol):
    """Consumer of generation events. ``record`` must not raise."""

    def record(self, event: AnalyticsEvent) -> str: ...


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------

class LoggingAnalyticsSink:
    """Writes events to the log only. Used when no database is configured."""

    def record(self, event: AnalyticsEvent) -> str:
        logger.info(
            "Generation event: tool=%s stage=%s confidence=%.2f length=%d success=%s latency=%.0fms",
            event.tool_id,
            event.stage,
            event.confidence_score,
            event.prompt_length,
            event.success,
            event.latency_ms or 0.0,
        )
        return ""


class GenerationEventLog:
    """Records generation events to the ``generation_events`` table.

    Usage::

        events = GenerationEventLog(knowledge_db)
        events.record(AnalyticsEvent(tool_id="lovable", stage="skeleton", ...))
        events.success_rate(tool_id="lovable")
    """

    def __init__(self, database: KnowledgeDatabase) -> None:
        self._db = database

    def record(self, event: AnalyticsEvent) -> str:
        """Insert an event and return its UUID, or "" if the write failed."""
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"), default=str)
            if event.metadata
            else None
        )
        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO generation_events
                   (id, timestamp, tool_id, stage, confidence_score, prompt_length,
                    success, latency_ms, input_hash, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    now,
                    event.tool_id,
                    event.stage,
                    event.confidence_score,
                    event.prompt_length,
                    1 if event.success else 0,
                    event.latency_ms,
                    event.input_hash or None,
                    metadata_json,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write generation event — event lost")
            return ""
        return event_id

    def get_events(
        self,
        *,
        tool_id: str | None = None,
        stage: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query events with optional filters, newest first."""
        conditions: list[str] = []
        params: list[Any] = []

        if tool_id:
            conditions.append("tool_id = ?")
            params.append(tool_id)
        if stage:
            conditions.append("stage = ?")
            params.append(stage)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = f"SELECT * FROM generation_events{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, tool_id: str | None = None) -> int:
        if tool_id:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM generation_events WHERE tool_id = ?", (tool_id,)
            ).fetchone()
        else:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM generation_events"
            ).fetchone()
        return row[0]

    def success_rate(self, *, tool_id: str | None = None) -> float | None:
        """Share of successful events, or None when there are none."""
        sql = "SELECT COUNT(*), SUM(success) FROM generation_events"
        params: tuple[Any, ...] = ()
        if tool_id:
            sql += " WHERE tool_id = ?"
            params = (tool_id,)
        total, successes = self._db.connection.execute(sql, params).fetchone()
        if not total:
            return None
        return (successes or 0) / total


# ---------------------------------------------------------------------------
# Background delivery
# ---------------------------------------------------------------------------

class AnalyticsDispatcher:
    """Delivers events to a sink off the response path.

    ``emit`` schedules delivery on the running loop and returns immediately;
    ``drain`` waits for everything scheduled so far.
    """

    def __init__(self, sink: AnalyticsSink | None, *, enabled: bool = True) -> None:
        self.sink = sink
        self.enabled = enabled and sink is not None
        self._pending: set[asyncio.Task] = set()

    def emit(self, event: AnalyticsEvent) -> None:
        if not self.enabled:
            return
        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: AnalyticsEvent) -> None:
        try:
            self.sink.record(event)
        except Exception:
            logger.exception("Analytics sink failed — event lost")

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)
