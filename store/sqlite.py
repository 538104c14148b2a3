import asyncio
import os
import sqlite3
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from core.errors import CredentialUnavailable
from core.types import (
    AIInsight,
    InsightLogEntry,
    InsightType,
    ModelPerformanceRecord,
    ProviderCredentials,
    ProviderSetting,
)

T = TypeVar("T")

# One statement so concurrent writers cannot lose an increment. SQLite
# evaluates every SET expression against the pre-update row.
_RECORD_ATTEMPT_SQL = """
    INSERT INTO model_performance
        (model_name, request_count, success_count, error_count,
         avg_response_time_ms, uptime_percentage, last_used)
    VALUES (?, 1, ?, ?, ?, ?, ?)
    ON CONFLICT(model_name) DO UPDATE SET
        request_count = request_count + 1,
        success_count = success_count + excluded.success_count,
        error_count = error_count + excluded.error_count,
        avg_response_time_ms =
            (avg_response_time_ms * request_count + excluded.avg_response_time_ms)
            / (request_count + 1),
        uptime_percentage =
            100.0 * (success_count + excluded.success_count) / (request_count + 1),
        last_used = MAX(last_used, excluded.last_used)
"""


class SQLiteInsightStore:
    """SQLite adapter for the engine's store interface.

    The async methods run their statements on the default executor so a
    busy or locked database never stalls the event loop. One connection is
    shared across threads and serialized by ``_lock``.
    """

    def __init__(self, db_path: str = "~/.insight-engine/insights.db", timeout: float = 5.0):
        if db_path != ":memory:":
            db_path = os.path.expanduser(db_path)
            parent = os.path.dirname(db_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
        self.conn = sqlite3.connect(db_path, timeout=timeout, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_db()

    async def _off_loop(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def _init_db(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS provider_settings (
                user_id TEXT NOT NULL,
                provider TEXT NOT NULL,
                enabled INTEGER NOT NULL DEFAULT 0,
                api_key TEXT,
                PRIMARY KEY (user_id, provider)
            );
            CREATE TABLE IF NOT EXISTS model_performance (
                model_name TEXT PRIMARY KEY,
                request_count INTEGER NOT NULL,
                success_count INTEGER NOT NULL,
                error_count INTEGER NOT NULL,
                avg_response_time_ms REAL NOT NULL,
                uptime_percentage REAL NOT NULL,
                last_used TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS ai_insights_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT,
                user_id TEXT NOT NULL,
                insight_type TEXT NOT NULL,
                message TEXT NOT NULL,
                confidence REAL NOT NULL,
                insight_timestamp TEXT NOT NULL,
                model_used TEXT NOT NULL,
                processing_time_ms REAL NOT NULL,
                created_at TEXT NOT NULL
            );
        """)
        self.conn.commit()

    def _write(self, sql: str, params: tuple) -> None:
        with self._lock:
            try:
                self.conn.execute(sql, params)
                self.conn.commit()
            except sqlite3.Error:
                self.conn.rollback()
                raise

    def _query(self, sql: str, params: tuple | list = ()) -> list[tuple]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    async def fetch_provider_credentials(self, user_id: str) -> ProviderCredentials | None:
        try:
            rows = await self._off_loop(
                self._query,
                "SELECT provider, enabled, api_key FROM provider_settings WHERE user_id = ?",
                (user_id,),
            )
        except sqlite3.Error as e:
            raise CredentialUnavailable(user_id, str(e)) from e
        if not rows:
            return None
        return ProviderCredentials(
            user_id=user_id,
            providers={
                provider: ProviderSetting(enabled=bool(enabled), api_key=api_key)
                for provider, enabled, api_key in rows
            },
        )

    async def record_model_attempt(
        self,
        model_name: str,
        success: bool,
        elapsed_ms: float,
        at: datetime,
    ) -> None:
        uptime = 100.0 if success else 0.0
        await self._off_loop(
            self._write,
            _RECORD_ATTEMPT_SQL,
            (model_name, int(success), int(not success), elapsed_ms, uptime, at.isoformat()),
        )

    async def append_insight(self, entry: InsightLogEntry) -> None:
        await self._off_loop(
            self._write,
            """INSERT INTO ai_insights_log
               (session_id, user_id, insight_type, message, confidence,
                insight_timestamp, model_used, processing_time_ms, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.session_id,
                entry.user_id,
                entry.insight.type.value,
                entry.insight.message,
                entry.insight.confidence,
                entry.insight.timestamp.isoformat(),
                entry.model_used,
                entry.processing_time_ms,
                entry.created_at.isoformat(),
            ),
        )

    def save_provider_setting(self, user_id: str, provider: str, enabled: bool, api_key: str | None) -> None:
        self._write(
            """INSERT INTO provider_settings (user_id, provider, enabled, api_key)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(user_id, provider) DO UPDATE SET
                   enabled = excluded.enabled,
                   api_key = excluded.api_key""",
            (user_id, provider, int(enabled), api_key),
        )

    def get_model_performance(self, model_name: str) -> ModelPerformanceRecord | None:
        rows = self._query(
            """SELECT model_name, request_count, success_count, error_count,
                      avg_response_time_ms, uptime_percentage, last_used
               FROM model_performance WHERE model_name = ?""",
            (model_name,),
        )
        return _performance_from_row(rows[0]) if rows else None

    def list_model_performance(self) -> list[ModelPerformanceRecord]:
        rows = self._query(
            """SELECT model_name, request_count, success_count, error_count,
                      avg_response_time_ms, uptime_percentage, last_used
               FROM model_performance ORDER BY model_name"""
        )
        return [_performance_from_row(row) for row in rows]

    def get_recent_insights(self, session_id: str | None = None, limit: int = 10) -> list[InsightLogEntry]:
        query = """SELECT session_id, user_id, insight_type, message, confidence,
                          insight_timestamp, model_used, processing_time_ms, created_at
                   FROM ai_insights_log"""
        params: list = []
        if session_id is not None:
            query += " WHERE session_id = ?"
            params.append(session_id)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        return [
            InsightLogEntry(
                session_id=row[0],
                user_id=row[1],
                insight=AIInsight(
                    type=InsightType(row[2]),
                    message=row[3],
                    confidence=row[4],
                    timestamp=datetime.fromisoformat(row[5]),
                ),
                model_used=row[6],
                processing_time_ms=row[7],
                created_at=datetime.fromisoformat(row[8]),
            )
            for row in self._query(query, params)
        ]

    def close(self) -> None:
        with self._lock:
            self.conn.close()


def _performance_from_row(row: tuple) -> ModelPerformanceRecord:
    return ModelPerformanceRecord(
        model_name=row[0],
        request_count=row[1],
        success_count=row[2],
        error_count=row[3],
        avg_response_time_ms=row[4],
        uptime_percentage=row[5],
        last_used=datetime.fromisoformat(row[6]),
    )
