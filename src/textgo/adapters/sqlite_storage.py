"""SQLite storage adapter.

Implements the core HistoryPort and the AI response cache using a simple
SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from textgo.core.config import DEFAULT_HISTORY_SIZE
from textgo.core.models import Entry


class SQLiteStorage:
    """Thin SQLite wrapper holding the history ring and the AI cache."""

    def __init__(self, db_path: str, max_history: int = DEFAULT_HISTORY_SIZE) -> None:
        if max_history < 1:
            raise ValueError("history size must be at least 1")
        self._db_path = db_path
        self._max_history = max_history

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - history: bounded ring of dispatched actions
        - ai_cache: streamed responses keyed by the rendered prompt
        """

        with self._connect() as conn:
            # Fields:
            # - seq: insertion order, newest has the highest value
            # - id: entry uuid used by later response updates
            # - payload: JSON encoded Entry
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS history (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    payload TEXT NOT NULL
                )
                """
            )
            # Fields:
            # - prompt: full rendered prompt including the system prompt (PRIMARY KEY)
            # - response: last complete response
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_cache (
                    prompt TEXT PRIMARY KEY,
                    response TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    # --- history ---------------------------------------------------------

    def append(self, entry: Entry) -> None:
        """Store an entry and drop the oldest ones beyond the ring size."""

        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO history (id, payload) VALUES (?, ?)",
                (entry.id, json.dumps(entry.to_dict(), ensure_ascii=False)),
            )
            conn.execute(
                """
                DELETE FROM history WHERE seq NOT IN (
                    SELECT seq FROM history ORDER BY seq DESC LIMIT ?
                )
                """,
                (self._max_history,),
            )

    def update_response(self, entry_id: str, response: str) -> None:
        """Annotate a stored entry with its (streamed) AI response."""

        with self._connect() as conn:
            row = conn.execute("SELECT payload FROM history WHERE id = ?", (entry_id,)).fetchone()
            if row is None:
                return
            payload = json.loads(row["payload"])
            payload["response"] = response
            conn.execute(
                "UPDATE history SET payload = ? WHERE id = ?",
                (json.dumps(payload, ensure_ascii=False), entry_id),
            )

    def list_entries(self, limit: Optional[int] = None) -> list[Entry]:
        """Return stored entries, newest first."""

        limit = self._max_history if limit is None else min(limit, self._max_history)
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM history ORDER BY seq DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [Entry.from_dict(json.loads(row["payload"])) for row in rows]

    def clear_history(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM history")
            return cur.rowcount

    # --- AI cache --------------------------------------------------------

    def get_cached_response(self, prompt: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT response FROM ai_cache WHERE prompt = ?", (prompt,)).fetchone()
        return row["response"] if row else None

    def set_cached_response(self, prompt: str, response: str) -> None:
        """Upsert the cached response for a prompt."""

        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO ai_cache (prompt, response, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(prompt) DO UPDATE SET
                    response = excluded.response,
                    updated_at = excluded.updated_at
                """,
                (prompt, response, now, now),
            )
