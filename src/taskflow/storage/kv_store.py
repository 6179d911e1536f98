# src/taskflow/storage/kv_store.py

from __future__ import annotations

import contextlib
import copy
import json
import logging
import sqlite3
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SqliteKVStore:
    """
    SQLite-backed durable key-value store.

    Each key holds one JSON document. Read-modify-write goes through
    BEGIN IMMEDIATE so the updater always sees the latest committed value and
    concurrent writers (console thread + reminder thread) serialize.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "taskflow.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            keys = self.count_keys()
        except sqlite3.Error:
            keys = -1
        logger.info("SqliteKVStore ready db=%s keys=%s", self._db_path, keys)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are managed explicitly below.
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
        finally:
            conn.close()

    @staticmethod
    def _decode(key: str, raw: str | None, default: Any) -> Any:
        if raw is None:
            return copy.deepcopy(default)
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Corrupt JSON for key=%s; using default.", key)
            return copy.deepcopy(default)

    @staticmethod
    def _read(conn: sqlite3.Connection, key: str) -> str | None:
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    # ---- public API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        finally:
            conn.close()

    def get(self, key: str, default: Any = None) -> Any:
        conn = self._get_conn()
        try:
            return self._decode(key, self._read(conn, key), default)
        finally:
            conn.close()

    def update(self, key: str, updater: Callable[[Any], Any], default: Any = None) -> Any:
        committed = self.update_many({key: default}, lambda values: {key: updater(values[key])})
        return committed[key]

    def update_many(
        self,
        defaults: Mapping[str, Any],
        updater: Callable[[dict[str, Any]], Mapping[str, Any] | None],
    ) -> dict[str, Any]:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = {k: self._decode(k, self._read(conn, k), d) for k, d in defaults.items()}
                changes = updater(dict(current)) or {}

                now = time.time()
                for k, v in changes.items():
                    conn.execute(
                        """
                        INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                       updated_at = excluded.updated_at
                        """,
                        (k, json.dumps(v, ensure_ascii=False), now),
                    )
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise

            if changes:
                logger.debug("KV commit keys=%s", sorted(changes))
            current.update(changes)
            return current
        finally:
            conn.close()
