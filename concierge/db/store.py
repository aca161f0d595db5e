"""Key/value persistence backed by a single SQLite table."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable

from ..errors import DataCorruptionError
from .schema import ensure_schema

logger = logging.getLogger(__name__)

# Returned by an update function to leave the stored value untouched.
UNCHANGED: Any = object()


class KeyValueStore:
    """String keys mapped to JSON-or-primitive string values.

    Every value lives under exactly one key. Mutations that depend on the
    current value go through :meth:`update` / :meth:`update_json`, which run
    the read-modify-write inside one ``BEGIN IMMEDIATE`` transaction.
    """

    def __init__(
        self, db_path: str | Path = "~/.config/concierge/concierge.db"
    ) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def _get_conn(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._conn = ensure_schema(self._db_path)
            return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> KeyValueStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- raw string access -------------------------------------------------

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._get_conn().execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._write(self._get_conn(), key, value)

    def delete(self, *keys: str) -> None:
        with self._lock:
            self._get_conn().executemany(
                "DELETE FROM kv_store WHERE key = ?", [(k,) for k in keys]
            )

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def keys(self) -> list[str]:
        with self._lock:
            rows = self._get_conn().execute(
                "SELECT key FROM kv_store ORDER BY key"
            ).fetchall()
        return [r["key"] for r in rows]

    def update(
        self, key: str, fn: Callable[[str | None], str | None]
    ) -> str | None:
        """Atomically replace the value under ``key`` with ``fn(old)``.

        Returning None from ``fn`` deletes the key; returning
        :data:`UNCHANGED` skips the write.
        """
        with self._lock:
            conn = self._get_conn()
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                old_value = row["value"] if row else None
                new_value = fn(old_value)
                if new_value is UNCHANGED:
                    new_value = old_value
                elif new_value is None:
                    conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                else:
                    self._write(conn, key, new_value)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        return new_value

    # -- JSON helpers ------------------------------------------------------

    def get_json(self, key: str) -> Any:
        """Return the decoded value, or None when the key is absent.

        Raises:
            DataCorruptionError: If the stored text is not valid JSON.
        """
        raw = self.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))

    def update_json(
        self,
        key: str,
        fn: Callable[[Any], Any],
        default: Callable[[], Any],
    ) -> Any:
        """Atomic read-modify-write of a JSON value.

        A missing or corrupt value is replaced by ``default()`` before
        ``fn`` sees it; corruption is logged, not raised.
        """
        result: list[Any] = []

        def apply(raw: str | None) -> Any:
            current = default()
            if raw is not None:
                try:
                    current = _decode(key, raw)
                except DataCorruptionError as e:
                    logger.warning("%s; discarding it", e)
            new_value = fn(current)
            result.append(current if new_value is UNCHANGED else new_value)
            if new_value is UNCHANGED:
                return UNCHANGED
            return json.dumps(new_value, ensure_ascii=False)

        self.update(key, apply)
        return result[0]

    @staticmethod
    def _write(conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """INSERT INTO kv_store (key, value, updated_at)
               VALUES (?, ?, datetime('now', 'localtime'))
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = excluded.updated_at""",
            (key, value),
        )


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataCorruptionError(key, str(e)) from e
