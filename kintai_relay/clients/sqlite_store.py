"""SQLite-backed credential store for local and single-host deployments."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from kintai_relay.clients.errors import CredentialStoreError


class SQLiteCredentialStore:
    """Simple string key-value store kept in a single SQLite table."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS credential_kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM credential_kv WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Failed to read {key}: {exc}") from exc
        if not row:
            return None
        return row["value"]

    def put(self, key: str, value: str) -> None:
        self.put_many({key: value})

    def put_many(self, items: Mapping[str, str]) -> None:
        """Write every item in one transaction."""
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.executemany(
                    """
                    INSERT INTO credential_kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    [(key, value, updated_at) for key, value in items.items()],
                )
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Failed to write credentials: {exc}") from exc


__all__ = ["SQLiteCredentialStore"]
