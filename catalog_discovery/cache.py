"""SQLite snapshot cache for catalog feed pages."""
from __future__ import annotations

import hashlib
import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def make_request_cache_key(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    payload = json.dumps(params or {}, sort_keys=True, separators=(",", ":"))
    raw = f"{url}|{payload}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


class SnapshotCache:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._configure_conn()
        self._init_db()

    def _configure_conn(self) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute("PRAGMA journal_mode=WAL")
            cur.fetchone()
        except sqlite3.DatabaseError:
            pass
        try:
            cur.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.DatabaseError:
            pass

    def _init_db(self) -> None:
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS catalog_snapshots (
                key TEXT PRIMARY KEY,
                url TEXT,
                response_json TEXT,
                fetched_at REAL
            )
            """
        )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "SnapshotCache":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def get_snapshot(
        self,
        key: str,
        max_age_seconds: Optional[float] = None,
        now: Optional[float] = None,
    ) -> Optional[Any]:
        """Return the cached payload, or None when missing or older than ``max_age_seconds``."""
        cur = self.conn.cursor()
        cur.execute("SELECT response_json, fetched_at FROM catalog_snapshots WHERE key = ?", (key,))
        row = cur.fetchone()
        if not row:
            return None
        if max_age_seconds is not None:
            current = now if now is not None else datetime.now(timezone.utc).timestamp()
            if current - float(row["fetched_at"]) > max_age_seconds:
                return None
        return json.loads(row["response_json"])

    def set_snapshot(self, key: str, url: str, response: Any, now: Optional[float] = None) -> None:
        fetched_at = now if now is not None else datetime.now(timezone.utc).timestamp()
        self.conn.execute(
            """
            INSERT OR REPLACE INTO catalog_snapshots (key, url, response_json, fetched_at)
            VALUES (?, ?, ?, ?)
            """,
            (key, url, json.dumps(response), fetched_at),
        )
        self.conn.commit()

    def clear(self) -> int:
        cur = self.conn.execute("DELETE FROM catalog_snapshots")
        self.conn.commit()
        return cur.rowcount
