# lunches/brain.py
"""
Key-value "brain" used to persist bot state (the current order) between
restarts.

Values are stored as JSON text. Three backends:
- MemoryBrain: a dict, for tests and single-process runs
- SqliteBrain: one table in a local SQLite file
- RedisBrain: a Redis server (production)

Driver errors (sqlite3.Error, redis.RedisError) are not wrapped; only a
missing key is translated, into BrainKeyError.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import redis

from .errors import LunchesError

log = logging.getLogger(__name__)


class BrainError(LunchesError):
    """Base class for brain failures raised by this module."""


class BrainKeyError(BrainError, KeyError):
    """The requested key is not in the brain."""

    def __str__(self) -> str:
        return f"key not found: {self.args[0]!r}" if self.args else "key not found"


class Brain(ABC):
    def set(self, key: str, value: Any) -> None:
        """Store `value` (anything json.dumps accepts) under `key`."""
        self.write(key, json.dumps(value))

    def get(self, key: str) -> Any:
        """
        Decoded value stored under `key`.

        Raises BrainKeyError if absent, json.JSONDecodeError if the stored text
        is not JSON.
        """
        return json.loads(self.read(key))

    @abstractmethod
    def write(self, key: str, raw: str) -> None: ...

    @abstractmethod
    def read(self, key: str) -> str: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    def close(self) -> None:
        pass

    def __enter__(self) -> "Brain":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


# ------------------------------------------------------------
# In-memory
# ------------------------------------------------------------
class MemoryBrain(Brain):
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def write(self, key: str, raw: str) -> None:
        self.data[key] = raw

    def read(self, key: str) -> str:
        try:
            return self.data[key]
        except KeyError:
            raise BrainKeyError(key) from None

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def __len__(self) -> int:
        return len(self.data)


# ------------------------------------------------------------
# SQLite
# ------------------------------------------------------------
class SqliteBrain(Brain):
    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self.path = str(path)
        if self.path != ":memory:":
            p = Path(self.path).expanduser()
            p.parent.mkdir(parents=True, exist_ok=True)
            self.path = str(p)
        # one shared connection (":memory:" lives only as long as it does)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock, self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS brain (
                  key        TEXT PRIMARY KEY,
                  value      TEXT NOT NULL,
                  updated_at TEXT NOT NULL
                )
            """)

    def write(self, key: str, raw: str) -> None:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO brain (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = excluded.updated_at",
                (key, raw, now),
            )

    def read(self, key: str) -> str:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM brain WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            raise BrainKeyError(key)
        return row["value"]

    def delete(self, key: str) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM brain WHERE key = ?", (key,))

    def keys(self) -> list:
        with self._lock:
            rows = self._conn.execute("SELECT key FROM brain ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    def close(self) -> None:
        self._conn.close()


# ------------------------------------------------------------
# Redis
# ------------------------------------------------------------
def _normalize_redis_url(url: str) -> str:
    # Legacy hosted URLs look like redis://h:<password>@host:port, where "h"
    # is not a real ACL user.
    if url.startswith("redis://h:"):
        return "redis://:" + url[len("redis://h:"):]
    return url


class RedisBrain(Brain):
    def __init__(self, url: Optional[str] = None, client: Any = None) -> None:
        if client is None:
            if not url:
                raise ValueError("RedisBrain needs a url or a client")
            client = redis.Redis.from_url(_normalize_redis_url(url), decode_responses=True)
        self.client = client

    def ping(self) -> bool:
        return bool(self.client.ping())

    def write(self, key: str, raw: str) -> None:
        self.client.set(key, raw)

    def read(self, key: str) -> str:
        val = self.client.get(key)
        if val is None:
            raise BrainKeyError(key)
        if isinstance(val, bytes):
            val = val.decode("utf-8")
        return val

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def close(self) -> None:
        self.client.close()


# ------------------------------------------------------------
# Factory
# ------------------------------------------------------------
def open_brain(url: str) -> Brain:
    """
    Brain for a URL:
      memory://                 -> MemoryBrain
      sqlite:///rel/path.db     -> SqliteBrain (sqlite:////abs/path.db, sqlite:///:memory:)
      redis://..., rediss://... -> RedisBrain
      anything else             -> treated as a SQLite file path
    """
    url = (url or "").strip()
    if not url or url == "memory://":
        return MemoryBrain()
    if url.startswith(("redis://", "rediss://")):
        log.info("Using redis brain")
        return RedisBrain(url=url)
    if url.startswith("sqlite://"):
        path = url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:] or ":memory:"
        return SqliteBrain(path or ":memory:")
    return SqliteBrain(url)
