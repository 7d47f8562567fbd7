"""
cache/store.py -- SQLite-backed key/value cache with wildcard key lookup.

A small Redis-like surface over one SQLite table so the product listing
cache survives restarts and needs no extra service. Values are stored as
JSON text. Entries never expire unless a ttl is given -- expiry is a store
policy, not something callers rely on for correctness.

Usage:
    store = CacheStore()
    store.set("products:*::", [...])
    store.get("products:*::")            # returns the value or None
    store.keys("products:*")             # glob-style enumeration
    store.delete("products:*::")
    store.purge_expired()                # call periodically to trim old entries
    store.incr("products#generation")    # atomic counter, never expires

NamespaceCache scopes a CacheStore to one key prefix and owns invalidation
for that prefix. Callers only see get / generation / set / invalidate_namespace().
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("shopfront.cache")

_DEFAULT_DB = Path("shopfront_cache.db")

_DDL = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT PRIMARY KEY,
    data        TEXT NOT NULL,
    cached_at   REAL NOT NULL,
    expires_at  REAL
);
"""


class CacheStore:
    def __init__(self, db_path: Path | str = _DEFAULT_DB, default_ttl: int = 0) -> None:
        self.default_ttl = default_ttl
        # One connection shared across request threads; the lock serializes use of it.
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)
        self._conn.commit()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for key, or None if absent or expired."""
        with self._lock:
            row = self._conn.execute(
                "SELECT data, expires_at FROM cache_entries WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            data, expires_at = row
            if expires_at is not None and time.time() >= expires_at:
                self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                self._conn.commit()
                return None
        return json.loads(data)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store value under key, replacing any existing entry.

        ttl (seconds) overrides the store default; 0 or None with a zero
        default means the entry lives until deleted.
        """
        effective_ttl = self.default_ttl if ttl is None else ttl
        now = time.time()
        expires_at = now + effective_ttl if effective_ttl > 0 else None
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, data, cached_at, expires_at) VALUES (?, ?, ?, ?)",
                (key, json.dumps(value), now, expires_at),
            )
            self._conn.commit()

    def set_if(self, key: str, value: Any, guard_key: str, expected: int, ttl: Optional[int] = None) -> bool:
        """Store value only while the counter at guard_key still equals expected.

        A missing counter reads as 0. The check and the write are one SQL
        statement, so an incr() on guard_key either lands before (and the
        write is skipped) or after (and deletes what was written). Returns
        whether the value was stored.
        """
        effective_ttl = self.default_ttl if ttl is None else ttl
        now = time.time()
        expires_at = now + effective_ttl if effective_ttl > 0 else None
        with self._lock:
            cursor = self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, data, cached_at, expires_at) "
                "SELECT ?, ?, ?, ? WHERE COALESCE("
                "(SELECT CAST(data AS INTEGER) FROM cache_entries WHERE key = ?), 0) = ?",
                (key, json.dumps(value), now, expires_at, guard_key, expected),
            )
            self._conn.commit()
        return cursor.rowcount == 1

    def incr(self, key: str) -> int:
        """Atomically add one to the integer counter at key and return the new value."""
        with self._lock:
            self._conn.execute(
                "INSERT INTO cache_entries (key, data, cached_at, expires_at) VALUES (?, '1', ?, NULL) "
                "ON CONFLICT(key) DO UPDATE SET data = CAST(data AS INTEGER) + 1, "
                "cached_at = excluded.cached_at, expires_at = NULL",
                (key, time.time()),
            )
            row = self._conn.execute("SELECT data FROM cache_entries WHERE key = ?", (key,)).fetchone()
            self._conn.commit()
        return int(row[0])

    def keys(self, pattern: str = "*") -> list[str]:
        """Return every key matching a glob pattern ('*' any run, '?' one char)."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT key FROM cache_entries WHERE key GLOB ? ORDER BY key",
                (pattern,),
            ).fetchall()
        return [r[0] for r in rows]

    def delete(self, *keys: str) -> int:
        """Delete the given keys. Returns the number of rows removed."""
        if not keys:
            return 0
        with self._lock:
            cursor = self._conn.executemany("DELETE FROM cache_entries WHERE key = ?", [(k,) for k in keys])
            self._conn.commit()
        return cursor.rowcount

    def clear(self) -> int:
        with self._lock:
            cursor = self._conn.execute("DELETE FROM cache_entries")
            self._conn.commit()
        return cursor.rowcount

    def purge_expired(self) -> int:
        """Delete all entries past their expiry. Returns number of rows removed."""
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM cache_entries WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (time.time(),),
            )
            self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class NamespaceCache:
    """All cache entries sharing the "<namespace>:" key prefix.

    invalidate_namespace() enumerates the prefix and deletes every match.
    Enumeration is O(keys in the store), which is fine for one process and
    one listing cache but does not scale to a large shared cache. Swapping in
    tag- or version-based invalidation only changes this class.

    Every invalidation also bumps a generation counter kept outside the
    prefix ("<namespace>#generation"). A reader that takes generation()
    before querying and passes it to set() cannot store a snapshot that an
    invalidation has overtaken in the meantime.
    """

    def __init__(self, store: CacheStore, namespace: str) -> None:
        self.store = store
        self.namespace = namespace
        self.generation_key = f"{namespace}#generation"

    def key(self, *parts: object) -> str:
        """Join parts under the namespace: key("*", "", "") -> "products:*::"."""
        return ":".join([self.namespace, *("" if p is None else str(p) for p in parts)])

    def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    def generation(self) -> int:
        return int(self.store.get(self.generation_key) or 0)

    def set(self, key: str, value: Any, generation: Optional[int] = None) -> bool:
        """Store value; with a generation, only if no invalidation happened since it was read."""
        if generation is None:
            self.store.set(key, value)
            return True
        return self.store.set_if(key, value, self.generation_key, generation)

    def invalidate_namespace(self) -> int:
        self.store.incr(self.generation_key)
        keys = self.store.keys(f"{self.namespace}:*")
        removed = self.store.delete(*keys) if keys else 0
        logger.debug("Invalidated %d '%s' cache entries", removed, self.namespace)
        return removed
