"""
Client-side daily quota for full analysis runs.

The gate is advisory: it lives with the client installation and nothing on the
backend enforces it. Concurrent clients sharing one store may over- or
under-count by a run; there is no cross-process lock.
"""

from __future__ import annotations

import hmac
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

DATE_KEY = "date"
COUNT_KEY = "count"
UNLIMITED_KEY = "unlimited"


class QuotaStore(Protocol):
    """Minimal persistence capability required by the quota gate."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryQuotaStore:
    """Dictionary-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SQLiteQuotaStore:
    """Persist quota values in a small SQLite table next to the installation."""

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
                CREATE TABLE IF NOT EXISTS quota_values (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM quota_values WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO quota_values (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )


@dataclass(frozen=True, slots=True)
class QuotaState:
    """Snapshot of the counter as currently stored."""

    date: Optional[str]
    count: int
    unlimited: bool


def _read_count(raw: Optional[str]) -> int:
    try:
        return max(int(raw or 0), 0)
    except ValueError:
        logger.warning("Discarding corrupt quota count %r", raw)
        return 0


class QuotaGate:
    """Allow at most ``daily_limit`` analysis runs per calendar day."""

    def __init__(
        self,
        store: QuotaStore,
        *,
        daily_limit: int = 3,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._daily_limit = daily_limit
        self._today = today
        self._lock = threading.Lock()

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def state(self) -> QuotaState:
        return QuotaState(
            date=self._store.get(DATE_KEY),
            count=_read_count(self._store.get(COUNT_KEY)),
            unlimited=self._store.get(UNLIMITED_KEY) == "true",
        )

    def try_consume(self) -> bool:
        """Consume one run from today's allowance; False when it is spent."""
        with self._lock:
            if self._store.get(UNLIMITED_KEY) == "true":
                return True

            today = self._today().isoformat()
            count = _read_count(self._store.get(COUNT_KEY))
            if self._store.get(DATE_KEY) != today:
                count = 0
                self._store.set(DATE_KEY, today)
                self._store.set(COUNT_KEY, "0")

            if count >= self._daily_limit:
                logger.info("Daily analysis quota of %d reached", self._daily_limit)
                return False

            self._store.set(COUNT_KEY, str(count + 1))
            return True

    def remaining(self) -> Optional[int]:
        """Runs left today, or None when the quota is lifted."""
        current = self.state()
        if current.unlimited:
            return None
        if current.date != self._today().isoformat():
            return self._daily_limit
        return max(self._daily_limit - current.count, 0)


class QuotaAdmin:
    """Secret-gated switch that lifts the daily quota for an installation."""

    def __init__(self, store: QuotaStore, *, admin_secret: Optional[str]) -> None:
        self._store = store
        self._admin_secret = admin_secret

    def enable_unlimited(self, secret: str) -> bool:
        if not self._admin_secret:
            logger.warning("Unlimited mode requested but no admin secret is configured")
            return False
        if not hmac.compare_digest(secret.encode(), self._admin_secret.encode()):
            logger.warning("Rejected unlimited mode request with invalid secret")
            return False
        self._store.set(UNLIMITED_KEY, "true")
        logger.info("Unlimited analysis mode enabled")
        return True

    def disable_unlimited(self) -> None:
        self._store.set(UNLIMITED_KEY, "false")


__all__ = [
    "InMemoryQuotaStore",
    "QuotaAdmin",
    "QuotaGate",
    "QuotaState",
    "QuotaStore",
    "SQLiteQuotaStore",
]
