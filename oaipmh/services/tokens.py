"""Resumption token persistence.

Each token maps to the paging state of the page it was minted for. Tokens
are independent records: writes never touch another token, and keys are
random so concurrent issuers do not collide. Every store expires tokens
after a TTL.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from oaipmh.models.core import ResumptionTokenRecord
from oaipmh.services.utils import now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenState:
    start: int
    limit: int
    prefix: str
    from_: str | None = None
    until: str | None = None
    set: str | None = None

    @property
    def next_start(self) -> int:
        return self.start + self.limit


class TokenStore(Protocol):
    def get(self, key: str) -> TokenState | None: ...

    def set(self, key: str, state: TokenState) -> None: ...


def new_token() -> str:
    return uuid4().hex


class MemoryTokenStore:
    def __init__(self, ttl_seconds: int = 86400, clock=time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, TokenState]] = {}

    def get(self, key: str) -> TokenState | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, state = entry
            if expires_at <= self._clock():
                del self._entries[key]
                logger.debug("Resumption token %s expired", key)
                return None
            return state

    def set(self, key: str, state: TokenState) -> None:
        with self._lock:
            now = self._clock()
            self._evict(now)
            # re-insert so dict order stays expiry order
            self._entries.pop(key, None)
            self._entries[key] = (now + self.ttl_seconds, state)

    def purge(self) -> int:
        with self._lock:
            return self._evict(self._clock())

    def _evict(self, now: float) -> int:
        """Drop expired entries from the front of the insertion-ordered map.

        Every entry gets the same TTL from a non-decreasing clock, so the
        oldest insertion always expires first.
        """
        evicted = 0
        while self._entries:
            key = next(iter(self._entries))
            if self._entries[key][0] > now:
                break
            del self._entries[key]
            evicted += 1
        if evicted:
            logger.debug("Evicted %d expired resumption tokens", evicted)
        return evicted

    def __len__(self) -> int:
        return len(self._entries)


class DatabaseTokenStore:
    def __init__(self, db: Session, ttl_seconds: int = 86400) -> None:
        self.db = db
        self.ttl_seconds = ttl_seconds

    def get(self, key: str) -> TokenState | None:
        row = self.db.scalar(
            select(ResumptionTokenRecord).where(
                ResumptionTokenRecord.token == key,
                ResumptionTokenRecord.expires_at > now_utc(),
            )
        )
        if row is None:
            return None
        return TokenState(
            start=row.start,
            limit=row.page_limit,
            prefix=row.metadata_prefix,
            from_=row.filter_from,
            until=row.filter_until,
            set=row.filter_set,
        )

    def set(self, key: str, state: TokenState) -> None:
        self.db.add(
            ResumptionTokenRecord(
                token=key,
                start=state.start,
                page_limit=state.limit,
                metadata_prefix=state.prefix,
                filter_from=state.from_,
                filter_until=state.until,
                filter_set=state.set,
                expires_at=now_utc() + timedelta(seconds=self.ttl_seconds),
            )
        )
        # durable before any page query runs
        self.db.commit()

    def purge(self) -> int:
        result = self.db.execute(delete(ResumptionTokenRecord).where(ResumptionTokenRecord.expires_at <= now_utc()))
        self.db.commit()
        return int(result.rowcount or 0)

    def count_expired(self) -> int:
        return int(
            self.db.scalar(
                select(func.count())
                .select_from(ResumptionTokenRecord)
                .where(ResumptionTokenRecord.expires_at <= now_utc())
            )
            or 0
        )
