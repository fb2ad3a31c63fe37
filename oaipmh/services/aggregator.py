from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select, union
from sqlalchemy.orm import Session

from oaipmh.services.providers.base import Provider, RecordFilter

logger = logging.getLogger(__name__)


@dataclass
class RecordPage:
    total: int
    start: int
    limit: int
    rows: list[dict[str, Any]]

    @property
    def cursor(self) -> int:
        return self.start + self.limit

    @property
    def has_more(self) -> bool:
        return self.cursor < self.total


class QueryAggregator:
    """Runs provider query fragments as one result set."""

    def __init__(self, db: Session, providers: Mapping[str, Provider]) -> None:
        self.db = db
        self.providers = providers

    def set_queries(self) -> list[Select]:
        queries = []
        for key, provider in self.providers.items():
            query = provider.sets()
            if query is None:
                logger.debug("Provider %s has no set hierarchy", key)
                continue
            queries.append(query)
        return queries

    def sets(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for query in self.set_queries():
            rows.extend(dict(row) for row in self.db.execute(query).mappings())
        return rows

    def record_queries(self, filters: RecordFilter) -> list[Select]:
        queries = []
        for key, provider in self.providers.items():
            query = provider.records(filters)
            if query is None:
                logger.debug("Provider %s contributes no records for %s", key, filters)
                continue
            queries.append(query)
        return queries

    @staticmethod
    def combine(queries: list[Select]):
        if len(queries) == 1:
            return queries[0].subquery("m")
        return union(*queries).subquery("m")

    def count(self, queries: list[Select]) -> int:
        combined = self.combine(queries)
        return int(self.db.scalar(select(func.count()).select_from(combined)) or 0)

    def page(self, queries: list[Select], *, start: int, limit: int) -> list[dict[str, Any]]:
        combined = self.combine(queries)
        stmt = select(combined).order_by(combined.c.identifier).limit(limit).offset(start)
        return [dict(row) for row in self.db.execute(stmt).mappings()]

    def records(self, queries: list[Select], *, start: int, limit: int) -> RecordPage:
        total = self.count(queries)
        rows = self.page(queries, start=start, limit=limit)
        return RecordPage(total=total, start=start, limit=limit, rows=self.post_process(rows) if rows else rows)

    def post_process(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        for provider in self.providers.values():
            rows = provider.post_records(rows)
        return rows

    def record(self, identifier: str) -> tuple[str, dict[str, Any]] | None:
        for key, provider in self.providers.items():
            local_id = provider.match(identifier)
            if local_id is None:
                continue
            query = provider.record(local_id)
            row = self.db.execute(query).mappings().first() if query is not None else None
            if row is None:
                return None
            rows = provider.post_records([dict(row)])
            return (key, rows[0]) if rows else None
        return None
