from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, Select, String, Table, cast, literal, null, select
from sqlalchemy.orm import DeclarativeBase

from oaipmh.services.providers.base import Provider, RecordFilter
from oaipmh.services.validation import parse_datestamp


class TableProvider(Provider):
    """Expose one table as OAI records.

    ``columns`` maps row contract keys (``title``, ``creator``, ``deleted``
    and so on) to column names on ``table``. The OAI identifier is built as
    ``{identifier_prefix}{id_column}`` and the datestamp comes from
    ``datestamp_column``, which is also used for ``from``/``until``.
    """

    def __init__(
        self,
        table: Table | type[DeclarativeBase],
        *,
        identifier_prefix: str,
        id_column: str = "id",
        datestamp_column: str = "updated_at",
        columns: Mapping[str, str] | None = None,
        set_spec: str | None = None,
        set_name: str | None = None,
        set_description: str | None = None,
        extra_columns: tuple[str, ...] = (),
    ) -> None:
        self.table = table.__table__ if hasattr(table, "__table__") else table
        self.identifier_prefix = identifier_prefix
        self.id_column = id_column
        self.datestamp_column = datestamp_column
        self.columns = dict(columns or {})
        self.set_spec = set_spec
        self.set_name = set_name
        self.set_description = set_description
        # Record queries are unioned with other providers, so every provider
        # must emit the same column list; ``extra_columns`` pads it with NULLs.
        self.extra_columns = extra_columns

    def _column(self, name: str) -> ColumnElement[Any]:
        return self.table.c[name]

    def _selected_columns(self) -> list[ColumnElement[Any]]:
        selected: list[ColumnElement[Any]] = [
            (literal(self.identifier_prefix) + cast(self._column(self.id_column), String)).label("identifier"),
            self._column(self.datestamp_column).label("datestamp"),
            (literal(self.set_spec) if self.set_spec else null()).label("set_spec"),
        ]
        for key, column_name in self.columns.items():
            selected.append(self._column(column_name).label(key))
        for key in self.extra_columns:
            if key not in self.columns:
                selected.append(null().label(key))
        return selected

    def sets(self) -> Select | None:
        if not self.set_spec:
            return None
        return select(
            literal(self.set_spec).label("spec"),
            literal(self.set_name or self.set_spec).label("name"),
            (literal(self.set_description) if self.set_description else null()).label("description"),
        )

    def records(self, filters: RecordFilter) -> Select | None:
        if filters.set and filters.set != self.set_spec:
            return None
        stmt = select(*self._selected_columns())
        datestamp = self._column(self.datestamp_column)
        if filters.from_:
            stmt = stmt.where(datestamp >= parse_datestamp(filters.from_))
        if filters.until:
            stmt = stmt.where(datestamp <= parse_datestamp(filters.until, upper=True))
        return stmt

    def match(self, identifier: str) -> Any | None:
        if not identifier.startswith(self.identifier_prefix):
            return None
        local_id = identifier[len(self.identifier_prefix):]
        if not local_id:
            return None
        try:
            converted = self._column(self.id_column).type.python_type(local_id)
        except (NotImplementedError, TypeError, ValueError):
            return None
        # only the canonical spelling emitted in headers is claimed
        if str(converted) != local_id:
            return None
        return converted

    def record(self, local_id: Any) -> Select | None:
        column = self._column(self.id_column)
        return select(*self._selected_columns()).where(column == local_id)
