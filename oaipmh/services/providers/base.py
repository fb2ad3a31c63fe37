from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select


@dataclass(frozen=True)
class RecordFilter:
    from_: str | None = None
    until: str | None = None
    set: str | None = None


class Provider(ABC):
    """Source of OAI sets and records.

    Fragments returned by ``sets`` and ``records`` are combined with the
    fragments of every other registered provider, so each one must select
    the same labelled columns: ``spec, name, description`` for sets and at
    least ``identifier, datestamp`` for records. Returning ``None`` means
    the provider has nothing to contribute.
    """

    def sets(self) -> Select | None:
        return None

    @abstractmethod
    def records(self, filters: RecordFilter) -> Select | None:
        """Return a query enumerating records that match ``filters``."""

    @abstractmethod
    def match(self, identifier: str) -> Any | None:
        """Return the local id for ``identifier`` if this provider owns it."""

    @abstractmethod
    def record(self, local_id: Any) -> Select | None:
        """Return a query selecting the single record for ``local_id``."""

    def post_records(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return rows
