"""Metadata format handlers and the registry that resolves them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, ClassVar

from oaipmh.constants import DC_NAMESPACE, OAI_DC_NAMESPACE, OAI_DC_SCHEMA_LOCATION, XSI_NAMESPACE
from oaipmh.enums import Granularity
from oaipmh.services.utils import as_list, format_datestamp

if TYPE_CHECKING:
    from oaipmh.services.service import OAIService
    from oaipmh.services.xml import Response

logger = logging.getLogger(__name__)


class SchemaConfigurationError(ValueError):
    pass


class MetadataSchema(ABC):
    prefix: ClassVar[str]
    namespace: ClassVar[str]
    schema_location: ClassVar[str]

    def __init__(self) -> None:
        self.service: OAIService | None = None
        self.response: Response | None = None

    @classmethod
    def handles(cls, candidate: Any) -> bool:
        if isinstance(candidate, MetadataSchema):
            return isinstance(candidate, cls)
        value = str(candidate or "").strip()
        return value in {cls.prefix, cls.namespace, cls.schema_location}

    def bind(self, service: OAIService | None, response: Response) -> "MetadataSchema":
        self.service = service
        self.response = response
        return self

    @property
    def granularity(self) -> Granularity:
        if self.service is None:
            return Granularity.seconds
        return self.service.settings.granularity

    def _require_response(self) -> Response:
        if self.response is None:
            raise SchemaConfigurationError(f"Schema {self.prefix} is not bound to a response")
        return self.response

    def sets(self, rows: Iterable[dict[str, Any]]) -> None:
        response = self._require_response()
        for row in rows:
            response.element("set")
            response.element("setSpec", row["spec"]).end()
            response.element("setName", row.get("name") or row["spec"]).end()
            if row.get("description"):
                response.element("setDescription")
                self.set_description(row["description"])
                response.end()
            response.end()

    def set_description(self, description: str) -> None:
        (
            self._require_response()
            .element("oai_dc:dc", nsmap={"oai_dc": OAI_DC_NAMESPACE, "dc": DC_NAMESPACE, "xsi": XSI_NAMESPACE})
            .attr("xsi:schemaLocation", f"{OAI_DC_NAMESPACE} {OAI_DC_SCHEMA_LOCATION}")
            .element("dc:description", description)
            .end()
            .end()
        )

    def header(self, row: dict[str, Any]) -> None:
        response = self._require_response()
        response.element("header")
        if row.get("deleted"):
            response.attr("status", "deleted")
        response.element("identifier", row["identifier"]).end()
        response.element("datestamp", format_datestamp(row.get("datestamp"), self.granularity)).end()
        for spec in as_list(row.get("set_spec")):
            response.element("setSpec", spec).end()
        response.end()

    def records(self, rows: Iterable[dict[str, Any]], metadata: bool = True) -> None:
        response = self._require_response()
        for row in rows:
            if not metadata:
                self.header(row)
                continue
            response.element("record")
            self.header(row)
            if not row.get("deleted"):
                response.element("metadata")
                self.metadata(row)
                response.end()
            response.end()

    def record(self, row: dict[str, Any]) -> None:
        self.records([row], metadata=True)

    @abstractmethod
    def metadata(self, row: dict[str, Any]) -> None:
        """Write the format specific metadata block for one record row."""


class SchemaRegistry:
    """Ordered list of metadata schema classes.

    Resolution walks the list in registration order and the first class
    whose ``handles`` accepts the candidate wins.
    """

    def __init__(self, schemas: Iterable[type[MetadataSchema]]) -> None:
        self._schemas: list[type[MetadataSchema]] = []
        for schema in schemas:
            self.register(schema)
        if not self._schemas:
            raise SchemaConfigurationError("At least one metadata schema must be registered")

    def register(self, schema: type[MetadataSchema]) -> "SchemaRegistry":
        for index, existing in enumerate(self._schemas):
            if existing.prefix == schema.prefix:
                self._schemas[index] = schema
                return self
        self._schemas.append(schema)
        return self

    @property
    def schemas(self) -> list[type[MetadataSchema]]:
        return list(self._schemas)

    def __iter__(self):
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def find(self, candidate: Any) -> type[MetadataSchema] | None:
        for schema in self._schemas:
            if schema.handles(candidate):
                return schema
        return None

    def supports(self, prefix: str | None) -> bool:
        return bool(prefix) and self.find(prefix) is not None

    def resolve(self, candidate: Any) -> MetadataSchema:
        if isinstance(candidate, MetadataSchema):
            return candidate
        schema = self.find(candidate)
        if schema is None:
            raise SchemaConfigurationError(f'No schema handler found for schema "{candidate}".')
        logger.debug("Resolved metadata schema %s for %r", schema.prefix, candidate)
        return schema()
