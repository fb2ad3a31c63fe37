"""Metadata formats the repository can disseminate."""

from oaipmh.services.formats.base import MetadataSchema, SchemaConfigurationError, SchemaRegistry
from oaipmh.services.formats.dublin_core import DublinCoreSchema

DEFAULT_SCHEMAS: tuple[type[MetadataSchema], ...] = (DublinCoreSchema,)

__all__ = ["DEFAULT_SCHEMAS", "DublinCoreSchema", "MetadataSchema", "SchemaConfigurationError", "SchemaRegistry"]
