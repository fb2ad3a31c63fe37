from typing import Any

from oaipmh.constants import DC_NAMESPACE, DUBLIN_CORE_ELEMENTS, OAI_DC_NAMESPACE, OAI_DC_SCHEMA_LOCATION, XSI_NAMESPACE
from oaipmh.services.formats.base import MetadataSchema
from oaipmh.services.utils import as_list


class DublinCoreSchema(MetadataSchema):
    prefix = "oai_dc"
    namespace = OAI_DC_NAMESPACE
    schema_location = OAI_DC_SCHEMA_LOCATION

    def metadata(self, row: dict[str, Any]) -> None:
        response = self._require_response()
        response.element(
            "oai_dc:dc",
            nsmap={"oai_dc": self.namespace, "dc": DC_NAMESPACE, "xsi": XSI_NAMESPACE},
        ).attr("xsi:schemaLocation", f"{self.namespace} {self.schema_location}")
        for name in DUBLIN_CORE_ELEMENTS:
            for value in as_list(row.get(name)):
                response.element(f"dc:{name}", value).end()
        response.end()
