"""OAI-PMH response orchestration.

``OAIService`` owns one response document. Each verb handler appends the
``request`` echo and either its body or a single ``error`` element, so a
service instance serves exactly one request. ``handle_request`` validates
raw request arguments and dispatches to the matching handler.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.orm import Session

from oaipmh.config import Settings
from oaipmh.constants import (
    ERROR_MESSAGES,
    FORMAT_VERBS,
    IDENTIFY_FIELDS,
    LIST_VERBS,
    OAI_NAMESPACE,
    OAI_SCHEMA_LOCATION,
    XSI_NAMESPACE,
)
from oaipmh.enums import ErrorCode, Verb
from oaipmh.services.aggregator import QueryAggregator
from oaipmh.services.formats import MetadataSchema, SchemaConfigurationError, SchemaRegistry
from oaipmh.services.providers.base import Provider, RecordFilter
from oaipmh.services.tokens import DatabaseTokenStore, TokenState, TokenStore, new_token
from oaipmh.services.utils import format_datestamp, now_utc
from oaipmh.services.validation import OAIArgumentError, collect_arguments, parse_verb, validate_arguments
from oaipmh.services.xml import Response

logger = logging.getLogger(__name__)

ProviderSource = Mapping[str, Provider] | Iterable[tuple[str, Provider]]


class OAIService:
    def __init__(
        self,
        settings: Settings,
        db: Session,
        *,
        schemas: SchemaRegistry,
        providers: ProviderSource | None = None,
        token_store: TokenStore | None = None,
        schema: Any = None,
        stylesheet: str | None = None,
        limit: int | None = None,
        version: str = "1.0",
        encoding: str = "utf-8",
    ) -> None:
        self.settings = settings
        self.db = db
        self.schemas = schemas
        self.token_store = token_store if token_store is not None else DatabaseTokenStore(db, settings.token_ttl_seconds)
        self.limit = settings.effective_limit(limit)
        self.arguments: dict[str, str] = {}
        self.schema: MetadataSchema | None = None
        self._providers: dict[str, Provider] = {}

        self.response = Response(version, encoding)
        if stylesheet:
            self.response.stylesheet(stylesheet)
        (
            self.response.element("OAI-PMH", nsmap={None: OAI_NAMESPACE, "xsi": XSI_NAMESPACE})
            .attr("xsi:schemaLocation", f"{OAI_NAMESPACE} {OAI_SCHEMA_LOCATION}")
            .element("responseDate", format_datestamp(now_utc()))
            .end()
        )

        if schema:
            self.set_schema(schema)

        pairs = providers.items() if isinstance(providers, Mapping) else (providers or ())
        for key, provider in pairs:
            self.register(key, provider)

    def set_schema(self, candidate: Any) -> "OAIService":
        self.schema = self.schemas.resolve(candidate)
        self.schema.bind(self, self.response)
        return self

    @property
    def metadata_prefix(self) -> str | None:
        return self.schema.prefix if self.schema else None

    def _require_schema(self) -> MetadataSchema:
        if self.schema is None:
            raise SchemaConfigurationError("No metadata schema is active for this request")
        return self.schema

    def register(self, key: str, provider: Provider) -> "OAIService":
        self._providers[key] = provider
        return self

    @property
    def providers(self) -> dict[str, Provider]:
        return dict(self._providers)

    @property
    def aggregator(self) -> QueryAggregator:
        return QueryAggregator(self.db, self._providers)

    def _echo(self, verb: Verb, **arguments: str | None) -> None:
        merged = {"verb": verb.value}
        merged.update({key: value for key, value in self.arguments.items() if key != "verb"})
        merged.update({key: value for key, value in arguments.items() if value})
        self.arguments = merged

    def _request(self, arguments: Mapping[str, str] | None = None) -> None:
        self.response.element("request", self.settings.base_url)
        for key, value in (arguments or {}).items():
            self.response.attr(key, value)
        self.response.end()

    def error(self, code: ErrorCode | str | None = None, message: str | None = None) -> "OAIService":
        try:
            code = ErrorCode(code) if code else ErrorCode.bad_argument
        except ValueError:
            code = ErrorCode.bad_argument
        logger.info("OAI-PMH error %s for %s", code.value, self.arguments.get("verb", "<none>"))

        echoed = {} if code in {ErrorCode.bad_verb, ErrorCode.bad_argument} else self.arguments
        self._request(echoed)
        self.response.element("error", message or ERROR_MESSAGES[code]).attr("code", code.value).end()
        return self

    def identify(self) -> "OAIService":
        self._echo(Verb.identify)
        self._request(self.arguments)
        self.response.element(Verb.identify.value)

        values = {
            "repositoryName": self.settings.repository_name,
            "baseURL": self.settings.base_url,
            "protocolVersion": self.settings.protocol_version,
            "adminEmail": self.settings.admin_email,
            "earliestDatestamp": self.settings.earliest_datestamp,
            "deletedRecord": self.settings.deleted_record.value,
            "granularity": self.settings.granularity.value,
        }
        for key in IDENTIFY_FIELDS:
            if values.get(key):
                self.response.element(key, values[key]).end()

        self.response.end()
        return self

    def formats(self, identifier: str | None = None) -> "OAIService":
        self._echo(Verb.list_metadata_formats, identifier=identifier)
        if identifier and not any(provider.match(identifier) is not None for provider in self._providers.values()):
            return self.error(ErrorCode.id_does_not_exist)

        self._request(self.arguments)
        self.response.element(Verb.list_metadata_formats.value)
        for schema in self.schemas:
            (
                self.response.element("metadataFormat")
                .element("metadataPrefix", schema.prefix)
                .end()
                .element("schema", schema.schema_location)
                .end()
                .element("metadataNamespace", schema.namespace)
                .end()
                .end()
            )
        self.response.end()
        return self

    def sets(self) -> "OAIService":
        self._echo(Verb.list_sets)
        rows = self.aggregator.sets()
        if not rows:
            return self.error(ErrorCode.no_set_hierarchy)

        schema = self._require_schema()
        self._request(self.arguments)
        self.response.element(Verb.list_sets.value)
        schema.sets(rows)
        self.response.end()
        return self

    def identifiers(
        self,
        from_: str | None = None,
        until: str | None = None,
        set_: str | None = None,
        resumption: str | None = None,
    ) -> "OAIService":
        return self.records(from_, until, set_, verb=Verb.list_identifiers, resumption=resumption)

    def records(
        self,
        from_: str | None = None,
        until: str | None = None,
        set_: str | None = None,
        verb: Verb | str = Verb.list_records,
        resumption: str | None = None,
    ) -> "OAIService":
        verb = Verb(verb)
        schema = self._require_schema()
        if resumption:
            self._echo(verb, resumptionToken=resumption)
        else:
            self._echo(verb, metadataPrefix=schema.prefix, **{"from": from_, "until": until, "set": set_})

        limit = self.limit
        start = 0
        if resumption:
            state = self.token_store.get(resumption)
            if state is None:
                if self.settings.strict_resumption_tokens:
                    return self.error(ErrorCode.bad_resumption_token)
                logger.debug("Unknown resumption token %s, listing from the start", resumption)
            elif state.prefix != schema.prefix:
                return self.error(
                    ErrorCode.bad_resumption_token,
                    f"Resumption token was issued for {state.prefix}, not {schema.prefix}",
                )
            else:
                start = state.next_start
                from_ = from_ or state.from_
                until = until or state.until
                set_ = set_ or state.set

        queries = self.aggregator.record_queries(RecordFilter(from_=from_, until=until, set=set_))
        if not queries:
            return self.error(ErrorCode.no_records_match)

        token = new_token()
        self.token_store.set(
            token,
            TokenState(start=start, limit=limit, prefix=schema.prefix, from_=from_, until=until, set=set_),
        )

        page = self.aggregator.records(queries, start=start, limit=limit)
        if not page.rows:
            return self.error(ErrorCode.no_records_match)

        self._request(self.arguments)
        self.response.element(verb.value)
        schema.records(page.rows, metadata=verb == Verb.list_records)
        if page.has_more:
            (
                self.response.element("resumptionToken", token)
                .attr("completeListSize", page.total)
                .attr("cursor", page.cursor)
                .end()
            )
        self.response.end()
        return self

    def record(self, identifier: str) -> "OAIService":
        schema = self._require_schema()
        self._echo(Verb.get_record, identifier=identifier, metadataPrefix=schema.prefix)

        result = self.aggregator.record(identifier)
        if result is None:
            return self.error(ErrorCode.id_does_not_exist)
        key, row = result
        logger.debug("Identifier %s resolved by provider %s", identifier, key)

        self._request(self.arguments)
        self.response.element(Verb.get_record.value)
        schema.record(row)
        self.response.end()
        return self

    def xml(self) -> str:
        return self.response.end().get_xml(True)

    def __str__(self) -> str:
        return self.xml()


def handle_request(
    arguments: Mapping[str, str] | Iterable[tuple[str, str]],
    *,
    settings: Settings,
    db: Session,
    schemas: SchemaRegistry,
    providers: ProviderSource | None = None,
    token_store: TokenStore | None = None,
) -> OAIService:
    service = OAIService(
        settings,
        db,
        schemas=schemas,
        providers=providers,
        token_store=token_store,
        stylesheet=settings.stylesheet or None,
    )
    try:
        collected = collect_arguments(arguments)
        verb = parse_verb(collected.get("verb"))
        supplied = validate_arguments(verb, collected, settings.granularity)
    except OAIArgumentError as exc:
        return service.error(exc.code, exc.message)
    service.arguments = {"verb": verb.value, **supplied}

    token = supplied.get("resumptionToken")
    if verb == Verb.list_sets and token:
        return service.error(ErrorCode.bad_resumption_token, "Set lists are not paged")

    if verb in FORMAT_VERBS:
        prefix = supplied.get("metadataPrefix")
        if prefix is None and token and verb in LIST_VERBS:
            state = service.token_store.get(token)
            if state is None and settings.strict_resumption_tokens:
                return service.error(ErrorCode.bad_resumption_token)
            prefix = state.prefix if state else settings.metadata_prefix
        if not schemas.supports(prefix):
            return service.error(ErrorCode.cannot_disseminate_format, f"Unsupported metadataPrefix: {prefix}")
        service.set_schema(prefix)
    elif verb == Verb.list_sets:
        service.set_schema(settings.metadata_prefix)

    if verb == Verb.identify:
        return service.identify()
    if verb == Verb.list_metadata_formats:
        return service.formats(supplied.get("identifier"))
    if verb == Verb.list_sets:
        return service.sets()
    if verb in LIST_VERBS:
        return service.records(
            supplied.get("from"),
            supplied.get("until"),
            supplied.get("set"),
            verb=verb,
            resumption=token,
        )
    return service.record(supplied["identifier"])
