from oaipmh.enums import ErrorCode, Verb

OAI_NAMESPACE = "http://www.openarchives.org/OAI/2.0/"
OAI_SCHEMA_LOCATION = "http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
DC_NAMESPACE = "http://purl.org/dc/elements/1.1/"
OAI_DC_NAMESPACE = "http://www.openarchives.org/OAI/2.0/oai_dc/"
OAI_DC_SCHEMA_LOCATION = "http://www.openarchives.org/OAI/2.0/oai_dc.xsd"

IDENTIFY_FIELDS = (
    "repositoryName",
    "baseURL",
    "protocolVersion",
    "adminEmail",
    "earliestDatestamp",
    "deletedRecord",
    "granularity",
)

DUBLIN_CORE_ELEMENTS = (
    "title",
    "creator",
    "subject",
    "description",
    "publisher",
    "contributor",
    "date",
    "type",
    "format",
    "identifier",
    "source",
    "language",
    "relation",
    "coverage",
    "rights",
)

ERROR_MESSAGES = {
    ErrorCode.bad_verb: "Illegal OAI verb",
    ErrorCode.bad_argument: "The request includes illegal arguments or is missing required arguments",
    ErrorCode.id_does_not_exist: "The value of the identifier argument is unknown or illegal in this repository",
    ErrorCode.cannot_disseminate_format: "The metadata format identified by the metadataPrefix argument is not supported",
    ErrorCode.no_records_match: "The combination of the values of the from, until and set arguments results in an empty list",
    ErrorCode.bad_resumption_token: "The value of the resumptionToken argument is invalid or expired",
    ErrorCode.no_set_hierarchy: "The repository does not support sets",
}

# verb -> (required arguments, optional arguments)
VERB_ARGUMENTS: dict[Verb, tuple[frozenset[str], frozenset[str]]] = {
    Verb.identify: (frozenset(), frozenset()),
    Verb.list_metadata_formats: (frozenset(), frozenset({"identifier"})),
    Verb.list_sets: (frozenset(), frozenset({"resumptionToken"})),
    Verb.list_identifiers: (frozenset({"metadataPrefix"}), frozenset({"from", "until", "set"})),
    Verb.list_records: (frozenset({"metadataPrefix"}), frozenset({"from", "until", "set"})),
    Verb.get_record: (frozenset({"identifier", "metadataPrefix"}), frozenset()),
}

LIST_VERBS = frozenset({Verb.list_identifiers, Verb.list_records})
FORMAT_VERBS = frozenset({Verb.list_identifiers, Verb.list_records, Verb.get_record})
