from enum import Enum


class Verb(str, Enum):
    identify = "Identify"
    list_metadata_formats = "ListMetadataFormats"
    list_sets = "ListSets"
    list_identifiers = "ListIdentifiers"
    list_records = "ListRecords"
    get_record = "GetRecord"


class ErrorCode(str, Enum):
    bad_verb = "badVerb"
    bad_argument = "badArgument"
    id_does_not_exist = "idDoesNotExist"
    cannot_disseminate_format = "cannotDisseminateFormat"
    no_records_match = "noRecordsMatch"
    bad_resumption_token = "badResumptionToken"
    no_set_hierarchy = "noSetHierarchy"


class DeletedRecordPolicy(str, Enum):
    no = "no"
    transient = "transient"
    persistent = "persistent"


class Granularity(str, Enum):
    day = "YYYY-MM-DD"
    seconds = "YYYY-MM-DDThh:mm:ssZ"


class TokenStoreBackend(str, Enum):
    database = "database"
    memory = "memory"
