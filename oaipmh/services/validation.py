from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, time, timedelta
from typing import Any

from oaipmh.constants import ERROR_MESSAGES, LIST_VERBS, VERB_ARGUMENTS
from oaipmh.enums import ErrorCode, Granularity, Verb


class OAIArgumentError(ValueError):
    def __init__(self, code: ErrorCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        super().__init__(self.message)


def require(condition: bool, message: str, code: ErrorCode = ErrorCode.bad_argument) -> None:
    if not condition:
        raise OAIArgumentError(code, message)


def datestamp_granularity(value: str) -> Granularity:
    try:
        datetime.strptime(value, "%Y-%m-%d")
        return Granularity.day
    except ValueError:
        pass
    try:
        datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ")
        return Granularity.seconds
    except ValueError as exc:
        raise OAIArgumentError(ErrorCode.bad_argument, f"Illegal datestamp: {value}") from exc


def parse_datestamp(value: str, *, upper: bool = False) -> datetime:
    if datestamp_granularity(value) == Granularity.day:
        parsed = datetime.combine(datetime.strptime(value, "%Y-%m-%d").date(), time.min, tzinfo=UTC)
        if upper:
            parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
        return parsed
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=UTC)


def parse_verb(value: Any) -> Verb:
    try:
        return Verb(value)
    except ValueError as exc:
        message = f"Illegal OAI verb: {value}" if value else "Missing OAI verb"
        raise OAIArgumentError(ErrorCode.bad_verb, message) from exc


def validate_arguments(verb: Verb, arguments: Mapping[str, str], granularity: Granularity) -> dict[str, str]:
    required, optional = VERB_ARGUMENTS[verb]
    supplied = {key: value for key, value in arguments.items() if key != "verb"}

    token = supplied.get("resumptionToken")
    if token is not None and verb in LIST_VERBS:
        extra = sorted(set(supplied) - {"resumptionToken"})
        require(not extra, f"resumptionToken is an exclusive argument, got: {', '.join(extra)}")
        require(bool(token.strip()), "resumptionToken must not be empty", ErrorCode.bad_resumption_token)
        return supplied

    allowed = required | optional
    unknown = sorted(set(supplied) - allowed)
    require(not unknown, f"Illegal argument(s) for {verb.value}: {', '.join(unknown)}")
    missing = sorted(name for name in required if not supplied.get(name))
    require(not missing, f"Missing required argument(s) for {verb.value}: {', '.join(missing)}")

    stamps = {name: supplied[name] for name in ("from", "until") if supplied.get(name)}
    levels = {name: datestamp_granularity(value) for name, value in stamps.items()}
    for name, level in levels.items():
        require(
            not (granularity == Granularity.day and level == Granularity.seconds),
            f"The {name} argument is finer than the repository granularity",
        )
    if len(levels) == 2:
        require(levels["from"] == levels["until"], "The from and until arguments must have the same granularity")
        require(
            parse_datestamp(stamps["from"]) <= parse_datestamp(stamps["until"]),
            "The from argument must be less than or equal to the until argument",
        )
    return supplied


def collect_arguments(items: Mapping[str, str] | Iterable[tuple[str, str]]) -> dict[str, str]:
    pairs = items.items() if isinstance(items, Mapping) else items
    arguments: dict[str, str] = {}
    for key, value in pairs:
        if key in arguments:
            code = ErrorCode.bad_verb if key == "verb" else ErrorCode.bad_argument
            raise OAIArgumentError(code, f"Repeated argument: {key}")
        arguments[key] = value
    return arguments
