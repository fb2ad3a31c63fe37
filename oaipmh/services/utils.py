from datetime import UTC, date, datetime

from oaipmh.enums import Granularity


def now_utc() -> datetime:
    return datetime.now(UTC)


def format_datestamp(value: datetime | date | str | None, granularity: Granularity = Granularity.seconds) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        if granularity == Granularity.day:
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    if granularity == Granularity.day:
        return value.isoformat()
    return f"{value.isoformat()}T00:00:00Z"


def as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [item for item in value if item not in (None, "")]
    if value == "":
        return []
    return [value]
