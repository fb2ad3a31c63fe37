from oaipmh.models.core import ResumptionTokenRecord

__all__ = [
    "ResumptionTokenRecord",
]
