from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class HealthDetailsResponse(BaseModel):
    status: str
    timestamp: datetime
    database_ok: bool
    active_tokens: int
    providers: list[str]
    metadata_formats: list[str]
