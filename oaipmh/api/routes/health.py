from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from oaipmh.api.deps import get_providers, get_schemas
from oaipmh.database import get_db
from oaipmh.models.core import ResumptionTokenRecord
from oaipmh.schemas import HealthDetailsResponse, HealthResponse
from oaipmh.services.formats import SchemaRegistry
from oaipmh.services.providers import Provider

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(UTC))


@router.get("/health/details", response_model=HealthDetailsResponse)
def health_details(
    db: Session = Depends(get_db),
    schemas: SchemaRegistry = Depends(get_schemas),
    providers: list[tuple[str, Provider]] = Depends(get_providers),
) -> HealthDetailsResponse:
    db.execute(select(1))
    now = datetime.now(UTC)
    active_tokens = db.scalar(
        select(func.count()).select_from(ResumptionTokenRecord).where(ResumptionTokenRecord.expires_at > now)
    )
    return HealthDetailsResponse(
        status="ok",
        timestamp=now,
        database_ok=True,
        active_tokens=int(active_tokens or 0),
        providers=[key for key, _ in providers],
        metadata_formats=[schema.prefix for schema in schemas],
    )
