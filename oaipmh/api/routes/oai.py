from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from oaipmh.api.deps import AppSettings, DBSession, get_providers, get_request_arguments, get_schemas, get_token_store
from oaipmh.config import Settings
from oaipmh.services.formats import SchemaRegistry
from oaipmh.services.providers import Provider
from oaipmh.services.service import handle_request
from oaipmh.services.tokens import TokenStore

router = APIRouter(tags=["oai"])


@router.api_route("/oai", methods=["GET", "POST"], response_class=Response)
def oai(
    arguments: list[tuple[str, str]] = Depends(get_request_arguments),
    db: Session = DBSession,
    settings: Settings = AppSettings,
    schemas: SchemaRegistry = Depends(get_schemas),
    providers: list[tuple[str, Provider]] = Depends(get_providers),
    token_store: TokenStore = Depends(get_token_store),
) -> Response:
    service = handle_request(
        arguments,
        settings=settings,
        db=db,
        schemas=schemas,
        providers=providers,
        token_store=token_store,
    )
    return Response(content=service.xml(), media_type="text/xml; charset=utf-8")
