"""
Verein Backend - Verein GET Route Handlers
===========================================

What:  Handles GET /verein/{id}, GET /verein (search) and GET /verein/name/{prefix}.
How:   Extracts path/query parameters, delegates to VereinReadService and
       renders HAL JSON. Domain exceptions propagate to the handlers in main.py.
Who:   Called by REST clients and the API gateway.

Caching Strategy:
    GET /verein/{id} sends the version as ETag. A client that repeats the
    request with If-None-Match: "<version>" gets 304 without a body. Weak
    tags (W/"<version>"), tag lists and * match as well.

Malformed IDs:
    An ID that is not a UUID cannot name a Verein and yields 404, the same
    NotFoundError the GraphQL query returns.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from verein.database import get_db_session
from verein.exceptions import NotFoundError
from verein.routes.links import base_uri, item_links, self_link
from verein.schemas.verein import (
    Link,
    ProblemDetail,
    VereinCollectionModel,
    VereineEmbedded,
    VereinModel,
)
from verein.services.verein_data import parse_id
from verein.services.verein_read_service import verein_read_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/verein", tags=["Verein"])


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """If-None-Match holds a comma-separated list of tags, weak (W/) or strong, or *."""
    if if_none_match is None:
        return False
    for tag in if_none_match.split(","):
        tag = tag.strip()
        if tag == "*":
            return True
        if tag.startswith("W/"):
            tag = tag[2:]
        if tag == etag:
            return True
    return False


@router.get(
    "/{verein_id}",
    response_model=VereinModel,
    responses={
        304: {"description": "Not modified (If-None-Match matches the ETag)"},
        404: {"description": "No Verein with this ID", "model": ProblemDetail},
    },
    summary="Find a Verein by ID",
)
async def get_by_id(
    verein_id: str,
    request: Request,
    response: Response,
    if_none_match: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Single Verein as HAL with links self, list, add, update and remove.

    Headers:
        ETag: "<version>"
    """
    parsed_id = parse_id(verein_id)
    if parsed_id is None:
        raise NotFoundError(criteria={"id": verein_id})
    verein = await verein_read_service.find_by_id(db, parsed_id)
    etag = f'"{verein.version}"'

    if _etag_matches(if_none_match, etag):
        logger.debug("get_by_id: %s not modified", verein_id)
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    model = VereinModel.from_entity(verein, item_links(base_uri(request), verein.id))
    logger.debug("get_by_id: %s", model)
    return model


@router.get(
    "",
    response_model=VereinCollectionModel,
    responses={400: {"description": "Unknown search criterion", "model": ProblemDetail}},
    summary="Search Vereine",
    description=(
        "Every query parameter is a search criterion: name, email, plz, ort. "
        "Without parameters all Vereine are returned. No match yields an empty list."
    ),
)
async def find(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> VereinCollectionModel:
    criteria = dict(request.query_params)
    vereine = await verein_read_service.find(db, criteria)

    base = base_uri(request)
    models = [VereinModel.from_entity(v, self_link(base, v.id)) for v in vereine]
    collection_href = f"{base}?{request.url.query}" if request.url.query else base
    logger.debug("find: %d Verein(e)", len(models))
    return VereinCollectionModel(
        embedded=VereineEmbedded(vereine=models),
        links={"self": Link(href=collection_href)},
    )


@router.get(
    "/name/{prefix}",
    response_model=List[str],
    summary="Names starting with a prefix",
)
async def find_namen_by_prefix(
    prefix: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    """Autocomplete support: distinct names starting with `prefix`."""
    return await verein_read_service.find_namen_by_prefix(db, prefix)
