"""
Verein Backend - Verein Write Route Handlers
=============================================

What:  Handles POST /verein, PUT /verein/{id} and DELETE /verein/{id}.
How:   Converts the JSON body into a VereinData payload, reads the expected
       version from If-Match and delegates to VereinWriteService.
Who:   Called by REST clients.

Status Codes:
    POST    201 + Location    | 400 violations / bad date | 409 e-mail exists
    PUT     204 + ETag        | 400 violations / malformed If-Match
                              | 404 | 409 | 412 outdated | 428 no If-Match
    DELETE  204 (also when the Verein does not exist or the ID is malformed)

    A malformed ID on PUT is 404, like an unknown one.
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from verein.database import get_db_session
from verein.exceptions import NotFoundError, VersionInvalidError
from verein.routes.links import base_uri
from verein.schemas.verein import ProblemDetail, VereinDTO
from verein.services.verein_data import parse_id
from verein.services.verein_write_service import verein_write_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verein", tags=["Verein"])

_VERSION_PATTERN = re.compile(r'^"(\d+)"$')


def _parse_version(if_match: Optional[str]) -> int:
    """
    Extract the version from an If-Match header value such as "3" (with quotes).

    Raises:
        VersionInvalidError: header missing (→ 428) or not a quoted integer (→ 400)
    """
    if if_match is None:
        raise VersionInvalidError()
    match = _VERSION_PATTERN.match(if_match.strip())
    if match is None:
        raise VersionInvalidError(supplied_value=if_match)
    return int(match.group(1))


@router.post(
    "",
    status_code=201,
    responses={
        201: {"description": "Created; Location header points to the new Verein"},
        400: {"description": "Constraint violations or invalid date", "model": ProblemDetail},
        409: {"description": "E-mail address already exists", "model": ProblemDetail},
    },
    summary="Create a Verein",
)
async def post(
    dto: VereinDTO,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    logger.debug("post: %s", dto)
    verein = await verein_write_service.create(db, dto.to_data())
    location = f"{base_uri(request)}/{verein.id}"
    return Response(status_code=201, headers={"Location": location})


@router.put(
    "/{verein_id}",
    status_code=204,
    responses={
        204: {"description": "Updated; ETag carries the new version"},
        400: {"description": "Constraint violations or malformed If-Match", "model": ProblemDetail},
        404: {"description": "No Verein with this ID", "model": ProblemDetail},
        409: {"description": "E-mail address already exists", "model": ProblemDetail},
        412: {"description": "Version outdated", "model": ProblemDetail},
        428: {"description": "If-Match header missing", "model": ProblemDetail},
    },
    summary="Update a Verein",
)
async def put(
    verein_id: str,
    dto: VereinDTO,
    if_match: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    logger.debug("put: id=%s, If-Match=%s", verein_id, if_match)
    parsed_id = parse_id(verein_id)
    if parsed_id is None:
        raise NotFoundError(criteria={"id": verein_id})
    version = _parse_version(if_match)
    verein = await verein_write_service.update(db, parsed_id, dto.to_data(), version)
    return Response(status_code=204, headers={"ETag": f'"{verein.version}"'})


@router.delete(
    "/{verein_id}",
    status_code=204,
    summary="Delete a Verein",
)
async def delete(
    verein_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    parsed_id = parse_id(verein_id)
    if parsed_id is not None:
        await verein_write_service.delete(db, parsed_id)
    return Response(status_code=204)
