"""
Verein Backend - Link Helper
=============================

What:  Computes the base URI used in Location headers and HAL `_links`.
How:   Behind an API gateway or ingress the request URL is the internal one,
       so X-Forwarded-Host / -Proto / -Prefix take precedence when present.
Who:   Used by the REST GET and write routes.
"""

import logging
from typing import Dict
from uuid import UUID

from starlette.requests import Request

from verein.schemas.verein import Link

logger = logging.getLogger(__name__)

REST_PATH = "/verein"

X_FORWARDED_HOST = "x-forwarded-host"
X_FORWARDED_PROTO = "x-forwarded-proto"
X_FORWARDED_PREFIX = "x-forwarded-prefix"
# Prefix the gateway routes to this service when it sends none
DEFAULT_FORWARDED_PREFIX = "/vereine"


def base_uri(request: Request) -> str:
    """
    Base URI of the Verein collection, without query string.

    Examples:
        http://localhost:8080/verein
        https://gateway.example.com/vereine/verein   (forwarded)
    """
    forwarded_host = request.headers.get(X_FORWARDED_HOST)
    if forwarded_host:
        proto = request.headers.get(X_FORWARDED_PROTO, request.url.scheme)
        prefix = request.headers.get(X_FORWARDED_PREFIX, DEFAULT_FORWARDED_PREFIX)
        uri = f"{proto}://{forwarded_host}{prefix.rstrip('/')}{REST_PATH}"
        logger.debug("base_uri (forwarded): %s", uri)
        return uri

    uri = f"{str(request.base_url).rstrip('/')}{REST_PATH}"
    logger.debug("base_uri: %s", uri)
    return uri


def item_links(base: str, verein_id: UUID) -> Dict[str, Link]:
    """Links of a single Verein: self, list, add, update, remove."""
    self_href = f"{base}/{verein_id}"
    return {
        "self": Link(href=self_href),
        "list": Link(href=base),
        "add": Link(href=base),
        "update": Link(href=self_href),
        "remove": Link(href=self_href),
    }


def self_link(base: str, verein_id: UUID) -> Dict[str, Link]:
    return {"self": Link(href=f"{base}/{verein_id}")}
