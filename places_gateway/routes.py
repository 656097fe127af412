"""
FastAPI route handlers for the places gateway.

There is no routing table: a single wildcard GET route hands every path
and query to the orchestrator, which forwards it to the one configured
upstream origin.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from .errors import JSON_MEDIA_TYPE
from .orchestrator import PlacesOrchestrator
from .utils import request_key

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> PlacesOrchestrator:
    """Return the orchestrator the application was built with."""
    return request.app.state.orchestrator


@router.get("/{path:path}")
async def places(
    path: str,
    request: Request,
    orchestrator: Annotated[PlacesOrchestrator, Depends(get_orchestrator)],
) -> Response:
    """
    Proxy any GET to the upstream and return the reshaped places.

    Returns:
        200 with a JSON array of {slug, subtitle, title},
        500 on upstream or encoding failure,
        504 when the request deadline elapses first.
    """
    _ = path  # The key is built from the raw path so encoding survives.
    key = request_key(request)
    result = await orchestrator.handle(key)
    logger.debug("%s -> %s (%s)", key, result.status_code, result.outcome.value)
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=JSON_MEDIA_TYPE,
    )
