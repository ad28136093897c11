"""
FastAPI endpoints for the Query Gateway.
Every analytical route is served by a single POST handler under /api/.
"""

import json
from typing import Any, Dict
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..api.schemas import ErrorResponse, HealthResponse
from ..core.errors import GatewayError, RouteNotFound
from ..core.logging_config import create_logger

logger = create_logger(__name__)

# Create API router
router = APIRouter()


async def read_body(request: Request) -> Dict[str, Any]:
    """Parse the JSON request body; a missing or non-object body means no parameters."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring unparseable request body", extra={
            "path": request.url.path
        })
        return {}
    return body if isinstance(body, dict) else {}


def render_result(result: Any) -> Response:
    if isinstance(result, str):
        return PlainTextResponse(result, status_code=200)
    return JSONResponse(content=result, status_code=200)


@router.post("/api/{route_path:path}")
async def api_request(route_path: str, request: Request):
    """Dispatch an analytical request to its route handler."""
    dispatcher = request.app.state.dispatcher
    body = await read_body(request)
    remote = request.client.host if request.client else None

    try:
        result = await dispatcher.dispatch(request.url.path, body, remote=remote)
    except RouteNotFound as e:
        return PlainTextResponse(e.message, status_code=404)
    except GatewayError as e:
        return JSONResponse(status_code=500, content=ErrorResponse(**e.to_response()).model_dump())
    except Exception:
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump()
        )

    return render_result(result)


@router.get("/healthz", response_model=HealthResponse)
async def healthz(request: Request):
    """Simple health check endpoint for load balancers."""
    cache = request.app.state.cache
    ledger = request.app.state.ledger

    ledger_healthy = await ledger.health_check()
    return HealthResponse(
        status="healthy" if ledger_healthy else "unhealthy",
        version=request.app.version,
        cache_enabled=cache.enabled,
        cache_healthy=await cache.health_check(),
        routes=request.app.state.dispatcher.route_keys
    )
