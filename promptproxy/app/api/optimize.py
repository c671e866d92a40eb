"""Prompt optimization endpoint.

POST /api/optimize runs the optimization gateway; OPTIONS answers CORS
preflight; every other verb is rejected with 405.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers

from promptproxy.app.core.config import Settings
from promptproxy.app.middleware.cors import ALLOWED_METHODS, get_cors_headers
from promptproxy.app.middleware.request_id import get_request_id
from promptproxy.app.services.optimization import OptimizationGateway

# Fallback bucket shared by clients whose address cannot be determined
UNKNOWN_CLIENT = "unknown"

router = APIRouter()


def resolve_client_identifier(headers: Headers) -> str:
    """Determine the rate limit identifier from trusted proxy headers.

    Priority: CF-Connecting-IP, first X-Forwarded-For hop, X-Real-IP.
    Falls back to a shared "unknown" bucket so unidentified clients are
    still limited.
    """
    cf_connecting = headers.get("cf-connecting-ip", "").strip()
    if cf_connecting:
        return cf_connecting

    forwarded = headers.get("x-forwarded-for", "")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def get_gateway(request: Request) -> OptimizationGateway:
    """Gateway instance created in the application lifespan."""
    return request.app.state.gateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.options("/api/optimize")
async def optimize_preflight(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Handle CORS preflight requests."""
    origin = request.headers.get("origin")
    return JSONResponse({}, headers=get_cors_headers(origin, settings.allowed_origins))


@router.post("/api/optimize")
async def optimize(
    request: Request,
    gateway: OptimizationGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Optimize a user prompt.

    Security features:
    - Per-client rate limiting, checked before anything else
    - Input validation (length, malicious patterns)
    - CORS restricted to the configured allow-list
    - Error sanitization: provider failures never reach the client verbatim
    """
    client_id = resolve_client_identifier(request.headers)
    raw_body = await request.body()

    outcome = await gateway.handle(raw_body, client_id, request_id=get_request_id(request))

    headers = get_cors_headers(request.headers.get("origin"), settings.allowed_origins)
    headers.update(outcome.headers)
    return JSONResponse(outcome.to_body(), status_code=outcome.status_code, headers=headers)


@router.api_route("/api/optimize", methods=["GET", "PUT", "PATCH", "DELETE"])
async def optimize_method_not_allowed(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Reject other HTTP methods."""
    headers = get_cors_headers(request.headers.get("origin"), settings.allowed_origins)
    headers["Allow"] = ALLOWED_METHODS
    return JSONResponse({"error": "Method not allowed"}, status_code=405, headers=headers)
