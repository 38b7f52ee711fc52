"""FastAPI application entrypoint for the makerspace directory API."""

from __future__ import annotations

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from src.auth.middleware import AUTH_CONTEXT_KEY, resolve_request_auth_context
from src.core.config import get_settings
from src.core.errors import ApiError, StoreError
from src.core.logger import bind_request_context, clear_request_context, get_logger
from src.core.metrics import record_http_request, render_prometheus_metrics
from src.makerspaces.router import router as makerspace_router
from src.users.router import router as user_router
from src.storage.db import load_models
from src.storage.db import test_connection as test_db_connection


settings = get_settings()
logger = get_logger("makerhub.api")

app = FastAPI(title=settings.app_name, version=settings.app_version)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _error_response(status_code: int, detail: str, fields: list[str]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "fields": fields})


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    started_at = perf_counter()
    request_id = request.headers.get("x-request-id", str(uuid4()))
    auth_context = resolve_request_auth_context(request)
    setattr(request.state, AUTH_CONTEXT_KEY, auth_context)
    bind_request_context(
        request_id=request_id,
        subject=auth_context.email if auth_context is not None else None,
    )

    status_code = 500
    try:
        response = await call_next(request)
        status_code = int(response.status_code)
    finally:
        duration = perf_counter() - started_at
        if settings.metrics_enabled:
            record_http_request(
                method=request.method,
                path=_route_label(request),
                status_code=status_code,
                duration_seconds=duration,
            )
        clear_request_context()

    response.headers["x-request-id"] = request_id
    return response


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error(
            "store_error",
            method=request.method,
            path=_route_label(request),
            cause=exc.__cause__.__class__.__name__ if exc.__cause__ is not None else None,
        )
    return _error_response(exc.status_code, exc.detail, exc.fields)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: list[str] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        if path and path not in fields:
            fields.append(path)
    detail = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request body"
    return _error_response(400, detail, fields)


@app.on_event("startup")
def on_startup() -> None:
    load_models()
    logger.info(
        "application_startup",
        env=settings.env,
        version=settings.app_version,
        metrics_enabled=settings.metrics_enabled,
        email_enabled=bool(settings.email_api_key and settings.email_from_address),
    )


@app.get("/health")
def health() -> JSONResponse:
    db_ok, db_error = test_db_connection()
    status = "ok" if db_ok else "degraded"

    payload = {
        "status": status,
        "env": settings.env,
        "services": {
            "database": {"ok": db_ok, "error": db_error},
        },
    }

    return JSONResponse(content=payload, status_code=200 if db_ok else 503)


@app.get("/version")
def version() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "env": settings.env,
    }


@app.get("/metrics")
def metrics() -> PlainTextResponse:
    if not settings.metrics_enabled:
        return PlainTextResponse("metrics disabled\n", status_code=404)

    payload = render_prometheus_metrics(
        app_name=settings.app_name,
        app_version=settings.app_version,
        env=settings.env,
    )
    return PlainTextResponse(
        payload,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


app.include_router(user_router)
app.include_router(makerspace_router)
