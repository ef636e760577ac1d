from __future__ import annotations

import logging
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from lotengo.errors import ApiError
from lotengo.routes import auth, chats, internal, notifications, offers, products, ratings, requests
from lotengo.routes._deps import error_response, request_id_from_request, trace_id_from_request
from lotengo.schemas import success_envelope
from lotengo.security import JwtSecurityConfig, parse_and_validate_bearer_token, redact_sensitive

logger = logging.getLogger(__name__)

PUBLIC_API_PATHS = {
    "/api/v1/health",
    "/api/v1/auth/register",
    "/api/v1/auth/login",
}
PUBLIC_API_PREFIXES = (
    "/api/v1/auth/password-reset",
    "/api/v1/internal/",
)


def _requires_bearer(path: str) -> bool:
    if not path.startswith("/api/v1/"):
        return False
    if path in PUBLIC_API_PATHS:
        return False
    return not path.startswith(PUBLIC_API_PREFIXES)


def create_app() -> FastAPI:
    app = FastAPI(title="Lotengo Marketplace API", version="0.1.0")
    security_cfg = JwtSecurityConfig.from_env()
    app.state.security_cfg = security_cfg
    cors_origins = os.environ.get("CORS_ALLOW_ORIGINS", "http://localhost:8081")
    allow_origins = [x.strip() for x in cors_origins.split(",") if x.strip()]
    if allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _log_blocked(request: Request, exc: ApiError) -> None:
        logger.warning(
            "security_blocked code=%s path=%s trace_id=%s headers=%s",
            exc.code,
            request.url.path,
            trace_id_from_request(request),
            redact_sensitive(dict(request.headers.items())),
        )

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        incoming_trace_id = request.headers.get("x-trace-id", "").strip()
        request.state.trace_id = incoming_trace_id or uuid.uuid4().hex
        request.state.request_id = request.headers.get("x-request-id", f"req_{uuid.uuid4().hex[:12]}")
        request.state.user_id = None
        request.state.role = None
        try:
            path = request.url.path
            if security_cfg.enabled and _requires_bearer(path):
                auth_ctx = parse_and_validate_bearer_token(
                    authorization=request.headers.get("Authorization"),
                    cfg=security_cfg,
                )
                request.state.user_id = auth_ctx.user_id
                request.state.role = auth_ctx.role
            elif not security_cfg.enabled:
                request.state.user_id = request.headers.get("x-user-id", "").strip() or None
            response = await call_next(request)
        except ApiError as exc:
            _log_blocked(request, exc)
            response = error_response(
                request,
                code=exc.code,
                message=exc.message,
                error_class=exc.error_class,
                retryable=exc.retryable,
                status_code=exc.http_status,
            )
        response.headers["x-trace-id"] = trace_id_from_request(request)
        response.headers["x-request-id"] = request_id_from_request(request)
        return response

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.code in {"AUTH_UNAUTHORIZED", "AUTH_FORBIDDEN"}:
            _log_blocked(request, exc)
        return error_response(
            request,
            code=exc.code,
            message=exc.message,
            error_class=exc.error_class,
            retryable=exc.retryable,
            status_code=exc.http_status,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(
            request,
            code="REQ_VALIDATION_FAILED",
            message="invalid payload",
            error_class="validation",
            retryable=False,
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                request,
                code="REQ_NOT_FOUND",
                message="resource not found",
                error_class="validation",
                retryable=False,
                status_code=404,
            )
        return error_response(
            request,
            code="REQ_HTTP_ERROR",
            message=str(exc.detail),
            error_class="validation",
            retryable=False,
            status_code=exc.status_code,
        )

    @app.get("/healthz")
    def healthz(request: Request) -> dict[str, object]:
        return success_envelope({"status": "ok"}, trace_id_from_request(request))

    @app.get("/api/v1/health")
    def health_api(request: Request) -> dict[str, object]:
        return success_envelope({"status": "ok"}, trace_id_from_request(request))

    for module in (auth, requests, offers, chats, ratings, notifications, products, internal):
        app.include_router(module.router)
    return app


app = create_app()
