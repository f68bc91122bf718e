"""Default middleware installed by every service template.

Registered outermost first: recovery, request id, access logging, CORS.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from service_template.observability import DefaultRequestProbe, RequestProbe
from shared_kernel.http.envelope import respond_with_internal_error
from shared_kernel.middleware.tenant_context import TENANT_ID_HEADER, USER_EMAIL_HEADER

REQUEST_ID_HEADER = "X-Request-ID"

DEFAULT_CORS_METHODS: tuple[str, ...] = (
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
)
DEFAULT_CORS_HEADERS: tuple[str, ...] = (
    "Accept",
    "Authorization",
    "Content-Type",
    REQUEST_ID_HEADER,
    TENANT_ID_HEADER,
    USER_EMAIL_HEADER,
)


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Convert any exception escaping the inner chain into a generic 500."""

    def __init__(self, app: ASGIApp, probe: RequestProbe | None = None):
        super().__init__(app)
        self._probe = probe or DefaultRequestProbe()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = getattr(request.state, "request_id", None)
            self._probe.unhandled_error(
                method=request.method,
                path=request.url.path,
                request_id=request_id,
                error=exc,
            )
            response = respond_with_internal_error()
            if request_id:
                response.headers[REQUEST_ID_HEADER] = request_id
            return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Ensure every request carries an X-Request-ID.

    The id is stored on ``request.state.request_id``, bound into the structlog
    context for the duration of the request, and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log: method, path, client, status and elapsed time."""

    def __init__(self, app: ASGIApp, probe: RequestProbe | None = None):
        super().__init__(app)
        self._probe = probe or DefaultRequestProbe()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client = request.client.host if request.client else None
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            self._probe.request_failed(
                method=request.method,
                path=request.url.path,
                duration_ms=(time.perf_counter() - start) * 1000,
                client=client,
                error=exc,
            )
            raise

        self._probe.request_completed(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            client=client,
        )
        return response


class AllowListCORSMiddleware(BaseHTTPMiddleware):
    """CORS with an exact-match origin allow-list.

    Origins not on the list get no CORS headers; the request still runs and
    the browser enforces the policy. Every OPTIONS request is answered here
    with 204 and an empty body.
    """

    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: Iterable[str] = (),
        allowed_methods: Iterable[str] = DEFAULT_CORS_METHODS,
        allowed_headers: Iterable[str] = DEFAULT_CORS_HEADERS,
    ):
        super().__init__(app)
        self._allowed_origins = frozenset(allowed_origins)
        self._allowed_methods = ", ".join(allowed_methods)
        self._allowed_headers = ", ".join(allowed_headers)

    def is_allowed(self, origin: str | None) -> bool:
        return origin is not None and origin in self._allowed_origins

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")

        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        if self.is_allowed(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = self._allowed_methods
            response.headers["Access-Control-Allow-Headers"] = self._allowed_headers
            response.headers.append("Vary", "Origin")
        return response
