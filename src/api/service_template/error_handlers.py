"""Exception handlers that render every error as an error envelope."""

from __future__ import annotations

from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from service_template.observability import DefaultRequestProbe, RequestProbe
from shared_kernel.errors import ApiError
from shared_kernel.http.envelope import (
    FieldError,
    respond_with_api_error,
    respond_with_error,
    validation_failed,
)


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def register_error_handlers(app: FastAPI, probe: RequestProbe | None = None) -> None:
    """Map ApiError, request validation failures and HTTPException to envelopes.

    Anything else propagates to the recovery middleware.
    """
    probe = probe or DefaultRequestProbe()

    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        probe.api_error_returned(
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            error=exc,
        )
        return respond_with_api_error(exc)

    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = validation_failed(
            [
                FieldError(
                    field=".".join(str(part) for part in err.get("loc", ())),
                    message=err.get("msg", "invalid value"),
                )
                for err in exc.errors()
            ]
        )
        probe.api_error_returned(
            method=request.method,
            path=request.url.path,
            status_code=error.status_code,
            error=error,
        )
        return respond_with_api_error(error)

    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        probe.api_error_returned(
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            error=exc,
        )
        return respond_with_error(
            exc.status_code,
            exc.detail,
            _status_phrase(exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
