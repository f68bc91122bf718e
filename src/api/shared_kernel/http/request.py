"""Request accessors for handlers written against the raw Starlette request.

Failures raise ValidationError so they surface as 400 envelopes through the
registered error handlers.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar
from urllib.parse import urlencode
from uuid import UUID

import pydantic
from starlette.requests import Request

from shared_kernel.errors import ValidationError
from shared_kernel.http.envelope import FieldError, validation_failed

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def path_param(request: Request, name: str) -> str:
    """Path parameter value, or an empty string when the route has none."""
    value = request.path_params.get(name)
    return "" if value is None else str(value)


def query_param(request: Request, name: str) -> str:
    return request.query_params.get(name, "")


def required_query_param(request: Request, name: str) -> str:
    value = request.query_params.get(name, "")
    if not value:
        raise ValidationError(f"missing required query parameter: {name}")
    return value


def get_header_value(request: Request, name: str, required: bool = False) -> str:
    value = request.headers.get(name, "")
    if required and not value:
        raise ValidationError(f"missing required header: {name}")
    return value


def parse_uuid_param(value: str, name: str) -> UUID:
    """Parse a UUID taken from a path or query parameter."""
    if not value:
        raise ValidationError(f"missing {name} parameter")
    try:
        return UUID(value)
    except ValueError as e:
        raise ValidationError(f"invalid {name} format: {e}") from e


async def parse_json_body(
    request: Request,
    model: type[ModelT] | None = None,
) -> ModelT | Any:
    """Decode the JSON body, validating it against ``model`` when given.

    Raises:
        ValidationError: If the body is empty, is not JSON, or fails model
            validation. Model failures are listed per field in
            ``details.validation_errors``.
    """
    raw = await request.body()
    if not raw:
        raise ValidationError("empty request body")

    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise ValidationError(f"invalid JSON: {e}") from e

    if model is None:
        return payload

    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        raise validation_failed(
            [
                FieldError(
                    field=".".join(str(part) for part in error["loc"]) or "body",
                    message=error["msg"],
                )
                for error in e.errors()
            ]
        ) from e


def extract_path_segment(path: str, position: int) -> str:
    """Segment counted from the end of the path (0 is the last segment)."""
    segments = path.strip("/").split("/")
    if position < 0 or position >= len(segments):
        return ""
    return segments[len(segments) - 1 - position]


def build_url(base: str, params: Mapping[str, Any] | None = None) -> str:
    if not params:
        return base
    return f"{base}?{urlencode(params, doseq=True)}"
