"""Pagination and filter parameter parsing.

Only the absence of a parameter falls back to a default. A value that is
present but malformed or out of range is rejected with a ValidationError;
nothing is silently clamped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from starlette.requests import Request

from shared_kernel.errors import ValidationError

DEFAULT_LIMIT = 50
MAX_LIMIT = 1000
DEFAULT_OFFSET = 0

FILTER_KEYS: tuple[str, ...] = ("search", "status", "created_by", "team_name")

# int() refuses strings past sys.get_int_max_str_digits(); anything this long
# is out of range for both parameters anyway.
MAX_DIGITS = 18
_INTEGER = re.compile(r"[+-]?(?P<digits>\d+)")


@dataclass(frozen=True)
class PaginationParams:
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET


@dataclass(frozen=True)
class FilterParams:
    """Recognized list filters. ``None`` means the filter was not supplied."""

    search: str | None = None
    status: str | None = None
    created_by: str | None = None
    team_name: str | None = None

    def as_dict(self) -> dict[str, str]:
        """Supplied filters only, keyed by their query parameter name."""
        values = {key: getattr(self, key) for key in FILTER_KEYS}
        return {key: value for key, value in values.items() if value is not None}


def _parse_int(name: str, raw: str) -> int:
    match = _INTEGER.fullmatch(raw.strip())
    if match is None:
        raise ValidationError(f"invalid {name} parameter: {raw!r} is not an integer")
    if len(match.group("digits")) > MAX_DIGITS:
        raise ValidationError(f"invalid {name} parameter: value is out of range")
    return int(match.group(0))


def parse_pagination_params(request: Request) -> PaginationParams:
    """Read ``limit`` and ``offset`` from the query string.

    Raises:
        ValidationError: If limit is outside 1..1000, offset is negative, or
            either value is not an integer.
    """
    query = request.query_params
    limit = DEFAULT_LIMIT
    offset = DEFAULT_OFFSET

    raw_limit = query.get("limit")
    if raw_limit is not None and raw_limit != "":
        limit = _parse_int("limit", raw_limit)
        if limit < 1 or limit > MAX_LIMIT:
            raise ValidationError(
                f"invalid limit parameter: must be between 1 and {MAX_LIMIT}"
            )

    raw_offset = query.get("offset")
    if raw_offset is not None and raw_offset != "":
        offset = _parse_int("offset", raw_offset)
        if offset < 0:
            raise ValidationError("invalid offset parameter: must be non-negative")

    return PaginationParams(limit=limit, offset=offset)


def parse_filter_params(request: Request) -> FilterParams:
    """Collect recognized filters. Unknown keys and empty values are ignored."""
    query = request.query_params
    found = {key: query.get(key) or None for key in FILTER_KEYS}
    return FilterParams(**found)
