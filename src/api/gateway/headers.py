"""Header rewriting for forwarded requests and relayed responses.

Headers are handled as raw ``(name, value)`` byte pairs so that repeated
headers such as ``Set-Cookie`` survive in both directions.
"""

from __future__ import annotations

from collections.abc import Iterable

from starlette.requests import Request

RawHeaders = list[tuple[bytes, bytes]]

HOP_BY_HOP_HEADERS: frozenset[str] = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

FORWARDED_FOR = "x-forwarded-for"
FORWARDED_HOST = "x-forwarded-host"
FORWARDED_PROTO = "x-forwarded-proto"


def _decode(value: bytes) -> str:
    return value.decode("latin-1")


def connection_listed(headers: Iterable[tuple[bytes, bytes]]) -> set[str]:
    """Header names nominated as hop-by-hop by the Connection header."""
    names: set[str] = set()
    for name, value in headers:
        if _decode(name).lower() == "connection":
            names.update(
                token.strip().lower() for token in _decode(value).split(",") if token.strip()
            )
    return names


def strip_hop_by_hop(
    headers: Iterable[tuple[bytes, bytes]],
    also_drop: Iterable[str] = (),
) -> RawHeaders:
    """Drop hop-by-hop headers, those listed in Connection, and ``also_drop``."""
    headers = list(headers)
    drop = HOP_BY_HOP_HEADERS | connection_listed(headers) | {n.lower() for n in also_drop}
    return [(name, value) for name, value in headers if _decode(name).lower() not in drop]


def forwarded_headers(request: Request) -> RawHeaders:
    """X-Forwarded-* values describing the inbound hop.

    X-Forwarded-For extends any chain the client sent. X-Forwarded-Proto is
    the scheme this process was reached with; behind a TLS-terminating load
    balancer that is the balancer's scheme, not the client's.
    """
    client_host = request.client.host if request.client else ""
    prior = request.headers.get(FORWARDED_FOR, "").strip()
    if prior and client_host:
        forwarded_for = f"{prior}, {client_host}"
    else:
        forwarded_for = prior or client_host or "unknown"

    host = request.headers.get("host") or request.url.netloc
    return [
        (FORWARDED_FOR.encode("latin-1"), forwarded_for.encode("latin-1")),
        (FORWARDED_HOST.encode("latin-1"), host.encode("latin-1")),
        (FORWARDED_PROTO.encode("latin-1"), request.url.scheme.encode("latin-1")),
    ]


def outbound_request_headers(request: Request) -> RawHeaders:
    """Inbound headers minus hop-by-hop and Host, plus X-Forwarded-*."""
    headers = strip_hop_by_hop(
        request.headers.raw,
        also_drop=("host", FORWARDED_FOR, FORWARDED_HOST, FORWARDED_PROTO),
    )
    headers.extend(forwarded_headers(request))
    return headers


def relayed_response_headers(headers: Iterable[tuple[bytes, bytes]]) -> RawHeaders:
    return strip_hop_by_hop(headers)
