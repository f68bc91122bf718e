"""Streaming reverse proxy.

The request path and query string are forwarded byte for byte to the
matched backend. Request and response bodies are streamed, never buffered
or transformed. Only hop-by-hop headers are removed, and X-Forwarded-*
headers are added to the outbound request.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response, StreamingResponse

from gateway.headers import outbound_request_headers, relayed_response_headers
from gateway.observability import DefaultProxyProbe, ProxyProbe
from gateway.targets import ProxyTarget, ProxyTargetTable
from infrastructure.observability import ObservationContext
from shared_kernel.errors import (
    ServiceNotFoundError,
    TargetMisconfiguredError,
    UpstreamUnavailableError,
)
from shared_kernel.middleware.tenant_context import TENANT_ID_HEADER, USER_EMAIL_HEADER

DEFAULT_TIMEOUT_SECONDS = 30.0

# Status recorded when the client closes the connection mid-request.
CLIENT_CLOSED_REQUEST = 499


def outbound_url(base_url: httpx.URL, request: Request) -> httpx.URL:
    """Backend URL carrying the inbound raw path and query string unchanged."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    raw_path = raw_path.split(b"?", 1)[0]
    query = request.scope.get("query_string", b"")
    if query:
        raw_path = raw_path + b"?" + query
    return base_url.copy_with(raw_path=raw_path)


def request_context(request: Request, target: ProxyTarget) -> ObservationContext:
    """Correlation fields attached to every proxy event for ``request``.

    The tenant header is recorded as sent; the gateway does not validate it.
    """
    return ObservationContext(
        request_id=getattr(request.state, "request_id", None),
        tenant_id=request.headers.get(TENANT_ID_HEADER),
        user_id=request.headers.get(USER_EMAIL_HEADER),
        service=target.name,
    )


def has_body(request: Request) -> bool:
    headers = request.headers
    if "transfer-encoding" in headers:
        return True
    content_length = headers.get("content-length", "").strip()
    return bool(content_length) and content_length != "0"


class ReverseProxy:
    """Forward requests to the backend that owns their path prefix.

    The proxy owns its outbound ``httpx.AsyncClient`` unless one is supplied;
    close it with ``aclose()`` or by entering ``lifespan`` in the app
    lifespan.
    """

    def __init__(
        self,
        targets: ProxyTargetTable,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
        limits: httpx.Limits | None = None,
        probe: ProxyProbe | None = None,
    ):
        self._targets = targets
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=limits or httpx.Limits(),
            follow_redirects=False,
        )
        self._probe = probe or DefaultProxyProbe()

    @property
    def targets(self) -> ProxyTargetTable:
        return self._targets

    @property
    def timeout(self) -> float:
        return self._timeout

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @asynccontextmanager
    async def lifespan(self, app: object) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await self.aclose()

    def _resolve(self, request: Request) -> tuple[ProxyTarget, httpx.URL]:
        path = request.url.path
        target = self._targets.match(path)
        if target is None:
            self._probe.no_target_matched(request.method, path)
            raise ServiceNotFoundError(f"no backend registered for {path}")

        try:
            base_url = target.resolve_base_url()
        except TargetMisconfiguredError as e:
            self._probe.target_misconfigured(target.name, target.base_url, str(e))
            raise
        return target, base_url

    async def forward(self, request: Request) -> Response:
        """Forward ``request`` and stream the backend response back.

        Raises:
            ServiceNotFoundError: No target matches the path (404).
            TargetMisconfiguredError: The target base URL is unusable (500).
            UpstreamUnavailableError: The backend could not be reached or did
                not answer within the timeout (503).
        """
        target, base_url = self._resolve(request)
        probe = self._probe.with_context(request_context(request, target))
        url = outbound_url(base_url, request)
        outbound = self._client.build_request(
            request.method,
            url,
            headers=outbound_request_headers(request),
            content=request.stream() if has_body(request) else None,
        )

        probe.request_forwarded(target.name, request.method, request.url.path, str(url))
        start = time.perf_counter()
        try:
            async with asyncio.timeout(self._timeout):
                upstream = await self._client.send(outbound, stream=True)
        except (TimeoutError, httpx.TimeoutException) as e:
            probe.upstream_timed_out(target.name, str(url), self._timeout)
            raise UpstreamUnavailableError(
                f"{target.name} did not respond within {self._timeout:g}s"
            ) from e
        except httpx.TransportError as e:
            probe.upstream_unavailable(target.name, str(url), e)
            raise UpstreamUnavailableError(f"{target.name} is unavailable") from e
        except ClientDisconnect:
            probe.client_disconnected(target.name, request.method, request.url.path)
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        probe.upstream_responded(
            target.name,
            request.method,
            request.url.path,
            upstream.status_code,
            (time.perf_counter() - start) * 1000,
        )

        response = StreamingResponse(
            self._relay(target, upstream, probe),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers.extend(relayed_response_headers(upstream.headers.raw))
        return response

    async def _relay(
        self, target: ProxyTarget, upstream: httpx.Response, probe: ProxyProbe
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        except httpx.TransportError as e:
            probe.stream_interrupted(target.name, e)
        finally:
            await upstream.aclose()
