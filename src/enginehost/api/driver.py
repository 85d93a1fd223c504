"""HTTP driver for engine APIs reachable over a unix socket or TCP."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Literal, Protocol
from urllib.parse import urlparse

import httpx

from enginehost.connections.types import EngineConnectorSettings
from enginehost.errors import ApiDriverError
from enginehost.infrastructure.logger import logger

ResponseType = Literal["text", "json", "stream"]


@dataclass
class ApiResponse:
    status: int
    data: Any = None


class ApiDriver(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        timeout_s: float | None = None,
        response_type: ResponseType = "text",
    ) -> ApiResponse: ...

    async def get(self, url: str, timeout_s: float | None = None, response_type: ResponseType = "json") -> ApiResponse: ...

    async def close(self) -> None: ...


def resolve_transport(settings: EngineConnectorSettings) -> tuple[str, httpx.AsyncHTTPTransport]:
    """Map the connection uri onto an httpx base URL and transport."""
    uri = settings.api.connection.uri
    base_path = urlparse(settings.api.base_url).path.rstrip("/") if settings.api.base_url else ""
    parsed = urlparse(uri)

    if parsed.scheme in ("", "unix"):
        socket_path = parsed.path if parsed.scheme == "unix" else uri
        if not socket_path:
            raise ApiDriverError("API connection is not set")
        base_url = settings.api.base_url or "http://d"
        return base_url, httpx.AsyncHTTPTransport(uds=socket_path)
    if parsed.scheme in ("tcp", "http", "https"):
        scheme = "https" if parsed.scheme == "https" else "http"
        return f"{scheme}://{parsed.netloc}{base_path}", httpx.AsyncHTTPTransport()
    raise ApiDriverError("Unsupported API transport", {"scheme": parsed.scheme, "uri": uri})


class HttpxApiDriver:
    """ApiDriver over httpx. The underlying client is created lazily and reused."""

    def __init__(self, settings: EngineConnectorSettings) -> None:
        self._settings = settings
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            base_url, transport = resolve_transport(self._settings)
            self._client = httpx.AsyncClient(base_url=base_url, transport=transport)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        timeout_s: float | None = None,
        response_type: ResponseType = "text",
    ) -> ApiResponse:
        client = self._get_client()
        timeout = httpx.Timeout(timeout_s) if timeout_s else httpx.Timeout(None)
        try:
            if response_type == "stream":
                request = client.build_request(method, url, timeout=timeout)
                response = await client.send(request, stream=True)
                return ApiResponse(status=response.status_code, data=_iter_events(response))
            response = await client.request(method, url, timeout=timeout)
        except httpx.HTTPError as err:
            raise ApiDriverError("API request failed", {"method": method, "url": url, "error": str(err)}) from err
        if response_type == "json":
            try:
                return ApiResponse(status=response.status_code, data=response.json())
            except ValueError as err:
                raise ApiDriverError("API response is not JSON", {"url": url}) from err
        return ApiResponse(status=response.status_code, data=response.text)

    async def get(self, url: str, timeout_s: float | None = None, response_type: ResponseType = "json") -> ApiResponse:
        return await self.request("GET", url, timeout_s=timeout_s, response_type=response_type)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


async def _iter_events(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    """Yield one decoded event per JSON line until the stream ends."""
    try:
        async for line in response.aiter_lines():
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping undecodable event", line=line[:200])
    finally:
        await response.aclose()
