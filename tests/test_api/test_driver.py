"""Tests for the httpx-backed API driver."""

import httpx
import pytest

from enginehost.api.driver import HttpxApiDriver, resolve_transport
from enginehost.errors import ApiDriverError
from enginehost.types import ApiConnection, EngineConnectorSettings


def settings_for(uri: str, base_url: str = "http://d/v4.0.0/libpod") -> EngineConnectorSettings:
    settings = EngineConnectorSettings()
    settings.api.base_url = base_url
    settings.api.connection = ApiConnection(uri=uri)
    return settings


class TestResolveTransport:
    def test_socket_path(self):
        base_url, transport = resolve_transport(settings_for("/run/podman/podman.sock"))
        assert base_url == "http://d/v4.0.0/libpod"
        assert isinstance(transport, httpx.AsyncHTTPTransport)

    def test_unix_scheme(self):
        base_url, _ = resolve_transport(settings_for("unix:///var/run/docker.sock", base_url="http://localhost"))
        assert base_url == "http://localhost"

    def test_tcp(self):
        base_url, _ = resolve_transport(settings_for("tcp://10.0.0.5:2375", base_url="http://localhost/v1.43"))
        assert base_url == "http://10.0.0.5:2375/v1.43"

    def test_named_pipe_unsupported(self):
        with pytest.raises(ApiDriverError, match="Unsupported API transport"):
            resolve_transport(settings_for("npipe:////./pipe/docker_engine"))


class TestHttpxApiDriver:
    @pytest.mark.asyncio
    async def test_ping(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v4.0.0/libpod/_ping"
            return httpx.Response(200, text="OK")

        driver = HttpxApiDriver(settings_for("/run/podman/podman.sock"))
        driver._client = httpx.AsyncClient(base_url="http://d/v4.0.0/libpod", transport=httpx.MockTransport(handler))

        response = await driver.request("GET", "/_ping", timeout_s=3)

        assert response.status == 200
        assert response.data == "OK"
        await driver.close()

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        driver = HttpxApiDriver(settings_for("/run/podman/podman.sock"))
        driver._client = httpx.AsyncClient(base_url="http://d", transport=httpx.MockTransport(handler))

        with pytest.raises(ApiDriverError, match="API request failed"):
            await driver.request("GET", "/_ping", timeout_s=3)

    @pytest.mark.asyncio
    async def test_event_stream(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b'{"Type": "container"}\n\nnot json\n{"Type": "image"}\n')

        driver = HttpxApiDriver(settings_for("/run/podman/podman.sock"))
        driver._client = httpx.AsyncClient(base_url="http://d", transport=httpx.MockTransport(handler))

        response = await driver.get("/events", response_type="stream")
        events = [event async for event in response.data]

        assert events == [{"Type": "container"}, {"Type": "image"}]
