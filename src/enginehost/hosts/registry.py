"""Process-wide cache of host clients, one per connection id."""

from __future__ import annotations

from typing import Any

from enginehost.connections.types import Connection, EngineConnectorSettings
from enginehost.hosts.base import HostClient
from enginehost.hosts.engines import create_engine
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem


class HostClientRegistry:
    """Creates each connection's host client once and hands back the same instance."""

    def __init__(self, os_type: OperatingSystem | None = None, **client_options: Any) -> None:
        self._os_type = os_type
        self._client_options = client_options
        self._clients: dict[str, HostClient] = {}

    async def get_or_create(self, connection: Connection) -> HostClient:
        client = self._clients.get(connection.id)
        if client is not None:
            return client
        engine = create_engine(connection.engine, self._os_type)
        client = engine.create_host_client_by_name(connection.host, connection.id, **self._client_options)
        await client.set_settings(connection.settings)
        self._clients[connection.id] = client
        logger.info("Host client registered", id=connection.id, host=connection.host.value)
        return client

    def get(self, connection_id: str) -> HostClient | None:
        return self._clients.get(connection_id)

    def get_all(self) -> list[HostClient]:
        return list(self._clients.values())

    async def refresh_settings(self, client: HostClient) -> EngineConnectorSettings:
        """Automatic settings are re-detected; manual settings are left exactly as they are."""
        return await client.resolve_settings()

    async def stop_all(self) -> None:
        for client in self._clients.values():
            try:
                await client.stop_api()
            except Exception:
                logger.exception("Error stopping host client api", id=client.id)
