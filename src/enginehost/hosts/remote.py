"""Engines on another machine, reached through the local CLI's connection config."""

from __future__ import annotations

from enginehost.availability.types import AvailabilityCheck
from enginehost.connections.types import (
    ApiConnection,
    Connection,
    ContainerEngine,
    ContainerEngineHost,
    EngineConnectorSettings,
)
from enginehost.hosts.base import UnscopedHostClient
from enginehost.hosts.scoped import decode_json_documents
from enginehost.infrastructure.logger import logger


class RemoteHostClient(UnscopedHostClient):
    LABEL = "Remote"

    async def is_engine_available(self) -> AvailabilityCheck:
        return AvailabilityCheck(success=True, details="Engine is available")


class PodmanRemoteClient(RemoteHostClient):
    HOST = ContainerEngineHost.PODMAN_REMOTE
    ENGINE = ContainerEngine.PODMAN
    PROGRAM = "podman"

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        result = await self.run_host_command(settings.program_command(), ["system", "connection", "list", "--format", "json"])
        if not result.success:
            logger.error("Unable to list system connections", id=self.id, code=result.code, stderr=result.stderr)
            return ApiConnection()
        connections = [item for item in decode_json_documents(result.stdout) if isinstance(item, dict)]
        if not connections:
            logger.warning("No system connections configured", id=self.id)
            return ApiConnection()
        selected = next((item for item in connections if item.get("Default")), connections[0])
        return ApiConnection(uri=str(selected.get("URI", "")), relay="")


class DockerRemoteClient(RemoteHostClient):
    HOST = ContainerEngineHost.DOCKER_REMOTE
    ENGINE = ContainerEngine.DOCKER
    PROGRAM = "docker"

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        result = await self.run_host_command(settings.program_command(), ["context", "inspect"])
        if not result.success:
            logger.error("Unable to inspect docker context", id=self.id, code=result.code, stderr=result.stderr)
            return ApiConnection()
        contexts = decode_json_documents(result.stdout)
        endpoints = contexts[0].get("Endpoints", {}) if contexts and isinstance(contexts[0], dict) else {}
        return ApiConnection(uri=str((endpoints.get("docker") or {}).get("Host", "")), relay="")
