"""Engines running directly on a Linux host."""

from __future__ import annotations

import os

from enginehost.availability.types import AvailabilityCheck
from enginehost.connections.types import (
    ApiConnection,
    ApiStartOptions,
    Connection,
    ContainerEngine,
    ContainerEngineHost,
    EngineConnectorSettings,
)
from enginehost.hosts.base import UnscopedHostClient
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem

PODMAN_ROOTFULL_SOCKET = "/run/podman/podman.sock"
DOCKER_SOCKET = "/var/run/docker.sock"


def podman_rootless_socket() -> str:
    uid = os.getuid() if hasattr(os, "getuid") else 1000
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{uid}"
    return f"{runtime_dir}/podman/podman.sock"


class NativeHostClient(UnscopedHostClient):
    LABEL = "Native"

    async def is_engine_available(self) -> AvailabilityCheck:
        if self.os_type is not OperatingSystem.LINUX:
            return AvailabilityCheck(success=False, details="Disabled - Only available on Linux")
        return AvailabilityCheck(success=True, details="Engine is available")


class PodmanNativeClient(NativeHostClient):
    HOST = ContainerEngineHost.PODMAN_NATIVE
    ENGINE = ContainerEngine.PODMAN
    PROGRAM = "podman"

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        socket_path = PODMAN_ROOTFULL_SOCKET if settings.rootfull else podman_rootless_socket()
        return ApiConnection(uri=socket_path, relay="")

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        settings = settings or await self.get_settings()
        if not settings.api.auto_start:
            logger.debug("Starting API - skip(auto start disabled)", id=self.id)
            return (await self.is_api_running()).success
        uri = settings.api.connection.uri or (await self.get_api_connection(None, settings)).uri
        args = ["system", "service", "--time=0", f"unix://{uri}", "--log-level=debug"]
        return await self._launch_api(settings.program_command(), args, settings, opts)


class DockerNativeClient(NativeHostClient):
    HOST = ContainerEngineHost.DOCKER_NATIVE
    ENGINE = ContainerEngine.DOCKER
    PROGRAM = "docker"

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        return ApiConnection(uri=DOCKER_SOCKET, relay="")
