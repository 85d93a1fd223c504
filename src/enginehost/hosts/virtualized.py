"""Vendor virtual machines: podman machine and Docker Desktop."""

from __future__ import annotations

from pathlib import Path

from enginehost.availability.types import AvailabilityCheck
from enginehost.connections.types import (
    ApiConnection,
    ApiStartOptions,
    Connection,
    ContainerEngine,
    ContainerEngineHost,
    ControllerScope,
    EngineConnectorSettings,
)
from enginehost.hosts.base import UnscopedHostClient
from enginehost.hosts.scoped import ScopedHostClient, decode_json_documents
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem


def pipe_to_uri(pipe_path: str) -> str:
    r"""``\\.\pipe\name`` -> ``npipe:////./pipe/name``."""
    if pipe_path.startswith("npipe://"):
        return pipe_path
    return "npipe://" + pipe_path.replace("\\", "/")


class PodmanVirtualizedClient(ScopedHostClient):
    """Podman inside a ``podman machine`` VM; the host podman is the controller."""

    HOST = ContainerEngineHost.PODMAN_VIRTUALIZED_VENDOR
    ENGINE = ContainerEngine.PODMAN
    PROGRAM = "podman"
    CONTROLLER = "podman"
    LABEL = "Podman machine"

    async def is_engine_available(self) -> AvailabilityCheck:
        return AvailabilityCheck(success=True, details="Engine is available")

    def scope_command(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        return self.controller_command(), ["machine", "ssh", scope, program, *args]

    def list_scopes_args(self) -> list[str]:
        return ["machine", "list", "--format", "json"]

    def parse_scopes(self, output: str) -> list[ControllerScope]:
        scopes = []
        for item in decode_json_documents(output):
            name = str(item.get("Name", "")).rstrip("*")
            running = bool(item.get("Running", False))
            scopes.append(
                ControllerScope(
                    name=name,
                    usable=running,
                    running=running,
                    default=bool(item.get("Default", False)),
                    status="Running" if running else "Stopped",
                )
            )
        return scopes

    def start_scope_args(self, name: str) -> list[str]:
        return ["machine", "start", name]

    def stop_scope_args(self, name: str) -> list[str]:
        return ["machine", "stop", name]

    def should_keep_started_scope_running(self) -> bool:
        return False

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        scope = settings.scope_name()
        if not scope:
            default_scope = await self.get_controller_default_scope(settings)
            scope = default_scope.name if default_scope else ""
        if not scope:
            logger.warning("No machine to inspect - api connection unknown", id=self.id)
            return ApiConnection()
        result = await self.run_controller_command(["machine", "inspect", scope])
        if not result.success:
            logger.error("Unable to inspect machine", id=self.id, scope=scope, stderr=result.stderr)
            return ApiConnection()
        documents = decode_json_documents(result.stdout)
        info = documents[0].get("ConnectionInfo", {}) if documents else {}
        if self.os_type is OperatingSystem.WINDOWS:
            pipe = (info.get("PodmanPipe") or {}).get("Path", "")
            return ApiConnection(uri=pipe_to_uri(pipe) if pipe else "", relay="")
        return ApiConnection(uri=(info.get("PodmanSocket") or {}).get("Path", ""), relay="")

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        """The machine serves the API; starting the machine starts the API."""
        settings = settings or await self.get_settings()
        if (await self.is_api_running()).success:
            return True
        scope = await self.ensure_scope_started(settings)
        if scope is None:
            return False
        return (await self.is_api_running()).success


class DockerVirtualizedClient(UnscopedHostClient):
    """Docker Desktop: the vendor owns the VM, the docker CLI talks to it from the host."""

    HOST = ContainerEngineHost.DOCKER_VIRTUALIZED_VENDOR
    ENGINE = ContainerEngine.DOCKER
    PROGRAM = "docker"
    LABEL = "Docker Desktop"

    async def is_engine_available(self) -> AvailabilityCheck:
        return AvailabilityCheck(success=True, details="Engine is available")

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        if self.os_type is OperatingSystem.WINDOWS:
            return ApiConnection(uri="npipe:////./pipe/docker_engine", relay="")
        if self.os_type is OperatingSystem.MAC:
            return ApiConnection(uri=str(Path.home() / ".docker" / "run" / "docker.sock"), relay="")
        return ApiConnection(uri=str(Path.home() / ".docker" / "desktop" / "docker.sock"), relay="")
