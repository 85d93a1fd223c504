"""Engines inside a LIMA instance on macOS."""

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
from enginehost.hosts.native import DOCKER_SOCKET, PODMAN_ROOTFULL_SOCKET
from enginehost.hosts.scoped import ScopedHostClient, decode_json_documents
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem


class LIMAHostClient(ScopedHostClient):
    CONTROLLER = "limactl"
    LABEL = "LIMA"

    def __init__(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        self._instance_dirs: dict[str, str] = {}

    async def is_engine_available(self) -> AvailabilityCheck:
        if self.os_type is not OperatingSystem.MAC:
            return AvailabilityCheck(success=False, details="Disabled - Only available on MacOS")
        return AvailabilityCheck(success=True, details="Engine is available")

    def scope_command(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        return self.controller_command(), ["shell", scope, program, *args]

    def list_scopes_args(self) -> list[str]:
        return ["list", "--json"]

    def parse_scopes(self, output: str) -> list[ControllerScope]:
        scopes = []
        for item in decode_json_documents(output):
            name = str(item.get("name", ""))
            status = str(item.get("status", ""))
            if item.get("dir"):
                self._instance_dirs[name] = str(item["dir"])
            scopes.append(
                ControllerScope(
                    name=name,
                    usable=status == "Running",
                    running=status == "Running",
                    # Instances created from the engine template carry the engine name
                    default=name == self.PROGRAM,
                    status=status,
                )
            )
        return scopes

    def start_scope_args(self, name: str) -> list[str]:
        return ["start", name]

    def stop_scope_args(self, name: str) -> list[str]:
        return ["stop", name]

    def should_keep_started_scope_running(self) -> bool:
        return False

    def instance_dir(self, scope: str) -> Path:
        if scope in self._instance_dirs:
            return Path(self._instance_dirs[scope])
        return Path.home() / ".lima" / scope

    def guest_socket(self, settings: EngineConnectorSettings) -> str:
        return DOCKER_SOCKET

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        scope = settings.scope_name()
        if not scope:
            logger.warning("No instance configured - api connection unknown", id=self.id)
            return ApiConnection()
        uri = self.instance_dir(scope) / "sock" / f"{self.ENGINE.value}.sock"
        return ApiConnection(uri=str(uri), relay=self.guest_socket(settings))

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        """The instance template forwards the engine socket; starting the instance starts the API."""
        settings = settings or await self.get_settings()
        if (await self.is_api_running()).success:
            return True
        if await self.ensure_scope_started(settings) is None:
            return False
        return (await self.is_api_running()).success


class PodmanLIMAClient(LIMAHostClient):
    HOST = ContainerEngineHost.PODMAN_SUBSYSTEM_LIMA
    ENGINE = ContainerEngine.PODMAN
    PROGRAM = "podman"

    def guest_socket(self, settings: EngineConnectorSettings) -> str:
        return PODMAN_ROOTFULL_SOCKET if settings.rootfull else "/run/user/1000/podman/podman.sock"

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        settings = settings or await self.get_settings()
        scope = await self.ensure_scope_started(settings)
        if scope is None:
            return False
        if not settings.scope_name() and settings.controller is not None:
            settings.controller.scope = scope
        socket_path = settings.api.connection.relay or self.guest_socket(settings)
        args = ["system", "service", "--time=0", f"unix://{socket_path}", "--log-level=debug"]
        return await self._launch_api(settings.program_command(), args, settings, opts)


class DockerLIMAClient(LIMAHostClient):
    HOST = ContainerEngineHost.DOCKER_SUBSYSTEM_LIMA
    ENGINE = ContainerEngine.DOCKER
    PROGRAM = "docker"
