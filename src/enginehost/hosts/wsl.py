"""Engines inside a WSL distribution, driven by wsl.exe from Windows."""

from __future__ import annotations

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
from enginehost.hosts.scoped import ScopedHostClient
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem

# Distributions owned by vendor tooling, never offered as scopes
IGNORED_DISTRIBUTIONS = ("docker-desktop", "docker-desktop-data")


def parse_wsl_list(output: str) -> list[ControllerScope]:
    """Parse ``wsl --list --verbose``; ``*`` marks the default distribution."""
    scopes: list[ControllerScope] = []
    for line in output.replace("\x00", "").splitlines():
        text = line.strip()
        if not text or text.upper().startswith("NAME"):
            continue
        is_default = text.startswith("*")
        fields = text.lstrip("*").split()
        if len(fields) < 3:
            continue
        name, state, version = fields[0], fields[1], fields[2]
        if name in IGNORED_DISTRIBUTIONS:
            continue
        scopes.append(
            ControllerScope(
                name=name,
                # WSL2 distributions boot on first use
                usable=version == "2",
                running=state == "Running",
                default=is_default,
                status=state,
                version=version,
            )
        )
    return scopes


class WSLHostClient(ScopedHostClient):
    CONTROLLER = "wsl"
    LABEL = "WSL"

    async def is_engine_available(self) -> AvailabilityCheck:
        if self.os_type is not OperatingSystem.WINDOWS:
            return AvailabilityCheck(success=False, details="Disabled - Only available on Windows")
        return AvailabilityCheck(success=True, details="Engine is available")

    def scope_command(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        return self.controller_command(), ["--distribution", scope, "--exec", program, *args]

    def list_scopes_args(self) -> list[str]:
        return ["--list", "--verbose"]

    def parse_scopes(self, output: str) -> list[ControllerScope]:
        return parse_wsl_list(output)

    def start_scope_args(self, name: str) -> list[str]:
        return ["--distribution", name, "--exec", "true"]

    def stop_scope_args(self, name: str) -> list[str]:
        return ["--terminate", name]

    def should_keep_started_scope_running(self) -> bool:
        return True

    async def guest_socket(self, settings: EngineConnectorSettings, scope: str) -> str:
        return DOCKER_SOCKET

    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection:
        settings = settings or await self.get_settings()
        scope = settings.scope_name()
        if not scope:
            logger.warning("No distribution configured - api connection unknown", id=self.id)
            return ApiConnection()
        return ApiConnection(
            uri=f"npipe:////./pipe/{self.ENGINE.value}-{scope}",
            relay=await self.guest_socket(settings, scope),
        )


class PodmanWSLClient(WSLHostClient):
    HOST = ContainerEngineHost.PODMAN_SUBSYSTEM_WSL
    ENGINE = ContainerEngine.PODMAN
    PROGRAM = "podman"

    async def guest_socket(self, settings: EngineConnectorSettings, scope: str) -> str:
        if settings.rootfull:
            return PODMAN_ROOTFULL_SOCKET
        return f"{await self.get_scope_runtime_dir(scope)}/podman/podman.sock"

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        settings = settings or await self.get_settings()
        scope = await self.ensure_scope_started(settings)
        if scope is None:
            return False
        if not settings.scope_name() and settings.controller is not None:
            settings.controller.scope = scope
        socket_path = settings.api.connection.relay or await self.guest_socket(settings, scope)
        args = ["system", "service", "--time=0", f"unix://{socket_path}", "--log-level=debug"]
        return await self._launch_api(settings.program_command(), args, settings, opts)


class DockerWSLClient(WSLHostClient):
    HOST = ContainerEngineHost.DOCKER_SUBSYSTEM_WSL
    ENGINE = ContainerEngine.DOCKER
    PROGRAM = "docker"

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        """dockerd inside the distribution is managed by its init system; boot the distribution only."""
        settings = settings or await self.get_settings()
        if await self.ensure_scope_started(settings) is None:
            return False
        return (await self.is_api_running()).success
