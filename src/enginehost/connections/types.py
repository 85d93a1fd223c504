"""Connection domain types: engines, hosts, programs and connector settings."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContainerEngine(str, Enum):
    PODMAN = "podman"
    DOCKER = "docker"


class ContainerEngineHost(str, Enum):
    PODMAN_NATIVE = "podman.native"
    PODMAN_VIRTUALIZED_VENDOR = "podman.virtualized.vendor"
    PODMAN_SUBSYSTEM_WSL = "podman.subsystem.wsl"
    PODMAN_SUBSYSTEM_LIMA = "podman.subsystem.lima"
    PODMAN_REMOTE = "podman.remote"
    DOCKER_NATIVE = "docker.native"
    DOCKER_VIRTUALIZED_VENDOR = "docker.virtualized.vendor"
    DOCKER_SUBSYSTEM_WSL = "docker.subsystem.wsl"
    DOCKER_SUBSYSTEM_LIMA = "docker.subsystem.lima"
    DOCKER_REMOTE = "docker.remote"


class SettingsMode(str, Enum):
    AUTOMATIC = "mode.automatic"
    MANUAL = "mode.manual"


class StartupStatus(str, Enum):
    STARTED = "started"
    RUNNING = "running"
    ERROR = "error"


class Program(BaseModel):
    name: str = ""
    path: str = ""  # Empty until detected
    version: str = ""


class ApiConnection(BaseModel):
    uri: str = ""  # unix socket path, named pipe or tcp/ssh URI
    relay: str = ""  # Socket as seen from inside the scope, when uri is a relay of it


class ApiSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(default="", alias="baseURL")
    connection: ApiConnection = Field(default_factory=ApiConnection)
    auto_start: bool = Field(default=True, alias="autoStart")


class ControllerSettings(Program):
    scope: str = ""


class EngineConnectorSettings(BaseModel):
    """Everything a host client needs to reach one engine.

    ``mode.automatic`` settings are re-derived by detection; ``mode.manual``
    settings belong to the user and are never overwritten here.
    """

    api: ApiSettings = Field(default_factory=ApiSettings)
    program: Program = Field(default_factory=Program)
    controller: ControllerSettings | None = None
    rootfull: bool = False
    mode: SettingsMode = SettingsMode.AUTOMATIC

    def program_command(self) -> str:
        return self.program.path or self.program.name or ""

    def scope_name(self) -> str:
        return self.controller.scope if self.controller else ""


class ControllerScope(BaseModel):
    """One guest environment (VM, WSL distribution, LIMA instance)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(alias="Name")
    usable: bool = Field(default=False, alias="Usable")
    default: bool = Field(default=False, alias="Default")
    running: bool = Field(default=False, alias="Running")
    status: str = Field(default="", alias="Status")


class Connection(BaseModel):
    id: str
    name: str
    label: str = ""
    engine: ContainerEngine
    host: ContainerEngineHost
    settings: EngineConnectorSettings = Field(default_factory=EngineConnectorSettings)


class PruneOptions(BaseModel):
    all: bool = True
    filter: dict[str, str] = Field(default_factory=dict)
    force: bool = True
    volumes: bool = False

    def to_args(self) -> list[str]:
        args = ["system", "prune"]
        if self.all:
            args.append("--all")
        args.extend(f"label={key}={value}" for key, value in self.filter.items())
        if self.force:
            args.append("--force")
        if self.volumes:
            args.append("--volumes")
        return args


class ApiStartOptions(BaseModel):
    id: str = ""
    retries: int | None = None
    delay_s: float | None = None


class RunnerStopperOptions(BaseModel):
    id: str = ""
    timeout_s: float | None = None


SystemInfo = dict[str, Any]
SystemPruneReport = dict[str, Any]
SystemResetReport = dict[str, Any]
