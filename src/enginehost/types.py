"""Barrel re-export of all domain types."""

from enginehost.availability.types import AvailabilityCheck, AvailabilityReport, EngineConnectorAvailability
from enginehost.connections.types import (
    ApiConnection,
    ApiSettings,
    ApiStartOptions,
    Connection,
    ContainerEngine,
    ContainerEngineHost,
    ControllerScope,
    ControllerSettings,
    EngineConnectorSettings,
    Program,
    PruneOptions,
    RunnerStopperOptions,
    SettingsMode,
    StartupStatus,
)
from enginehost.execution.types import CommandExecutionResult
from enginehost.infrastructure.platform import OperatingSystem

__all__ = [
    "ApiConnection",
    "ApiSettings",
    "ApiStartOptions",
    "AvailabilityCheck",
    "AvailabilityReport",
    "CommandExecutionResult",
    "Connection",
    "ContainerEngine",
    "ContainerEngineHost",
    "ControllerScope",
    "ControllerSettings",
    "EngineConnectorAvailability",
    "EngineConnectorSettings",
    "OperatingSystem",
    "Program",
    "PruneOptions",
    "RunnerStopperOptions",
    "SettingsMode",
    "StartupStatus",
]
