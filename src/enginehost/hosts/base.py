"""Host client base: one connection to one engine on one host shape."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, ClassVar

from enginehost.api.client import ContainerApiClient, DriverFactory, create_api_driver
from enginehost.availability import api_probe
from enginehost.availability.checker import AvailabilityChecker, FileProbe
from enginehost.availability.types import AvailabilityCheck, EngineConnectorAvailability
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
    SystemInfo,
    SystemPruneReport,
    SystemResetReport,
)
from enginehost.detection.program_detector import ProgramDetector
from enginehost.execution.scoped import ScopedCommandExecutor
from enginehost.execution.services import ConnectionServices, connection_services
from enginehost.execution.types import CommandExecutionResult, CommandExecutor
from enginehost.hosts import system
from enginehost.infrastructure import platform
from enginehost.infrastructure.config import RunnerConfig
from enginehost.infrastructure.logger import logger, normalize_log_level
from enginehost.infrastructure.notifier import Notifier, NullNotifier, trace
from enginehost.infrastructure.platform import CURRENT_OS_TYPE, OperatingSystem
from enginehost.runner.runner import Runner

DEFAULT_BASE_URLS: dict[ContainerEngine, str] = {
    ContainerEngine.PODMAN: "http://d/v4.0.0/libpod",
    ContainerEngine.DOCKER: "http://localhost",
}

DATA_DIR_FALLBACK = "$HOME/.local/share"


class HostClient(ABC):
    """Shape-specific primitives are abstract; everything else is shared.

    The client exclusively owns its settings and its container API client.
    Settings are replaced wholesale through ``set_settings``.
    """

    HOST: ClassVar[ContainerEngineHost]
    ENGINE: ClassVar[ContainerEngine]
    PROGRAM: ClassVar[str]
    CONTROLLER: ClassVar[str] = ""
    LABEL: ClassVar[str] = "Abstract"

    def __init__(
        self,
        id: str,
        os_type: OperatingSystem | None = None,
        *,
        notifier: Notifier | None = None,
        executor: CommandExecutor | None = None,
        file_exists: FileProbe | None = None,
        driver_factory: DriverFactory | None = None,
        services: ConnectionServices | None = None,
        runner_config: RunnerConfig | None = None,
    ) -> None:
        self.id = id
        self.os_type = os_type or CURRENT_OS_TYPE
        self.notifier = notifier or NullNotifier()
        self.api_started = False
        self.log_level = "debug"
        self._settings = self.default_settings()
        self._driver_factory = driver_factory or create_api_driver
        self._services = services or connection_services
        self._container_api_client: ContainerApiClient | None = None
        self.executor = ScopedCommandExecutor(id, self.os_type, self.scope_command, executor)
        self.detector = ProgramDetector(self.os_type, self.executor.run_host_command, self.notifier)
        self.checker = AvailabilityChecker(self, file_exists or platform.is_file_present, self.notifier)
        self.runner: Runner | None = Runner(self, runner_config)
        logger.debug("Client host created", id=id, host=self.HOST.value, os=self.os_type.value)

    # --- Shape primitives ---

    @abstractmethod
    async def is_engine_available(self) -> AvailabilityCheck: ...

    @abstractmethod
    def is_scoped(self) -> bool: ...

    @abstractmethod
    async def get_controller_scopes(
        self, settings: EngineConnectorSettings | None = None, skip_availability_check: bool = False
    ) -> list[ControllerScope]: ...

    @abstractmethod
    async def get_controller_default_scope(self, settings: EngineConnectorSettings | None = None) -> ControllerScope | None: ...

    @abstractmethod
    async def start_scope(self, scope: ControllerScope) -> StartupStatus: ...

    @abstractmethod
    async def stop_scope(self, scope: ControllerScope) -> bool: ...

    @abstractmethod
    def should_keep_started_scope_running(self) -> bool: ...

    @abstractmethod
    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool: ...

    @abstractmethod
    async def get_api_connection(
        self, connection: Connection | None = None, settings: EngineConnectorSettings | None = None
    ) -> ApiConnection: ...

    @abstractmethod
    def scope_command(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        """Host command line that runs ``program args`` inside ``scope``."""

    async def start_scope_by_name(self, name: str) -> StartupStatus:
        return await self.start_scope(ControllerScope(name=name))

    async def stop_scope_by_name(self, name: str) -> bool:
        return await self.stop_scope(ControllerScope(name=name))

    # --- Settings ---

    def default_settings(self) -> EngineConnectorSettings:
        controller = ControllerSettings(name=self.CONTROLLER, path="") if self.CONTROLLER else None
        return EngineConnectorSettings(
            api=ApiSettings(base_url=DEFAULT_BASE_URLS[self.ENGINE]),
            program=Program(name=self.PROGRAM, path=self.PROGRAM),
            controller=controller,
        )

    async def get_settings(self) -> EngineConnectorSettings:
        return self._settings.model_copy(deep=True)

    async def set_settings(self, settings: EngineConnectorSettings) -> None:
        self._settings = settings.model_copy(deep=True)

    def set_log_level(self, level: str) -> None:
        self.log_level = normalize_log_level(level)
        if self._container_api_client:
            self._container_api_client.set_log_level(self.log_level)

    def as_connection(self, settings: EngineConnectorSettings | None = None) -> Connection:
        return Connection(
            id=self.id,
            name="Current",
            label="Current",
            engine=self.ENGINE,
            host=self.HOST,
            settings=(settings or self._settings).model_copy(deep=True),
        )

    async def get_automatic_settings(self) -> EngineConnectorSettings:
        """Best-effort detection; any stage failure leaves partial results."""
        logger.warning("Settings are in automatic mode - fetching", id=self.id)
        settings = await self.get_settings()
        try:
            if self.is_scoped():
                existing_scope = settings.scope_name()
                controller = await self.find_host_program(Program(name=self.CONTROLLER), settings)
                settings.controller = ControllerSettings(**controller.model_dump(), scope=existing_scope)
                if not existing_scope:
                    default_scope = await self.get_controller_default_scope(settings)
                    logger.warning("Default scope is", id=self.id, scope=default_scope.name if default_scope else None)
                    if default_scope:
                        settings.controller.scope = default_scope.name
                        if default_scope.usable:
                            settings.program = await self.find_scope_program(Program(name=self.PROGRAM), settings)
                        else:
                            logger.warning("Default scope is not usable - program will not be detected", id=self.id)
                    else:
                        logger.error("No default scope found - program will not be detected", id=self.id)
                else:
                    try:
                        settings.program = await self.find_scope_program(Program(name=self.PROGRAM), settings)
                    except Exception as err:
                        logger.error("Unable to get scope program", id=self.id, error=str(err))
            else:
                settings.program = await self.find_host_program(Program(name=self.PROGRAM), settings)
        except Exception as err:
            logger.error("Unable to detect automatic settings program", id=self.id, error=str(err))
        try:
            api = await self.get_api_connection(None, settings)
            settings.api.connection.uri = api.uri
            settings.api.connection.relay = api.relay
        except Exception as err:
            logger.error("Unable to detect automatic settings api connection", id=self.id, error=str(err))
        return settings

    async def resolve_settings(self) -> EngineConnectorSettings:
        """Re-derive settings in automatic mode; manual settings are returned untouched."""
        settings = await self.get_settings()
        if settings.mode is not SettingsMode.AUTOMATIC:
            logger.debug("Settings are in manual mode - skipping detection", id=self.id)
            return settings
        detected = await self.get_automatic_settings()
        await self.set_settings(detected)
        return detected

    # --- Container API client ---

    async def get_container_api_client(self) -> ContainerApiClient:
        if self._container_api_client is None:
            connection = self.as_connection()
            self._container_api_client = ContainerApiClient(connection, self._driver_factory(connection.settings))
            self._container_api_client.set_log_level(self.log_level)
        return self._container_api_client

    async def replace_container_api_client(self) -> ContainerApiClient:
        """Drop the cached client so the next one binds to the current API connection."""
        if self._container_api_client is not None:
            try:
                await self._container_api_client.close()
            except Exception:
                logger.exception("Unable to close container api client", id=self.id)
            self._container_api_client = None
        return await self.get_container_api_client()

    # --- Availability ---

    async def is_api_available(self) -> AvailabilityCheck:
        return api_probe.is_api_available(await self.get_settings(), self.os_type)

    async def is_api_running(self) -> AvailabilityCheck:
        settings = await self.get_settings()
        api_client = await self.get_container_api_client()
        return await api_probe.is_api_running(self.id, settings, self.os_type, api_client, self.notifier)

    async def is_controller_available(self, settings: EngineConnectorSettings | None = None) -> AvailabilityCheck:
        return await self.checker.is_controller_available(settings or await self.get_settings())

    async def is_program_available(self, settings: EngineConnectorSettings | None = None) -> AvailabilityCheck:
        return await self.checker.is_program_available(settings or await self.get_settings())

    async def get_availability(self, settings: EngineConnectorSettings | None = None) -> EngineConnectorAvailability:
        return await self.checker.get_availability(settings or await self.get_settings())

    # --- API lifecycle ---

    async def _launch_api(
        self,
        program: str,
        args: list[str],
        settings: EngineConnectorSettings,
        opts: ApiStartOptions | None = None,
    ) -> bool:
        """Launch through the runner, on the host or inside the configured scope."""
        if self.runner is None:
            logger.error("Starting API - no runner", id=self.id)
            return False
        if self.is_scoped():
            launcher, launcher_args = self.executor.scope_launcher(program, args, settings.scope_name())
        else:
            launcher, launcher_args = self.executor.host_launcher(program), list(args)
        status = await self.runner.start_api(launcher, launcher_args, opts)
        if status is StartupStatus.STARTED:
            self.api_started = True
        return status is not StartupStatus.ERROR

    async def stop_api(self, settings: EngineConnectorSettings | None = None, opts: RunnerStopperOptions | None = None) -> bool:
        logger.debug("Stopping API - begin", id=self.id)
        await self._services.stop(self.id)
        if not self.runner:
            logger.warning("Stopping API - skip(no runner)", id=self.id)
            return True
        if not self.api_started:
            logger.debug("Stopping API - skip(not started here)", id=self.id)
            return False
        stopped = await self.runner.stop_api(opts)
        logger.debug("Stopping API - complete", id=self.id, stopped=stopped)
        if stopped:
            self.api_started = False
        return stopped

    # --- Command execution ---

    async def run_host_command(
        self, program: str, args: list[str] | None = None, settings: EngineConnectorSettings | None = None
    ) -> CommandExecutionResult:
        return await self.executor.run_host_command(program, args)

    async def run_scope_command(
        self, program: str, args: list[str] | None, scope: str, settings: EngineConnectorSettings | None = None
    ) -> CommandExecutionResult:
        return await self.executor.run_scope_command(program, args, scope)

    async def run_command(
        self, program: str, args: list[str], settings: EngineConnectorSettings | None = None
    ) -> CommandExecutionResult:
        """Run in the configured scope when scoped, on the host otherwise."""
        settings = settings or await self.get_settings()
        if self.is_scoped():
            return await self.run_scope_command(program, args, settings.scope_name(), settings)
        return await self.run_host_command(program, args, settings)

    async def get_scope_environment_variable(self, scope: str, variable: str) -> str:
        settings = await self.get_settings()
        if not self.is_scoped() or settings.controller is None:
            return await platform.get_environment_variable(variable)
        target = scope or settings.controller.scope
        if not target:
            logger.error("Controller scope is not defined", id=self.id, variable=variable)
            return ""
        output = await self.run_scope_command("printenv", [variable], target)
        if not output.success:
            logger.error("Scoped environment variable could not be read", id=self.id, variable=variable, code=output.code)
            return ""
        return output.stdout.strip()

    # --- Program detection ---

    def _scope_executor(self, settings: EngineConnectorSettings | None) -> CommandExecutor:
        async def executor(program: str, args: list[str]) -> CommandExecutionResult:
            current = settings or await self.get_settings()
            return await self.run_scope_command(program, args, current.scope_name())

        return executor

    async def find_host_program(self, program: Program, settings: EngineConnectorSettings | None = None) -> Program:
        return await self.detector.find_host_program(program)

    async def find_host_program_version(self, program: Program, settings: EngineConnectorSettings | None = None) -> str:
        return await self.detector.find_host_program_version(program)

    async def find_scope_program(self, program: Program, settings: EngineConnectorSettings | None = None) -> Program:
        return await self.detector.find_scope_program(program, self._scope_executor(settings))

    async def find_scope_program_version(self, program: Program, settings: EngineConnectorSettings | None = None) -> str:
        return await self.detector.find_scope_program_version(program, self._scope_executor(settings))

    async def get_connection_data_dir(self) -> str:
        trace(self.notifier, "Detecting connection system data dir")
        data_dir = ""
        controller = self._settings.controller
        if controller is None:
            logger.error("Controller is not defined", id=self.id)
        elif controller.scope:
            try:
                data_dir = await self.get_scope_environment_variable(controller.scope, "XDG_DATA_HOME")
                if not data_dir:
                    logger.error("Unable to get controller scope data dir using XDG_DATA_HOME", id=self.id)
                    home_dir = await self.get_scope_environment_variable(controller.scope, "HOME")
                    if home_dir:
                        data_dir = f"{home_dir}/.local/share"
                    else:
                        logger.error("Unable to get controller scope data dir using HOME", id=self.id)
            except Exception as err:
                logger.error("Unable to get controller scope data dir", id=self.id, error=str(err))
        elif self.HOST is ContainerEngineHost.PODMAN_VIRTUALIZED_VENDOR:
            data_dir = await platform.get_user_data_path()
        else:
            logger.error("Controller scope is not defined", id=self.id)
            return ""
        output = data_dir or DATA_DIR_FALLBACK
        logger.debug("Connection data dir is", id=self.id, data_dir=output)
        return output

    # --- System ---

    async def get_system_info(
        self,
        connection: Connection | None = None,
        custom_format: str | None = None,
        settings: EngineConnectorSettings | None = None,
    ) -> SystemInfo:
        return await system.get_system_info(self, settings or await self.get_settings(), custom_format)

    async def prune_system(self, opts: PruneOptions | dict[str, Any] | None = None) -> SystemPruneReport:
        return await system.prune_system(self, opts)

    async def reset_system(self) -> SystemResetReport | bool:
        return await system.reset_system(self)

    async def get_events(self, opts: dict[str, Any] | None = None) -> list[Any]:
        raise NotImplementedError("Method not implemented")

    async def get_events_stream(self, opts: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]] | None:
        return await system.get_events_stream(self, opts)


class UnscopedHostClient(HostClient):
    """Shapes that run the engine CLI directly on the host."""

    def is_scoped(self) -> bool:
        return False

    def scope_command(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        return program, args

    async def get_controller_scopes(
        self, settings: EngineConnectorSettings | None = None, skip_availability_check: bool = False
    ) -> list[ControllerScope]:
        return []

    async def get_controller_default_scope(self, settings: EngineConnectorSettings | None = None) -> ControllerScope | None:
        return None

    async def start_scope(self, scope: ControllerScope) -> StartupStatus:
        return StartupStatus.RUNNING

    async def stop_scope(self, scope: ControllerScope) -> bool:
        return True

    def should_keep_started_scope_running(self) -> bool:
        return False

    async def start_api(self, settings: EngineConnectorSettings | None = None, opts: ApiStartOptions | None = None) -> bool:
        """The daemon behind these shapes is not ours to launch; report whether it answers."""
        running = await self.is_api_running()
        if not running.success:
            logger.warning("Starting API - not supported for this host, API is not running", id=self.id, host=self.HOST.value)
        return running.success
