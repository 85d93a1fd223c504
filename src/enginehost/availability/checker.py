"""Layered availability probe: host -> controller -> scope -> program -> api."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from enginehost.availability.types import AvailabilityCheck, EngineConnectorAvailability
from enginehost.connections.types import EngineConnectorSettings
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.notifier import Notifier, trace

if TYPE_CHECKING:
    from enginehost.hosts.base import HostClient

FileProbe = Callable[[str], Awaitable[bool]]

NOT_APPLICABLE = "Not applicable - connection is not scoped"


class AvailabilityChecker:
    """Builds an EngineConnectorAvailability for a host client. Never raises.

    Each stage runs only when the stage before it succeeded. The api stage
    is the exception: it always runs and always reports.
    """

    def __init__(self, client: HostClient, file_exists: FileProbe, notifier: Notifier) -> None:
        self._client = client
        self._file_exists = file_exists
        self._notifier = notifier

    async def is_controller_available(self, settings: EngineConnectorSettings) -> AvailabilityCheck:
        controller_path = settings.controller.path if settings.controller else ""
        if not controller_path:
            return AvailabilityCheck(success=False, details="Path not set")
        if not await self._file_exists(controller_path):
            return AvailabilityCheck(success=False, details="Not present in path")
        return AvailabilityCheck(success=True, details="Controller is available")

    async def is_controller_scope_available(self, settings: EngineConnectorSettings) -> AvailabilityCheck:
        # Approximation: a scope is treated as reachable when its controller is.
        return await self.is_controller_available(settings)

    async def is_program_available(self, settings: EngineConnectorSettings) -> AvailabilityCheck:
        program_path = settings.program_command()
        if not program_path:
            return AvailabilityCheck(success=False, details="Path not set")
        if self._client.is_scoped():
            # Guest paths cannot be checked from the host; resolution is what counts
            if not settings.program.path:
                return AvailabilityCheck(success=False, details="Path not set")
            return AvailabilityCheck(success=True, details="Program is available")
        if not await self._file_exists(program_path):
            return AvailabilityCheck(success=False, details="Not present in path")
        return AvailabilityCheck(success=True, details="Program is available")

    async def _guard(self, stage: str, probe: Awaitable[AvailabilityCheck]) -> AvailabilityCheck:
        try:
            return await probe
        except Exception as err:
            logger.exception("Availability stage failed", id=self._client.id, stage=stage)
            return AvailabilityCheck(success=False, details=f"Unable to check {stage} - {err}")

    async def get_availability(self, settings: EngineConnectorSettings) -> EngineConnectorAvailability:
        client_id = self._client.id
        logger.debug(">> Checking availability", id=client_id)
        trace(self._notifier, "Detecting host availability")
        check = await self._guard("host", self._client.is_engine_available())
        availability = EngineConnectorAvailability(enabled=check.success)
        report = availability.report

        availability.host = check.success
        report.host = check.details or ""

        if availability.host:
            trace(self._notifier, "Detecting host program availability")
            if self._client.is_scoped():
                controller = await self._guard("controller", self.is_controller_available(settings))
            else:
                controller = AvailabilityCheck(success=True, details=NOT_APPLICABLE)
            availability.controller = controller.success
            report.controller = controller.details or ""
        else:
            report.controller = "Not checked - host not available"

        if availability.controller:
            if self._client.is_scoped():
                scope = await self._guard("controller scope", self.is_controller_scope_available(settings))
            else:
                scope = AvailabilityCheck(success=True, details=NOT_APPLICABLE)
            availability.controller_scope = scope.success
            report.controller_scope = scope.details or ""
        else:
            report.controller_scope = "Not checked - controller not available"

        if availability.controller_scope:
            trace(self._notifier, "Detecting guest program availability")
            program = await self._guard("program", self.is_program_available(settings))
            availability.program = program.success
            report.program = program.details or ""
        else:
            report.program = "Not checked - controller scope not available"

        trace(self._notifier, "Detecting guest api availability")
        api = await self._guard("api", self._client.is_api_running())
        availability.api = api.success
        report.api = "API is running" if api.success else "API is not running"

        trace(self._notifier, "Availability check complete")
        logger.debug("<< Checking availability", id=client_id, availability=availability.model_dump())
        return availability
