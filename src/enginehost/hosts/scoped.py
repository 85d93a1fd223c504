"""Shared behavior for shapes that run the engine inside a controller scope."""

from __future__ import annotations

import json
from abc import abstractmethod
from typing import Any

from enginehost.connections.types import ControllerScope, EngineConnectorSettings, StartupStatus
from enginehost.execution.types import CommandExecutionResult
from enginehost.hosts.base import HostClient
from enginehost.infrastructure.logger import logger

DEFAULT_GUEST_RUNTIME_DIR = "/run/user/1000"


def decode_json_documents(output: str) -> list[Any]:
    """Accept either one JSON document or one document per line."""
    text = (output or "").strip()
    if not text:
        return []
    try:
        decoded = json.loads(text)
        return decoded if isinstance(decoded, list) else [decoded]
    except json.JSONDecodeError:
        pass
    documents: list[Any] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            documents.append(json.loads(line))
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable scope entry", line=line[:200])
    return documents


class ScopedHostClient(HostClient):
    """Commands go through ``CONTROLLER`` into a named scope."""

    def is_scoped(self) -> bool:
        return True

    def controller_command(self) -> str:
        controller = self._settings.controller
        if controller and controller.path:
            return controller.path
        return self.CONTROLLER

    async def run_controller_command(self, args: list[str]) -> CommandExecutionResult:
        return await self.run_host_command(self.controller_command(), args)

    async def get_controller_scopes(
        self, settings: EngineConnectorSettings | None = None, skip_availability_check: bool = False
    ) -> list[ControllerScope]:
        settings = settings or await self.get_settings()
        if not skip_availability_check:
            available = await self.is_controller_available(settings)
            if not available.success:
                logger.warning("Controller is not available - no scopes", id=self.id, details=available.details)
                return []
        result = await self.run_controller_command(self.list_scopes_args())
        if not result.success:
            logger.error("Unable to list controller scopes", id=self.id, code=result.code, stderr=result.stderr)
            return []
        try:
            return self.parse_scopes(result.stdout)
        except Exception as err:
            logger.error("Unable to decode controller scopes", id=self.id, error=str(err))
            return []

    async def get_controller_default_scope(self, settings: EngineConnectorSettings | None = None) -> ControllerScope | None:
        scopes = await self.get_controller_scopes(settings, skip_availability_check=True)
        if not scopes:
            return None
        return next((scope for scope in scopes if scope.default), scopes[0])

    async def find_scope(self, name: str) -> ControllerScope | None:
        scopes = await self.get_controller_scopes(skip_availability_check=True)
        return next((scope for scope in scopes if scope.name == name), None)

    async def start_scope(self, scope: ControllerScope) -> StartupStatus:
        current = await self.find_scope(scope.name)
        if current and current.running:
            logger.debug("Scope is already running", id=self.id, scope=scope.name)
            return StartupStatus.RUNNING
        result = await self.run_controller_command(self.start_scope_args(scope.name))
        if not result.success:
            logger.error("Unable to start scope", id=self.id, scope=scope.name, code=result.code, stderr=result.stderr)
            return StartupStatus.ERROR
        logger.info("Scope started", id=self.id, scope=scope.name)
        return StartupStatus.STARTED

    async def stop_scope(self, scope: ControllerScope) -> bool:
        result = await self.run_controller_command(self.stop_scope_args(scope.name))
        if not result.success:
            logger.error("Unable to stop scope", id=self.id, scope=scope.name, code=result.code, stderr=result.stderr)
        return result.success

    async def ensure_scope_started(self, settings: EngineConnectorSettings) -> str | None:
        """Start the configured (or default) scope; its name, or None when it cannot run."""
        name = settings.scope_name()
        if not name:
            default_scope = await self.get_controller_default_scope(settings)
            if default_scope is None:
                logger.error("No scope to start", id=self.id)
                return None
            name = default_scope.name
        status = await self.start_scope_by_name(name)
        return None if status is StartupStatus.ERROR else name

    async def get_scope_runtime_dir(self, scope: str) -> str:
        result = await self.run_scope_command("printenv", ["XDG_RUNTIME_DIR"], scope)
        value = result.stdout.strip() if result.success else ""
        return value or DEFAULT_GUEST_RUNTIME_DIR

    @abstractmethod
    def list_scopes_args(self) -> list[str]: ...

    @abstractmethod
    def parse_scopes(self, output: str) -> list[ControllerScope]: ...

    @abstractmethod
    def start_scope_args(self, name: str) -> list[str]: ...

    @abstractmethod
    def stop_scope_args(self, name: str) -> list[str]: ...
