"""Route a command either to the host or into a controller scope."""

from __future__ import annotations

from typing import Callable

from enginehost.execution import process
from enginehost.execution.types import CommandExecutionResult, CommandExecutor
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem

# (program, args, scope) -> (launcher, launcher args) run on the host
ScopeAdapter = Callable[[str, list[str], str], tuple[str, list[str]]]


class ScopedCommandExecutor:
    def __init__(
        self,
        client_id: str,
        os_type: OperatingSystem,
        scope_adapter: ScopeAdapter,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._client_id = client_id
        self._os_type = os_type
        self._scope_adapter = scope_adapter
        self._executor = executor or process.execute

    def host_launcher(self, program: str) -> str:
        if self._os_type is OperatingSystem.WINDOWS and not program.lower().endswith(".exe"):
            return f"{program}.exe"
        return program

    def scope_launcher(self, program: str, args: list[str], scope: str) -> tuple[str, list[str]]:
        launcher, launcher_args = self._scope_adapter(program, list(args), scope)
        return self.host_launcher(launcher), launcher_args

    async def run_host_command(self, program: str, args: list[str] | None = None) -> CommandExecutionResult:
        launcher = self.host_launcher(program)
        argv = list(args or [])
        command_line = " ".join([launcher, *argv])
        logger.debug(">> Running host command", id=self._client_id, command=command_line)
        result = await self._executor(launcher, argv)
        logger.debug(
            "<< Running host command",
            id=self._client_id,
            command=command_line,
            success=result.success,
            code=result.code,
            stderr=result.stderr,
        )
        return result

    async def run_scope_command(self, program: str, args: list[str] | None, scope: str) -> CommandExecutionResult:
        launcher, launcher_args = self._scope_adapter(program, list(args or []), scope)
        logger.debug(">> Running scope command", id=self._client_id, scope=scope, program=program)
        return await self.run_host_command(launcher, launcher_args)
