"""Resolve a Program's path and version on the host or inside a scope."""

from __future__ import annotations

from enginehost.connections.types import Program
from enginehost.detection.detector import find_program_path, find_program_version
from enginehost.execution.types import CommandExecutor
from enginehost.infrastructure.notifier import Notifier, NullNotifier, trace
from enginehost.infrastructure.platform import CURRENT_OS_TYPE, OperatingSystem

# Every supported scope (WSL distribution, LIMA instance, VM) runs a Linux guest
SCOPE_OS_TYPE = OperatingSystem.LINUX


class ProgramDetector:
    """Detection never raises: a missing program comes back with empty path and version."""

    def __init__(
        self,
        os_type: OperatingSystem,
        host_executor: CommandExecutor,
        notifier: Notifier | None = None,
    ) -> None:
        self._os_type = os_type
        self._host_executor = host_executor
        self._notifier = notifier or NullNotifier()

    async def find_host_program(self, program: Program) -> Program:
        trace(self._notifier, f"Detecting host {program.name} program path and version")
        output = program.model_copy(deep=True)
        # The local PATH only answers for the OS we are actually running on
        search_executor = None if self._os_type is CURRENT_OS_TYPE else self._host_executor
        output.path = await find_program_path(program.name, self._os_type, search_executor)
        output.version = await find_program_version(output.path, self._os_type, self._host_executor)
        return output

    async def find_host_program_version(self, program: Program) -> str:
        return await find_program_version(program.path, self._os_type, self._host_executor)

    async def find_scope_program(self, program: Program, scope_executor: CommandExecutor) -> Program:
        trace(self._notifier, f"Detecting guest {program.name} program path and version")
        output = program.model_copy(deep=True)
        output.path = await find_program_path(program.name, SCOPE_OS_TYPE, scope_executor)
        output.version = await find_program_version(output.path, SCOPE_OS_TYPE, scope_executor)
        return output

    async def find_scope_program_version(self, program: Program, scope_executor: CommandExecutor) -> str:
        return await find_program_version(program.path, SCOPE_OS_TYPE, scope_executor)
