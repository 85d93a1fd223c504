"""Result of any spawned process, host or scoped."""

from __future__ import annotations

from typing import Awaitable, Callable

from pydantic import BaseModel


class CommandExecutionResult(BaseModel):
    success: bool = False
    code: int | None = None
    stdout: str = ""
    stderr: str = ""


CommandExecutor = Callable[[str, list[str]], Awaitable[CommandExecutionResult]]
