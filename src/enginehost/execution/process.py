"""Async subprocess primitives: run-to-completion and long-running spawn."""

from __future__ import annotations

import asyncio

from enginehost.execution.types import CommandExecutionResult
from enginehost.infrastructure.logger import logger


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    # wsl.exe writes UTF-16LE on Windows consoles
    if b"\x00" in raw:
        try:
            return raw.decode("utf-16-le").lstrip("\ufeff")
        except UnicodeDecodeError:
            return raw.replace(b"\x00", b"").decode(errors="replace")
    return raw.decode(errors="replace")


async def execute(program: str, args: list[str] | None = None, timeout_s: float | None = None) -> CommandExecutionResult:
    """Run ``program`` to completion. Spawn failures come back as unsuccessful results."""
    argv = list(args or [])
    try:
        proc = await asyncio.create_subprocess_exec(
            program, *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as err:
        logger.debug("Unable to spawn process", program=program, args=argv, error=str(err))
        return CommandExecutionResult(success=False, code=None, stderr=str(err))

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("Process timeout, killing", program=program, args=argv)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        return CommandExecutionResult(success=False, code=proc.returncode, stderr="Process timeout")

    return CommandExecutionResult(
        success=proc.returncode == 0,
        code=proc.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )


async def spawn(program: str, args: list[str] | None = None) -> asyncio.subprocess.Process:
    """Start a long-running process detached from our stdio. Raises OSError when it cannot start."""
    argv = list(args or [])
    logger.debug("Spawning process", program=program, args=argv)
    return await asyncio.create_subprocess_exec(
        program, *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )


async def terminate(proc: asyncio.subprocess.Process, timeout_s: float) -> bool:
    """SIGTERM, wait up to ``timeout_s``, then kill. True once the process is gone."""
    if proc.returncode is not None:
        return True
    try:
        proc.terminate()
    except ProcessLookupError:
        return True
    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("Process did not terminate, killing", pid=proc.pid)
        try:
            proc.kill()
        except ProcessLookupError:
            return True
        await proc.wait()
    return proc.returncode is not None
