"""Program path and version detection, on the host or through an executor."""

from __future__ import annotations

import re
import shutil

from enginehost.execution.types import CommandExecutor
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import OperatingSystem

VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+(?:[-+~][0-9A-Za-z.+~-]*)?)")


def parse_program_version(output: str) -> str:
    """Pull the first dotted version out of ``--version`` output."""
    text = (output or "").strip()
    if not text:
        return ""
    match = VERSION_PATTERN.search(text)
    if match:
        return match.group(1).rstrip(".,")
    return text.splitlines()[0].strip()


def _search_command(os_type: OperatingSystem) -> str:
    return "where" if os_type is OperatingSystem.WINDOWS else "which"


async def find_program_path(name: str, os_type: OperatingSystem, executor: CommandExecutor | None = None) -> str:
    """Resolve ``name`` to an absolute path; empty string when not found.

    Without an executor the host PATH is searched directly.
    """
    if not name:
        return ""
    if executor is None:
        return shutil.which(name) or ""
    try:
        result = await executor(_search_command(os_type), [name])
    except Exception as err:
        logger.error("Unable to search program path", program=name, error=str(err))
        return ""
    if not result.success:
        logger.debug("Program not found", program=name, code=result.code, stderr=result.stderr.strip())
        return ""
    lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    return lines[0] if lines else ""


async def find_program_version(path: str, os_type: OperatingSystem, executor: CommandExecutor) -> str:
    """Run ``<path> --version`` and parse it; empty string on any failure."""
    if not path:
        return ""
    try:
        result = await executor(path, ["--version"])
    except Exception as err:
        logger.error("Unable to detect program version", path=path, os=os_type.value, error=str(err))
        return ""
    if not result.success:
        logger.debug("Program version command failed", path=path, code=result.code, stderr=result.stderr.strip())
        return ""
    return parse_program_version(result.stdout or result.stderr)
