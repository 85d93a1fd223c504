"""Host platform probes: OS family, environment, user data dir, file presence."""

from __future__ import annotations

import os
import shutil
import sys
from enum import Enum
from pathlib import Path

APP_NAME = "enginehost"


class OperatingSystem(str, Enum):
    LINUX = "Linux"
    WINDOWS = "Windows"
    MAC = "Darwin"


def current_os() -> OperatingSystem:
    if sys.platform.startswith("win"):
        return OperatingSystem.WINDOWS
    if sys.platform == "darwin":
        return OperatingSystem.MAC
    return OperatingSystem.LINUX


CURRENT_OS_TYPE: OperatingSystem = current_os()


async def get_environment_variable(name: str) -> str:
    return os.environ.get(name, "")


def user_data_path(os_type: OperatingSystem | None = None) -> Path:
    """Per-user application data directory for the given OS family."""
    os_type = os_type or CURRENT_OS_TYPE
    home = Path.home()
    if os_type is OperatingSystem.WINDOWS:
        base = Path(os.environ.get("APPDATA") or home / "AppData" / "Roaming")
    elif os_type is OperatingSystem.MAC:
        base = home / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME") or home / ".local" / "share")
    return base / APP_NAME


async def get_user_data_path() -> str:
    return str(user_data_path())


async def is_file_present(path: str) -> bool:
    """True if ``path`` names an existing file, or a program found on PATH."""
    if not path:
        return False
    if os.path.isabs(path) or os.sep in path:
        return os.path.exists(path)
    return shutil.which(path) is not None
