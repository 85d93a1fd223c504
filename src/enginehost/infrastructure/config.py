"""Configuration constants, .env parsing, and runner timing settings."""

from __future__ import annotations

import os
from pathlib import Path

from enginehost.infrastructure.platform import user_data_path


def read_env_file(keys: list[str]) -> dict[str, str]:
    """Parse .env file and return values for requested keys.

    Does NOT load into os.environ, so values never leak to the engine
    processes spawned by this runtime.
    """
    env_file = Path.cwd() / ".env"
    try:
        content = env_file.read_text()
    except OSError:
        return {}

    result: dict[str, str] = {}
    wanted = set(keys)

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, value = trimmed.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key not in wanted:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        if value:
            result[key] = value

    return result


_env_config = read_env_file(
    [
        "ENGINEHOST_CONNECTIONS_FILE",
        "ENGINEHOST_API_START_RETRIES",
        "ENGINEHOST_API_START_DELAY",
        "ENGINEHOST_API_STOP_TIMEOUT",
    ]
)


def _setting(key: str, default: str) -> str:
    return os.environ.get(key) or _env_config.get(key, default)


DATA_DIR: Path = user_data_path()
CONNECTIONS_FILE: Path = Path(_setting("ENGINEHOST_CONNECTIONS_FILE", str(DATA_DIR / "connections.yaml"))).expanduser()

API_PING_TIMEOUT_MS: int = 3000
API_START_RETRIES: int = max(1, int(_setting("ENGINEHOST_API_START_RETRIES", "10")))
API_START_DELAY: float = float(_setting("ENGINEHOST_API_START_DELAY", "1.0"))  # seconds
API_STOP_TIMEOUT: float = float(_setting("ENGINEHOST_API_STOP_TIMEOUT", "5.0"))  # seconds


class RunnerConfig:
    """Timing used by the Runner while waiting for an API to come up or go down."""

    def __init__(
        self,
        retries: int = API_START_RETRIES,
        delay_s: float = API_START_DELAY,
        stop_timeout_s: float = API_STOP_TIMEOUT,
    ) -> None:
        self.retries = retries
        self.delay_s = delay_s
        self.stop_timeout_s = stop_timeout_s

    def with_overrides(self, retries: int | None = None, delay_s: float | None = None) -> RunnerConfig:
        return RunnerConfig(
            retries if retries is not None else self.retries,
            delay_s if delay_s is not None else self.delay_s,
            self.stop_timeout_s,
        )
