"""Domain errors raised where no structured result makes sense."""

from __future__ import annotations

from typing import Any


class EngineHostError(Exception):
    """Base error carrying a short fixed message plus loggable details."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class SystemCommandError(EngineHostError):
    """A prune/reset style system command failed."""


class HostClientNotFoundError(EngineHostError):
    """No host client class is registered for the requested host."""


class ApiDriverError(EngineHostError):
    """Transport level failure talking to an engine API."""


class ConnectionsFileError(EngineHostError):
    """The persisted connections file could not be read or validated."""
