"""Shared fakes: scripted process executor, filesystem probe, notifier and API driver."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from enginehost.api.driver import ApiResponse
from enginehost.errors import ApiDriverError
from enginehost.execution.services import ConnectionServices
from enginehost.execution.types import CommandExecutionResult
from enginehost.hosts.base import HostClient
from enginehost.infrastructure.config import RunnerConfig
from enginehost.infrastructure.platform import OperatingSystem

NOT_SCRIPTED = CommandExecutionResult(success=False, code=127, stderr="not scripted")


class FakeExecutor:
    """Answers commands by their joined command line; records every call."""

    def __init__(self) -> None:
        self.responses: dict[str, CommandExecutionResult | Exception] = {}
        self.calls: list[tuple[str, list[str]]] = []

    def on(self, command_line: str, stdout: str = "", success: bool = True, code: int | None = None, stderr: str = "") -> None:
        self.responses[command_line] = CommandExecutionResult(
            success=success,
            code=code if code is not None else (0 if success else 1),
            stdout=stdout,
            stderr=stderr,
        )

    def fail(self, command_line: str, error: Exception) -> None:
        self.responses[command_line] = error

    @property
    def command_lines(self) -> list[str]:
        return [" ".join([program, *args]) for program, args in self.calls]

    async def __call__(self, program: str, args: list[str]) -> CommandExecutionResult:
        self.calls.append((program, list(args)))
        result = self.responses.get(" ".join([program, *args]), NOT_SCRIPTED)
        if isinstance(result, Exception):
            raise result
        return result


class FakeFiles:
    def __init__(self, *paths: str) -> None:
        self.paths = set(paths)

    async def __call__(self, path: str) -> bool:
        return path in self.paths


class RecordingNotifier:
    def __init__(self) -> None:
        self.traces: list[str] = []

    def transmit(self, channel: str, payload: dict[str, Any]) -> None:
        self.traces.append(payload["trace"])


class FakeDriver:
    """Replies to every request with the next scripted body (the last one repeats)."""

    def __init__(self, *bodies: Any, error: Exception | None = None) -> None:
        self.bodies = list(bodies) or ["OK"]
        self.error = error
        self.requests: list[tuple[str, str, float | None, str]] = []
        self.closed = False

    async def request(self, method: str, url: str, timeout_s: float | None = None, response_type: str = "text") -> ApiResponse:
        self.requests.append((method, url, timeout_s, response_type))
        if self.error is not None:
            raise self.error
        body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
        return ApiResponse(status=200, data=body)

    async def get(self, url: str, timeout_s: float | None = None, response_type: str = "json") -> ApiResponse:
        return await self.request("GET", url, timeout_s, response_type)

    async def close(self) -> None:
        self.closed = True


class SpyServices(ConnectionServices):
    def __init__(self) -> None:
        super().__init__(stop_timeout_s=0.1)
        self.stop_calls: list[str] = []

    async def stop(self, connection_id: str) -> int:
        self.stop_calls.append(connection_id)
        return await super().stop(connection_id)


def unreachable_driver() -> FakeDriver:
    return FakeDriver(error=ApiDriverError("API request failed", {"error": "connection refused"}))


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def services() -> SpyServices:
    return SpyServices()


@pytest.fixture
def make_client(executor: FakeExecutor, notifier: RecordingNotifier, services: SpyServices) -> Callable[..., HostClient]:
    """Build a host client wired to the fakes above."""

    def factory(
        client_cls: type[HostClient],
        os_type: OperatingSystem = OperatingSystem.LINUX,
        files: FakeFiles | None = None,
        driver: FakeDriver | None = None,
        id: str = "test.connection",
    ) -> HostClient:
        api_driver = driver or unreachable_driver()
        return client_cls(
            id,
            os_type,
            notifier=notifier,
            executor=executor,
            file_exists=files or FakeFiles(),
            driver_factory=lambda settings: api_driver,
            services=services,
            runner_config=RunnerConfig(retries=3, delay_s=0, stop_timeout_s=0.1),
        )

    return factory


@pytest.fixture
def which(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Host PATH search backed by a dict of name -> path."""
    found: dict[str, str] = {}
    monkeypatch.setattr("enginehost.detection.detector.shutil.which", lambda name: found.get(name))
    return found
