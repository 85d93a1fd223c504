"""Container API client bound to one connection."""

from __future__ import annotations

from typing import Callable

from enginehost.api.driver import ApiDriver, HttpxApiDriver
from enginehost.connections.types import Connection, EngineConnectorSettings
from enginehost.infrastructure.logger import normalize_log_level

DriverFactory = Callable[[EngineConnectorSettings], ApiDriver]


class ContainerApiClient:
    """Owns the driver for one connection. Container/image operations build on top of it."""

    def __init__(self, connection: Connection, driver: ApiDriver) -> None:
        self.connection = connection
        self._driver = driver
        self.log_level = "debug"

    def get_driver(self) -> ApiDriver:
        return self._driver

    def set_log_level(self, level: str) -> None:
        self.log_level = normalize_log_level(level)

    async def close(self) -> None:
        await self._driver.close()


def create_api_driver(settings: EngineConnectorSettings) -> ApiDriver:
    return HttpxApiDriver(settings)
