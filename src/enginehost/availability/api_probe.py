"""API configuration and reachability probes."""

from __future__ import annotations

from enginehost.api.client import ContainerApiClient
from enginehost.availability.types import AvailabilityCheck
from enginehost.connections.types import EngineConnectorSettings
from enginehost.errors import ApiDriverError
from enginehost.infrastructure.config import API_PING_TIMEOUT_MS
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.notifier import Notifier, trace
from enginehost.infrastructure.platform import OperatingSystem

PING_PATH = "/_ping"
API_NOT_REACHABLE = "API is not reachable - start manually or connect"


def is_api_available(settings: EngineConnectorSettings, os_type: OperatingSystem) -> AvailabilityCheck:
    """Configuration-only check: is there anything to connect to at all."""
    if not settings.api.base_url:
        return AvailabilityCheck(success=False, details="API base URL is not set")
    if not settings.api.connection.uri:
        return AvailabilityCheck(success=False, details="API connection string is not set")
    if os_type is OperatingSystem.WINDOWS:
        # TODO: verify the named pipe exists before pinging it
        pass
    return AvailabilityCheck(success=True, details="API is configured")


async def is_api_running(
    client_id: str,
    settings: EngineConnectorSettings,
    os_type: OperatingSystem,
    api_client: ContainerApiClient,
    notifier: Notifier,
) -> AvailabilityCheck:
    """Ping the engine API; transport errors become a fixed user-facing message."""
    trace(notifier, "Checking if API is running")
    available = is_api_available(settings, os_type)
    if not available.success:
        logger.error("API is not available - unable to ping", id=client_id, details=available.details)
        return available

    driver = api_client.get_driver()
    result = AvailabilityCheck(success=False)
    trace(notifier, "Performing api health check - start")
    try:
        response = await driver.request("GET", PING_PATH, timeout_s=API_PING_TIMEOUT_MS / 1000, response_type="text")
        result.success = response.data == "OK"
        if result.success:
            result.details = "Api is reachable"
        else:
            result.details = API_NOT_REACHABLE
            logger.error("API ping service failed - response error", id=client_id, status=response.status)
    except ApiDriverError as err:
        result.details = API_NOT_REACHABLE
        logger.error("API ping service failed - response failure", id=client_id, reason=err.args[0], details=err.details)
    except Exception as err:
        result.details = API_NOT_REACHABLE
        logger.error("API ping service failed - unexpected failure", id=client_id, error=str(err))
    trace(notifier, "Performing api health check - complete")
    return result
