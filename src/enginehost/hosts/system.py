"""Shape-agnostic system commands shared by every host client."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from enginehost.connections.types import (
    ContainerEngine,
    EngineConnectorSettings,
    PruneOptions,
    SystemInfo,
    SystemPruneReport,
    SystemResetReport,
)
from enginehost.errors import ApiDriverError, SystemCommandError
from enginehost.infrastructure.logger import logger

if TYPE_CHECKING:
    from enginehost.hosts.base import HostClient

RESET_ARGS = ["system", "reset", "--force", "--log-level=debug"]


async def get_system_info(client: HostClient, settings: EngineConnectorSettings, custom_format: str | None = None) -> SystemInfo:
    """``system info`` decoded from JSON; failures are logged and give an empty dict."""
    info: SystemInfo = {}
    args = ["system", "info", "--format", custom_format or "json"]
    result = await client.run_command(settings.program_command(), args, settings)
    if not result.success:
        logger.error("Unable to get system info", id=client.id, code=result.code, stderr=result.stderr)
        return info
    if not result.stdout:
        return info
    try:
        decoded = json.loads(result.stdout)
    except json.JSONDecodeError as err:
        logger.error("Unable to decode system info", id=client.id, error=str(err), stdout=result.stdout[:200])
        return info
    if not isinstance(decoded, dict):
        logger.error("Unexpected system info shape", id=client.id, type=type(decoded).__name__)
        return info
    return decoded


async def prune_system(client: HostClient, opts: PruneOptions | dict[str, Any] | None = None) -> SystemPruneReport:
    options = opts if isinstance(opts, PruneOptions) else PruneOptions.model_validate(opts or {})
    settings = await client.get_settings()
    result = await client.run_command(settings.program_command(), options.to_args(), settings)
    if not result.success:
        logger.error("System prune error", id=client.id, code=result.code, stderr=result.stderr)
        raise SystemCommandError("Unable to prune system", {"code": result.code, "stderr": result.stderr})
    logger.debug("System prune complete", id=client.id, stdout=result.stdout)
    # The CLI prints a human readable summary, not a machine report
    report: SystemPruneReport = {}
    return report


async def reset_system(client: HostClient) -> SystemResetReport | bool:
    if client.ENGINE is ContainerEngine.DOCKER:
        logger.debug("No such concept for current host - skipping", id=client.id)
        return True
    settings = await client.get_settings()
    result = await client.run_command(settings.program_command(), list(RESET_ARGS), settings)
    if not result.success:
        logger.error("System reset error", id=client.id, code=result.code, stderr=result.stderr)
        raise SystemCommandError("Unable to reset system", {"code": result.code, "stderr": result.stderr})
    logger.debug("System reset success", id=client.id)
    try:
        report = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as err:
        logger.warning("Unable to decode system reset report", id=client.id, error=str(err))
        return {}
    return report if isinstance(report, dict) else {}


async def get_events_stream(client: HostClient, opts: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]] | None:
    """Open the /events stream; None when the subscription cannot be made."""
    try:
        logger.debug("Subscribing to connection events - creating api client", id=client.id, opts=opts)
        api_client = await client.get_container_api_client()
        driver = api_client.get_driver()
        logger.debug("Subscribing to connection events - issuing request", id=client.id)
        response = await driver.get("/events", timeout_s=None, response_type="stream")
    except ApiDriverError as err:
        logger.error("Subscribing to connection events failed", id=client.id, reason=err.args[0], details=err.details)
        return None
    except Exception as err:
        logger.error("Subscribing to connection events failed", id=client.id, error=str(err))
        return None
    if response.status >= 400:
        logger.error("Subscribing to connection events failed", id=client.id, status=response.status)
        await response.data.aclose()
        return None
    return response.data
