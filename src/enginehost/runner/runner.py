"""API process lifecycle: launch, wait for /_ping, terminate."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from enginehost.connections.types import ApiStartOptions, RunnerStopperOptions, StartupStatus
from enginehost.execution import process
from enginehost.infrastructure.config import RunnerConfig
from enginehost.infrastructure.logger import logger

if TYPE_CHECKING:
    from enginehost.hosts.base import HostClient


class Runner:
    """Supervises the one API process a host client may launch.

    Start and stop are serialized so overlapping calls never both act on
    the same process.
    """

    def __init__(self, client: HostClient, config: RunnerConfig | None = None) -> None:
        self._client = client
        self._config = config or RunnerConfig()
        self._process: asyncio.subprocess.Process | None = None
        self._lock = asyncio.Lock()

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    def is_supervising(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start_api(self, program: str, args: list[str], opts: ApiStartOptions | None = None) -> StartupStatus:
        opts = opts or ApiStartOptions()
        config = self._config.with_overrides(opts.retries, opts.delay_s)
        client_id = self._client.id
        async with self._lock:
            running = await self._client.is_api_running()
            if running.success:
                logger.debug("Starting API - skip(already running)", id=client_id)
                return StartupStatus.RUNNING
            if self.is_supervising():
                logger.warning("Starting API - previous process still alive, replacing", id=client_id, pid=self.pid)
                await process.terminate(self._process, config.stop_timeout_s)  # type: ignore[arg-type]
                self._process = None

            logger.info("Starting API - launching", id=client_id, program=program, args=args)
            try:
                self._process = await process.spawn(program, args)
            except OSError as err:
                logger.error("Starting API - unable to launch", id=client_id, program=program, error=str(err))
                return StartupStatus.ERROR

            for attempt in range(1, config.retries + 1):
                await asyncio.sleep(config.delay_s)
                if self._process.returncode is not None:
                    logger.error("Starting API - process exited", id=client_id, code=self._process.returncode)
                    break
                check = await self._client.is_api_running()
                if check.success:
                    logger.info("Starting API - complete", id=client_id, pid=self.pid, attempt=attempt)
                    return StartupStatus.STARTED
                logger.debug("Starting API - waiting", id=client_id, attempt=attempt, retries=config.retries)

            logger.error("Starting API - API did not come up", id=client_id, retries=config.retries)
            await process.terminate(self._process, config.stop_timeout_s)
            self._process = None
            return StartupStatus.ERROR

    async def stop_api(self, opts: RunnerStopperOptions | None = None) -> bool:
        opts = opts or RunnerStopperOptions()
        timeout_s = opts.timeout_s if opts.timeout_s is not None else self._config.stop_timeout_s
        client_id = self._client.id
        async with self._lock:
            if self._process is None:
                logger.debug("Stopping API - skip(already stopped)", id=client_id)
                return True
            proc = self._process
            stopped = await process.terminate(proc, timeout_s)
            if stopped:
                self._process = None
            logger.debug("Stopping API - process", id=client_id, pid=proc.pid, stopped=stopped)
            return stopped
