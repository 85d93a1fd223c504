"""Auxiliary per-connection processes (socket relays and the like)."""

from __future__ import annotations

import asyncio

from enginehost.execution import process
from enginehost.infrastructure.config import API_STOP_TIMEOUT
from enginehost.infrastructure.logger import logger


class ConnectionServices:
    """Tracks helper processes per connection id so they can be stopped together."""

    def __init__(self, stop_timeout_s: float = API_STOP_TIMEOUT) -> None:
        self._services: dict[str, list[asyncio.subprocess.Process]] = {}
        self._stop_timeout = stop_timeout_s

    def register(self, connection_id: str, proc: asyncio.subprocess.Process) -> None:
        self._services.setdefault(connection_id, []).append(proc)

    def count(self, connection_id: str) -> int:
        return len(self._services.get(connection_id, []))

    async def start(self, connection_id: str, program: str, args: list[str]) -> asyncio.subprocess.Process | None:
        try:
            proc = await process.spawn(program, args)
        except OSError as err:
            logger.error("Unable to start connection service", id=connection_id, program=program, error=str(err))
            return None
        self.register(connection_id, proc)
        logger.info("Connection service started", id=connection_id, program=program, pid=proc.pid)
        return proc

    async def stop(self, connection_id: str) -> int:
        """Stop every service registered for ``connection_id``. Returns how many were stopped."""
        procs = self._services.pop(connection_id, [])
        stopped = 0
        for proc in procs:
            try:
                if await process.terminate(proc, self._stop_timeout):
                    stopped += 1
            except Exception:
                logger.exception("Unable to stop connection service", id=connection_id, pid=proc.pid)
        if procs:
            logger.info("Connection services stopped", id=connection_id, stopped=stopped)
        return stopped


connection_services = ConnectionServices()
