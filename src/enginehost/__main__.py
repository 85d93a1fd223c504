"""Entry point: python -m enginehost <command> [connection-id]"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from enginehost.connections.loader import find_connection, load_connections
from enginehost.errors import EngineHostError
from enginehost.hosts.base import HostClient
from enginehost.hosts.registry import HostClientRegistry
from enginehost.infrastructure.config import CONNECTIONS_FILE
from enginehost.infrastructure.logger import logger

COMMANDS = ("availability", "detect", "start", "stop", "info", "prune", "reset")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="enginehost", description="Inspect and control container engine connections")
    parser.add_argument("--connections", type=Path, default=CONNECTIONS_FILE, help="Path to connections.yaml")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List configured connections")
    for name in COMMANDS:
        cmd = sub.add_parser(name)
        cmd.add_argument("connection_id")
    return parser


def _dump(value: Any) -> str:
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    return json.dumps(value, indent=2, default=str)


async def _dispatch(client: HostClient, command: str) -> Any:
    if command == "availability":
        await client.resolve_settings()
        return await client.get_availability()
    if command == "detect":
        return await client.resolve_settings()
    if command == "start":
        await client.resolve_settings()
        return {"started": await client.start_api()}
    if command == "stop":
        return {"stopped": await client.stop_api()}
    if command == "info":
        await client.resolve_settings()
        return await client.get_system_info()
    if command == "prune":
        await client.resolve_settings()
        return await client.prune_system()
    if command == "reset":
        await client.resolve_settings()
        return await client.reset_system()
    raise ValueError(f"Unknown command: {command}")


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        connections = load_connections(args.connections)
    except EngineHostError as err:
        logger.error(err.args[0], details=err.details)
        return 1

    if args.command == "list":
        print(_dump([c.model_dump(mode="json") for c in connections]))
        return 0

    connection = find_connection(connections, args.connection_id)
    if connection is None:
        logger.error("Unknown connection", id=args.connection_id, path=str(args.connections))
        return 1

    registry = HostClientRegistry()
    try:
        client = await registry.get_or_create(connection)
        print(_dump(await _dispatch(client, args.command)))
    except EngineHostError as err:
        logger.error(err.args[0], id=connection.id, details=err.details)
        return 1
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
