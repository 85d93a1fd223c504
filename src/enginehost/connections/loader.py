"""Read and write the persisted connections file (YAML)."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from enginehost.connections.types import Connection
from enginehost.errors import ConnectionsFileError
from enginehost.infrastructure.logger import logger


def load_connections(path: Path) -> list[Connection]:
    if not path.exists():
        logger.debug("No connections file", path=str(path))
        return []
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as err:
        raise ConnectionsFileError("Unable to read connections file", {"path": str(path), "error": str(err)}) from err

    if raw is None:
        return []
    if not isinstance(raw, dict) or not isinstance(raw.get("connections", []), list):
        raise ConnectionsFileError("Connections file must contain a 'connections' list", {"path": str(path)})

    connections: list[Connection] = []
    for index, entry in enumerate(raw.get("connections") or []):
        try:
            connections.append(Connection.model_validate(entry))
        except ValidationError as err:
            raise ConnectionsFileError(
                "Invalid connection entry", {"path": str(path), "index": index, "error": str(err)}
            ) from err
    return connections


def save_connections(path: Path, connections: list[Connection]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {"connections": [c.model_dump(mode="json", by_alias=True) for c in connections]}
    path.write_text(yaml.dump(document, default_flow_style=False, sort_keys=False))


def find_connection(connections: list[Connection], connection_id: str) -> Connection | None:
    return next((c for c in connections if c.id == connection_id), None)
