"""Engine families: the host client classes each engine can run on."""

from __future__ import annotations

from typing import Any, ClassVar

from enginehost.connections.types import ContainerEngine, ContainerEngineHost
from enginehost.errors import HostClientNotFoundError
from enginehost.hosts.base import HostClient
from enginehost.hosts.lima import DockerLIMAClient, PodmanLIMAClient
from enginehost.hosts.native import DockerNativeClient, PodmanNativeClient
from enginehost.hosts.remote import DockerRemoteClient, PodmanRemoteClient
from enginehost.hosts.virtualized import DockerVirtualizedClient, PodmanVirtualizedClient
from enginehost.hosts.wsl import DockerWSLClient, PodmanWSLClient
from enginehost.infrastructure.logger import logger
from enginehost.infrastructure.platform import CURRENT_OS_TYPE, OperatingSystem


class Engine:
    ENGINE: ClassVar[ContainerEngine]
    HOST_CLIENTS: ClassVar[list[type[HostClient]]] = []

    def __init__(self, os_type: OperatingSystem | None = None) -> None:
        self.os_type = os_type or CURRENT_OS_TYPE

    def create_host_client(self, host_client: type[HostClient], id: str, **kwargs: Any) -> HostClient:
        return host_client(id, self.os_type, **kwargs)

    def create_host_client_by_name(self, host: ContainerEngineHost | str, id: str, **kwargs: Any) -> HostClient:
        host_client = next((cls for cls in self.HOST_CLIENTS if cls.HOST.value == str(getattr(host, "value", host))), None)
        if host_client is None:
            logger.error(
                "Unable to find specified host",
                host=str(host),
                engine=self.ENGINE.value,
                known=[cls.HOST.value for cls in self.HOST_CLIENTS],
            )
            raise HostClientNotFoundError("Unable to find specified host", {"host": str(host), "engine": self.ENGINE.value})
        return self.create_host_client(host_client, id, **kwargs)


class PodmanEngine(Engine):
    ENGINE = ContainerEngine.PODMAN
    HOST_CLIENTS = [
        PodmanNativeClient,
        PodmanVirtualizedClient,
        PodmanWSLClient,
        PodmanLIMAClient,
        PodmanRemoteClient,
    ]


class DockerEngine(Engine):
    ENGINE = ContainerEngine.DOCKER
    HOST_CLIENTS = [
        DockerNativeClient,
        DockerVirtualizedClient,
        DockerWSLClient,
        DockerLIMAClient,
        DockerRemoteClient,
    ]


ENGINES: dict[ContainerEngine, type[Engine]] = {
    ContainerEngine.PODMAN: PodmanEngine,
    ContainerEngine.DOCKER: DockerEngine,
}


def create_engine(engine: ContainerEngine | str, os_type: OperatingSystem | None = None) -> Engine:
    return ENGINES[ContainerEngine(engine)](os_type)
