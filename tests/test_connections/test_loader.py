"""Tests for the persisted connections file."""

import pytest

from enginehost.connections.loader import find_connection, load_connections, save_connections
from enginehost.errors import ConnectionsFileError
from enginehost.types import ContainerEngineHost, SettingsMode

CONNECTIONS_YAML = """
connections:
  - id: podman.wsl.ubuntu
    name: Podman on Ubuntu
    engine: podman
    host: podman.subsystem.wsl
    settings:
      api:
        baseURL: http://d/v4.0.0/libpod
        autoStart: false
        connection:
          uri: npipe:////./pipe/podman-Ubuntu
          relay: /run/podman/podman.sock
      program:
        name: podman
        path: /usr/bin/podman
      controller:
        name: wsl
        path: C:\\\\Windows\\\\System32\\\\wsl.exe
        scope: Ubuntu
      mode: mode.manual
  - id: docker.native
    name: Docker
    engine: docker
    host: docker.native
"""


class TestLoadConnections:
    def test_loads_entries(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text(CONNECTIONS_YAML)

        connections = load_connections(path)

        assert [c.id for c in connections] == ["podman.wsl.ubuntu", "docker.native"]
        wsl = connections[0]
        assert wsl.host is ContainerEngineHost.PODMAN_SUBSYSTEM_WSL
        assert wsl.settings.api.base_url == "http://d/v4.0.0/libpod"
        assert wsl.settings.api.auto_start is False
        assert wsl.settings.controller.scope == "Ubuntu"
        assert wsl.settings.mode is SettingsMode.MANUAL
        assert connections[1].settings.mode is SettingsMode.AUTOMATIC

    def test_missing_file(self, tmp_path):
        assert load_connections(tmp_path / "absent.yaml") == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text("")
        assert load_connections(path) == []

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text("connections: [unclosed")
        with pytest.raises(ConnectionsFileError, match="Unable to read connections file"):
            load_connections(path)

    def test_invalid_entry(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text("connections:\n  - id: x\n    name: x\n    engine: containerd\n    host: podman.native\n")
        with pytest.raises(ConnectionsFileError) as excinfo:
            load_connections(path)
        assert excinfo.value.details["index"] == 0

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text("- just a list\n")
        with pytest.raises(ConnectionsFileError):
            load_connections(path)


class TestSaveConnections:
    def test_written_file_loads_back(self, tmp_path):
        source = tmp_path / "in.yaml"
        source.write_text(CONNECTIONS_YAML)
        target = tmp_path / "nested" / "out.yaml"

        save_connections(target, load_connections(source))

        assert "baseURL" in target.read_text()
        assert load_connections(target) == load_connections(source)

    def test_find_connection(self, tmp_path):
        path = tmp_path / "connections.yaml"
        path.write_text(CONNECTIONS_YAML)
        connections = load_connections(path)

        assert find_connection(connections, "docker.native").name == "Docker"
        assert find_connection(connections, "nope") is None
