"""Tests for scope listing, scope command routing and scope environment lookups."""

import json

import pytest

from enginehost.hosts.lima import PodmanLIMAClient
from enginehost.hosts.native import PodmanNativeClient
from enginehost.hosts.virtualized import DockerVirtualizedClient, PodmanVirtualizedClient, pipe_to_uri
from enginehost.hosts.wsl import PodmanWSLClient, parse_wsl_list
from enginehost.infrastructure.platform import OperatingSystem
from enginehost.types import ControllerSettings, EngineConnectorSettings, StartupStatus

from ..conftest import FakeFiles

WSL_LIST = """  NAME                   STATE           VERSION
* Ubuntu                 Running         2
  docker-desktop         Stopped         2
  Legacy                 Stopped         1
"""


def scoped_settings(controller: str, scope: str) -> EngineConnectorSettings:
    return EngineConnectorSettings(controller=ControllerSettings(name=controller, path="", scope=scope))


class TestWSL:
    def test_parse_list(self):
        scopes = parse_wsl_list(WSL_LIST)

        assert [s.name for s in scopes] == ["Ubuntu", "Legacy"]
        assert scopes[0].default is True
        assert scopes[0].usable is True
        assert scopes[0].running is True
        assert scopes[1].usable is False

    def test_parse_utf16_residue(self):
        noisy = "\x00".join(WSL_LIST)
        assert [s.name for s in parse_wsl_list(noisy)] == ["Ubuntu", "Legacy"]

    @pytest.mark.asyncio
    async def test_scope_command_appends_exe(self, make_client, executor):
        client = make_client(PodmanWSLClient, os_type=OperatingSystem.WINDOWS)
        executor.on("wsl.exe --distribution Ubuntu --exec podman --version", stdout="podman version 4.3.1")

        result = await client.run_scope_command("podman", ["--version"], "Ubuntu")

        assert result.success is True
        assert executor.calls == [("wsl.exe", ["--distribution", "Ubuntu", "--exec", "podman", "--version"])]

    @pytest.mark.asyncio
    async def test_exe_suffix_not_doubled(self, make_client, executor):
        client = make_client(PodmanWSLClient, os_type=OperatingSystem.WINDOWS)

        await client.run_host_command("C:\\Windows\\System32\\wsl.exe", ["--list"])

        assert executor.calls[0][0] == "C:\\Windows\\System32\\wsl.exe"

    @pytest.mark.asyncio
    async def test_api_connection(self, make_client, executor):
        client = make_client(PodmanWSLClient, os_type=OperatingSystem.WINDOWS)
        executor.on("wsl.exe --distribution Ubuntu --exec printenv XDG_RUNTIME_DIR", stdout="/run/user/1000\n")

        api = await client.get_api_connection(None, scoped_settings("wsl", "Ubuntu"))

        assert api.uri == "npipe:////./pipe/podman-Ubuntu"
        assert api.relay == "/run/user/1000/podman/podman.sock"

    @pytest.mark.asyncio
    async def test_keeps_started_scope_running(self, make_client):
        assert make_client(PodmanWSLClient).should_keep_started_scope_running() is True

    @pytest.mark.asyncio
    async def test_unavailable_off_windows(self, make_client):
        check = await make_client(PodmanWSLClient, os_type=OperatingSystem.LINUX).is_engine_available()
        assert check.success is False


class TestPodmanMachine:
    @pytest.mark.asyncio
    async def test_scopes_require_controller(self, make_client, executor):
        client = make_client(PodmanVirtualizedClient, files=FakeFiles())

        assert await client.get_controller_scopes(scoped_settings("podman", "")) == []
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_start_scope(self, make_client, executor):
        client = make_client(PodmanVirtualizedClient)
        executor.on("podman machine list --format json", stdout=json.dumps([{"Name": "vm1", "Running": False}]))
        executor.on("podman machine start vm1")

        assert await client.start_scope_by_name("vm1") is StartupStatus.STARTED

    @pytest.mark.asyncio
    async def test_start_running_scope(self, make_client, executor):
        client = make_client(PodmanVirtualizedClient)
        executor.on("podman machine list --format json", stdout=json.dumps([{"Name": "vm1", "Running": True}]))

        assert await client.start_scope_by_name("vm1") is StartupStatus.RUNNING
        assert "podman machine start vm1" not in executor.command_lines

    @pytest.mark.asyncio
    async def test_stop_scope_failure(self, make_client, executor):
        client = make_client(PodmanVirtualizedClient)
        executor.on("podman machine stop vm1", success=False, stderr="no such machine")

        assert await client.stop_scope_by_name("vm1") is False

    @pytest.mark.asyncio
    async def test_windows_pipe(self, make_client, executor):
        client = make_client(PodmanVirtualizedClient, os_type=OperatingSystem.WINDOWS)
        inspect = [{"ConnectionInfo": {"PodmanPipe": {"Path": "\\\\.\\pipe\\podman-machine-default"}}}]
        executor.on("podman.exe machine inspect podman-machine-default", stdout=json.dumps(inspect))

        api = await client.get_api_connection(None, scoped_settings("podman", "podman-machine-default"))

        assert api.uri == "npipe:////./pipe/podman-machine-default"

    def test_pipe_to_uri_passthrough(self):
        assert pipe_to_uri("npipe:////./pipe/x") == "npipe:////./pipe/x"


class TestLIMA:
    @pytest.mark.asyncio
    async def test_scopes_and_socket(self, make_client, executor):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        lines = [
            json.dumps({"name": "default", "status": "Stopped", "dir": "/Users/me/.lima/default"}),
            json.dumps({"name": "podman", "status": "Running", "dir": "/Users/me/.lima/podman"}),
        ]
        executor.on("limactl list --json", stdout="\n".join(lines))

        default = await client.get_controller_default_scope()
        api = await client.get_api_connection(None, scoped_settings("limactl", "podman"))

        assert default.name == "podman"
        assert default.usable is True
        assert api.uri == "/Users/me/.lima/podman/sock/podman.sock"

    @pytest.mark.asyncio
    async def test_scope_command(self, make_client):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        assert client.scope_command("podman", ["info"], "podman") == ("limactl", ["shell", "podman", "podman", "info"])


class TestScopeEnvironment:
    @pytest.mark.asyncio
    async def test_printenv_in_scope(self, make_client, executor):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        await client.set_settings(scoped_settings("limactl", "podman"))
        executor.on("limactl shell podman printenv HOME", stdout="/home/me.linux\n")

        assert await client.get_scope_environment_variable("", "HOME") == "/home/me.linux"

    @pytest.mark.asyncio
    async def test_unscoped_reads_host(self, make_client, executor, monkeypatch):
        monkeypatch.setenv("ENGINEHOST_PROBE", "host-value")
        client = make_client(PodmanNativeClient)

        assert await client.get_scope_environment_variable("", "ENGINEHOST_PROBE") == "host-value"
        assert executor.calls == []


class TestConnectionDataDir:
    @pytest.mark.asyncio
    async def test_xdg_data_home(self, make_client, executor):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        await client.set_settings(scoped_settings("limactl", "podman"))
        executor.on("limactl shell podman printenv XDG_DATA_HOME", stdout="/data\n")

        assert await client.get_connection_data_dir() == "/data"

    @pytest.mark.asyncio
    async def test_home_fallback(self, make_client, executor):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        await client.set_settings(scoped_settings("limactl", "podman"))
        executor.on("limactl shell podman printenv HOME", stdout="/home/me\n")

        assert await client.get_connection_data_dir() == "/home/me/.local/share"

    @pytest.mark.asyncio
    async def test_literal_fallback(self, make_client):
        client = make_client(PodmanLIMAClient, os_type=OperatingSystem.MAC)
        await client.set_settings(scoped_settings("limactl", "podman"))

        assert await client.get_connection_data_dir() == "$HOME/.local/share"

    @pytest.mark.asyncio
    async def test_vendor_machine_without_scope(self, make_client, monkeypatch):
        async def user_data_path():
            return "/home/me/.local/share/enginehost"

        monkeypatch.setattr("enginehost.infrastructure.platform.get_user_data_path", user_data_path)
        client = make_client(PodmanVirtualizedClient)
        await client.set_settings(scoped_settings("podman", ""))

        assert await client.get_connection_data_dir() == "/home/me/.local/share/enginehost"

    @pytest.mark.asyncio
    async def test_docker_desktop_socket(self, make_client):
        client = make_client(DockerVirtualizedClient, os_type=OperatingSystem.WINDOWS)
        api = await client.get_api_connection()
        assert api.uri == "npipe:////./pipe/docker_engine"
