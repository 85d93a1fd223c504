"""Tests for configuration, platform probes and the notifier."""

import pytest

from enginehost.infrastructure.config import RunnerConfig, read_env_file
from enginehost.infrastructure.logger import normalize_log_level
from enginehost.infrastructure.notifier import BroadcastNotifier, trace
from enginehost.infrastructure.platform import OperatingSystem, is_file_present, user_data_path


class TestReadEnvFile:
    def test_reads_env_values(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("ENGINEHOST_API_START_RETRIES=3\nOTHER=1\n")
        monkeypatch.chdir(tmp_path)

        assert read_env_file(["ENGINEHOST_API_START_RETRIES"]) == {"ENGINEHOST_API_START_RETRIES": "3"}

    def test_strips_quotes_and_comments(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text('# comment\nA="quoted"\nB=\'single\'\nC=\n')
        monkeypatch.chdir(tmp_path)

        assert read_env_file(["A", "B", "C"]) == {"A": "quoted", "B": "single"}

    def test_missing_file_returns_empty(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert read_env_file(["A"]) == {}


class TestRunnerConfig:
    def test_overrides(self):
        config = RunnerConfig(retries=10, delay_s=1.0, stop_timeout_s=5.0)
        tuned = config.with_overrides(retries=2)

        assert tuned.retries == 2
        assert tuned.delay_s == 1.0
        assert tuned.stop_timeout_s == 5.0


class TestPlatform:
    def test_user_data_path_mac(self):
        assert str(user_data_path(OperatingSystem.MAC)).endswith("Library/Application Support/enginehost")

    @pytest.mark.asyncio
    async def test_is_file_present(self, tmp_path):
        program = tmp_path / "podman"
        program.write_text("")

        assert await is_file_present(str(program)) is True
        assert await is_file_present(str(tmp_path / "missing")) is False
        assert await is_file_present("") is False


class TestLogLevel:
    def test_normalize(self):
        assert normalize_log_level("DEBUG") == "debug"
        assert normalize_log_level("warn") == "warning"
        assert normalize_log_level("verbose") == "info"
        assert normalize_log_level(None) == "info"


class TestNotifier:
    def test_broadcast_and_unsubscribe(self):
        notifier = BroadcastNotifier()
        received = []
        unsubscribe = notifier.subscribe(lambda channel, payload: received.append((channel, payload["trace"])))

        trace(notifier, "one")
        unsubscribe()
        trace(notifier, "two")

        assert received == [("engine.availability", "one")]

    def test_failing_subscriber_is_isolated(self):
        notifier = BroadcastNotifier()
        received = []

        def broken(channel, payload):
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(lambda channel, payload: received.append(payload["trace"]))

        trace(notifier, "still delivered")

        assert received == ["still delivered"]
