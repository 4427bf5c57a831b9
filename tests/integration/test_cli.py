"""Integration tests for the svcman CLI."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner, Result

from svcman.cli.main import cli, main
from svcman.exceptions import BackendUnavailableError, CommandError, ServiceNotFoundError
from svcman.models.status import ServiceState, ServiceStatus


@pytest.fixture(autouse=True)
def plain_output(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("FORCE_COLOR", "SVCMAN_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def invoke(config_file: Path, mock_manager: MagicMock):
    """Run the CLI against the sample config and the mock backend."""
    runner = CliRunner()

    def _invoke(*args: str) -> Result:
        return runner.invoke(cli, ["--config", str(config_file), *args], obj={"manager": mock_manager})

    return _invoke


class TestInit:
    """Tests for the init command."""

    def test_creates_config(self, tmp_path: Path) -> None:
        path = tmp_path / "svcman.yaml"

        result = CliRunner().invoke(cli, ["--config", str(path), "init"])

        assert result.exit_code == 0
        assert "Created" in result.output
        assert "apps:" in path.read_text()

    def test_minimal(self, tmp_path: Path) -> None:
        path = tmp_path / "svcman.yaml"

        result = CliRunner().invoke(cli, ["--config", str(path), "init", "--minimal"])

        assert result.exit_code == 0
        assert "#" not in path.read_text()

    def test_refuses_to_overwrite(self, config_file: Path) -> None:
        original = config_file.read_text()

        result = CliRunner().invoke(cli, ["--config", str(config_file), "init"])

        assert isinstance(result.exception, CommandError)
        assert config_file.read_text() == original

    def test_force_overwrites(self, config_file: Path) -> None:
        result = CliRunner().invoke(cli, ["--config", str(config_file), "init", "--force"])

        assert result.exit_code == 0
        assert "svcman" in config_file.read_text()


class TestStart:
    """Tests for the start command."""

    def test_single_service(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("start", "api")

        assert result.exit_code == 0
        assert "Installing test-api on mock..." in result.output
        assert "Service api is now running" in result.output
        assert "PID: 4242" in result.output
        mock_manager.install.assert_awaited_once()
        mock_manager.start.assert_awaited_once_with("test-api")

    def test_single_service_json(self, invoke) -> None:
        result = invoke("start", "api", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "success": True,
            "command": "start",
            "service": "api",
            "state": "active",
            "pid": 4242,
        }

    def test_single_service_error_propagates(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.start.side_effect = RuntimeError("boom")

        result = invoke("start", "api")

        assert isinstance(result.exception, RuntimeError)

    def test_all_services(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("start")

        assert result.exit_code == 0
        assert "Starting 2 service(s)..." in result.output
        assert mock_manager.start.await_count == 2

    def test_batch_failure_exits_nonzero(self, invoke, mock_manager: MagicMock) -> None:
        async def start(service_id: str) -> None:
            if service_id == "test-worker":
                raise RuntimeError("Unit not found")

        mock_manager.start.side_effect = start

        result = invoke("start", "api", "worker", "--json")

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["summary"] == {"total": 2, "succeeded": 1, "failed": 1, "skipped": 0}
        assert data["results"][1]["error"] == "Unit not found"

    def test_dry_run(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("start", "api", "--dry-run")

        assert result.exit_code == 0
        assert "[DRY-RUN] Would start service: api" in result.output
        assert "Description=mock" in result.output
        mock_manager.install.assert_not_awaited()
        mock_manager.start.assert_not_awaited()

    def test_dry_run_json(self, invoke) -> None:
        result = invoke("start", "--dry-run", "--json")

        data = json.loads(result.output)
        assert data["dryRun"] is True
        assert data["backend"] == "mock"
        assert [s["service"]["name"] for s in data["services"]] == ["api", "worker"]
        assert data["services"][0]["configContent"] == "[Unit]\nDescription=mock\n"

    def test_unknown_service(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("start", "db")

        assert isinstance(result.exception, ServiceNotFoundError)
        mock_manager.install.assert_not_awaited()


class TestBackendAvailability:
    """Tests for the native service manager check."""

    def test_unavailable_backend_blocks_start(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.is_available.return_value = False

        result = invoke("start", "api")

        assert isinstance(result.exception, BackendUnavailableError)
        assert result.exception.message == "mock is not available"
        assert result.exception.hint is not None
        assert result.exception.hint.startswith("svcman requires mock on ")
        mock_manager.install.assert_not_awaited()
        mock_manager.start.assert_not_awaited()

    @pytest.mark.parametrize("args", [("stop",), ("restart", "api"), ("status",), ("remove", "api", "--force")])
    def test_unavailable_backend_blocks_commands(self, invoke, mock_manager: MagicMock, args: tuple[str, ...]) -> None:
        mock_manager.is_available.return_value = False

        result = invoke(*args)

        assert isinstance(result.exception, BackendUnavailableError)
        mock_manager.stop.assert_not_awaited()
        mock_manager.restart.assert_not_awaited()
        mock_manager.remove.assert_not_awaited()
        mock_manager.get_all_statuses.assert_not_awaited()

    def test_checked_once_per_invocation(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("start")

        assert result.exit_code == 0
        mock_manager.is_available.assert_awaited_once()

    def test_init_skips_check(self, tmp_path: Path, mock_manager: MagicMock) -> None:
        mock_manager.is_available.return_value = False
        path = tmp_path / "svcman.yaml"

        result = CliRunner().invoke(cli, ["--config", str(path), "init"], obj={"manager": mock_manager})

        assert result.exit_code == 0
        assert path.exists()
        mock_manager.is_available.assert_not_awaited()


class TestStopRestart:
    """Tests for the stop and restart commands."""

    def test_stop_running(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.get_status.side_effect = lambda sid: ServiceStatus(name=sid, state=ServiceState.INACTIVE)

        result = invoke("stop", "api")

        assert result.exit_code == 0
        assert "Service api stopped" in result.output
        mock_manager.stop.assert_awaited_once_with("test-api")

    def test_stop_not_running(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.is_active.return_value = False

        result = invoke("stop", "api")

        assert result.exit_code == 0
        assert "Service api is not running" in result.output
        mock_manager.stop.assert_not_awaited()

    def test_stop_all_skips_inactive(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.is_active.return_value = False

        result = invoke("stop", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["summary"]["skipped"] == 2
        assert data["success"] is True

    def test_restart(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("restart", "worker")

        assert result.exit_code == 0
        assert "Service worker restarted" in result.output
        mock_manager.restart.assert_awaited_once_with("test-worker")


class TestStatus:
    """Tests for the status command."""

    def test_table_uses_app_names(self, invoke) -> None:
        result = invoke("status")

        assert result.exit_code == 0
        assert "api" in result.output
        assert "worker" in result.output
        assert "test-api" not in result.output

    def test_json(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.get_status.side_effect = lambda sid: ServiceStatus(
            name=sid, state=ServiceState.FAILED if sid == "test-worker" else ServiceState.ACTIVE
        )

        result = invoke("status", "--json")

        data = json.loads(result.output)
        assert [s["name"] for s in data["services"]] == ["api", "worker"]
        assert data["summary"] == {"total": 2, "active": 1, "inactive": 0, "failed": 1}

    def test_single(self, invoke) -> None:
        result = invoke("status", "api")

        assert result.exit_code == 0
        assert "State: active" in result.output
        assert "PID: 4242" in result.output


class TestRemove:
    """Tests for the remove command."""

    def test_requires_force(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("remove", "api")

        assert isinstance(result.exception, CommandError)
        mock_manager.remove.assert_not_awaited()

    def test_force(self, invoke, mock_manager: MagicMock) -> None:
        result = invoke("remove", "api", "--force")

        assert result.exit_code == 0
        assert "Service api removed" in result.output
        mock_manager.remove.assert_awaited_once_with("test-api")

    def test_not_installed(self, invoke, mock_manager: MagicMock) -> None:
        mock_manager.is_installed.return_value = False

        result = invoke("remove", "api", "-f")

        assert result.exit_code == 0
        assert "Service api is not installed" in result.output
        mock_manager.remove.assert_not_awaited()


class TestLogs:
    """Tests for the logs command."""

    def test_clear(self, invoke, mock_manager: MagicMock, tmp_path: Path) -> None:
        log = tmp_path / "test-api.log"
        log.write_text("old output\n")
        mock_manager.log_files.side_effect = lambda sid: [tmp_path / f"{sid}.log"]

        result = invoke("logs", "--clear")

        assert result.exit_code == 0
        assert "Cleared logs for 1 service(s)" in result.output
        assert log.read_text() == ""

    def test_clear_without_files(self, invoke) -> None:
        result = invoke("logs", "--clear")

        assert "No log files found" in result.output

    def test_single_service(self, invoke, mock_manager: MagicMock) -> None:
        async def lines(service_id: str, options: object):
            yield "[INFO] listening on 8080"

        mock_manager.logs = lines

        result = invoke("logs", "api")

        assert result.exit_code == 0
        assert "[INFO] listening on 8080" in result.output

    def test_all_without_files(self, invoke, mock_manager: MagicMock, tmp_path: Path) -> None:
        mock_manager.log_files.side_effect = lambda sid: [tmp_path / f"{sid}.log"]

        result = invoke("logs")

        assert "No log files found for any service" in result.output


class TestMain:
    """Tests for the error handling entry point."""

    def test_svcman_error_exit_code(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr("sys.argv", ["svcman", "--config", str(config_file), "status", "db"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert 'Service "db" not found in config' in out
        assert "Available services: api, worker" in out

    def test_unavailable_backend_exit_code(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        async def unavailable(self: object) -> bool:
            return False

        monkeypatch.setattr("svcman.backend.platform.platform.system", lambda: "Linux")
        monkeypatch.setattr("svcman.backend.systemd.SystemdBackend.is_available", unavailable)
        monkeypatch.setattr("sys.argv", ["svcman", "--config", str(config_file), "start", "api"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "systemd is not available" in out
        assert "svcman requires systemd on Linux" in out

    def test_unsupported_platform(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("svcman.backend.platform.platform.system", lambda: "Windows")
        monkeypatch.setattr("sys.argv", ["svcman", "--config", str(config_file), "status"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2
