"""Unit tests for server probes, the management client and the server controller."""
import socket

import pytest
import requests
from unittest.mock import Mock, MagicMock, patch

from webdeploy.core import RealFileSystemService
from webdeploy.core.protocols import ProcessExecutor, ProcessResult
from webdeploy.exceptions import (
    ConfigurationError,
    ReloadAuthFailure,
    ReloadFailure,
    ServerControlFailure,
)
from webdeploy.server import (
    ControlOutcome,
    ManagerClient,
    PortProbe,
    ProcessTableProbe,
    ServerController,
    ServerState,
    create_probe,
)


class FakeProbe:
    """Probe returning a scripted sequence of states (last one repeats)."""

    def __init__(self, *states):
        self.states = list(states)
        self.calls = 0

    def is_running(self) -> bool:
        self.calls += 1
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def current_time(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def create_mock_process(stop_returncode=0, exit_code=None):
    process = Mock(spec=ProcessExecutor)
    handle = Mock()
    handle.poll.return_value = exit_code
    process.popen.return_value = handle
    process.run.return_value = ProcessResult(returncode=stop_returncode, stderr="stop failed")
    return process


def make_controller(config, logger, probe, process=None, manager=None):
    return ServerController(
        config=config,
        probe=probe,
        manager=manager or Mock(spec=ManagerClient),
        filesystem=RealFileSystemService(),
        process_executor=process or create_mock_process(),
        time_provider=FakeClock(),
        logger=logger
    )


class TestPortProbe:

    def test_listening_port_is_running(self):
        server = socket.socket()
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        try:
            probe = PortProbe("127.0.0.1", server.getsockname()[1])
            assert probe.is_running() is True
        finally:
            server.close()

    def test_refused_port_is_stopped(self):
        sock = socket.socket()
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()

        assert PortProbe("127.0.0.1", port, timeout=0.5).is_running() is False


class TestProcessTableProbe:

    def test_match_found(self):
        process = Mock(spec=ProcessExecutor)
        process.run.return_value = ProcessResult(returncode=0, stdout="4242\n")
        probe = ProcessTableProbe("org.apache.catalina.startup.Bootstrap", process)

        assert probe.is_running() is True
        assert process.run.call_args[0][0] == ["pgrep", "-f", "org.apache.catalina.startup.Bootstrap"]

    def test_no_match(self):
        process = Mock(spec=ProcessExecutor)
        process.run.return_value = ProcessResult(returncode=1)
        assert ProcessTableProbe("Bootstrap", process).is_running() is False

    def test_missing_pgrep_reads_as_stopped(self):
        process = Mock(spec=ProcessExecutor)
        process.run.side_effect = FileNotFoundError("pgrep")
        assert ProcessTableProbe("Bootstrap", process).is_running() is False

    def test_create_probe_selects_strategy(self, config):
        assert isinstance(create_probe(config, Mock()), PortProbe)
        config.probe = "process"
        assert isinstance(create_probe(config, Mock()), ProcessTableProbe)


class TestManagerClient:

    def make_response(self, status, text="OK - Reloaded application at context path [/shop]"):
        response = MagicMock()
        response.status_code = status
        response.text = text
        return response

    @patch("webdeploy.server.manager.requests.get")
    def test_reload_success(self, mock_get):
        mock_get.return_value = self.make_response(200)
        client = ManagerClient("localhost", 8080, ("deployer", "secret"))

        client.reload("shop")

        args, kwargs = mock_get.call_args
        assert args[0] == "http://localhost:8080/manager/text/reload"
        assert kwargs["params"] == {"path": "/shop"}
        assert kwargs["auth"] == ("deployer", "secret")

    @pytest.mark.parametrize("status", [401, 403])
    @patch("webdeploy.server.manager.requests.get")
    def test_rejected_credentials(self, mock_get, status):
        mock_get.return_value = self.make_response(status, "")
        with pytest.raises(ReloadAuthFailure) as exc:
            ManagerClient("localhost", 8080, ("deployer", "bad")).reload("shop")
        assert "reload authentication failed" in str(exc.value)
        assert exc.value.recoverable

    @patch("webdeploy.server.manager.requests.get")
    def test_server_error(self, mock_get):
        mock_get.return_value = self.make_response(500, "boom")
        with pytest.raises(ReloadFailure) as exc:
            ManagerClient("localhost", 8080, ("u", "p")).reload("shop")
        assert not isinstance(exc.value, ReloadAuthFailure)

    @patch("webdeploy.server.manager.requests.get")
    def test_unreachable(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ReloadFailure):
            ManagerClient("localhost", 8080, ("u", "p")).reload("shop")


class TestServerControllerStart:

    def test_start_when_running_is_noop(self, config, logger):
        process = create_mock_process()
        controller = make_controller(config, logger, FakeProbe(True), process=process)

        first = controller.start()
        second = controller.start()

        assert first.outcome == ControlOutcome.ALREADY_RUNNING
        assert second.outcome == ControlOutcome.ALREADY_RUNNING
        assert not first.changed
        process.popen.assert_not_called()

    def test_start_launches_bootstrap_and_waits_for_port(self, config, logger):
        process = create_mock_process()
        probe = FakeProbe(False, False, False, True)
        controller = make_controller(config, logger, probe, process=process)

        result = controller.start()

        assert result.outcome == ControlOutcome.STARTED
        assert result.state == ServerState.RUNNING
        assert controller.state == ServerState.RUNNING
        cmd = process.popen.call_args[0][0]
        assert cmd[0] == str(config.java_executable)
        assert f"-Dcatalina.home={config.server_home}" in cmd
        assert f"-Dcatalina.base={config.server_base}" in cmd
        assert f"-Djava.io.tmpdir={config.server_base / 'temp'}" in cmd
        assert cmd[-2:] == ["org.apache.catalina.startup.Bootstrap", "start"]
        assert (config.server_base / "temp").is_dir()
        assert (config.server_base / "logs").is_dir()

    def test_process_exit_during_startup_fails(self, config, logger):
        process = create_mock_process(exit_code=1)
        controller = make_controller(config, logger, FakeProbe(False), process=process)

        with pytest.raises(ServerControlFailure) as exc:
            controller.start()

        assert "exited with code 1" in str(exc.value)
        assert controller.state == ServerState.STOPPED

    def test_startup_timeout_fails(self, config, logger):
        controller = make_controller(config, logger, FakeProbe(False))

        with pytest.raises(ServerControlFailure) as exc:
            controller.start()

        assert "did not become ready" in str(exc.value)

    def test_missing_java_is_configuration_error(self, config, logger):
        config.java_executable.unlink()
        process = create_mock_process()
        controller = make_controller(config, logger, FakeProbe(False), process=process)

        with pytest.raises(ConfigurationError):
            controller.start()
        process.popen.assert_not_called()


class TestServerControllerStop:

    def test_stop_when_stopped_is_noop(self, config, logger):
        process = create_mock_process()
        result = make_controller(config, logger, FakeProbe(False), process=process).stop()

        assert result.outcome == ControlOutcome.ALREADY_STOPPED
        process.run.assert_not_called()

    def test_stop_runs_bootstrap_stop_and_waits(self, config, logger):
        process = create_mock_process()
        controller = make_controller(config, logger, FakeProbe(True, True, False), process=process)

        result = controller.stop()

        assert result.outcome == ControlOutcome.STOPPED
        assert controller.state == ServerState.STOPPED
        assert process.run.call_args[0][0][-1] == "stop"

    def test_stop_command_failure_is_fatal(self, config, logger):
        process = create_mock_process(stop_returncode=1)
        controller = make_controller(config, logger, FakeProbe(True), process=process)

        with pytest.raises(ServerControlFailure):
            controller.stop()
        assert controller.state == ServerState.RUNNING

    def test_server_that_never_stops_fails(self, config, logger):
        controller = make_controller(config, logger, FakeProbe(True))
        with pytest.raises(ServerControlFailure) as exc:
            controller.stop()
        assert "still running" in str(exc.value)


class TestServerControllerReload:

    def test_reload_when_running_uses_manager(self, config, logger):
        manager = Mock(spec=ManagerClient)
        process = create_mock_process()
        controller = make_controller(config, logger, FakeProbe(True), process=process, manager=manager)

        result = controller.reload("shop")

        assert result.outcome == ControlOutcome.RELOADED
        manager.reload.assert_called_once_with("shop")
        process.popen.assert_not_called()

    def test_reload_when_stopped_starts_server(self, config, logger):
        manager = Mock(spec=ManagerClient)
        process = create_mock_process()
        controller = make_controller(config, logger, FakeProbe(False, False, True),
                                     process=process, manager=manager)

        result = controller.reload("shop")

        assert result.action == "reload"
        assert result.outcome == ControlOutcome.STARTED
        assert result.state == ServerState.RUNNING
        manager.reload.assert_not_called()
        process.popen.assert_called_once()

    def test_reload_auth_failure_propagates(self, config, logger):
        manager = Mock(spec=ManagerClient)
        manager.reload.side_effect = ReloadAuthFailure("reload authentication failed")
        controller = make_controller(config, logger, FakeProbe(True), manager=manager)

        with pytest.raises(ReloadAuthFailure):
            controller.reload("shop")
