"""Server controller: converge the server process to the requested state.

Transitions:
    start   Stopped -> Starting -> Running     (Running: no-op)
    stop    Running -> Stopping -> Stopped     (Stopped: no-op)
    reload  Running: management-endpoint reload (Stopped: same as start)
"""

import os
from pathlib import Path
from typing import List, Optional

from webdeploy.core.protocols import (
    FileSystemService,
    ProcessExecutor,
    ProcessHandle,
    TimeProvider,
    Logger
)
from webdeploy.exceptions import ConfigurationError, ServerControlFailure
from webdeploy.server.base import ControlOutcome, ControlResult, ServerState, ServerStateProbe
from webdeploy.server.manager import ManagerClient
from webdeploy.utils.config import DeployConfig

SERVER_LOG_FILE = 'webdeploy-server.log'
POLL_INTERVAL = 0.5


class ServerController:
    """State machine driving start/stop/reload of the server process.

    Args:
        config: Deployment configuration (homes, ports, timeouts)
        probe: Liveness check used before and during every transition
        manager: Management endpoint client used for reload
        filesystem: Filesystem operations abstraction
        process_executor: Subprocess execution abstraction
        time_provider: Time operations abstraction
        logger: Logging abstraction
    """

    def __init__(
        self,
        config: DeployConfig,
        probe: ServerStateProbe,
        manager: ManagerClient,
        filesystem: FileSystemService,
        process_executor: ProcessExecutor,
        time_provider: TimeProvider,
        logger: Logger
    ):
        self.config = config
        self.probe = probe
        self.manager = manager
        self.fs = filesystem
        self.process = process_executor
        self.time = time_provider
        self.log = logger
        self.state: Optional[ServerState] = None

    def current_state(self) -> ServerState:
        """Probe the server; never cached across calls."""
        self.state = ServerState.RUNNING if self.probe.is_running() else ServerState.STOPPED
        return self.state

    def _check_prerequisites(self) -> None:
        java = self.config.java_executable
        if not self.fs.is_file(java):
            raise ConfigurationError(
                f"Java runtime not found at {java}\n"
                f"Check that JAVA_HOME points at a JDK/JRE installation"
            )
        bootstrap = self.config.server_home / 'bin' / 'bootstrap.jar'
        if not self.fs.is_file(bootstrap):
            raise ConfigurationError(
                f"Server bootstrap not found at {bootstrap}\n"
                f"Check that CATALINA_HOME points at a Tomcat installation"
            )

    def bootstrap_command(self, action: str) -> List[str]:
        """Java command line for ``Bootstrap <action>`` (start or stop)."""
        home = self.config.server_home
        base = self.config.server_base
        bin_dir = home / 'bin'
        classpath = [str(bin_dir / 'bootstrap.jar')]
        juli = bin_dir / 'tomcat-juli.jar'
        if self.fs.is_file(juli):
            classpath.append(str(juli))

        cmd = [
            str(self.config.java_executable),
            '-cp', os.pathsep.join(classpath),
            f'-Dcatalina.home={home}',
            f'-Dcatalina.base={base}',
            f'-Djava.io.tmpdir={base / "temp"}',
        ]
        logging_config = base / 'conf' / 'logging.properties'
        if self.fs.is_file(logging_config):
            cmd += [
                f'-Djava.util.logging.config.file={logging_config}',
                '-Djava.util.logging.manager=org.apache.juli.ClassLoaderLogManager',
            ]
        cmd += [self.config.bootstrap_class, action]
        return cmd

    def _wait_until_ready(self, handle: ProcessHandle, log_path: Path) -> None:
        deadline = self.time.current_time() + self.config.startup_timeout
        while True:
            if self.probe.is_running():
                return
            exit_code = handle.poll()
            if exit_code is not None:
                raise ServerControlFailure(
                    f"Server exited with code {exit_code} during startup\n"
                    f"Check the server log: {log_path}"
                )
            if self.time.current_time() >= deadline:
                raise ServerControlFailure(
                    f"Server did not become ready within {self.config.startup_timeout:.0f}s "
                    f"(port {self.config.http_port})\n"
                    f"Check the server log: {log_path}"
                )
            self.time.sleep(POLL_INTERVAL)

    def start(self) -> ControlResult:
        """Start the server unless it is already running.

        Raises:
            ConfigurationError: Runtime or server installation missing
            ServerControlFailure: Process exited or never became ready
        """
        if self.current_state() == ServerState.RUNNING:
            self.log.info("Server already running")
            return ControlResult("start", ControlOutcome.ALREADY_RUNNING, ServerState.RUNNING)

        self._check_prerequisites()
        base = self.config.server_base
        self.fs.mkdir(base / 'temp')
        self.fs.mkdir(base / 'logs')
        log_path = base / 'logs' / SERVER_LOG_FILE

        self.state = ServerState.STARTING
        self.log.info(f"Starting server ({self.config.server_home})...")
        cmd = self.bootstrap_command('start')
        self.log.debug(' '.join(cmd))
        try:
            with self.fs.open(log_path, 'a') as log_file:
                handle = self.process.popen(cmd, stdout=log_file, stderr=log_file, cwd=str(base))
        except OSError as e:
            self.state = ServerState.STOPPED
            raise ServerControlFailure(f"Could not launch server: {e}")

        try:
            self._wait_until_ready(handle, log_path)
        except ServerControlFailure:
            self.state = ServerState.STOPPED
            raise

        self.state = ServerState.RUNNING
        self.log.info(f"Server running on port {self.config.http_port}")
        return ControlResult("start", ControlOutcome.STARTED, ServerState.RUNNING)

    def stop(self) -> ControlResult:
        """Stop the server if it is running.

        Raises:
            ServerControlFailure: Stop command failed or server kept running
        """
        if self.current_state() == ServerState.STOPPED:
            self.log.info("Server already stopped")
            return ControlResult("stop", ControlOutcome.ALREADY_STOPPED, ServerState.STOPPED)

        self._check_prerequisites()
        self.state = ServerState.STOPPING
        self.log.info("Stopping server...")
        try:
            result = self.process.run(self.bootstrap_command('stop'), cwd=str(self.config.server_base))
        except OSError as e:
            self.state = ServerState.RUNNING
            raise ServerControlFailure(f"Could not run server stop command: {e}")

        if result.returncode != 0:
            self.state = ServerState.RUNNING
            raise ServerControlFailure(
                f"Server stop command exited with code {result.returncode}\n"
                f"{result.stderr.strip()[-1000:]}"
            )

        deadline = self.time.current_time() + self.config.shutdown_timeout
        while self.probe.is_running():
            if self.time.current_time() >= deadline:
                self.state = ServerState.RUNNING
                raise ServerControlFailure(
                    f"Server still running {self.config.shutdown_timeout:.0f}s after stop command"
                )
            self.time.sleep(POLL_INTERVAL)

        self.state = ServerState.STOPPED
        self.log.info("Server stopped")
        return ControlResult("stop", ControlOutcome.STOPPED, ServerState.STOPPED)

    def reload(self, identity: str) -> ControlResult:
        """Reload identity in place, or start the server if it is stopped.

        Raises:
            ReloadAuthFailure, ReloadFailure: Recoverable; files stay deployed
            ConfigurationError, ServerControlFailure: From the start fallback
        """
        if self.current_state() == ServerState.STOPPED:
            self.log.info("Server not running, starting it instead of reloading")
            result = self.start()
            return ControlResult("reload", result.outcome, result.state)

        self.log.info(f"Reloading /{identity}...")
        self.manager.reload(identity)
        self.log.info(f"Reloaded /{identity}")
        return ControlResult("reload", ControlOutcome.RELOADED, ServerState.RUNNING)
