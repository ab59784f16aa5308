"""Server state probes: port-bind check and process-table check."""
import logging
import socket

from webdeploy.core.protocols import ProcessExecutor
from webdeploy.utils.config import DeployConfig

logger = logging.getLogger(__name__)


class PortProbe:
    """Running means the HTTP connector accepts TCP connections."""

    def __init__(self, host: str, port: int, timeout: float = 1.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def is_running(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug("Port probe %s:%s: %s", self.host, self.port, e)
            return False


class ProcessTableProbe:
    """Running means a process command line contains the bootstrap signature.

    Uses ``pgrep -f``; a process can exist while still starting up or
    shutting down, so this is less precise than PortProbe.
    """

    def __init__(self, signature: str, process_executor: ProcessExecutor):
        self.signature = signature
        self.process = process_executor

    def is_running(self) -> bool:
        try:
            result = self.process.run(['pgrep', '-f', self.signature])
        except OSError as e:
            logger.debug("Process probe failed: %s", e)
            return False
        return result.returncode == 0 and bool(result.stdout.strip())


def create_probe(config: DeployConfig, process_executor: ProcessExecutor):
    """Probe selected by ``config.probe`` ("port" or "process")."""
    if config.probe == 'process':
        return ProcessTableProbe(config.bootstrap_class, process_executor)
    return PortProbe(config.host, config.http_port)
