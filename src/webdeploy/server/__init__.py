"""
Server control subsystem.

Public API:
    - ServerController: start / stop / reload state machine
    - ServerStateProbe: Protocol interface for liveness checks
    - PortProbe, ProcessTableProbe, create_probe: Probe strategies
    - ManagerClient: Management endpoint reload client
    - ServerState, ControlOutcome, ControlResult: Result types
"""

from .base import ServerState, ControlOutcome, ControlResult, ServerStateProbe
from .probe import PortProbe, ProcessTableProbe, create_probe
from .manager import ManagerClient
from .controller import ServerController

__all__ = [
    # Protocol and types
    "ServerStateProbe",
    "ServerState",
    "ControlOutcome",
    "ControlResult",

    # Probes
    "PortProbe",
    "ProcessTableProbe",
    "create_probe",

    # Control
    "ManagerClient",
    "ServerController",
]
