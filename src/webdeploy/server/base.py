"""
Server state types and the probe protocol.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class ServerState(Enum):
    """Lifecycle state of the server process.

    Probes only ever report STOPPED or RUNNING; STARTING and STOPPING are
    held by the controller while it drives a transition.
    """
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class ControlOutcome(Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already running"
    STOPPED = "stopped"
    ALREADY_STOPPED = "already stopped"
    RELOADED = "reloaded"


@dataclass
class ControlResult:
    """
    Result of one controller transition.

    Attributes:
        action: Requested transition ("start", "stop", "reload")
        outcome: What the controller actually did
        state: Server state after the transition
    """
    action: str
    outcome: ControlOutcome
    state: ServerState

    @property
    def changed(self) -> bool:
        return self.outcome not in (ControlOutcome.ALREADY_RUNNING, ControlOutcome.ALREADY_STOPPED)


@runtime_checkable
class ServerStateProbe(Protocol):
    """
    Interface for server liveness checks.

    Implementations:
        - PortProbe: TCP connect to the HTTP connector (reflects readiness)
        - ProcessTableProbe: look for the bootstrap class in the process table

    Contract:
        Never raises. Any error (refused, timeout, missing tool) reads as
        "not running"; callers tolerate that false negative during
        startup/shutdown windows.
    """

    def is_running(self) -> bool:
        ...
