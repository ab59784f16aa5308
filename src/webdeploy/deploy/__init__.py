"""
Deployment subsystem.

Manages the server's webapps directory, one record per application identity.

Public API:
    - DeploymentStore: reconcile / install / remove / find
    - DeploymentRecord: Result type
"""

from .base import DeploymentRecord
from .store import DeploymentStore

__all__ = [
    "DeploymentRecord",
    "DeploymentStore",
]
