"""
Deployment record type.

A DeploymentRecord is the on-disk form of one deployed application inside the
server's webapps directory: either ``<identity>.war`` or ``<identity>/``.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class DeploymentRecord:
    """
    One deployed application.

    Attributes:
        identity: Application identity (webapps entry name and URL segment)
        path: Location inside the webapps directory
        packaged: True for ``<identity>.war``, False for an expanded directory

    Invariant:
        The deployment store keeps at most one record per identity.
    """
    identity: str
    path: Path
    packaged: bool
