"""
Build subsystem.

Public API:
    - BuildAdapter: run the build tool, classify its outcome
    - ArtifactResolver: select the artifact and derive its identity
    - BuildOutcome, ResolvedArtifact: Result types
"""

from .base import BuildOutcome, ResolvedArtifact
from .adapter import BuildAdapter
from .resolver import ArtifactResolver, validate_identity

__all__ = [
    "BuildOutcome",
    "ResolvedArtifact",
    "BuildAdapter",
    "ArtifactResolver",
    "validate_identity",
]
