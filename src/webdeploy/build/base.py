"""
Build result types shared by the build adapter, the artifact resolver and the
orchestrator.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class BuildOutcome:
    """
    Result of one build invocation.

    Attributes:
        exit_code: Build tool exit status (0 = success)
        output_dir: Directory the build writes artifacts to
        artifacts: Candidate artifacts found after a successful build,
            in sorted enumeration order (empty on failure)

    Note:
        A succeeded outcome with no artifacts is an inconsistent build; the
        resolver turns it into ArtifactNotFound rather than BuildFailure.
    """
    exit_code: int
    output_dir: Optional[Path] = None
    artifacts: List[Path] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @classmethod
    def success(cls, output_dir: Path, artifacts: List[Path]) -> 'BuildOutcome':
        return cls(exit_code=0, output_dir=output_dir, artifacts=list(artifacts))

    @classmethod
    def failure(cls, exit_code: int) -> 'BuildOutcome':
        return cls(exit_code=exit_code)


@dataclass
class ResolvedArtifact:
    """
    A deployable unit with its application identity.

    Attributes:
        identity: Logical application name (webapps entry and URL segment)
        path: Packaged artifact file, or expanded web source tree
        packaged: True for an archive, False for an expanded directory
        classes_dir: Precompiled classes to overlay into WEB-INF/classes
            (source-direct mode only)
    """
    identity: str
    path: Path
    packaged: bool
    classes_dir: Optional[Path] = None
