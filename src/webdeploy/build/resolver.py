"""Artifact resolver: pick the deployable unit and derive its application identity."""
import re
from pathlib import Path

from webdeploy.build.base import BuildOutcome, ResolvedArtifact
from webdeploy.core.protocols import FileSystemService, Logger
from webdeploy.exceptions import ArtifactNotFound, BuildFailure, InvalidIdentity
from webdeploy.utils.config import DeployConfig

IDENTITY_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def validate_identity(identity: str) -> str:
    """Return identity unchanged if it is safe as a directory name and URL segment.

    Raises:
        InvalidIdentity: empty, hidden, or containing separators/special characters
    """
    if not identity or not IDENTITY_PATTERN.fullmatch(identity):
        raise InvalidIdentity(
            f"'{identity}' cannot be used as an application name\n"
            f"Names must start with a letter or digit and contain only "
            f"letters, digits, '.', '_' and '-'"
        )
    return identity


class ArtifactResolver:
    """Turns a build outcome (or a source tree) into a ResolvedArtifact."""

    def __init__(self, config: DeployConfig, filesystem: FileSystemService, logger: Logger):
        self.config = config
        self.fs = filesystem
        self.log = logger

    def identity_for(self, artifact: Path) -> str:
        """Artifact file name without its packaging extension."""
        name = artifact.name
        ext = self.config.package_extension
        if ext and name.endswith(ext):
            name = name[:-len(ext)]
        return validate_identity(name)

    def resolve(self, outcome: BuildOutcome) -> ResolvedArtifact:
        """Select the artifact produced by a successful build.

        Raises:
            BuildFailure: The outcome is a failed build
            ArtifactNotFound: The build succeeded but produced no artifact
        """
        if not outcome.succeeded:
            raise BuildFailure(f"Build failed with exit code {outcome.exit_code}", outcome.exit_code)

        if not outcome.artifacts:
            raise ArtifactNotFound(
                f"Build reported success but no *{self.config.package_extension} "
                f"was found in {outcome.output_dir}\n"
                f"Check the packaging type in your build file"
            )

        artifact = outcome.artifacts[0]
        if len(outcome.artifacts) > 1:
            ignored = ', '.join(p.name for p in outcome.artifacts[1:])
            self.log.warning(f"Multiple artifacts found, deploying {artifact.name} (ignoring {ignored})")

        return ResolvedArtifact(
            identity=self.identity_for(artifact),
            path=artifact,
            packaged=True
        )

    def resolve_source(self) -> ResolvedArtifact:
        """Describe the project's web source tree for source-direct deployment.

        Identity comes from the project root directory name. Precompiled
        classes are included when the conventional classes directory exists.

        Raises:
            ArtifactNotFound: No web source tree at the configured location
        """
        project = self.config.project_dir
        source = project / self.config.source_dir
        if not self.fs.is_dir(source):
            raise ArtifactNotFound(f"Web source directory not found: {source}")

        classes = project / self.config.classes_dir
        return ResolvedArtifact(
            identity=validate_identity(project.name),
            path=source,
            packaged=False,
            classes_dir=classes if self.fs.is_dir(classes) else None
        )
