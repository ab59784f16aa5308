"""
DeploymentStore - Manage deployed applications inside the server's webapps directory.

Strategy: remove stale records (packaged and expanded) → stage copy outside
webapps → atomic rename into webapps
"""

from pathlib import Path
from typing import Optional

from .base import DeploymentRecord
from webdeploy.build.base import ResolvedArtifact
from webdeploy.build.resolver import validate_identity
from webdeploy.core.protocols import FileSystemService, Logger
from webdeploy.exceptions import DeploymentConflict

STAGING_PREFIX = '.webdeploy-staging-'


class DeploymentStore:
    """
    Keeps exactly one deployment record per application identity.

    New content is copied into a staging directory outside webapps first
    (the server's auto-deployer scans every entry of webapps) and renamed
    into place only once the copy is complete, so the server never sees a
    half-written application. The staging directory defaults to the
    server's ``temp`` directory, which sits on the same filesystem as
    webapps so the final rename is a single step.
    """

    def __init__(self, webapps_dir: Path, filesystem: FileSystemService, logger: Logger,
                 package_extension: str = '.war', staging_dir: Optional[Path] = None):
        self.webapps_dir = Path(webapps_dir)
        self.staging_dir = Path(staging_dir) if staging_dir is not None else self.webapps_dir.parent / 'temp'
        self.fs = filesystem
        self.log = logger
        self.package_extension = package_extension

    def packaged_path(self, identity: str) -> Path:
        return self.webapps_dir / f"{identity}{self.package_extension}"

    def expanded_path(self, identity: str) -> Path:
        return self.webapps_dir / identity

    def _staging_path(self, identity: str) -> Path:
        return self.staging_dir / f"{STAGING_PREFIX}{identity}"

    def find(self, identity: str) -> Optional[DeploymentRecord]:
        """Current record for identity, preferring the packaged form, or None."""
        validate_identity(identity)
        packaged = self.packaged_path(identity)
        if self.fs.exists(packaged):
            return DeploymentRecord(identity, packaged, packaged=True)
        expanded = self.expanded_path(identity)
        if self.fs.is_dir(expanded):
            return DeploymentRecord(identity, expanded, packaged=False)
        return None

    def _remove_path(self, path: Path, directory: bool) -> bool:
        if directory:
            if not self.fs.is_dir(path):
                return False
        elif not self.fs.exists(path):
            return False
        try:
            if directory:
                self.fs.rmtree(path)
            else:
                self.fs.unlink(path)
        except OSError as e:
            raise DeploymentConflict(
                f"Could not remove stale deployment {path}\n"
                f"Error: {e}\n\n"
                f"Troubleshooting:\n"
                f"  1. Check whether another process holds files open under {path}\n"
                f"  2. Stop the server ('webdeploy stop') and deploy again"
            )
        self.log.debug(f"Removed stale deployment {path}")
        return True

    def remove(self, identity: str) -> bool:
        """Delete every record for identity. Returns True if anything was removed.

        Raises:
            DeploymentConflict: A record exists but cannot be deleted
        """
        validate_identity(identity)
        removed_packaged = self._remove_path(self.packaged_path(identity), directory=False)
        removed_expanded = self._remove_path(self.expanded_path(identity), directory=True)
        return removed_packaged or removed_expanded

    def _discard_staging(self, staging: Path) -> None:
        try:
            if self.fs.is_dir(staging):
                self.fs.rmtree(staging)
            elif self.fs.exists(staging):
                self.fs.unlink(staging)
        except OSError as e:
            self.log.warning(f"Could not remove staging copy {staging}: {e}")

    def install(self, artifact: ResolvedArtifact) -> DeploymentRecord:
        """Copy the artifact into webapps via a staging name. Assumes no record exists.

        Raises:
            DeploymentConflict: The copy or final rename failed
        """
        identity = artifact.identity
        self.fs.mkdir(self.webapps_dir)
        staging = self._staging_path(identity)
        self._discard_staging(staging)

        if artifact.packaged:
            target = self.packaged_path(identity)
        else:
            target = self.expanded_path(identity)

        try:
            self.fs.mkdir(self.staging_dir)
            if artifact.packaged:
                self.fs.copy_file(artifact.path, staging)
            else:
                self.fs.copy_tree(artifact.path, staging)
                if artifact.classes_dir is not None:
                    self.fs.copy_tree(artifact.classes_dir, staging / 'WEB-INF' / 'classes')
            self.fs.rename(staging, target)
        except OSError as e:
            self._discard_staging(staging)
            raise DeploymentConflict(f"Could not install {artifact.path} as {target}\nError: {e}")

        self.log.debug(f"Installed {artifact.path} -> {target}")
        return DeploymentRecord(identity, target, packaged=artifact.packaged)

    def reconcile(self, artifact: ResolvedArtifact) -> DeploymentRecord:
        """Replace whatever is deployed under artifact.identity with artifact.

        Steps:
            1. Delete ``<identity>.war`` if present
            2. Recursively delete ``<identity>/`` if present
            3. Install the new artifact (staged copy, then rename)

        Returns:
            The new DeploymentRecord, the only one for this identity

        Raises:
            DeploymentConflict: A stale record could not be removed (nothing
                is installed) or the install itself failed
        """
        identity = validate_identity(artifact.identity)
        if self.remove(identity):
            self.log.info(f"Removed previous deployment of {identity}")
        record = self.install(artifact)
        self.log.info(f"Deployed {identity} to {record.path}")
        return record
