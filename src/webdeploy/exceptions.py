"""
webdeploy exceptions.

Custom exceptions for each pipeline stage, with actionable error messages.

Every exception carries the ``stage`` it belongs to (printed in the final
status line) and whether it is ``recoverable``. Recoverable errors let the
invocation finish with a degraded status; everything else aborts it.
"""


class WebDeployError(Exception):
    """Base class for all webdeploy failures."""
    stage = "webdeploy"
    recoverable = False


class ConfigurationError(WebDeployError):
    """
    Raised when the environment cannot support the requested action.

    Examples:
        - CATALINA_HOME / JAVA_HOME not set or not a directory
        - java executable missing under JAVA_HOME
        - build tool not found in PATH
        - malformed webdeploy.yaml
    """
    stage = "config"


class BuildFailure(WebDeployError):
    """Raised when the build tool exits non-zero."""
    stage = "build"

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


class ArtifactNotFound(WebDeployError):
    """
    Raised when no deployable artifact can be located.

    For a build this means the build tool reported success but produced
    nothing matching the packaging extension (an inconsistent build).
    """
    stage = "resolve"


class InvalidIdentity(ArtifactNotFound):
    """Raised when an artifact name is not a usable application identity."""


class DeploymentConflict(WebDeployError):
    """
    Raised when a stale deployment cannot be replaced.

    Nothing new is installed when this is raised, so the server never
    serves two versions of the same application side by side.
    """
    stage = "deploy"


class ServerControlFailure(WebDeployError):
    """Raised when the server process cannot be started or stopped."""
    stage = "server"


class ReloadFailure(WebDeployError):
    """
    Raised when the management endpoint does not confirm a reload.

    Recoverable: the new files are already in place, the server keeps
    running, and the next reload (or restart) picks them up.
    """
    stage = "reload"
    recoverable = True


class ReloadAuthFailure(ReloadFailure):
    """Raised when the management endpoint rejects the configured credentials."""


class BrowserSyncFailure(WebDeployError):
    """
    Raised inside the browser sync agent when the control channel fails.

    Never escapes BrowserSyncAgent.sync(); it only selects the fallback path.
    """
    stage = "browser"
    recoverable = True
