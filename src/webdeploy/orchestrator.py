"""Orchestrator: compose build, resolve, deploy, server control and browser sync.

Operations:
    start       server start
    stop        server stop
    deploy      reconcile -> reload -> browser sync (source tree or resolved artifact)
    full_cycle  build -> resolve -> deploy
    clean       build clean -> remove deployment

Fatal errors (configuration, build, resolve, deploy, server control) propagate
to the caller. Reload failures are recoverable and produce a DEGRADED result.
Browser sync never affects the outcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from webdeploy.browser import BrowserLauncher, BrowserSyncAgent, DevToolsClient, SyncResult
from webdeploy.build import ArtifactResolver, BuildAdapter, ResolvedArtifact, validate_identity
from webdeploy.core.protocols import (
    FileSystemService,
    ProcessExecutor,
    TimeProvider,
    ToolLocator,
    Logger
)
from webdeploy.deploy import DeploymentRecord, DeploymentStore
from webdeploy.exceptions import (
    BuildFailure,
    ConfigurationError,
    ReloadAuthFailure,
    ReloadFailure,
    ServerControlFailure,
)
from webdeploy.server import ControlResult, ManagerClient, ServerController, ServerState, create_probe
from webdeploy.utils.config import DeployConfig

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_DEGRADED = 3


class OperationStatus(Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class OperationResult:
    """
    Terminal outcome of one orchestrator operation.

    Attributes:
        operation: "start", "stop", "deploy", "full-cycle" or "clean"
        status: OK, DEGRADED (recoverable failure) or FAILED
        stage: Stage that determined the status ("reload", "build", ...)
        message: One-line human readable summary
        record: Deployment record, when something was deployed
        control: Server controller result, when the server was driven
        sync: Browser sync result, when sync ran
    """
    operation: str
    status: OperationStatus
    stage: str
    message: str
    record: Optional[DeploymentRecord] = None
    control: Optional[ControlResult] = None
    sync: Optional[SyncResult] = None

    @property
    def exit_code(self) -> int:
        return {
            OperationStatus.OK: EXIT_OK,
            OperationStatus.DEGRADED: EXIT_DEGRADED,
            OperationStatus.FAILED: EXIT_FAILED,
        }[self.status]


class Orchestrator:
    """Reconciliation policy between the pipeline stages.

    Policy invariant: a failed build or artifact resolution never reaches
    the reload or browser-sync stages.
    """

    def __init__(
        self,
        config: DeployConfig,
        builder: BuildAdapter,
        resolver: ArtifactResolver,
        store: DeploymentStore,
        controller: ServerController,
        browser: BrowserSyncAgent,
        logger: Logger
    ):
        self.config = config
        self.builder = builder
        self.resolver = resolver
        self.store = store
        self.controller = controller
        self.browser = browser
        self.log = logger

    @classmethod
    def from_config(
        cls,
        config: DeployConfig,
        filesystem: FileSystemService,
        process_executor: ProcessExecutor,
        time_provider: TimeProvider,
        tool_locator: ToolLocator,
        logger: Logger,
        verbose: bool = False
    ) -> 'Orchestrator':
        """Wire production components from one DeployConfig."""
        controller = ServerController(
            config=config,
            probe=create_probe(config, process_executor),
            manager=ManagerClient(config.host, config.http_port, config.manager_credentials),
            filesystem=filesystem,
            process_executor=process_executor,
            time_provider=time_provider,
            logger=logger
        )
        browser = BrowserSyncAgent(
            config=config,
            devtools=DevToolsClient(config.host, config.debug_port, timeout=config.browser_timeout),
            launcher=BrowserLauncher(config, process_executor, tool_locator),
            logger=logger
        )
        return cls(
            config=config,
            builder=BuildAdapter(config, filesystem, process_executor, tool_locator, logger, verbose=verbose),
            resolver=ArtifactResolver(config, filesystem, logger),
            store=DeploymentStore(config.webapps_dir, filesystem, logger, config.package_extension,
                                  staging_dir=config.server_base / 'temp'),
            controller=controller,
            browser=browser,
            logger=logger
        )

    def start(self) -> OperationResult:
        control = self.controller.start()
        return OperationResult("start", OperationStatus.OK, "server",
                               f"Server {control.outcome.value}", control=control)

    def stop(self) -> OperationResult:
        control = self.controller.stop()
        return OperationResult("stop", OperationStatus.OK, "server",
                               f"Server {control.outcome.value}", control=control)

    def deploy(self, artifact: Optional[ResolvedArtifact] = None, operation: str = "deploy") -> OperationResult:
        """Install artifact (default: the project's web source tree), reload, sync the browser.

        Raises:
            ArtifactNotFound: No web source tree (source-direct mode)
            DeploymentConflict: Stale deployment could not be replaced
            ConfigurationError, ServerControlFailure: Server could not be started
        """
        if artifact is None:
            artifact = self.resolver.resolve_source()

        record = self.store.reconcile(artifact)
        identity = record.identity

        try:
            control = self.controller.reload(identity)
        except ReloadAuthFailure as e:
            self.log.warning(str(e))
            return OperationResult(operation, OperationStatus.DEGRADED, "reload",
                                   f"Deployed {identity}, but reload authentication failed", record=record)
        except ReloadFailure as e:
            self.log.warning(str(e))
            return OperationResult(operation, OperationStatus.DEGRADED, "reload",
                                   f"Deployed {identity}, but reload failed", record=record)

        sync = self.browser.sync(identity)
        return OperationResult(operation, OperationStatus.OK, "deploy",
                               f"Deployed {identity} at {self.config.app_url(identity)}",
                               record=record, control=control, sync=sync)

    def full_cycle(self) -> OperationResult:
        """Build, resolve the artifact, then deploy it.

        A failed build halts here. The running server is left serving the
        previous version unless ``stop_server_on_build_failure`` is set.

        Raises:
            BuildFailure: Build tool exited non-zero
            ArtifactNotFound: Build succeeded without producing an artifact
        """
        outcome = self.builder.build()
        if not outcome.succeeded:
            if (self.config.stop_server_on_build_failure
                    and self.controller.current_state() == ServerState.RUNNING):
                self.log.info("Build failed, stopping server so stale code is not served")
                try:
                    self.controller.stop()
                except (ConfigurationError, ServerControlFailure) as e:
                    self.log.warning(f"Could not stop server after failed build: {e}")
            raise BuildFailure(f"Build failed with exit code {outcome.exit_code}", outcome.exit_code)

        artifact = self.resolver.resolve(outcome)
        return self.deploy(artifact, operation="full-cycle")

    def clean(self) -> OperationResult:
        """Run the build tool's clean step and remove the project's deployments.

        Identities considered: the project directory name (source-direct
        deploys) and every artifact currently in the build output directory.
        """
        identities = [validate_identity(self.config.project_dir.name)]
        for artifact in self.builder.find_artifacts():
            identity = self.resolver.identity_for(artifact)
            if identity not in identities:
                identities.append(identity)

        cleaned = self.builder.clean()
        removed = [identity for identity in identities if self.store.remove(identity)]

        summary = "Build output cleaned" if cleaned else "Build clean failed"
        if removed:
            summary += f", removed deployment of {', '.join(removed)}"
        else:
            summary += ", nothing deployed"
        status = OperationStatus.OK if cleaned else OperationStatus.DEGRADED
        return OperationResult("clean", status, "clean", summary)
