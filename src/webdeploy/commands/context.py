"""Shared wiring for the CLI commands: load config once, build the orchestrator."""
import logging

from webdeploy.core import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SystemTimeProvider,
    SystemEnvironmentProvider,
    SystemToolLocator,
    YamlConfigLoader,
)
from webdeploy.orchestrator import Orchestrator, OperationResult, OperationStatus
from webdeploy.utils.config import load_config


def create_orchestrator(args, logger=None) -> Orchestrator:
    """Load configuration and wire production components.

    Raises:
        ConfigurationError: Server/runtime home missing or config invalid
    """
    verbose = getattr(args, 'verbose', False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )
    logger = logger or ConsoleLogger(verbose=verbose)
    filesystem = RealFileSystemService()

    config = load_config(
        env_provider=SystemEnvironmentProvider(),
        filesystem=filesystem,
        config_loader=YamlConfigLoader(filesystem),
        project_dir=getattr(args, 'project_dir', None),
        config_path=getattr(args, 'config', None)
    )

    return Orchestrator.from_config(
        config,
        filesystem=filesystem,
        process_executor=SubprocessExecutor(),
        time_provider=SystemTimeProvider(),
        tool_locator=SystemToolLocator(),
        logger=logger,
        verbose=verbose
    )


def report(result: OperationResult, logger) -> int:
    """Print the single terminal status line and return the exit code."""
    if result.status == OperationStatus.OK:
        logger.info(f"✓ {result.message}")
    elif result.status == OperationStatus.DEGRADED:
        logger.warning(f"[{result.stage}] {result.message}")
    else:
        logger.error(f"[{result.stage}] {result.message}")
    return result.exit_code
