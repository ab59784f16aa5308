"""Build adapter: run the project's build tool and classify the outcome."""
from pathlib import Path
from typing import List

from webdeploy.build.base import BuildOutcome
from webdeploy.core.protocols import FileSystemService, ProcessExecutor, ToolLocator, Logger
from webdeploy.exceptions import ConfigurationError
from webdeploy.utils.config import DeployConfig


class BuildAdapter:
    """Runs the external build synchronously; the pipeline waits on it.

    Args:
        config: Deployment configuration (build command, output dir, extension)
        filesystem: Filesystem operations abstraction
        process_executor: Subprocess execution abstraction
        tool_locator: External tool discovery abstraction
        logger: Logging abstraction
    """

    def __init__(
        self,
        config: DeployConfig,
        filesystem: FileSystemService,
        process_executor: ProcessExecutor,
        tool_locator: ToolLocator,
        logger: Logger,
        verbose: bool = False
    ):
        self.config = config
        self.fs = filesystem
        self.process = process_executor
        self.tools = tool_locator
        self.log = logger
        self.verbose = verbose

    def _require_tool(self, command: List[str]) -> None:
        tool = command[0]
        if not self.tools.has_tool(tool):
            raise ConfigurationError(
                f"Build tool '{tool}' not found in PATH\n"
                f"Install it or set build_command in webdeploy.yaml"
            )

    def _run(self, command: List[str]) -> int:
        self._require_tool(command)
        self.log.debug(f"Running: {' '.join(command)} (in {self.config.project_dir})")
        result = self.process.run(
            command,
            cwd=str(self.config.project_dir),
            capture_output=not self.verbose
        )
        if result.returncode != 0 and not self.verbose:
            tail = (result.stdout + result.stderr).strip()[-2000:]
            if tail:
                self.log.info(tail)
        return result.returncode

    def find_artifacts(self) -> List[Path]:
        """Artifacts in the output directory, sorted for deterministic selection."""
        output_dir = self.config.project_dir / self.config.output_dir
        if not self.fs.is_dir(output_dir):
            return []
        pattern = f"*{self.config.package_extension}"
        return sorted(p for p in self.fs.glob(output_dir, pattern) if self.fs.is_file(p))

    def build(self) -> BuildOutcome:
        """Run the build command.

        Returns:
            BuildOutcome.failure(code) on non-zero exit, otherwise a success
            outcome listing the artifacts found in the output directory.

        Raises:
            ConfigurationError: If the build tool is not installed
        """
        self.log.info(f"Building {self.config.project_dir.name}...")
        exit_code = self._run(self.config.build_command)
        if exit_code != 0:
            return BuildOutcome.failure(exit_code)
        output_dir = self.config.project_dir / self.config.output_dir
        return BuildOutcome.success(output_dir, self.find_artifacts())

    def clean(self) -> bool:
        """Run the clean command. Returns True on exit status 0."""
        self.log.info("Cleaning build output...")
        return self._run(self.config.clean_command) == 0
