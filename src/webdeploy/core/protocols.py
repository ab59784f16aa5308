"""Protocols for everything webdeploy touches outside its own process.

Components receive these through ``__init__``: the deployment store never
calls shutil directly, the server controller never calls subprocess or
time directly. Any object with matching methods satisfies a Protocol, so
tests pass ``Mock(spec=...)`` or small fakes instead.
"""

from dataclasses import dataclass
from typing import Protocol, Dict, Any, Optional, List, Union
from pathlib import Path

PathLike = Union[str, Path]


class Logger(Protocol):
    """User-facing status output.

    The terminal status line of every action goes through here, so tests
    can assert on it.
    """

    def info(self, message: str) -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        """Shown only with --verbose."""
        ...


class FileSystemService(Protocol):
    """File operations used by the deployment store, build adapter and config loader."""

    def exists(self, path: PathLike) -> bool:
        ...

    def is_file(self, path: PathLike) -> bool:
        ...

    def is_dir(self, path: PathLike) -> bool:
        ...

    def read_file(self, path: PathLike) -> str:
        ...

    def mkdir(self, path: PathLike, parents: bool = True, exist_ok: bool = True) -> None:
        ...

    def rmtree(self, path: PathLike) -> None:
        ...

    def unlink(self, path: PathLike) -> None:
        ...

    def copy_file(self, src: PathLike, dst: PathLike) -> None:
        """Copy one file, keeping its timestamps (the server compares them)."""
        ...

    def copy_tree(self, src: PathLike, dst: PathLike) -> None:
        """Copy a directory tree, merging into dst when it already exists."""
        ...

    def rename(self, src: PathLike, dst: PathLike) -> None:
        """Move src over dst in one step; both must be on the same filesystem."""
        ...

    def glob(self, path: PathLike, pattern: str) -> List[Path]:
        ...

    def open(self, path: PathLike, mode: str = 'r', buffering: int = -1) -> Any:
        ...


@dataclass
class ProcessResult:
    """Exit status and captured output of a process that ran to completion."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


class ProcessHandle(Protocol):
    """A process started in the background (server, browser)."""

    def poll(self) -> Optional[int]:
        """Exit code if the process has exited, otherwise None."""
        ...


class ProcessExecutor(Protocol):
    """Runs external commands.

    ``run`` blocks until exit (build, clean, server stop, pgrep).
    ``popen`` returns immediately with a handle (server start, browser launch).
    """

    def run(
        self,
        cmd: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        capture_output: bool = True
    ) -> ProcessResult:
        ...

    def popen(
        self,
        cmd: List[str],
        stdout: Optional[Any] = None,
        stderr: Optional[Any] = None,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None
    ) -> ProcessHandle:
        ...


class TimeProvider(Protocol):
    """Clock for the startup and shutdown polling loops."""

    def current_time(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class EnvironmentProvider(Protocol):
    """Environment variables. Read once, by load_config only."""

    def get_environ(self) -> Dict[str, str]:
        ...


class ToolLocator(Protocol):
    """Looks up executables (build tool, browser) on PATH."""

    def find_tool(self, tool_name: str) -> Optional[str]:
        """Absolute path of tool_name, or None."""
        ...

    def has_tool(self, tool_name: str) -> bool:
        ...


class ConfigLoader(Protocol):

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Parsed mapping from a webdeploy.yaml file ({} when empty)."""
        ...
