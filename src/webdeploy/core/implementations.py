"""Real implementations of the core protocols, wired up by the CLI.

Tests substitute mocks or fakes; only the integration tests use these.
"""

import os
import shutil
import subprocess
import sys
import time
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List

from webdeploy.core.protocols import PathLike, ProcessResult


class ConsoleLogger:
    """Prints status lines. Errors go to stderr, everything else to stdout."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def info(self, message: str) -> None:
        print(message)

    def warning(self, message: str) -> None:
        print(f"Warning: {message}")

    def error(self, message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        if self.verbose:
            print(f"Debug: {message}")


class RealFileSystemService:
    """pathlib/shutil backed file operations."""

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def is_file(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def is_dir(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def read_file(self, path: PathLike) -> str:
        return Path(path).read_text()

    def mkdir(self, path: PathLike, parents: bool = True, exist_ok: bool = True) -> None:
        Path(path).mkdir(parents=parents, exist_ok=exist_ok)

    def rmtree(self, path: PathLike) -> None:
        shutil.rmtree(path)

    def unlink(self, path: PathLike) -> None:
        Path(path).unlink()

    def copy_file(self, src: PathLike, dst: PathLike) -> None:
        shutil.copy2(src, dst)

    def copy_tree(self, src: PathLike, dst: PathLike) -> None:
        shutil.copytree(src, dst, dirs_exist_ok=True)

    def rename(self, src: PathLike, dst: PathLike) -> None:
        os.replace(src, dst)

    def glob(self, path: PathLike, pattern: str) -> List[Path]:
        return list(Path(path).glob(pattern))

    def open(self, path: PathLike, mode: str = 'r', buffering: int = -1) -> Any:
        return open(path, mode, buffering=buffering)


class SubprocessHandle:
    """ProcessHandle over a subprocess.Popen object."""

    def __init__(self, popen_handle: subprocess.Popen):
        self._handle = popen_handle

    def poll(self) -> Optional[int]:
        return self._handle.poll()


class SubprocessExecutor:
    """Runs commands with the subprocess module."""

    def run(
        self,
        cmd: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        capture_output: bool = True
    ) -> ProcessResult:
        # With capture_output=False the build tool writes straight to the terminal
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            capture_output=capture_output,
            text=True
        )
        return ProcessResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or ""
        )

    def popen(
        self,
        cmd: List[str],
        stdout: Optional[Any] = None,
        stderr: Optional[Any] = None,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None
    ) -> SubprocessHandle:
        """Start cmd detached from this terminal's session.

        The server and browser outlive the webdeploy invocation, and
        Ctrl-C in the terminal must not reach them.
        """
        handle = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=stdout,
            stderr=stderr,
            cwd=cwd,
            env=env,
            start_new_session=True
        )
        return SubprocessHandle(handle)


class SystemTimeProvider:

    def current_time(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class SystemEnvironmentProvider:

    def get_environ(self) -> Dict[str, str]:
        return dict(os.environ)


class SystemToolLocator:
    """PATH lookup with shutil.which."""

    def find_tool(self, tool_name: str) -> Optional[str]:
        return shutil.which(tool_name)

    def has_tool(self, tool_name: str) -> bool:
        return self.find_tool(tool_name) is not None


class YamlConfigLoader:
    """Reads webdeploy.yaml with yaml.safe_load."""

    def __init__(self, filesystem: RealFileSystemService):
        self.fs = filesystem

    def load_yaml(self, path: str) -> Dict[str, Any]:
        return yaml.safe_load(self.fs.read_file(path)) or {}
