"""
Seams between webdeploy and the machine it runs on.

protocols        what components depend on (filesystem, processes, clock, PATH, env, YAML)
implementations  what the CLI passes in for real runs
"""

from webdeploy.core.protocols import (
    ConfigLoader,
    EnvironmentProvider,
    FileSystemService,
    Logger,
    PathLike,
    ProcessExecutor,
    ProcessHandle,
    ProcessResult,
    TimeProvider,
    ToolLocator,
)
from webdeploy.core.implementations import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SubprocessHandle,
    SystemEnvironmentProvider,
    SystemTimeProvider,
    SystemToolLocator,
    YamlConfigLoader,
)

__all__ = [
    "ConfigLoader",
    "EnvironmentProvider",
    "FileSystemService",
    "Logger",
    "PathLike",
    "ProcessExecutor",
    "ProcessHandle",
    "ProcessResult",
    "TimeProvider",
    "ToolLocator",
    "ConsoleLogger",
    "RealFileSystemService",
    "SubprocessExecutor",
    "SubprocessHandle",
    "SystemEnvironmentProvider",
    "SystemTimeProvider",
    "SystemToolLocator",
    "YamlConfigLoader",
]
