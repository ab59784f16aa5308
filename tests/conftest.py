"""Shared fixtures: a throwaway server/runtime/project layout on disk."""
import pytest
from pathlib import Path
from unittest.mock import Mock

from webdeploy.core.protocols import Logger
from webdeploy.utils.config import DeployConfig


@pytest.fixture
def layout(tmp_path):
    """Minimal CATALINA_HOME, JAVA_HOME and project directories."""
    server_home = tmp_path / "tomcat"
    (server_home / "bin").mkdir(parents=True)
    (server_home / "webapps").mkdir()
    (server_home / "bin" / "bootstrap.jar").write_text("jar")
    runtime_home = tmp_path / "jdk"
    (runtime_home / "bin").mkdir(parents=True)
    (runtime_home / "bin" / "java").write_text("#!/bin/sh\n")
    project = tmp_path / "shop"
    (project / "src" / "main" / "webapp").mkdir(parents=True)
    return {
        "root": tmp_path,
        "server_home": server_home,
        "runtime_home": runtime_home,
        "project": project,
    }


@pytest.fixture
def config(layout):
    return DeployConfig(
        server_home=layout["server_home"],
        runtime_home=layout["runtime_home"],
        project_dir=layout["project"],
        manager_user="deployer",
        manager_password="secret",
        startup_timeout=10.0,
        shutdown_timeout=5.0,
    )


@pytest.fixture
def logger():
    return Mock(spec=Logger)
