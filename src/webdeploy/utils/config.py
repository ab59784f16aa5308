"""Configuration loading: defaults, optional webdeploy.yaml, environment overrides.

The resulting DeployConfig is built once at startup and handed to every
component; nothing below the CLI reads os.environ directly.
"""
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Any

from webdeploy.core.protocols import ConfigLoader, EnvironmentProvider, FileSystemService
from webdeploy.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = 'webdeploy.yaml'

# Environment variable -> DeployConfig field
ENV_OVERRIDES = {
    'CATALINA_HOME': 'server_home',
    'CATALINA_BASE': 'server_base',
    'JAVA_HOME': 'runtime_home',
    'TOMCAT_MANAGER_USER': 'manager_user',
    'TOMCAT_MANAGER_PASSWORD': 'manager_password',
    'WEBDEPLOY_BROWSER': 'browser',
}

PROBE_STRATEGIES = ('port', 'process')


@dataclass
class DeployConfig:
    """Everything the pipeline needs to know about this machine and project."""
    server_home: Path
    runtime_home: Path
    project_dir: Path
    server_base: Optional[Path] = None
    manager_user: str = 'admin'
    manager_password: str = ''
    host: str = 'localhost'
    http_port: int = 8080
    debug_port: int = 9222
    browser: str = 'google-chrome'
    browser_profile_dir: str = ''
    build_command: List[str] = field(default_factory=lambda: ['mvn', '-q', 'package'])
    clean_command: List[str] = field(default_factory=lambda: ['mvn', '-q', 'clean'])
    output_dir: str = 'target'
    package_extension: str = '.war'
    source_dir: str = 'src/main/webapp'
    classes_dir: str = 'target/classes'
    probe: str = 'port'
    bootstrap_class: str = 'org.apache.catalina.startup.Bootstrap'
    startup_timeout: float = 60.0
    shutdown_timeout: float = 30.0
    browser_timeout: float = 5.0
    stop_server_on_build_failure: bool = False

    def __post_init__(self):
        if self.server_base is None:
            self.server_base = self.server_home

    @property
    def webapps_dir(self) -> Path:
        return self.server_base / 'webapps'

    @property
    def java_executable(self) -> Path:
        return self.runtime_home / 'bin' / 'java'

    @property
    def manager_credentials(self) -> tuple:
        return (self.manager_user, self.manager_password)

    def app_url(self, identity: str) -> str:
        """URL the deployed application is served at."""
        return f"http://{self.host}:{self.http_port}/{identity}/"


def _coerce(name: str, value: Any) -> Any:
    """Convert raw YAML/env values to the field's type."""
    if name in ('server_home', 'server_base', 'runtime_home', 'project_dir'):
        return Path(value).expanduser()
    if name in ('http_port', 'debug_port'):
        return int(value)
    if name in ('startup_timeout', 'shutdown_timeout', 'browser_timeout'):
        return float(value)
    if name in ('build_command', 'clean_command'):
        return value.split() if isinstance(value, str) else list(value)
    if name == 'stop_server_on_build_failure':
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    return value


def load_config(
    env_provider: EnvironmentProvider,
    filesystem: FileSystemService,
    config_loader: ConfigLoader,
    project_dir: Optional[str] = None,
    config_path: Optional[str] = None
) -> DeployConfig:
    """Build the DeployConfig for this invocation.

    Precedence (lowest to highest): built-in defaults, YAML file, environment.
    The YAML file is ``--config PATH`` when given (must exist), otherwise
    ``webdeploy.yaml`` in the project directory if present.

    Raises:
        ConfigurationError: server or runtime home missing, or bad YAML keys/values
    """
    project = Path(project_dir or '.').resolve()
    settings: Dict[str, Any] = {}

    if config_path is not None:
        if not filesystem.is_file(config_path):
            raise ConfigurationError(f"Config file not found: {config_path}")
        yaml_path = config_path
    else:
        default_path = project / DEFAULT_CONFIG_FILE
        yaml_path = str(default_path) if filesystem.is_file(default_path) else None

    if yaml_path is not None:
        try:
            data = config_loader.load_yaml(yaml_path)
        except Exception as e:
            raise ConfigurationError(f"Could not parse {yaml_path}: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"{yaml_path} must contain a mapping of settings")
        known = {f.name for f in fields(DeployConfig)} - {'project_dir'}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown setting(s) in {yaml_path}: {', '.join(unknown)}"
            )
        settings.update(data)

    environ = env_provider.get_environ()
    for var, name in ENV_OVERRIDES.items():
        if environ.get(var):
            settings[name] = environ[var]

    missing = [var for var, name in (('CATALINA_HOME', 'server_home'), ('JAVA_HOME', 'runtime_home'))
               if not settings.get(name)]
    if missing:
        raise ConfigurationError(
            f"{' and '.join(missing)} not set\n\n"
            f"webdeploy needs to know where the server and the Java runtime live.\n"
            f"  export CATALINA_HOME=/path/to/tomcat\n"
            f"  export JAVA_HOME=/path/to/jdk\n"
            f"or set server_home / runtime_home in {DEFAULT_CONFIG_FILE}"
        )

    try:
        values = {name: _coerce(name, value) for name, value in settings.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}")
    values['project_dir'] = project

    config = DeployConfig(**values)

    for label, path in (('Server home', config.server_home),
                        ('Server base', config.server_base),
                        ('Runtime home', config.runtime_home)):
        if not filesystem.is_dir(path):
            raise ConfigurationError(f"{label} is not a directory: {path}")

    if config.probe not in PROBE_STRATEGIES:
        raise ConfigurationError(
            f"Unknown probe strategy '{config.probe}' (expected one of: {', '.join(PROBE_STRATEGIES)})"
        )

    return config
