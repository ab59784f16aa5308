"""Browser sync agent: make a browser tab show the freshly deployed application."""
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import SplitResult, urlsplit

from webdeploy.browser.devtools import BrowserTarget, DevToolsClient
from webdeploy.core.protocols import ProcessExecutor, ToolLocator, Logger
from webdeploy.exceptions import BrowserSyncFailure
from webdeploy.utils.config import DeployConfig


class SyncResult(Enum):
    RELOADED = "reloaded"
    OPENED = "opened"
    FAILED = "failed"


LOOPBACK_HOSTS = ('localhost', '127.0.0.1', '::1')
DEFAULT_PORTS = {'http': 80, 'https': 443}


def _origin(parts: SplitResult) -> Tuple[str, str, Optional[int]]:
    host = (parts.hostname or '').lower()
    if host in LOOPBACK_HOSTS:
        host = 'localhost'
    return parts.scheme.lower(), host, parts.port or DEFAULT_PORTS.get(parts.scheme.lower())


def url_matches(page_url: str, app_url: str) -> bool:
    """True if page_url is the application root or any page beneath it.

    Loopback host names are interchangeable: a tab on 127.0.0.1 matches an
    application configured for localhost.
    """
    try:
        page = urlsplit(page_url)
        app = urlsplit(app_url)
        if _origin(page) != _origin(app):
            return False
    except ValueError:
        # Malformed port in the tab's URL
        return False
    root = app.path.rstrip('/')
    return page.path == root or page.path.startswith(root + '/')


class BrowserLauncher:
    """Starts the configured browser with remote debugging enabled."""

    def __init__(self, config: DeployConfig, process_executor: ProcessExecutor,
                 tool_locator: ToolLocator):
        self.config = config
        self.process = process_executor
        self.tools = tool_locator

    def command(self, url: str) -> Optional[list]:
        browser = self.config.browser
        executable = browser if Path(browser).is_absolute() else self.tools.find_tool(browser)
        if not executable:
            return None
        cmd = [executable, f'--remote-debugging-port={self.config.debug_port}']
        if self.config.browser_profile_dir:
            cmd.append(f'--user-data-dir={Path(self.config.browser_profile_dir).expanduser()}')
        cmd.append(url)
        return cmd

    def launch(self, url: str) -> None:
        """Launch the browser at url without waiting for it.

        Raises:
            BrowserSyncFailure: Browser executable not found or not startable
        """
        cmd = self.command(url)
        if cmd is None:
            raise BrowserSyncFailure(f"Browser '{self.config.browser}' not found in PATH")
        try:
            self.process.popen(cmd)
        except OSError as e:
            raise BrowserSyncFailure(f"Could not launch browser: {e}")


class BrowserSyncAgent:
    """Best-effort browser convergence. ``sync`` never raises.

    Order of attempts:
        1. find an open page showing the application (DevTools /json/list)
        2. reload it and bring it to the front over its control channel
        3. otherwise open a new tab (existing browser) or launch the browser
    """

    def __init__(self, config: DeployConfig, devtools: DevToolsClient,
                 launcher: BrowserLauncher, logger: Logger):
        self.config = config
        self.devtools = devtools
        self.launcher = launcher
        self.log = logger

    def find_page(self, app_url: str) -> Optional[BrowserTarget]:
        for page in self.devtools.list_pages():
            if url_matches(page.url, app_url):
                return page
        return None

    def _open(self, app_url: str, browser_reachable: bool) -> SyncResult:
        if browser_reachable:
            try:
                self.devtools.open_page(app_url)
                self.log.info(f"Opened {app_url} in a new tab")
                return SyncResult.OPENED
            except BrowserSyncFailure as e:
                self.log.debug(str(e))
        try:
            self.launcher.launch(app_url)
        except BrowserSyncFailure as e:
            self.log.warning(f"Browser sync skipped: {e}")
            return SyncResult.FAILED
        self.log.info(f"Launched browser at {app_url}")
        return SyncResult.OPENED

    def sync(self, identity: str) -> SyncResult:
        app_url = self.config.app_url(identity)
        browser_reachable = False
        try:
            page = self.find_page(app_url)
            browser_reachable = True
            if page is not None:
                self.devtools.reload_and_activate(page)
                self.log.info(f"Reloaded browser tab {page.url}")
                return SyncResult.RELOADED
            self.log.debug(f"No open tab shows {app_url}")
        except BrowserSyncFailure as e:
            self.log.debug(f"Browser control failed, falling back: {e}")
        return self._open(app_url, browser_reachable)
