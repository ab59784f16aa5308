"""
Browser sync subsystem.

Public API:
    - BrowserSyncAgent: reload or open the application's tab
    - DevToolsClient, BrowserTarget: remote-debugging protocol client
    - BrowserLauncher: start the browser with remote debugging enabled
    - SyncResult: Result type
"""

from .devtools import BrowserTarget, DevToolsClient
from .sync import BrowserLauncher, BrowserSyncAgent, SyncResult, url_matches

__all__ = [
    "BrowserTarget",
    "DevToolsClient",
    "BrowserLauncher",
    "BrowserSyncAgent",
    "SyncResult",
    "url_matches",
]
