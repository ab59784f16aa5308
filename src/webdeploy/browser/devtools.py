"""
DevToolsClient - Talk to a browser's remote-debugging interface.

Discovery goes over HTTP (``/json/list``, ``/json/new``); page commands go over
the page's websocket as ``{id, method, params}`` messages, each awaiting its
reply with a bounded timeout.
"""

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
import websockets
from websockets.exceptions import WebSocketException

from webdeploy.exceptions import BrowserSyncFailure

logger = logging.getLogger(__name__)


@dataclass
class BrowserTarget:
    """
    A live browser page.

    Attributes:
        url: URL currently shown by the page
        page_id: DevTools target id
        control_channel: websocket debugger URL (None when another client
            is already attached to the page)
    """
    url: str
    page_id: str
    control_channel: Optional[str]

    @classmethod
    def from_json(cls, entry: Any) -> 'BrowserTarget':
        """Build a target from one discovery entry.

        Raises:
            BrowserSyncFailure: entry is not a JSON object
        """
        if not isinstance(entry, dict):
            raise BrowserSyncFailure(f"Unexpected target description: {entry!r:.100}")
        url = entry.get('url')
        page_id = entry.get('id')
        channel = entry.get('webSocketDebuggerUrl')
        return cls(
            url=url if isinstance(url, str) else '',
            page_id=str(page_id) if page_id is not None else '',
            control_channel=channel if isinstance(channel, str) and channel else None
        )


class DevToolsClient:
    """Client for one browser's remote-debugging port.

    Every failure (unreachable, timeout, malformed reply, protocol error)
    is raised as BrowserSyncFailure so callers have a single fallback branch.
    """

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout
        self._ids = itertools.count(1)

    def list_pages(self) -> List[BrowserTarget]:
        """Open pages (targets of type "page")."""
        try:
            r = requests.get(f"{self.base_url}/json/list", timeout=self.timeout)
            r.raise_for_status()
            entries = r.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise BrowserSyncFailure(f"Browser control interface unavailable: {e}")
        if not isinstance(entries, list):
            raise BrowserSyncFailure("Unexpected reply from /json/list")
        return [BrowserTarget.from_json(e) for e in entries
                if isinstance(e, dict) and e.get('type') == 'page']

    def open_page(self, url: str) -> BrowserTarget:
        """Open a new tab at url in the already-running browser."""
        endpoint = f"{self.base_url}/json/new?{quote(url, safe='')}"
        try:
            # Newer browsers require PUT; older ones only accept GET
            r = requests.put(endpoint, timeout=self.timeout)
            if r.status_code == 405:
                r = requests.get(endpoint, timeout=self.timeout)
            r.raise_for_status()
            entry = r.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise BrowserSyncFailure(f"Could not open new tab: {e}")
        return BrowserTarget.from_json(entry)

    async def _await_reply(self, ws, message_id: int) -> Dict[str, Any]:
        """Read messages until the reply for message_id arrives (events are skipped)."""
        while True:
            message = json.loads(await ws.recv())
            if not isinstance(message, dict):
                raise BrowserSyncFailure(f"Unexpected message on control channel: {message!r:.100}")
            if message.get('id') == message_id:
                return message
            logger.debug("DevTools event: %s", message.get('method'))

    async def _exchange(self, channel: str, commands: List[Tuple[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
        replies = []
        async with websockets.connect(channel, open_timeout=self.timeout, max_size=None) as ws:
            for method, params in commands:
                message_id = next(self._ids)
                payload = {"id": message_id, "method": method, "params": params}
                logger.debug("DevTools -> %s", payload)
                await ws.send(json.dumps(payload))
                reply = await self._await_reply(ws, message_id)
                error = reply.get('error')
                if error is not None:
                    detail = error.get('message', error) if isinstance(error, dict) else error
                    raise BrowserSyncFailure(f"{method} failed: {detail}")
                result = reply.get('result', {})
                replies.append(result if isinstance(result, dict) else {})
        return replies

    def send(self, target: BrowserTarget, commands: List[Tuple[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Send commands over target's control channel, in order.

        The whole exchange is bounded by ``timeout`` seconds.
        """
        if not target.control_channel:
            raise BrowserSyncFailure(f"Page {target.page_id} has no control channel (debugger attached?)")
        try:
            return asyncio.run(asyncio.wait_for(
                self._exchange(target.control_channel, commands),
                timeout=self.timeout
            ))
        except asyncio.TimeoutError:
            raise BrowserSyncFailure(f"No reply from page {target.page_id} within {self.timeout:g}s")
        except (OSError, WebSocketException, ValueError) as e:
            raise BrowserSyncFailure(f"Control channel error: {e}")

    def reload_and_activate(self, target: BrowserTarget) -> None:
        """Reload target bypassing the cache, then bring it to the front."""
        self.send(target, [
            ("Page.reload", {"ignoreCache": True}),
            ("Page.bringToFront", {}),
        ])
