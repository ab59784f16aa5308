"""Client for the server's text management interface (in-place reload)."""
import logging
from typing import Tuple

import requests

from webdeploy.exceptions import ReloadAuthFailure, ReloadFailure

logger = logging.getLogger(__name__)


class ManagerClient:
    """Sends reload requests to ``/manager/text/reload``.

    Success is any 2xx response. 401/403 mean the credentials are wrong or
    the user lacks the manager-script role.
    """

    def __init__(self, host: str, port: int, credentials: Tuple[str, str], timeout: float = 30.0):
        self.base_url = f"http://{host}:{port}/manager/text"
        self.credentials = credentials
        self.timeout = timeout

    def reload(self, identity: str) -> str:
        """Reload the application served at ``/<identity>``.

        Returns:
            The endpoint's response text

        Raises:
            ReloadAuthFailure: Credentials rejected (401/403)
            ReloadFailure: Endpoint unreachable or non-2xx response
        """
        url = f"{self.base_url}/reload"
        try:
            r = requests.get(
                url,
                params={"path": f"/{identity}"},
                auth=self.credentials,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise ReloadFailure(f"Could not reach management endpoint {url}: {e}")

        logger.debug("Manager reload %s -> %s %s", identity, r.status_code, r.text.strip())

        if r.status_code in (401, 403):
            user = self.credentials[0]
            raise ReloadAuthFailure(
                f"reload authentication failed (HTTP {r.status_code}) for user '{user}'\n\n"
                f"The deployed files are in place; only the reload was refused.\n"
                f"Add a user with the manager-script role to conf/tomcat-users.xml:\n"
                f"  <user username=\"{user}\" password=\"...\" roles=\"manager-script\"/>\n"
                f"and export TOMCAT_MANAGER_USER / TOMCAT_MANAGER_PASSWORD"
            )
        if not 200 <= r.status_code < 300:
            raise ReloadFailure(f"Management endpoint returned HTTP {r.status_code}: {r.text.strip()[:200]}")
        return r.text
