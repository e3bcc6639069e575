"""RouterOS REST API client."""

import json
import logging
from typing import Any, Optional

import requests
import urllib3

from .config import Settings
from .exceptions import ApplyError, AuthError, BlockerError, ConnectError, QueryError

logger = logging.getLogger(__name__)


class RouterClient:
    """Client for the RouterOS v7 REST API (``/rest``) over a single session."""

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the client.

        Args:
            settings: Run settings (address, port, credentials, timeout)
        """
        self.base_url = settings.api_url
        self.timeout = settings.timeout
        self.session = requests.Session()
        self.session.auth = (settings.login, settings.password)
        self.session.verify = settings.verify_tls
        self.session.headers.update({"Content-Type": "application/json"})
        if not settings.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def __enter__(self) -> "RouterClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        """Extract RouterOS' error message from a failed response."""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict):
            return body.get("detail") or body.get("message") or json.dumps(body)
        return str(body)

    def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict[str, Any]] = None,
        error_cls: type[BlockerError] = ApplyError,
    ) -> Any:
        """
        Make a single HTTP request to the REST API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: Menu or command path, e.g. '/ip/dns/static/print'
            data: Optional JSON body
            error_cls: Exception raised on a failed request

        Returns:
            Decoded JSON response (None for an empty body)

        Raises:
            AuthError: If the credentials are rejected
            error_cls: For any other failure, including an unreachable router
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(method, url, json=data, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise error_cls(f"Cannot reach router at {self.base_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise error_cls(f"{method} {endpoint} failed: {e}") from e

        if response.status_code == 401:
            raise AuthError("Router rejected the credentials")
        if not response.ok:
            raise error_cls(
                f"{method} {endpoint} failed with HTTP {response.status_code}: "
                f"{self._error_detail(response)}"
            )

        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"Invalid JSON response for {method} {endpoint}: {e}") from e

    # -------------------------------------------------------------------------
    # SESSION
    # -------------------------------------------------------------------------

    def connect(self) -> str:
        """
        Verify reachability and credentials.

        Returns:
            The router's identity name
        """
        logger.info(f"Connecting to router at {self.base_url}")
        identity = self.request("GET", "/system/identity", error_cls=ConnectError)
        name = identity.get("name", "") if isinstance(identity, dict) else ""
        logger.info(f"Connection to router '{name}' has been established")
        return name

    # -------------------------------------------------------------------------
    # COMMANDS
    # -------------------------------------------------------------------------

    def query(
        self,
        path: str,
        proplist: list[str],
        filters: Optional[dict[str, str]] = None,
    ) -> list[dict[str, str]]:
        """
        Print records of a menu, restricted to filters and projected to proplist.

        Raises:
            QueryError: If the read fails or returns an unexpected shape
        """
        body: dict[str, Any] = {".proplist": proplist}
        if filters:
            body[".query"] = [f"{key}={value}" for key, value in filters.items()]

        rows = self.request("POST", f"{path}/print", body, error_cls=QueryError)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise QueryError(f"Unexpected response for {path}/print: {rows!r}")
        return rows

    def call(self, command: str, params: Optional[dict[str, str]] = None) -> Any:
        """
        Run a mutating command, e.g. '/ip/dns/static/remove'.

        Raises:
            ApplyError: If the router refuses the command
        """
        return self.request("POST", command, params or {}, error_cls=ApplyError)

    def remove(self, path: str, ids: list[str]) -> None:
        """Remove records of a menu in one batched call."""
        self.call(f"{path}/remove", {".id": ",".join(ids)})

    def add(self, path: str, params: dict[str, str]) -> Any:
        """Add one record to a menu."""
        return self.call(f"{path}/add", params)

    def import_file(self, file_name: str) -> None:
        """Run a script file from the router's filesystem."""
        self.call("/import", {"file-name": file_name})

    def remove_file(self, file_name: str) -> None:
        """Delete a file from the router's filesystem."""
        self.call("/file/remove", {"numbers": file_name})
