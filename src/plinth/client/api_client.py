"""
HTTP client for the Plinth API.

Used by the frontend plugin registry to find out which modules are enabled,
and by the CLI when it talks to a running server.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Configuration for the API client."""

    server_url: str = "http://localhost:8000"
    access_token: Optional[str] = None
    workspace_id: Optional[str] = None
    timeout: float = 30.0


class PlinthClient:
    """
    Thin synchronous client over the Plinth REST API.

    Example:
        >>> with PlinthClient(ClientConfig(access_token=token)) as client:
        ...     for module in client.get_enabled_modules():
        ...         print(module["id"])
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or ClientConfig()
        self._client = httpx.Client(
            base_url=self.config.server_url,
            headers=self._headers(),
            timeout=self.config.timeout,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.access_token:
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        if self.config.workspace_id:
            headers["X-Workspace-Id"] = self.config.workspace_id
        return headers

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "PlinthClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def set_access_token(self, token: str) -> None:
        self.config.access_token = token
        self._client.headers["Authorization"] = f"Bearer {token}"

    def set_workspace(self, workspace_id: str) -> None:
        self.config.workspace_id = workspace_id
        self._client.headers["X-Workspace-Id"] = workspace_id

    # ===== Auth =====

    def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Log in and keep the returned access token for later requests.

        Raises:
            httpx.HTTPStatusError: On invalid credentials
        """
        data = self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self.set_access_token(data["access_token"])
        return data

    # ===== Modules =====

    def get_modules(self) -> list[dict[str, Any]]:
        return self._request("GET", "/modules")

    def get_enabled_modules(self) -> list[dict[str, Any]]:
        return self._request("GET", "/modules/enabled")

    def get_module(self, module_id: str) -> dict[str, Any]:
        return self._request("GET", f"/modules/{module_id}")

    def get_load_order(self) -> list[str]:
        return self._request("GET", "/modules/load-order")["load_order"]

    def enable_module(self, module_id: str) -> dict[str, Any]:
        return self._request("POST", f"/modules/{module_id}/enable")

    def disable_module(self, module_id: str) -> dict[str, Any]:
        return self._request("POST", f"/modules/{module_id}/disable")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request and decode the JSON body.

        Raises:
            httpx.HTTPStatusError: For 4xx/5xx responses
            httpx.RequestError: If the server cannot be reached
        """
        response = self._client.request(method, path, **kwargs)
        if response.is_error:
            logger.debug(
                f"{method} {path} failed with {response.status_code}: {response.text}"
            )
        response.raise_for_status()
        return response.json()
