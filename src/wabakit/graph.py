"""Shared Graph API transport for the media and outbound clients.

Every request carries the bearer token. Transport failures (DNS, refused
connection, timeout, caller cancellation surfaced by requests) become
NetworkError. Status codes are left to the caller: each client maps them
to its own error type. Nothing here retries.
"""

from typing import Any

import requests

from wabakit.config import DEFAULT_API_VERSION, DEFAULT_BASE_URL
from wabakit.errors import ConfigurationError, NetworkError
from wabakit.observability.logging import get_logger
from wabakit.observability.redaction import safe_log_context

logger = get_logger(__name__)


class GraphTransport:
    """Holds read-only credentials and an optional caller-owned session.

    Args:
        access_token: Graph API access token.
        api_version: Graph API version (default: v22.0).
        base_url: Graph API base URL.
        session: requests.Session to reuse. A private one is created if None.
        timeout: Passed to requests as-is. None means no client-side timeout.
    """

    def __init__(
        self,
        access_token: str,
        *,
        api_version: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | tuple[float, float] | None = None,
    ) -> None:
        if not access_token:
            raise ConfigurationError("access token is required")
        self._access_token = access_token
        self.api_version = api_version or DEFAULT_API_VERSION
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _graph_url(self, *parts: str) -> str:
        return "/".join([self.base_url, self.api_version, *parts])

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        json_body: Any = None,
        stream: bool = False,
    ) -> requests.Response:
        """Execute one HTTP request. Raises NetworkError on transport failure."""
        headers = self._auth_headers()
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        try:
            return self._session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                stream=stream,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(
                "graph request failed",
                extra={
                    "extra_fields": safe_log_context(
                        operation=operation, method=method, error_type=type(e).__name__
                    )
                },
            )
            raise NetworkError(f"Failed to {operation}: {e}", cause=e) from e

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "GraphTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
