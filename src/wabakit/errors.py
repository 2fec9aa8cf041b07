"""Error taxonomy shared by the webhook, media and outbound components.

Signature mismatches are NOT errors: `verify_signature` returns False.
Classification never raises; malformed payloads degrade to the
`unknown`/`unsupported` variants.
"""

from typing import Any


class WabaError(Exception):
    """Base class for all wabakit errors."""

    def __init__(self, message: str, code: int | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ConfigurationError(WabaError):
    """Raised when a required secret or credential is missing at call time."""

    pass


class MediaError(WabaError):
    """Raised when either step of the media download fails.

    Covers non-2xx statuses and malformed metadata responses. `status_code`
    is the HTTP status of the failing step.
    """

    def __init__(self, message: str, media_id: str, status_code: int | None = None) -> None:
        super().__init__(message, code=status_code)
        self.media_id = media_id
        self.status_code = status_code


class NetworkError(WabaError):
    """Raised on transport failures (DNS, refused connection, timeout)."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class AuthError(WabaError):
    """Raised on HTTP 401/403 from outbound API calls."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, code=status_code)
        self.status_code = status_code


class SendError(WabaError):
    """Raised on any other non-2xx response from outbound API calls."""

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message, code=status_code, details=details)
        self.status_code = status_code
