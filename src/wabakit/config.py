"""Client configuration.

Explicit arguments always win over environment variables. Nothing in the
webhook or media core reads the environment on its own: callers opt in via
`load_config()` or the clients' `from_env()` constructors.

Environment variables:
- META_ACCESS_TOKEN: Graph API access token
- META_APP_SECRET: App secret used for webhook signatures
- META_PHONE_NUMBER_ID: Business phone number ID (outbound sends)
- META_VERIFY_TOKEN: Token echoed during webhook subscription
- META_GRAPH_API_VERSION: Graph API version (default: v22.0)
- META_GRAPH_BASE_URL: Graph API base URL (default: https://graph.facebook.com)
"""

import os
from dataclasses import dataclass, fields

from .errors import ConfigurationError

DEFAULT_API_VERSION = "v22.0"
DEFAULT_BASE_URL = "https://graph.facebook.com"

_ENV_VARS = {
    "access_token": "META_ACCESS_TOKEN",
    "app_secret": "META_APP_SECRET",
    "phone_number_id": "META_PHONE_NUMBER_ID",
    "verify_token": "META_VERIFY_TOKEN",
    "api_version": "META_GRAPH_API_VERSION",
    "base_url": "META_GRAPH_BASE_URL",
}


@dataclass(frozen=True)
class WabaConfig:
    """Read-only credentials and endpoint settings."""

    access_token: str | None = None
    app_secret: str | None = None
    phone_number_id: str | None = None
    verify_token: str | None = None
    api_version: str = DEFAULT_API_VERSION
    base_url: str = DEFAULT_BASE_URL

    def require(self, *names: str) -> None:
        """Raise ConfigurationError listing every empty field in `names`."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = ", ".join(_ENV_VARS.get(name, name) for name in missing)
            raise ConfigurationError(f"Missing wabakit config: {env_names} required")


def load_config(**overrides: str | None) -> WabaConfig:
    """Build a WabaConfig from keyword overrides, falling back to the environment.

    Args:
        **overrides: Any WabaConfig field. None or "" means "use env".

    Raises:
        TypeError: On an unknown field name.
    """
    known = {f.name for f in fields(WabaConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"unknown config field(s): {', '.join(sorted(unknown))}")

    values: dict[str, str] = {}
    for name, env_var in _ENV_VARS.items():
        value = overrides.get(name) or os.environ.get(env_var, "")
        if value:
            values[name] = value

    if "base_url" in values:
        values["base_url"] = values["base_url"].rstrip("/")

    return WabaConfig(**values)
