"""Shared pytest fixtures for wabakit tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

_META_ENV_VARS = (
    "META_ACCESS_TOKEN",
    "META_APP_SECRET",
    "META_PHONE_NUMBER_ID",
    "META_VERIFY_TOKEN",
    "META_GRAPH_API_VERSION",
    "META_GRAPH_BASE_URL",
)


@pytest.fixture(autouse=True)
def _clean_meta_env(monkeypatch):
    """Keep the developer's META_* variables out of the tests.

    load_config() falls back to the environment, so a configured shell
    would otherwise change test outcomes.
    """
    for name in _META_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
