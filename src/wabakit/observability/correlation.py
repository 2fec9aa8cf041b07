"""Correlation ID tracking across a single webhook or API call."""

import uuid
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("wabakit_correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def new_correlation_id() -> str:
    """Generate a fresh correlation ID (uuid4 hex)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str:
    return correlation_id_var.get()


def bind_correlation_id(cid: str | None) -> Token[str]:
    """Bind a correlation ID to the current context.

    An empty or missing value is replaced by a freshly generated one.
    The returned token must be passed to `unbind_correlation_id`.
    """
    return correlation_id_var.set(cid or new_correlation_id())


def unbind_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)
