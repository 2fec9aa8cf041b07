"""Webhook payload classification.

Meta webhook payload structure:
{
  "object": "whatsapp_business_account",
  "entry": [{
    "id": "WABA_ID",
    "changes": [{
      "value": {
        "messaging_product": "whatsapp",
        "metadata": {"display_phone_number": "...", "phone_number_id": "..."},
        "contacts": [...],
        "messages": [...] | "statuses": [...] | "calls": [...] | "errors": [...]
      },
      "field": "messages"
    }]
  }]
}

Only entry[0].changes[0].value is inspected. Callers that receive
batched entries iterate over them externally.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class WebhookKind(str, Enum):
    MESSAGE = "message"
    STATUS = "status"
    CALL = "call"
    UNKNOWN = "unknown"


# Evaluated in order; first list-valued key wins. An "errors" list without
# "messages" is an error notification but is reported as a message webhook.
_DISCRIMINANTS: tuple[tuple[str, WebhookKind], ...] = (
    ("calls", WebhookKind.CALL),
    ("statuses", WebhookKind.STATUS),
    ("messages", WebhookKind.MESSAGE),
    ("errors", WebhookKind.MESSAGE),
)


@dataclass(frozen=True)
class WebhookClassification:
    """Result of classify_webhook.

    `payload` is the inner change value, or the original envelope when
    kind is UNKNOWN.
    """

    kind: WebhookKind
    payload: Any

    def _list(self, key: str) -> tuple[Any, ...]:
        if self.kind is WebhookKind.UNKNOWN:
            return ()
        items = self.payload.get(key)
        return tuple(items) if isinstance(items, list) else ()

    @property
    def metadata(self) -> Mapping[str, Any]:
        if self.kind is WebhookKind.UNKNOWN:
            return {}
        metadata = self.payload.get("metadata")
        return metadata if isinstance(metadata, Mapping) else {}

    @property
    def contacts(self) -> tuple[Any, ...]:
        return self._list("contacts")

    @property
    def messages(self) -> tuple[Any, ...]:
        return self._list("messages")

    @property
    def statuses(self) -> tuple[Any, ...]:
        return self._list("statuses")

    @property
    def calls(self) -> tuple[Any, ...]:
        return self._list("calls")

    @property
    def errors(self) -> tuple[Any, ...]:
        return self._list("errors")


def _first(container: Any, key: str) -> Any:
    if not isinstance(container, Mapping):
        return None
    items = container.get(key)
    if not isinstance(items, list) or not items:
        return None
    return items[0]


def resolve_webhook_value(envelope: Any) -> Mapping[str, Any] | None:
    """Return entry[0].changes[0].value, or None if any link is missing."""
    change = _first(_first(envelope, "entry"), "changes")
    if not isinstance(change, Mapping):
        return None
    value = change.get("value")
    if not isinstance(value, Mapping) or not value:
        return None
    return value


def classify_webhook(envelope: Any) -> WebhookClassification:
    """Classify a parsed webhook envelope.

    Never raises: malformed or empty input is classified as UNKNOWN.
    """
    value = resolve_webhook_value(envelope)
    if value is None:
        return WebhookClassification(kind=WebhookKind.UNKNOWN, payload=envelope)

    for key, kind in _DISCRIMINANTS:
        if isinstance(value.get(key), list):
            return WebhookClassification(kind=kind, payload=value)

    return WebhookClassification(kind=WebhookKind.UNKNOWN, payload=envelope)
