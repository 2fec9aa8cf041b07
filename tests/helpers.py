"""Shared test helper functions for wabakit tests.

Payload builders mirror real Cloud API webhook deliveries. These are NOT
fixtures - they are regular functions.
"""

from __future__ import annotations

import copy
import io
import json
from typing import Any

import requests

TEST_APP_SECRET = "test_app_secret_for_webhook_verification"
PHONE_NUMBER_ID = "106540352242922"
SENDER_WA_ID = "5511888888888"


def envelope(value: dict[str, Any] | None) -> dict[str, Any]:
    """Wrap a change value in the entry/changes envelope."""
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "102290129340398",
                "changes": [{"value": value, "field": "messages"}],
            }
        ],
    }


def _base_value() -> dict[str, Any]:
    return {
        "messaging_product": "whatsapp",
        "metadata": {
            "display_phone_number": "15550783881",
            "phone_number_id": PHONE_NUMBER_ID,
        },
    }


def message_record(msg_type: str, **payload: Any) -> dict[str, Any]:
    record = {
        "from": SENDER_WA_ID,
        "id": f"wamid.TEST_{msg_type.upper() or 'EMPTY'}",
        "timestamp": "1704067200",
        "type": msg_type,
    }
    record.update(payload)
    return record


def message_webhook(*messages: dict[str, Any], profile_name: str | None = "Test User") -> dict[str, Any]:
    value = _base_value()
    contact: dict[str, Any] = {"wa_id": SENDER_WA_ID, "profile": {}}
    if profile_name is not None:
        contact["profile"]["name"] = profile_name
    value["contacts"] = [contact]
    value["messages"] = [copy.deepcopy(m) for m in messages]
    return envelope(value)


def text_webhook(body: str = "123") -> dict[str, Any]:
    return message_webhook(message_record("text", text={"body": body}))


def image_record(media_id: str = "1479537139650973") -> dict[str, Any]:
    return message_record(
        "image",
        image={
            "id": media_id,
            "mime_type": "image/jpeg",
            "sha256": "ZhJmLwc2nmGk4yq5Te9XoWkdvDHCsIiYXrJYoaLtNbA=",
            "caption": "a photo",
        },
    )


def status_webhook(status: str = "delivered") -> dict[str, Any]:
    value = _base_value()
    value["statuses"] = [
        {
            "id": "wamid.STATUS_001",
            "recipient_id": SENDER_WA_ID,
            "status": status,
            "timestamp": "1704067260",
        }
    ]
    return envelope(value)


def call_webhook(event: str = "connect") -> dict[str, Any]:
    value = _base_value()
    value["contacts"] = [{"wa_id": SENDER_WA_ID, "profile": {"name": "Caller"}}]
    value["calls"] = [
        {
            "id": "wacid.CALL_001",
            "from": SENDER_WA_ID,
            "to": "15550783881",
            "event": event,
            "direction": "USER_INITIATED",
            "timestamp": "1704067300",
        }
    ]
    return envelope(value)


def error_webhook() -> dict[str, Any]:
    value = _base_value()
    value["errors"] = [{"code": 131051, "title": "Unsupported message type"}]
    return envelope(value)


def to_body(payload: dict[str, Any]) -> bytes:
    """Serialize a payload the way it would arrive on the wire."""
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def make_response(
    status_code: int = 200,
    *,
    json_body: Any = None,
    content: bytes | None = None,
    reason: str | None = None,
    url: str = "https://graph.facebook.com/test",
) -> requests.Response:
    """Build a real requests.Response backed by an in-memory body.

    The body is left unread so iter_content/raw behave like a streamed
    response.
    """
    if json_body is not None:
        content = json.dumps(json_body).encode("utf-8")
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = url
    response.raw = io.BytesIO(content or b"")
    return response


class LogRecorder:
    """Simple recorder to capture log calls deterministically."""

    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, level: str, *args, **kwargs):
        self.calls.append((level, args, kwargs))

    def info(self, *args, **kwargs):
        self._record("info", *args, **kwargs)

    def warning(self, *args, **kwargs):
        self._record("warning", *args, **kwargs)

    def error(self, *args, **kwargs):
        self._record("error", *args, **kwargs)

    def debug(self, *args, **kwargs):
        self._record("debug", *args, **kwargs)

    def get_all_logged_content(self) -> str:
        parts = []
        for _, args, kwargs in self.calls:
            parts.append(str(args))
            parts.append(str(kwargs))
        return " ".join(parts)

