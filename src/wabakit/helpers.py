"""Small extractors over webhook envelopes and message records.

Envelope helpers resolve the value exactly as classify_webhook does, so a
helper never disagrees with the classifier. All helpers return None instead
of raising when the expected shape is absent.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from wabakit.webhooks.classify import WebhookKind, classify_webhook, resolve_webhook_value
from wabakit.webhooks.messages import (
    MEDIA_KINDS,
    IncomingMessage,
    MediaMessage,
    parse_message,
)


@dataclass(frozen=True)
class ContactInfo:
    """Sender of a webhook and the business number that received it."""

    wa_id: str | None
    profile_name: str | None
    phone_number_id: str | None


def _first_id(items: tuple[Any, ...]) -> str | None:
    if not items or not isinstance(items[0], Mapping):
        return None
    value = items[0].get("id")
    return value if isinstance(value, str) else None


def get_contact_info(envelope: Any) -> ContactInfo | None:
    """Extract sender info from the first contact of a webhook.

    Returns None if the resolved value has no contacts.
    """
    value = resolve_webhook_value(envelope)
    if value is None:
        return None

    contacts = value.get("contacts")
    if not isinstance(contacts, list) or not contacts or not isinstance(contacts[0], Mapping):
        return None

    contact = contacts[0]
    profile = contact.get("profile")
    metadata = value.get("metadata")
    profile_name = profile.get("name") if isinstance(profile, Mapping) else None
    phone_number_id = metadata.get("phone_number_id") if isinstance(metadata, Mapping) else None

    return ContactInfo(
        wa_id=contact.get("wa_id"),
        profile_name=profile_name,
        phone_number_id=phone_number_id,
    )


def get_message_id(envelope: Any) -> str | None:
    """ID of the first message (message webhooks) or status (status webhooks)."""
    classification = classify_webhook(envelope)
    if classification.kind is WebhookKind.MESSAGE:
        return _first_id(classification.messages)
    if classification.kind is WebhookKind.STATUS:
        return _first_id(classification.statuses)
    return None


def get_call_id(envelope: Any) -> str | None:
    """ID of the first call in a call webhook."""
    classification = classify_webhook(envelope)
    if classification.kind is not WebhookKind.CALL:
        return None
    return _first_id(classification.calls)


def extract_media_id(message: Mapping[str, Any] | IncomingMessage) -> str | None:
    """Media ID of an image/audio/video/document/sticker message, else None."""
    typed = parse_message(message)
    if typed.kind not in MEDIA_KINDS or not isinstance(typed, MediaMessage):
        return None
    return typed.media.id or None


def is_media_message(message: Mapping[str, Any] | IncomingMessage) -> bool:
    """True if the message carries downloadable media."""
    return extract_media_id(message) is not None


def get_message_timestamp(message: Mapping[str, Any] | IncomingMessage) -> datetime | None:
    """Parse the epoch-seconds timestamp string into an aware UTC datetime.

    Returns None if the timestamp is missing or not an integer.
    """
    typed = parse_message(message)
    if typed.timestamp is None:
        return None
    digits = typed.timestamp.strip()
    if not (digits.isascii() and digits.isdigit()):
        return None
    try:
        return datetime.fromtimestamp(int(digits), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
