"""Typed integration layer for the WhatsApp Business Cloud API."""

from wabakit.config import WabaConfig, load_config
from wabakit.errors import (
    AuthError,
    ConfigurationError,
    MediaError,
    NetworkError,
    SendError,
    WabaError,
)
from wabakit.helpers import (
    ContactInfo,
    extract_media_id,
    get_call_id,
    get_contact_info,
    get_message_id,
    get_message_timestamp,
    is_media_message,
)
from wabakit.media.client import WabaClient
from wabakit.media.models import MediaBufferResult, MediaMetadata, MediaStreamResult
from wabakit.outbound.client import WabaApiClient
from wabakit.webhooks.classify import WebhookClassification, WebhookKind, classify_webhook
from wabakit.webhooks.messages import (
    IncomingMessage,
    MessageClassification,
    MessageKind,
    classify_message,
)
from wabakit.webhooks.verify import sign_payload, verify_signature

__all__ = [
    "AuthError",
    "ConfigurationError",
    "ContactInfo",
    "IncomingMessage",
    "MediaBufferResult",
    "MediaError",
    "MediaMetadata",
    "MediaStreamResult",
    "MessageClassification",
    "MessageKind",
    "NetworkError",
    "SendError",
    "WabaApiClient",
    "WabaClient",
    "WabaConfig",
    "WabaError",
    "WebhookClassification",
    "WebhookKind",
    "classify_message",
    "classify_webhook",
    "extract_media_id",
    "get_call_id",
    "get_contact_info",
    "get_message_id",
    "get_message_timestamp",
    "is_media_message",
    "load_config",
    "sign_payload",
    "verify_signature",
]
