"""Incoming message models and classification.

Each record in a message webhook's ``messages`` list carries a ``type`` tag.
classify_message maps the tag to a typed, immutable view of the record.
Tags this module does not know (including ones Meta adds later) map to
UnsupportedMessage instead of failing.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    STICKER = "sticker"
    LOCATION = "location"
    CONTACTS = "contacts"
    INTERACTIVE = "interactive"
    REACTION = "reaction"
    BUTTON = "button"
    ORDER = "order"
    SYSTEM = "system"
    REFERRAL = "referral"
    UNSUPPORTED = "unsupported"


MEDIA_KINDS = frozenset(
    {
        MessageKind.IMAGE,
        MessageKind.AUDIO,
        MessageKind.VIDEO,
        MessageKind.DOCUMENT,
        MessageKind.STICKER,
    }
)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _bool(value: Any) -> bool:
    return value is True


def _float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _records(value: Any) -> tuple[Mapping[str, Any], ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, Mapping))


@dataclass(frozen=True)
class MessageContext:
    """Reply/forward context attached to a message."""

    sender: str | None = None
    message_id: str | None = None
    forwarded: bool = False
    frequently_forwarded: bool = False
    # Present on product enquiries: {"catalog_id", "product_retailer_id"}
    referred_product: Mapping[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MessageContext":
        referred = data.get("referred_product")
        return cls(
            sender=_str(data.get("from")),
            message_id=_str(data.get("id")),
            forwarded=_bool(data.get("forwarded")),
            frequently_forwarded=_bool(data.get("frequently_forwarded")),
            referred_product=referred if isinstance(referred, Mapping) else None,
        )


@dataclass(frozen=True)
class MessageIdentity:
    """Security notification data (show_security_notifications enabled)."""

    acknowledged: bool
    created_timestamp: str | None
    hash: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MessageIdentity":
        return cls(
            acknowledged=_bool(data.get("acknowledged")),
            created_timestamp=_str(data.get("created_timestamp")),
            hash=_str(data.get("hash")),
        )


@dataclass(frozen=True)
class MediaObject:
    """Media reference shared by image/audio/video/document/sticker messages.

    `voice` is only meaningful for audio, `filename` for documents and
    `animated` for stickers.
    """

    id: str | None
    mime_type: str | None
    sha256: str | None
    caption: str | None = None
    voice: bool = False
    filename: str | None = None
    animated: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MediaObject":
        return cls(
            id=_str(data.get("id")),
            mime_type=_str(data.get("mime_type")),
            sha256=_str(data.get("sha256")),
            caption=_str(data.get("caption")),
            voice=_bool(data.get("voice")),
            filename=_str(data.get("filename")),
            animated=_bool(data.get("animated")),
        )


@dataclass(frozen=True, kw_only=True)
class IncomingMessage:
    """Fields present on every incoming message.

    `type` is the tag exactly as received; `kind` is the classified variant.
    `raw` keeps the source record for fields not modelled here.
    """

    kind: MessageKind = field(init=False, default=MessageKind.UNSUPPORTED)

    sender: str | None
    message_id: str | None
    timestamp: str | None
    type: str | None
    context: MessageContext | None = None
    identity: MessageIdentity | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @staticmethod
    def _base_fields(data: Mapping[str, Any]) -> dict[str, Any]:
        context = data.get("context")
        identity = data.get("identity")
        return {
            "sender": _str(data.get("from")),
            "message_id": _str(data.get("id")),
            "timestamp": _str(data.get("timestamp")),
            "type": _str(data.get("type")),
            "context": MessageContext.from_dict(context) if isinstance(context, Mapping) else None,
            "identity": MessageIdentity.from_dict(identity) if isinstance(identity, Mapping) else None,
            "raw": data,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IncomingMessage":
        return cls(**cls._base_fields(data))


@dataclass(frozen=True, kw_only=True)
class TextMessage(IncomingMessage):
    kind: MessageKind = field(init=False, default=MessageKind.TEXT)
    body: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TextMessage":
        text = _mapping(data.get("text"))
        return cls(**cls._base_fields(data), body=_str(text.get("body")))


@dataclass(frozen=True, kw_only=True)
class MediaMessage(IncomingMessage):
    """Base for the five downloadable media variants."""

    media: MediaObject

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MediaMessage":
        # The media object lives under a key named after the tag.
        media = _mapping(data.get(cls.kind.value))
        return cls(**cls._base_fields(data), media=MediaObject.from_dict(media))


@dataclass(frozen=True, kw_only=True)
class ImageMessage(MediaMessage):
    kind: MessageKind = field(init=False, default=MessageKind.IMAGE)


@dataclass(frozen=True, kw_only=True)
class AudioMessage(MediaMessage):
    kind: MessageKind = field(init=False, default=MessageKind.AUDIO)

    @property
    def is_voice_note(self) -> bool:
        return self.media.voice


@dataclass(frozen=True, kw_only=True)
class VideoMessage(MediaMessage):
    kind: MessageKind = field(init=False, default=MessageKind.VIDEO)


@dataclass(frozen=True, kw_only=True)
class DocumentMessage(MediaMessage):
    kind: MessageKind = field(init=False, default=MessageKind.DOCUMENT)


@dataclass(frozen=True, kw_only=True)
class StickerMessage(MediaMessage):
    kind: MessageKind = field(init=False, default=MessageKind.STICKER)


@dataclass(frozen=True, kw_only=True)
class LocationMessage(IncomingMessage):
    kind: MessageKind = field(init=False, default=MessageKind.LOCATION)
    latitude: float | None = None
    longitude: float | None = None
    name: str | None = None
    address: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LocationMessage":
        location = _mapping(data.get("location"))
        return cls(
            **cls._base_fields(data),
            latitude=_float(location.get("latitude")),
            longitude=_float(location.get("longitude")),
            name=_str(location.get("name")),
            address=_str(location.get("address")),
        )


@dataclass(frozen=True, kw_only=True)
class ContactsMessage(IncomingMessage):
    """Shared contact cards (name, phones, emails, addresses, org, urls)."""

    kind: MessageKind = field(init=False, default=MessageKind.CONTACTS)
    contacts: tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactsMessage":
        return cls(**cls._base_fields(data), contacts=_records(data.get("contacts")))


@dataclass(frozen=True, kw_only=True)
class InteractiveMessage(IncomingMessage):
    """Button reply, list reply or flow (nfm) reply."""

    kind: MessageKind = field(init=False, default=MessageKind.INTERACTIVE)
    interactive_type: str | None = None
    button_reply: Mapping[str, Any] | None = None
    list_reply: Mapping[str, Any] | None = None
    nfm_reply: Mapping[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InteractiveMessage":
        interactive = _mapping(data.get("interactive"))

        def _optional(key: str) -> Mapping[str, Any] | None:
            value = interactive.get(key)
            return value if isinstance(value, Mapping) else None

        return cls(
            **cls._base_fields(data),
            interactive_type=_str(interactive.get("type")),
            button_reply=_optional("button_reply"),
            list_reply=_optional("list_reply"),
            nfm_reply=_optional("nfm_reply"),
        )

    def flow_response(self) -> dict[str, Any] | None:
        """Decode the flow submission carried in nfm_reply.response_json.

        Returns None when there is no flow reply or it is not a JSON object.
        """
        if self.nfm_reply is None:
            return None
        response_json = self.nfm_reply.get("response_json")
        if not isinstance(response_json, str):
            return None
        try:
            decoded = json.loads(response_json)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None


@dataclass(frozen=True, kw_only=True)
class ReactionMessage(IncomingMessage):
    kind: MessageKind = field(init=False, default=MessageKind.REACTION)
    reacted_message_id: str | None = None
    # Empty string when a reaction is removed
    emoji: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReactionMessage":
        reaction = _mapping(data.get("reaction"))
        return cls(
            **cls._base_fields(data),
            reacted_message_id=_str(reaction.get("message_id")),
            emoji=_str(reaction.get("emoji")),
        )


@dataclass(frozen=True, kw_only=True)
class ButtonMessage(IncomingMessage):
    """Quick-reply button click on a template message."""

    kind: MessageKind = field(init=False, default=MessageKind.BUTTON)
    text: str | None = None
    payload: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ButtonMessage":
        button = _mapping(data.get("button"))
        return cls(
            **cls._base_fields(data),
            text=_str(button.get("text")),
            payload=_str(button.get("payload")),
        )


@dataclass(frozen=True, kw_only=True)
class OrderMessage(IncomingMessage):
    kind: MessageKind = field(init=False, default=MessageKind.ORDER)
    catalog_id: str | None = None
    product_items: tuple[Mapping[str, Any], ...] = ()
    text: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderMessage":
        order = _mapping(data.get("order"))
        return cls(
            **cls._base_fields(data),
            catalog_id=_str(order.get("catalog_id")),
            product_items=_records(order.get("product_items")),
            text=_str(order.get("text")),
        )


@dataclass(frozen=True, kw_only=True)
class SystemMessage(IncomingMessage):
    """Number change (user_changed_number) or identity change notice."""

    kind: MessageKind = field(init=False, default=MessageKind.SYSTEM)
    body: str | None = None
    system_type: str | None = None
    new_wa_id: str | None = None
    identity_hash: str | None = None
    user: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SystemMessage":
        system = _mapping(data.get("system"))
        return cls(
            **cls._base_fields(data),
            body=_str(system.get("body")),
            system_type=_str(system.get("type")),
            new_wa_id=_str(system.get("new_wa_id")),
            identity_hash=_str(system.get("identity")),
            user=_str(system.get("user")),
        )


@dataclass(frozen=True, kw_only=True)
class ReferralMessage(IncomingMessage):
    """Message sent from a click-to-WhatsApp ad."""

    kind: MessageKind = field(init=False, default=MessageKind.REFERRAL)
    source_url: str | None = None
    source_type: str | None = None
    source_id: str | None = None
    headline: str | None = None
    body: str | None = None
    media_type: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReferralMessage":
        referral = _mapping(data.get("referral"))
        keys = (
            "source_url",
            "source_type",
            "source_id",
            "headline",
            "body",
            "media_type",
            "image_url",
            "video_url",
            "thumbnail_url",
        )
        return cls(**cls._base_fields(data), **{key: _str(referral.get(key)) for key in keys})


@dataclass(frozen=True, kw_only=True)
class UnsupportedMessage(IncomingMessage):
    """Any tag not listed in MessageKind, including "unsupported"/"unknown"."""

    kind: MessageKind = field(init=False, default=MessageKind.UNSUPPORTED)
    errors: tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UnsupportedMessage":
        return cls(**cls._base_fields(data), errors=_records(data.get("errors")))


_VARIANTS: dict[str, Callable[[Mapping[str, Any]], IncomingMessage]] = {
    MessageKind.TEXT.value: TextMessage.from_dict,
    MessageKind.IMAGE.value: ImageMessage.from_dict,
    MessageKind.AUDIO.value: AudioMessage.from_dict,
    MessageKind.VIDEO.value: VideoMessage.from_dict,
    MessageKind.DOCUMENT.value: DocumentMessage.from_dict,
    MessageKind.STICKER.value: StickerMessage.from_dict,
    MessageKind.LOCATION.value: LocationMessage.from_dict,
    MessageKind.CONTACTS.value: ContactsMessage.from_dict,
    MessageKind.INTERACTIVE.value: InteractiveMessage.from_dict,
    MessageKind.REACTION.value: ReactionMessage.from_dict,
    MessageKind.BUTTON.value: ButtonMessage.from_dict,
    MessageKind.ORDER.value: OrderMessage.from_dict,
    MessageKind.SYSTEM.value: SystemMessage.from_dict,
    MessageKind.REFERRAL.value: ReferralMessage.from_dict,
}


@dataclass(frozen=True)
class MessageClassification:
    kind: MessageKind
    message: IncomingMessage


def parse_message(message: Mapping[str, Any] | IncomingMessage) -> IncomingMessage:
    """Build the typed variant for a raw message record.

    Already-typed messages are returned unchanged. Non-mapping input yields
    an empty UnsupportedMessage.
    """
    if isinstance(message, IncomingMessage):
        return message
    if not isinstance(message, Mapping):
        return UnsupportedMessage.from_dict({})

    tag = message.get("type")
    parser = _VARIANTS.get(tag) if isinstance(tag, str) else None
    if parser is None:
        return UnsupportedMessage.from_dict(message)
    return parser(message)


def classify_message(message: Mapping[str, Any] | IncomingMessage) -> MessageClassification:
    """Classify one message record by its ``type`` tag. Never raises."""
    typed = parse_message(message)
    return MessageClassification(kind=typed.kind, message=typed)
