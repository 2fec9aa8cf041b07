"""Outbound WhatsApp Cloud API calls: messages, templates, phone registration.

Security: NEVER log recipient numbers or message text. Only log hashes and
lengths. No retries: a failed send raises and the caller decides.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import requests

from wabakit.config import WabaConfig, load_config
from wabakit.errors import AuthError, ConfigurationError, SendError
from wabakit.graph import GraphTransport
from wabakit.observability.logging import get_logger
from wabakit.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

MESSAGING_PRODUCT = "whatsapp"


def _decode_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class WabaApiClient(GraphTransport):
    """Client for sending messages from one business phone number.

    Args:
        access_token: Graph API access token.
        phone_number_id: Sending phone number ID.
        api_version, base_url, session, timeout: See GraphTransport.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        *,
        api_version: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | tuple[float, float] | None = None,
    ) -> None:
        if not phone_number_id:
            raise ConfigurationError("phone_number_id is required")
        super().__init__(
            access_token,
            api_version=api_version,
            base_url=base_url,
            session=session,
            timeout=timeout,
        )
        self.phone_number_id = phone_number_id

    @classmethod
    def from_config(cls, config: WabaConfig, **kwargs: Any) -> "WabaApiClient":
        config.require("access_token", "phone_number_id")
        return cls(
            config.access_token,
            config.phone_number_id,
            api_version=config.api_version,
            base_url=config.base_url,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "WabaApiClient":
        """Build a client from META_* environment variables."""
        return cls.from_config(load_config(), **kwargs)

    def _call(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        json_body: Any = None,
    ) -> dict[str, Any]:
        """Execute a Graph API call and map non-2xx statuses to errors.

        Raises:
            AuthError: On 401/403.
            SendError: On any other non-2xx status.
            NetworkError: On transport failure.
        """
        response = self._request(method, url, operation=operation, json_body=json_body)

        if response.ok:
            body = _decode_json(response)
            return body if isinstance(body, dict) else {}

        status_code = response.status_code
        reason = response.reason or ""
        if status_code in (401, 403):
            logger.warning(
                "graph call rejected",
                extra={"extra_fields": safe_log_context(operation=operation, status_code=status_code)},
            )
            raise AuthError(f"Authentication failed: {status_code} {reason}".strip(), status_code)

        logger.warning(
            "graph call failed",
            extra={"extra_fields": safe_log_context(operation=operation, status_code=status_code)},
        )
        raise SendError(
            f"Request failed: {status_code} {reason}".strip(),
            status_code,
            details=_decode_json(response),
        )

    def _messages_url(self) -> str:
        return self._graph_url(self.phone_number_id, "messages")

    def send_message(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Send any message body (image, document, interactive, ...).

        messaging_product is added when missing.
        """
        body = {"messaging_product": MESSAGING_PRODUCT, **payload}

        to = body.get("to")
        logger.info(
            "sending outbound message",
            extra={
                "extra_fields": safe_log_context(
                    to_hash=hash_identifier(str(to)) if to else None,
                    type=body.get("type"),
                )
            },
        )
        return self._call("POST", self._messages_url(), operation="send message", json_body=body)

    def send_text_message(
        self,
        to: str,
        text: str,
        *,
        preview_url: bool = False,
        reply_to: str | None = None,
    ) -> dict[str, Any]:
        """Send a text message.

        Args:
            to: Recipient phone number. NEVER logged.
            text: Message body. NEVER logged.
            preview_url: Render a link preview for the first URL.
            reply_to: Message ID to quote as context.
        """
        payload: dict[str, Any] = {
            "to": to,
            "type": "text",
            "text": {"body": text, "preview_url": preview_url},
        }
        if reply_to:
            payload["context"] = {"message_id": reply_to}
        return self.send_message(payload)

    def send_template_message(
        self,
        to: str,
        name: str,
        language_code: str,
        components: Sequence[Mapping[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Send an approved template (header/body/button components)."""
        template: dict[str, Any] = {"name": name, "language": {"code": language_code}}
        if components:
            template["components"] = [dict(component) for component in components]
        return self.send_message({"to": to, "type": "template", "template": template})

    def register_phone(self, pin: str) -> dict[str, Any]:
        """Register the phone number with the Cloud API (6-digit two-step PIN)."""
        return self._call(
            "POST",
            self._graph_url(self.phone_number_id, "register"),
            operation="register phone",
            json_body={"messaging_product": MESSAGING_PRODUCT, "pin": pin},
        )

    def deregister_phone(self) -> dict[str, Any]:
        return self._call(
            "POST",
            self._graph_url(self.phone_number_id, "deregister"),
            operation="deregister phone",
            json_body={"messaging_product": MESSAGING_PRODUCT},
        )

    def list_phone_numbers(self, waba_id: str) -> list[dict[str, Any]]:
        """List phone numbers of a WhatsApp Business Account."""
        body = self._call(
            "GET",
            self._graph_url(waba_id, "phone_numbers"),
            operation="list phone numbers",
        )
        data = body.get("data")
        return data if isinstance(data, list) else []
