"""WhatsApp webhook receiver routes.

GET  answers Meta's subscription handshake (hub.challenge).
POST verifies X-Hub-Signature-256 over the raw body, classifies the
payload and hands the classification to the application handler.

Security:
- Signature is checked on the raw bytes before JSON parsing
- Logs contain NO PII (no phone numbers, names or message text)

Deduplication, ordering and retries are left to the handler.
"""

import inspect
import json
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Header, Query, Request, Response
from fastapi.responses import JSONResponse

from wabakit.config import WabaConfig
from wabakit.errors import ConfigurationError
from wabakit.observability.correlation import get_correlation_id
from wabakit.observability.logging import get_logger
from wabakit.observability.redaction import safe_log_context
from wabakit.webhooks.classify import WebhookClassification, classify_webhook
from wabakit.webhooks.verify import SIGNATURE_HEADER, verify_signature

logger = get_logger(__name__)

WEBHOOK_PATH = "/webhooks/whatsapp"

WebhookHandler = Callable[[WebhookClassification], Awaitable[Any] | Any]


def build_router(config: WabaConfig, handler: WebhookHandler) -> APIRouter:
    """Create the webhook router bound to one config and handler.

    Args:
        config: Needs app_secret (POST) and verify_token (GET).
        handler: Called once per accepted delivery; may be sync or async.
    """
    router = APIRouter(tags=["webhooks"])

    @router.get(WEBHOOK_PATH)
    async def webhook_subscribe(
        hub_mode: str | None = Query(None, alias="hub.mode"),
        hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
        hub_challenge: str | None = Query(None, alias="hub.challenge"),
    ) -> Response:
        """Echo hub.challenge when hub.verify_token matches the configured token."""
        expected = config.verify_token or ""

        if expected and hub_mode == "subscribe" and hub_verify_token == expected:
            logger.info(
                "webhook subscription verified",
                extra={"extra_fields": safe_log_context(hub_mode=hub_mode)},
            )
            return Response(status_code=200, content=hub_challenge or "", media_type="text/plain")

        logger.warning(
            "webhook subscription rejected",
            extra={
                "extra_fields": safe_log_context(
                    hub_mode=hub_mode or "missing",
                    token_configured=bool(expected),
                )
            },
        )
        return Response(status_code=403, content="verification failed", media_type="text/plain")

    @router.post(WEBHOOK_PATH)
    async def webhook_receive(
        request: Request,
        x_hub_signature_256: str | None = Header(None, alias=SIGNATURE_HEADER),
    ) -> Response:
        """Verify, classify and dispatch one webhook delivery.

        Returns:
            200 with the classified kind.
            401 on a missing or invalid signature.
            400 on a body that is not JSON.
            500 when no app secret is configured.
        """
        correlation_id = get_correlation_id()
        body_bytes = await request.body()

        try:
            valid = verify_signature(x_hub_signature_256, body_bytes, config.app_secret)
        except ConfigurationError:
            logger.error(
                "webhook received but app secret is not configured",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
            return JSONResponse(status_code=500, content={"detail": "webhook secret not configured"})

        if not valid:
            logger.warning(
                "webhook signature rejected",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=correlation_id,
                        signature_present=bool(x_hub_signature_256),
                    )
                },
            )
            return JSONResponse(status_code=401, content={"detail": "invalid signature"})

        # Parse from the same bytes that were verified
        try:
            payload = json.loads(body_bytes)
        except ValueError:
            logger.warning(
                "webhook body is not json",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
            return JSONResponse(status_code=400, content={"detail": "invalid json"})

        classification = classify_webhook(payload)

        logger.info(
            "webhook received",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    kind=classification.kind.value,
                    messages=len(classification.messages),
                    statuses=len(classification.statuses),
                    calls=len(classification.calls),
                )
            },
        )

        result = handler(classification)
        if inspect.isawaitable(result):
            await result

        return JSONResponse(
            status_code=200,
            content={"status": "accepted", "kind": classification.kind.value},
        )

    return router
