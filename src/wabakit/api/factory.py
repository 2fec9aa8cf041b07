"""FastAPI application factory for the webhook receiver."""

from fastapi import FastAPI, Request, Response

from wabakit.config import WabaConfig, load_config
from wabakit.observability.correlation import (
    CORRELATION_ID_HEADER,
    bind_correlation_id,
    get_correlation_id,
    unbind_correlation_id,
)

from .routes.webhooks import WebhookHandler, build_router


def create_app(handler: WebhookHandler, *, config: WabaConfig | None = None) -> FastAPI:
    """Create a FastAPI app serving the WhatsApp webhook endpoints.

    Args:
        handler: Receives each verified, classified webhook.
        config: Explicit configuration. If None, read from META_* env vars.

    Returns:
        Configured FastAPI application.
    """
    if config is None:
        config = load_config()

    app = FastAPI(title="wabakit webhook receiver", docs_url=None, redoc_url=None)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        token = bind_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = get_correlation_id()
            return response
        finally:
            unbind_correlation_id(token)

    app.include_router(build_router(config, handler))

    return app
