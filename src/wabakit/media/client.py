"""Media download via the two-step Graph API flow.

Step 1: GET /{api_version}/{media_id} -> metadata + temporary URL
Step 2: GET {temporary_url}           -> binary content

The temporary URL expires 5 minutes after issuance, so both steps run on
every call. A 404 on step 2 (expired URL) surfaces as MediaError; calling
get_media again fetches a fresh URL.
"""

from dataclasses import asdict
from typing import Any, Literal, overload

import requests

from wabakit.config import WabaConfig, load_config
from wabakit.errors import ConfigurationError, MediaError, NetworkError
from wabakit.graph import GraphTransport
from wabakit.observability.logging import get_logger
from wabakit.observability.redaction import hash_identifier, safe_log_context
from wabakit.webhooks.verify import verify_signature

from .models import MediaBufferResult, MediaMetadata, MediaStreamResult

logger = get_logger(__name__)


def _error_excerpt(response: requests.Response) -> str:
    return response.text[:200] if response.content else "unknown error"


class WabaClient(GraphTransport):
    """Client for webhook verification and media retrieval.

    Args:
        access_token: Graph API access token.
        app_secret: Meta App Secret, needed only for verify_webhook.
        api_version, base_url, session, timeout: See GraphTransport.
    """

    def __init__(
        self,
        access_token: str,
        *,
        app_secret: str | None = None,
        api_version: str | None = None,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | tuple[float, float] | None = None,
    ) -> None:
        super().__init__(
            access_token,
            api_version=api_version,
            base_url=base_url,
            session=session,
            timeout=timeout,
        )
        self._app_secret = app_secret

    @classmethod
    def from_config(cls, config: WabaConfig, **kwargs: Any) -> "WabaClient":
        config.require("access_token")
        return cls(
            config.access_token,
            app_secret=config.app_secret,
            api_version=config.api_version,
            base_url=config.base_url,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "WabaClient":
        """Build a client from META_* environment variables."""
        return cls.from_config(load_config(), **kwargs)

    def verify_webhook(self, signature: str | None, raw_body: bytes | str) -> bool:
        """Verify a webhook signature with the configured app secret.

        Raises:
            ConfigurationError: If the client was built without app_secret.
        """
        if not self._app_secret:
            raise ConfigurationError(
                "app_secret is required for webhook verification; pass it to WabaClient"
            )
        return verify_signature(signature, raw_body, self._app_secret)

    def fetch_media_metadata(self, media_id: str) -> MediaMetadata:
        """Step 1: fetch metadata and a fresh temporary URL.

        Raises:
            MediaError: Non-2xx status or unusable response body.
            NetworkError: Transport failure.
        """
        response = self._request("GET", self._graph_url(media_id), operation="fetch media metadata")
        try:
            if not response.ok:
                raise MediaError(
                    f"Failed to fetch media metadata: {response.status_code} {_error_excerpt(response)}",
                    media_id,
                    response.status_code,
                )

            try:
                metadata = MediaMetadata.from_wire(response.json(), fallback_id=media_id)
            except ValueError as e:
                raise MediaError(
                    f"Invalid media metadata response: {e}", media_id, response.status_code
                ) from e
        finally:
            response.close()

        logger.debug(
            "media metadata fetched",
            extra={
                "extra_fields": safe_log_context(
                    media_hash=hash_identifier(media_id),
                    mime_type=metadata.mime_type,
                    file_size=metadata.file_size,
                )
            },
        )
        return metadata

    def _download(self, url: str, media_id: str) -> requests.Response:
        """Step 2: open the temporary URL as a streamed response."""
        response = self._request("GET", url, operation="download media", stream=True)
        if not response.ok:
            status_code = response.status_code
            response.close()
            raise MediaError(f"Failed to download media: {status_code}", media_id, status_code)
        return response

    @overload
    def get_media(self, media_id: str) -> MediaStreamResult: ...

    @overload
    def get_media(self, media_id: str, as_buffer: Literal[False]) -> MediaStreamResult: ...

    @overload
    def get_media(self, media_id: str, as_buffer: Literal[True]) -> MediaBufferResult: ...

    def get_media(
        self, media_id: str, as_buffer: bool = False
    ) -> MediaStreamResult | MediaBufferResult:
        """Fetch media by ID.

        Args:
            media_id: Media ID from an incoming message.
            as_buffer: If True, read the whole body into memory. Otherwise
                return the live response; the caller must close it.

        Raises:
            MediaError: Not found / expired (404), access denied (401/403),
                or any other non-2xx status, from either step.
            NetworkError: Transport failure in either step.
        """
        metadata = self.fetch_media_metadata(media_id)
        response = self._download(metadata.url, media_id)

        fields = asdict(metadata)

        if not as_buffer:
            return MediaStreamResult(**fields, response=response)

        try:
            content = response.content
        except requests.RequestException as e:
            raise NetworkError(f"Failed to read media content: {e}", cause=e) from e
        finally:
            response.close()

        logger.info(
            "media downloaded",
            extra={
                "extra_fields": safe_log_context(
                    media_hash=hash_identifier(media_id), bytes=len(content)
                )
            },
        )
        return MediaBufferResult(**fields, content=content)
