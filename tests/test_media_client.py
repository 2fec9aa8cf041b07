"""Tests for the two-step media download."""

from unittest.mock import MagicMock

import pytest
import requests
from urllib3.exceptions import ProtocolError, ReadTimeoutError

from wabakit.errors import ConfigurationError, MediaError, NetworkError
from wabakit.media.client import WabaClient
from wabakit.media.models import MediaBufferResult, MediaMetadata, MediaStreamResult

from .helpers import TEST_APP_SECRET, make_response, text_webhook, to_body

MEDIA_ID = "1479537139650973"
TEMP_URL = "https://lookaside.fbsbx.com/whatsapp_business/attachments/?mid=1479537139650973&ext=1"
CONTENT = b"\xff\xd8\xff\xe0" + b"x" * 2044

METADATA_BODY = {
    "messaging_product": "whatsapp",
    "url": TEMP_URL,
    "mime_type": "image/jpeg",
    "sha256": "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
    "file_size": "2048",
    "id": MEDIA_ID,
}


def _session(*responses):
    """Session mock returning the given responses (or raising exceptions) in order."""
    session = MagicMock(spec=requests.Session)
    session.request.side_effect = list(responses)
    return session


def _client(session, **kwargs) -> WabaClient:
    return WabaClient("test-token", session=session, **kwargs)


class TestGetMediaBuffer:
    """as_buffer=True drains the body into memory."""

    def test_returns_normalized_metadata_and_content(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=CONTENT),
        )

        result = _client(session).get_media(MEDIA_ID, as_buffer=True)

        assert isinstance(result, MediaBufferResult)
        assert result.media_id == MEDIA_ID
        assert result.mime_type == "image/jpeg"
        assert result.sha256 == METADATA_BODY["sha256"]
        assert result.file_size == 2048
        assert isinstance(result.file_size, int)
        assert result.url == TEMP_URL
        assert result.content == CONTENT

    def test_two_authenticated_gets(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=CONTENT),
        )

        _client(session, api_version="v21.0").get_media(MEDIA_ID, as_buffer=True)

        first, second = session.request.call_args_list
        assert first.args == ("GET", f"https://graph.facebook.com/v21.0/{MEDIA_ID}")
        assert second.args == ("GET", TEMP_URL)
        for call in (first, second):
            assert call.kwargs["headers"]["Authorization"] == "Bearer test-token"
        assert second.kwargs["stream"] is True

    def test_custom_base_url(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=b""),
        )

        _client(session, base_url="http://localhost:9000/").get_media(MEDIA_ID, as_buffer=True)

        assert session.request.call_args_list[0].args[1] == f"http://localhost:9000/v22.0/{MEDIA_ID}"

    def test_timeout_is_passed_through(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=b""),
        )

        _client(session, timeout=3.5).get_media(MEDIA_ID, as_buffer=True)

        assert all(c.kwargs["timeout"] == 3.5 for c in session.request.call_args_list)


class TestGetMediaStream:
    """Default mode returns the live response without reading it."""

    def test_stream_is_not_consumed(self):
        download = make_response(200, content=CONTENT)
        session = _session(make_response(200, json_body=METADATA_BODY), download)

        result = _client(session).get_media(MEDIA_ID)

        assert isinstance(result, MediaStreamResult)
        assert result.file_size == 2048
        assert download.raw.tell() == 0
        assert b"".join(result.iter_content(chunk_size=512)) == CONTENT

    def test_raw_stream_starts_at_body(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=CONTENT),
        )

        with _client(session).get_media(MEDIA_ID) as result:
            assert result.raw.read(4) == CONTENT[:4]

    def test_context_manager_closes_response(self):
        download = MagicMock(spec=requests.Response)
        download.ok = True
        session = _session(make_response(200, json_body=METADATA_BODY), download)

        with _client(session).get_media(MEDIA_ID):
            pass

        download.close.assert_called_once()


class TestNoCaching:
    """Every call performs both steps again."""

    def test_second_call_fetches_fresh_url(self):
        fresh = dict(METADATA_BODY, url=TEMP_URL + "&fresh=1")
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(200, content=CONTENT),
            make_response(200, json_body=fresh),
            make_response(200, content=CONTENT),
        )
        client = _client(session)

        client.get_media(MEDIA_ID, as_buffer=True)
        second = client.get_media(MEDIA_ID, as_buffer=True)

        assert session.request.call_count == 4
        assert session.request.call_args_list[3].args[1] == TEMP_URL + "&fresh=1"
        assert second.url.endswith("&fresh=1")


class TestErrors:
    """Status and transport failures map to MediaError / NetworkError."""

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 500])
    def test_metadata_status_error(self, status_code):
        session = _session(make_response(status_code, json_body={"error": {"message": "x"}}))

        with pytest.raises(MediaError) as exc_info:
            _client(session).get_media(MEDIA_ID)

        assert exc_info.value.media_id == MEDIA_ID
        assert exc_info.value.status_code == status_code
        assert session.request.call_count == 1

    def test_expired_url_is_not_retried(self):
        session = _session(
            make_response(200, json_body=METADATA_BODY),
            make_response(404, content=b"expired"),
        )

        with pytest.raises(MediaError) as exc_info:
            _client(session).get_media(MEDIA_ID, as_buffer=True)

        assert exc_info.value.status_code == 404
        assert exc_info.value.media_id == MEDIA_ID
        assert session.request.call_count == 2

    def test_metadata_network_error(self):
        cause = requests.ConnectionError("connection refused")
        session = _session(cause)

        with pytest.raises(NetworkError) as exc_info:
            _client(session).get_media(MEDIA_ID)

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause

    def test_download_timeout(self):
        session = _session(make_response(200, json_body=METADATA_BODY), requests.Timeout("slow"))

        with pytest.raises(NetworkError) as exc_info:
            _client(session).get_media(MEDIA_ID)

        assert isinstance(exc_info.value.cause, requests.Timeout)

    @pytest.mark.parametrize(
        "fault",
        [ProtocolError("connection reset"), ReadTimeoutError(None, TEMP_URL, "read timed out")],
    )
    def test_stream_read_failure_mid_body(self, fault):
        """A transport fault while the caller iterates surfaces as NetworkError."""
        download = make_response(200)
        download.raw = MagicMock()
        download.raw.stream.side_effect = fault
        session = _session(make_response(200, json_body=METADATA_BODY), download)

        result = _client(session).get_media(MEDIA_ID)

        with pytest.raises(NetworkError) as exc_info:
            b"".join(result.iter_content())

        assert isinstance(exc_info.value.cause, requests.RequestException)

    @pytest.mark.parametrize(
        "body",
        [
            dict(METADATA_BODY, file_size="not-a-number"),
            dict(METADATA_BODY, file_size=True),
            dict(METADATA_BODY, file_size=2048.9),
            dict(METADATA_BODY, file_size="2_048"),
            dict(METADATA_BODY, file_size="-1"),
            dict(METADATA_BODY, url=42),
            {k: v for k, v in METADATA_BODY.items() if k != "url"},
            ["not", "an", "object"],
        ],
    )
    def test_malformed_metadata(self, body):
        session = _session(make_response(200, json_body=body))

        with pytest.raises(MediaError) as exc_info:
            _client(session).get_media(MEDIA_ID)

        assert exc_info.value.status_code == 200
        assert session.request.call_count == 1

    def test_non_json_metadata(self):
        session = _session(make_response(200, content=b"<html>"))

        with pytest.raises(MediaError):
            _client(session).fetch_media_metadata(MEDIA_ID)


class TestMetadataParsing:
    def test_missing_id_falls_back_to_requested_id(self):
        body = {k: v for k, v in METADATA_BODY.items() if k != "id"}
        metadata = MediaMetadata.from_wire(body, fallback_id="requested")
        assert metadata.media_id == "requested"

    def test_numeric_file_size(self):
        assert MediaMetadata.from_wire(dict(METADATA_BODY, file_size=10)).file_size == 10

    def test_non_string_id_falls_back_to_requested_id(self):
        metadata = MediaMetadata.from_wire(dict(METADATA_BODY, id=7), fallback_id="requested")
        assert metadata.media_id == "requested"

    def test_non_string_optional_fields_dropped(self):
        metadata = MediaMetadata.from_wire(dict(METADATA_BODY, mime_type=1, sha256=["x"]))
        assert metadata.mime_type is None
        assert metadata.sha256 is None


class TestVerifyWebhook:
    """Client-level verification uses the configured app secret."""

    def test_verify_with_configured_secret(self):
        from wabakit.webhooks.verify import sign_payload

        body = to_body(text_webhook())
        client = _client(MagicMock(spec=requests.Session), app_secret=TEST_APP_SECRET)

        assert client.verify_webhook(sign_payload(body, TEST_APP_SECRET), body) is True
        assert client.verify_webhook("sha256=" + "0" * 64, body) is False

    def test_verify_without_secret_raises(self):
        client = _client(MagicMock(spec=requests.Session))

        with pytest.raises(ConfigurationError):
            client.verify_webhook("sha256=abc", b"{}")


class TestConstruction:
    def test_access_token_required(self):
        with pytest.raises(ConfigurationError):
            WabaClient("")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("META_ACCESS_TOKEN", "env-token")
        monkeypatch.setenv("META_APP_SECRET", "env-secret")
        monkeypatch.setenv("META_GRAPH_API_VERSION", "v20.0")

        client = WabaClient.from_env(session=MagicMock(spec=requests.Session))

        assert client.api_version == "v20.0"
        assert client.verify_webhook(None, b"{}") is False

    def test_from_env_without_token(self):
        with pytest.raises(ConfigurationError, match="META_ACCESS_TOKEN"):
            WabaClient.from_env()
