"""Media metadata and download results.

The Graph API media endpoint answers with snake_case wire fields and a
string-encoded file size. _WIRE_FIELDS is the only place that knows the
wire names.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import requests

from wabakit.errors import NetworkError

# wire name -> MediaMetadata field
_WIRE_FIELDS = {
    "id": "media_id",
    "mime_type": "mime_type",
    "sha256": "sha256",
    "file_size": "file_size",
    "url": "url",
}

# Temporary download URLs expire this many seconds after issuance.
TEMPORARY_URL_TTL_SECONDS = 300

DEFAULT_CHUNK_SIZE = 64 * 1024


class MalformedMetadataError(ValueError):
    """Raised by MediaMetadata.from_wire when the response is unusable."""


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _file_size(value: Any) -> int:
    # Graph sends a decimal string; plain ints are accepted, bools and floats are not.
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    raise MalformedMetadataError("file_size is not an integer")


@dataclass(frozen=True)
class MediaMetadata:
    """Step-1 result: metadata plus a temporary download URL.

    `url` is valid for TEMPORARY_URL_TTL_SECONDS and must not be stored.
    """

    media_id: str
    mime_type: str | None
    sha256: str | None
    file_size: int
    url: str

    @classmethod
    def from_wire(cls, data: Any, fallback_id: str | None = None) -> "MediaMetadata":
        if not isinstance(data, Mapping):
            raise MalformedMetadataError("metadata response is not a JSON object")

        values = {attr: data.get(wire) for wire, attr in _WIRE_FIELDS.items()}
        for attr in ("media_id", "mime_type", "sha256", "url"):
            values[attr] = _optional_str(values[attr])
        values["media_id"] = values["media_id"] or fallback_id

        if not values["url"]:
            raise MalformedMetadataError("metadata response has no download url")

        values["file_size"] = _file_size(values["file_size"])

        return cls(**values)


@dataclass(frozen=True)
class MediaBufferResult(MediaMetadata):
    """Metadata plus the fully downloaded content."""

    content: bytes


@dataclass(frozen=True)
class MediaStreamResult(MediaMetadata):
    """Metadata plus the live, unread step-2 response.

    The body is not buffered. Consume it with iter_content(), then close()
    (or use the result as a context manager).
    """

    response: requests.Response

    @property
    def raw(self) -> Any:
        """File-like urllib3 stream positioned at the start of the body.

        Reads from `raw` bypass error mapping: transport failures surface as
        urllib3 exceptions. Prefer iter_content(), which raises NetworkError.
        """
        return self.response.raw

    def iter_content(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield body chunks; transport failures mid-body raise NetworkError."""
        try:
            yield from self.response.iter_content(chunk_size=chunk_size)
        except requests.RequestException as e:
            raise NetworkError(f"Failed to read media content: {e}", cause=e) from e

    def close(self) -> None:
        self.response.close()

    def __enter__(self) -> "MediaStreamResult":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
