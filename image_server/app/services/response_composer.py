"""Header and status decisions for serving a stored object.

Everything here is a pure function of the object's metadata and the
request's method, headers and query flags; the store is never touched.
"""
import re
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Dict, Optional
from urllib.parse import quote

from image_server import config
from image_server.app.models import DEFAULT_CONTENT_TYPE, ObjectMetadata
from image_server.app.services.conditional_cache import is_not_modified
from image_server.app.services.range_resolver import ResolvedRange

EXTENSION_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "pdf": "application/pdf",
}

SCREENSHOT_MARKER = "screenshot_"
MOBILE_USER_AGENT = re.compile(r'iPhone|iPad|iPod|Android', re.IGNORECASE)

INLINE = "inline"
ATTACHMENT = "attachment"


@dataclass
class ComposedResponse:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class DispositionDecision:
    disposition: str
    filename: str

    @property
    def header_value(self) -> str:
        return (
            f'{self.disposition}; filename="{ascii_filename(self.filename)}"; '
            f"filename*=UTF-8''{quote(self.filename, safe='')}"
        )


def ascii_filename(name: str) -> str:
    """Fallback for the plain ``filename`` parameter, which must stay ASCII."""
    safe = ''.join(ch if 32 <= ord(ch) < 127 else '_' for ch in name)
    return safe.replace('\\', '\\\\').replace('"', '\\"')


def filename_from_key(key: str) -> str:
    return key.rsplit("/", 1)[-1]


def content_type_for(metadata: ObjectMetadata) -> str:
    if metadata.content_type:
        return metadata.content_type

    name = filename_from_key(metadata.key)
    if "." not in name:
        return DEFAULT_CONTENT_TYPE
    extension = name.rsplit(".", 1)[1].lower()
    return EXTENSION_CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)


def cache_control_for(key: str) -> str:
    # Screenshots are re-captured under the same name, everything else is content-addressed
    if SCREENSHOT_MARKER in key:
        return f"public, max-age={config.SHORT_CACHE_MAX_AGE}"
    return f"public, max-age={config.LONG_CACHE_MAX_AGE}, immutable"


def is_mobile_user_agent(user_agent: Optional[str]) -> bool:
    return bool(user_agent) and MOBILE_USER_AGENT.search(user_agent) is not None


def decide_disposition(key: str, download: bool, user_agent: Optional[str]) -> DispositionDecision:
    """Attachment on explicit request, or for screenshots opened on a mobile device."""
    if download or (SCREENSHOT_MARKER in key and is_mobile_user_agent(user_agent)):
        disposition = ATTACHMENT
    else:
        disposition = INLINE
    return DispositionDecision(disposition=disposition, filename=filename_from_key(key))


def http_date(metadata: ObjectMetadata) -> str:
    return formatdate(metadata.last_modified.timestamp(), usegmt=True)


def compose_response(
    metadata: ObjectMetadata,
    method: str,
    resolved_range: Optional[ResolvedRange] = None,
    body: bytes = b"",
    if_none_match: Optional[str] = None,
    download: bool = False,
    user_agent: Optional[str] = None,
) -> ComposedResponse:
    """Build the status, headers and body for a GET or HEAD on an object.

    Args:
        metadata: The object's current metadata.
        method: "GET" or "HEAD".
        resolved_range: Byte window for a partial GET, if one was requested.
        body: The (possibly ranged) bytes already read from the store.
        if_none_match: The client's If-None-Match header.
        download: True when the ``download=true`` query flag was sent.
        user_agent: The client's User-Agent header.

    Returns:
        ComposedResponse: 304 with no body on a validator match, otherwise
        200/206 with the full header set. HEAD never carries a body.
    """
    if is_not_modified(if_none_match, metadata.entity_tag):
        return ComposedResponse(status_code=304, headers={"ETag": metadata.entity_tag})

    disposition = decide_disposition(metadata.key, download, user_agent)
    headers = {
        "Content-Type": content_type_for(metadata),
        "Cache-Control": cache_control_for(metadata.key),
        "Content-Disposition": disposition.header_value,
        "ETag": metadata.entity_tag,
        "Last-Modified": http_date(metadata),
        "Accept-Ranges": "bytes",
        "X-Content-Type-Options": "nosniff",
    }

    if method.upper() == "HEAD":
        headers["Content-Length"] = str(metadata.size)
        return ComposedResponse(status_code=200, headers=headers)

    headers["Content-Length"] = str(len(body))
    if resolved_range is not None:
        headers["Content-Range"] = resolved_range.content_range
        return ComposedResponse(status_code=206, headers=headers, body=body)
    return ComposedResponse(status_code=200, headers=headers, body=body)
