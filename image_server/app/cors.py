from typing import Dict

from image_server.config import Settings

UPLOAD_PATH = "/upload"

ALLOWED_HEADERS = "Authorization, Content-Type, Range, If-None-Match"
EXPOSED_HEADERS = (
    "Content-Length, Content-Type, Content-Disposition, Content-Range, "
    "ETag, Last-Modified, Accept-Ranges"
)


def allowed_methods(path: str) -> str:
    if path.rstrip("/") == UPLOAD_PATH:
        return "GET, HEAD, PUT, OPTIONS"
    return "GET, HEAD, OPTIONS"


def cors_headers(path: str, settings: Settings) -> Dict[str, str]:
    """The header set every response carries, errors and 304s included."""
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Methods": allowed_methods(path),
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Expose-Headers": EXPOSED_HEADERS,
    }


def preflight_headers(path: str, settings: Settings) -> Dict[str, str]:
    headers = cors_headers(path, settings)
    headers["Access-Control-Max-Age"] = str(settings.cors_max_age)
    return headers
