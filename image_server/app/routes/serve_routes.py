from fastapi import APIRouter, Depends, Request, Response

from image_server.app.context import AppContext, get_context
from image_server.app.exceptions import ObjectNotFound
from image_server.app.services.conditional_cache import is_not_modified
from image_server.app.services.range_resolver import parse_range, resolve_range, to_byte_range
from image_server.app.services.response_composer import ComposedResponse, compose_response
from image_server.logger_config import setup_logger

logger = setup_logger()

router = APIRouter()


def to_response(composed: ComposedResponse) -> Response:
    return Response(content=composed.body, status_code=composed.status_code, headers=composed.headers)


@router.api_route("/{key:path}", methods=["GET", "HEAD"])
async def serve_object(key: str, request: Request, context: AppContext = Depends(get_context)):
    """Serve a stored object, honoring Range, If-None-Match and ?download=true."""
    if not key:
        raise ObjectNotFound()

    if_none_match = request.headers.get("if-none-match")
    user_agent = request.headers.get("user-agent")
    download = request.query_params.get("download") == "true"

    if request.method == "HEAD":
        metadata = await context.store_call("head", key, context.store.head(key))
        if metadata is None:
            logger.info(f"HEAD {key}: not found")
            raise ObjectNotFound()
        return to_response(compose_response(
            metadata, "HEAD", if_none_match=if_none_match, download=download, user_agent=user_agent
        ))

    range_request = parse_range(request.headers.get("range"))
    byte_range = to_byte_range(range_request) if range_request else None

    stored = await context.store_call("get", key, context.store.get(key, byte_range))
    if stored is None:
        logger.info(f"GET {key}: not found")
        raise ObjectNotFound()

    try:
        if is_not_modified(if_none_match, stored.metadata.entity_tag):
            logger.debug(f"GET {key}: not modified")
            return to_response(compose_response(stored.metadata, "GET", if_none_match=if_none_match))

        resolved = resolve_range(range_request, stored.metadata.size) if range_request else None
        if resolved is not None:
            logger.debug(f"GET {key}: serving {resolved.content_range}")

        body = await context.store_call("read", key, stored.read_all())
    finally:
        await stored.close()

    return to_response(compose_response(
        stored.metadata,
        "GET",
        resolved_range=resolved,
        body=body,
        download=download,
        user_agent=user_agent,
    ))
