from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import PlainTextResponse

from image_server import config
from image_server.app.context import AppContext, get_context
from image_server.app.exceptions import ClientInputError
from image_server.app.models import UploadOptions
from image_server.app.services.auth import require_uploader
from image_server.app.services.key_deriver import derive_key
from image_server.logger_config import setup_logger

logger = setup_logger()

router = APIRouter()


@router.put("/upload", response_class=PlainTextResponse)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    width: Optional[str] = Form(None),
    height: Optional[str] = Form(None),
    timestamp: Optional[str] = Form(None),
    sha256: Optional[str] = Form(None),
    uploader: str = Depends(require_uploader),
    context: AppContext = Depends(get_context),
):
    """Store an uploaded image and return the key it was stored under.

    Args:
        image: The file to store; must be present and non-empty
        width, height: Optional dimensions appended to the key as ``_WxH``
        timestamp: "true" to append a millisecond timestamp and random suffix
        sha256: "true" to append the first 8 hex chars of the content hash
    """
    if image is None or not image.filename:
        raise ClientInputError("Missing image file")

    data = await image.read()
    if not data:
        raise ClientInputError("Image file is empty")
    if len(data) > context.settings.max_upload_size:
        raise ClientInputError(
            f"Image exceeds maximum allowed size ({context.settings.max_upload_size} bytes)"
        )

    options = UploadOptions.from_form(width=width, height=height, timestamp=timestamp, sha256=sha256)
    key = derive_key(image.filename, data, options)
    if len(key) > config.MAX_KEY_LENGTH:
        raise ClientInputError(f"Derived key is too long. Maximum length is {config.MAX_KEY_LENGTH}")
    logger.debug(f"Derived key {key} for upload {image.filename} by {uploader}")

    await context.store_call("put", key, context.store.put(key, data, image.content_type))

    logger.info(f"Uploaded {key} ({len(data)} bytes)")
    return PlainTextResponse(key)
