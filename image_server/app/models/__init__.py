from image_server.app.models.object_metadata import (
    DEFAULT_CONTENT_TYPE,
    ByteRange,
    ObjectMetadata,
    StoredObject,
    UploadOptions,
)

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "ByteRange",
    "ObjectMetadata",
    "StoredObject",
    "UploadOptions",
]
