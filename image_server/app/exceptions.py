"""Error taxonomy mapped to HTTP status codes at the request boundary."""
from typing import Optional


class ImageServerError(Exception):
    """Base class for errors surfaced to HTTP clients."""

    status_code = 500
    default_detail = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ClientInputError(ImageServerError):
    """Raised for missing upload files, malformed multipart or oversize bodies."""

    status_code = 400
    default_detail = "Bad Request"


class AuthError(ImageServerError):
    """Raised when upload credentials are missing or wrong."""

    status_code = 401
    default_detail = "Unauthorized"


class ObjectNotFound(ImageServerError):
    status_code = 404
    default_detail = "Not Found"


class RangeNotSatisfiable(ImageServerError):
    """Raised when a range starts at or past the end of the object."""

    status_code = 416
    default_detail = "Range Not Satisfiable"

    def __init__(self, total_size: int, detail: Optional[str] = None):
        self.total_size = total_size
        super().__init__(detail)


class StoreError(ImageServerError):
    """Wraps any failure from the object store.

    The message sent to the client is always the generic default; the
    underlying cause is only logged.
    """

    status_code = 500
    default_detail = "Internal Server Error"
