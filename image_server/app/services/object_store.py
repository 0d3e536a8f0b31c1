from typing import Optional, Protocol, runtime_checkable

from image_server.app.models import ByteRange, ObjectMetadata, StoredObject


@runtime_checkable
class ObjectStore(Protocol):
    """
    Key/value blob store the server reads from and writes to.

    Implementations return None for a missing key and raise for any other
    failure; the route handlers translate those into 404 and 500.
    """

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> ObjectMetadata: ...

    async def get(self, key: str, byte_range: Optional[ByteRange] = None) -> Optional[StoredObject]: ...

    async def head(self, key: str) -> Optional[ObjectMetadata]: ...
