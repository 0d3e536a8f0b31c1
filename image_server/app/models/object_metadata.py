from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectMetadata(BaseModel):
    """Store-independent view of a stored object, rebuilt on every head/get."""

    model_config = ConfigDict(frozen=True)

    key: str
    size: int
    content_type: Optional[str] = None
    entity_tag: str
    last_modified: datetime

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        if v < 0:
            raise ValueError('Object size cannot be negative')
        return v

    @field_validator('content_type')
    @classmethod
    def blank_content_type(cls, v):
        # Stores may hand back "" for "no type recorded"
        return v or None


class ByteRange(BaseModel):
    """Range handed to the store: ``length`` of None reads to the end."""

    model_config = ConfigDict(frozen=True)

    offset: int
    length: Optional[int] = None


@dataclass
class StoredObject:
    metadata: ObjectMetadata
    body: AsyncIterator[bytes]
    release: Optional[Callable[[], Awaitable[None]]] = None

    async def read_all(self) -> bytes:
        """Drain the lazy body stream into a single buffer, then release it."""
        try:
            chunks = []
            async for chunk in self.body:
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            await self.close()

    async def close(self) -> None:
        """Release whatever backs the body; safe to call more than once."""
        release, self.release = self.release, None
        if release is not None:
            await release()


class UploadOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    use_content_hash: bool = False
    use_timestamp_suffix: bool = False
    width: Optional[int] = None
    height: Optional[int] = None

    @field_validator('width', 'height', mode='before')
    @classmethod
    def parse_dimension(cls, v):
        """Accept decimal strings; anything that is not a positive integer means 'not given'."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v if v > 0 else None
        text = str(v).strip()
        if not text.isdigit() or int(text) <= 0:
            return None
        return int(text)

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None and self.height is not None

    @classmethod
    def from_form(cls, width: Optional[str] = None, height: Optional[str] = None,
                  timestamp: Optional[str] = None, sha256: Optional[str] = None) -> 'UploadOptions':
        """Build options from multipart fields; only the literal "true" enables a flag."""
        return cls(
            use_content_hash=sha256 == "true",
            use_timestamp_suffix=timestamp == "true",
            width=width,
            height=height,
        )
