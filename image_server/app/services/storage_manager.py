import hashlib
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from pydantic import BaseModel

from image_server.app.models import ByteRange, ObjectMetadata, StoredObject
from image_server.logger_config import setup_logger

logger = setup_logger()

CHUNK_SIZE = 64 * 1024
OPEN_ATTEMPTS = 3


class StoredRecord(BaseModel):
    """Contents of a key's ``.meta`` file: its metadata and the blob holding that version."""

    metadata: ObjectMetadata
    blob_name: str


class LocalObjectStore:
    """Filesystem object store.

    Every version of an object is written to its own uniquely named
    ``.blob`` file. The key's ``.meta`` file names the current blob, and
    replacing it is the only step that makes a new version visible, so
    metadata and bytes can never belong to different versions.
    """

    def __init__(self, data_dir: Path, temp_dir: Path):
        self.data_dir = Path(data_dir)
        self.temp_dir = Path(temp_dir)

    async def initialize(self):
        """Create the storage directories and clear leftovers from interrupted writes."""
        logger.info("Initializing object store...")

        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.temp_dir.mkdir(exist_ok=True, parents=True)
        logger.debug(f"Storage directories created/verified: {self.data_dir}, {self.temp_dir}")

        files_removed = 0
        for file in self.temp_dir.glob("*"):
            if file.is_file():
                await aiofiles.os.unlink(file)
                files_removed += 1
        logger.info(f"Cleaned temporary directory, removed {files_removed} files")

    def get_meta_path(self, key: str) -> Path:
        """Get the metadata path for a key.

        Keys may contain slashes or any other character, so files are named
        by a digest of the key and sharded on its first two hex characters.
        Blobs for the key live next to it.
        """
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.data_dir / digest[:2] / f"{digest}.meta"

    async def _read_record(self, key: str) -> Optional[StoredRecord]:
        try:
            async with aiofiles.open(self.get_meta_path(key), 'r') as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        return StoredRecord.model_validate_json(content)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> ObjectMetadata:
        """Write a new version of the object; readers see the old or the new one, never a mix."""
        meta_path = self.get_meta_path(key)
        meta_path.parent.mkdir(exist_ok=True, parents=True)

        token = uuid.uuid4().hex
        record = StoredRecord(
            metadata=ObjectMetadata(
                key=key,
                size=len(data),
                content_type=content_type,
                entity_tag=f'"{hashlib.md5(data).hexdigest()}"',
                last_modified=datetime.now(timezone.utc),
            ),
            blob_name=f"{meta_path.stem}.{token}.blob",
        )
        blob_path = meta_path.parent / record.blob_name
        temp_blob_path = self.temp_dir / f"{token}.blob"
        temp_meta_path = self.temp_dir / f"{token}.meta"

        previous = await self._read_record(key)
        try:
            async with aiofiles.open(temp_blob_path, 'wb') as f:
                await f.write(data)
            async with aiofiles.open(temp_meta_path, 'w') as f:
                await f.write(record.model_dump_json())

            await aiofiles.os.replace(str(temp_blob_path), str(blob_path))
            # Commit point
            await aiofiles.os.replace(str(temp_meta_path), str(meta_path))
        except Exception:
            for path in (temp_blob_path, temp_meta_path, blob_path):
                if await aiofiles.os.path.exists(path):
                    await aiofiles.os.unlink(path)
            raise

        if previous is not None:
            await self._remove_blob(meta_path.parent / previous.blob_name)

        logger.debug(f"Stored {key} ({record.metadata.size} bytes, etag {record.metadata.entity_tag})")
        return record.metadata

    async def _remove_blob(self, path: Path) -> None:
        # Readers holding the old blob open keep reading it; the new version is already committed
        try:
            await aiofiles.os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove superseded blob {path}: {str(e)}")

    async def head(self, key: str) -> Optional[ObjectMetadata]:
        record = await self._read_record(key)
        return record.metadata if record is not None else None

    async def get(self, key: str, byte_range: Optional[ByteRange] = None) -> Optional[StoredObject]:
        """Return the object's metadata with a body stream over the same version.

        The blob is opened before returning, so a concurrent overwrite
        cannot swap the bytes underneath the metadata. The reported size is
        always the full object size, even for a ranged read.
        """
        for _ in range(OPEN_ATTEMPTS):
            record = await self._read_record(key)
            if record is None:
                return None
            try:
                f = await aiofiles.open(self.get_meta_path(key).parent / record.blob_name, 'rb')
            except FileNotFoundError:
                # Overwritten between reading the record and opening its blob
                continue

            size = record.metadata.size
            offset = 0
            length = size
            if byte_range is not None:
                offset = min(byte_range.offset, size)
                remaining = size - offset
                length = remaining if byte_range.length is None else min(byte_range.length, remaining)

            return StoredObject(
                metadata=record.metadata,
                body=self._read_chunks(f, offset, length),
                release=f.close,
            )

        raise FileNotFoundError(f"Blob for {key} kept changing while opening it")

    async def _read_chunks(self, f, offset: int, length: int) -> AsyncIterator[bytes]:
        if length <= 0:
            return
        await f.seek(offset)
        remaining = length
        while remaining > 0:
            chunk = await f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
