import hashlib
from unittest.mock import patch

import aiofiles.os
import pytest
import pytest_asyncio

from image_server.app.models import ByteRange
from image_server.app.services.object_store import ObjectStore
from image_server.app.services.storage_manager import LocalObjectStore

CONTENT = bytes(range(256)) * 4  # 1KB content


@pytest_asyncio.fixture
async def store(tmp_path):
    local_store = LocalObjectStore(tmp_path / "data", tmp_path / "temp")
    await local_store.initialize()
    return local_store


def test_local_store_satisfies_protocol(tmp_path):
    assert isinstance(LocalObjectStore(tmp_path / "data", tmp_path / "temp"), ObjectStore)


@pytest.mark.asyncio
async def test_put_then_head(store):
    stored = await store.put("cat.png", CONTENT, "image/png")
    metadata = await store.head("cat.png")

    assert metadata == stored
    assert metadata.key == "cat.png"
    assert metadata.size == len(CONTENT)
    assert metadata.content_type == "image/png"
    assert metadata.entity_tag == f'"{hashlib.md5(CONTENT).hexdigest()}"'
    assert metadata.last_modified.tzinfo is not None


@pytest.mark.asyncio
async def test_missing_key(store):
    assert await store.head("nope.png") is None
    assert await store.get("nope.png") is None


@pytest.mark.asyncio
async def test_get_full_object(store):
    await store.put("cat.png", CONTENT, "image/png")
    stored = await store.get("cat.png")
    assert await stored.read_all() == CONTENT


@pytest.mark.asyncio
async def test_get_closed_range(store):
    await store.put("cat.png", CONTENT)
    stored = await store.get("cat.png", ByteRange(offset=10, length=5))
    assert await stored.read_all() == CONTENT[10:15]
    # Metadata still describes the whole object
    assert stored.metadata.size == len(CONTENT)


@pytest.mark.asyncio
async def test_get_open_range(store):
    await store.put("cat.png", CONTENT)
    stored = await store.get("cat.png", ByteRange(offset=1000))
    assert await stored.read_all() == CONTENT[1000:]


@pytest.mark.asyncio
async def test_range_past_end_reads_nothing(store):
    await store.put("cat.png", CONTENT)
    stored = await store.get("cat.png", ByteRange(offset=5000, length=10))
    assert await stored.read_all() == b""


@pytest.mark.asyncio
async def test_missing_content_type_is_none(store):
    await store.put("img.webp", CONTENT)
    metadata = await store.head("img.webp")
    assert metadata.content_type is None


@pytest.mark.asyncio
async def test_put_overwrites(store):
    await store.put("cat.png", b"first")
    await store.put("cat.png", b"second version")

    stored = await store.get("cat.png")
    assert await stored.read_all() == b"second version"
    assert stored.metadata.size == len(b"second version")


@pytest.mark.asyncio
async def test_keys_with_slashes_and_unicode(store):
    await store.put("albums/2024/写真.png", CONTENT)
    stored = await store.get("albums/2024/写真.png")
    assert stored.metadata.key == "albums/2024/写真.png"
    assert await stored.read_all() == CONTENT
    assert await store.head("albums/2024") is None


@pytest.mark.asyncio
async def test_initialize_cleans_temp_dir(tmp_path):
    temp_dir = tmp_path / "temp"
    temp_dir.mkdir()
    (temp_dir / "leftover.blob").write_bytes(b"partial")

    await LocalObjectStore(tmp_path / "data", temp_dir).initialize()

    assert list(temp_dir.iterdir()) == []
    assert (tmp_path / "data").is_dir()


@pytest.mark.asyncio
async def test_open_get_survives_overwrite(store):
    old = b"A" * 100
    await store.put("cat.png", old)
    stored = await store.get("cat.png")

    await store.put("cat.png", b"B" * 40)

    # The earlier read keeps metadata and bytes from the same version
    assert await stored.read_all() == old
    assert stored.metadata.size == 100
    assert stored.metadata.entity_tag == f'"{hashlib.md5(old).hexdigest()}"'

    fresh = await store.get("cat.png")
    assert await fresh.read_all() == b"B" * 40
    assert fresh.metadata.size == 40


@pytest.mark.asyncio
async def test_failed_metadata_commit_keeps_previous_version(store):
    old = b"A" * 100
    await store.put("cat.png", old)
    real_replace = aiofiles.os.replace

    async def replace_failing_on_meta(src, dst):
        if str(dst).endswith(".meta"):
            raise OSError("disk full")
        await real_replace(src, dst)

    with patch("image_server.app.services.storage_manager.aiofiles.os.replace", new=replace_failing_on_meta):
        with pytest.raises(OSError):
            await store.put("cat.png", b"B" * 40)

    stored = await store.get("cat.png")
    assert stored.metadata.size == 100
    assert stored.metadata.entity_tag == f'"{hashlib.md5(old).hexdigest()}"'
    assert await stored.read_all() == old

    shard = store.get_meta_path("cat.png").parent
    assert len(list(shard.glob("*.blob"))) == 1
    assert list(store.temp_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_overwrite_removes_superseded_blob(store):
    await store.put("cat.png", b"first")
    await store.put("cat.png", b"second")

    shard = store.get_meta_path("cat.png").parent
    assert len(list(shard.glob("*.blob"))) == 1


@pytest.mark.asyncio
async def test_close_without_reading(store):
    await store.put("cat.png", CONTENT)
    stored = await store.get("cat.png")
    await stored.close()
    await stored.close()
    assert stored.release is None
