import hashlib
import random
import string
import time
from typing import Callable, Tuple

from image_server.app.models import UploadOptions

DEFAULT_EXTENSION = "png"
HASH_PREFIX_LENGTH = 8
RANDOM_SUFFIX_LENGTH = 6
BASE36_ALPHABET = string.digits + string.ascii_lowercase


def unix_millis() -> int:
    return int(time.time() * 1000)


def random_base36(length: int = RANDOM_SUFFIX_LENGTH) -> str:
    return ''.join(random.choice(BASE36_ALPHABET) for _ in range(length))


def split_filename(filename: str) -> Tuple[str, str]:
    """Split at the final dot into (basename, extension).

    A missing or empty extension (``cat``, ``cat.``) becomes png.
    """
    if "." not in filename:
        return filename, DEFAULT_EXTENSION
    basename, extension = filename.rsplit(".", 1)
    return basename, extension or DEFAULT_EXTENSION


def content_hash_prefix(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:HASH_PREFIX_LENGTH]


def derive_key(
    filename: str,
    data: bytes,
    options: UploadOptions,
    clock: Callable[[], int] = unix_millis,
    random_suffix: Callable[[], str] = random_base36,
) -> str:
    """Compute the storage key for an upload.

    Without hashing or timestamping the original filename is the key, so a
    re-upload under the same name overwrites the previous object. ``clock``
    returns unix milliseconds and ``random_suffix`` the base36 tail; both are
    parameters so tests can pin the output.
    """
    key = filename

    if options.use_content_hash or options.use_timestamp_suffix:
        basename, extension = split_filename(filename)
        parts = [basename]
        if options.use_content_hash:
            parts.append(content_hash_prefix(data))
        if options.use_timestamp_suffix:
            parts.append(f"{clock()}_{random_suffix()}")
        key = f"{'_'.join(parts)}.{extension}"

    if options.has_dimensions:
        base, extension = split_filename(key)
        key = f"{base}_{options.width}x{options.height}.{extension}"

    return key
