"""Content fingerprinting for upload deduplication."""

import hashlib
import os

from amipub.common import HASH_BLOCK_SIZE, FileError
from amipub.common.models import LocalFile


def fingerprint(path: str) -> str:
    """
    Compute the hex MD5 digest of a file, streaming it in fixed-size blocks.

    Raises:
        FileError: If the file cannot be opened or read
    """
    digest = hashlib.md5()
    try:
        with open(path, "rb") as f:
            for block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
                digest.update(block)
    except OSError as e:
        raise FileError(f"reading {path}: {e}") from e
    return digest.hexdigest()


def get_local_file(path: str) -> LocalFile:
    """Stat and fingerprint a local file."""
    try:
        size_bytes = os.stat(path).st_size
    except OSError as e:
        raise FileError(f"reading {path}: {e}") from e
    return LocalFile(path=path, size_bytes=size_bytes, content_hash=fingerprint(path))
