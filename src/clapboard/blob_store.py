#!/usr/bin/env python3
"""Directory-backed blob store.

A minimal embedded key-value store: blobs are addressed by (bucket, key),
each bucket is a directory under the store root and each key is a file in
it. The entry repository is the only user; anything that offers the same
five operations could replace it.

Filesystem operations are the only synchronization point:
- create_bucket() relies on mkdir() failing for an existing directory.
- put() writes to a hidden temporary file and renames it into place, so a
  reader never sees a half-written blob.
- delete() renames the bucket to a hidden tombstone before removing it, so
  two concurrent deleters never trip over each other.

Names starting with "." are reserved for these temporaries and are never
listed.
"""

from __future__ import annotations

import logging
import os
import shutil
from contextlib import suppress
from pathlib import Path

from clapboard.errors import StorageError

logger = logging.getLogger(__name__)


class DirectoryBlobStore:
    """Blob store rooted at one directory.

    Attributes:
        root: Directory holding one subdirectory per bucket.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def create_bucket(self, bucket: str) -> bool:
        """Create an empty bucket if no bucket of that name exists.

        Args:
            bucket: Bucket name.

        Returns:
            True if this call created the bucket, False if it already existed.

        Raises:
            StorageError: On any other filesystem failure.
        """
        path = self._bucket_path(bucket)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.mkdir()
        except FileExistsError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot create {path}: {e}") from e
        return True

    def put(self, bucket: str, key: str, data: bytes) -> None:
        """Store data under (bucket, key), creating the bucket on demand.

        Raises:
            StorageError: If the blob cannot be written.
        """
        bucket_path = self._bucket_path(bucket)
        path = self._key_path(bucket_path, key)
        tmp_path = bucket_path / f".{key}.tmp-{os.getpid()}"
        try:
            bucket_path.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink()
            raise StorageError(f"Cannot write {path}: {e}") from e

    def get(self, bucket: str, key: str) -> bytes:
        """Return the blob stored under (bucket, key).

        Raises:
            KeyError: If the bucket or key does not exist.
            StorageError: If the blob exists but cannot be read.
        """
        path = self._key_path(self._bucket_path(bucket), key)
        try:
            return path.read_bytes()
        except (FileNotFoundError, NotADirectoryError) as e:
            raise KeyError((bucket, key)) from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def keys(self, bucket: str) -> list[str]:
        """Return the keys stored in a bucket, sorted.

        Raises:
            KeyError: If the bucket does not exist.
            StorageError: If the bucket cannot be listed.
        """
        path = self._bucket_path(bucket)
        try:
            children = list(path.iterdir())
        except (FileNotFoundError, NotADirectoryError) as e:
            raise KeyError(bucket) from e
        except OSError as e:
            raise StorageError(f"Cannot list {path}: {e}") from e
        return sorted(
            child.name for child in children
            if not child.name.startswith(".") and child.is_file()
        )

    def buckets(self) -> list[str]:
        """Return the names of all visible buckets, in no particular order.

        A missing root simply means an empty store.

        Raises:
            StorageError: If the root exists but cannot be listed.
        """
        try:
            children = list(self.root.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Cannot list {self.root}: {e}") from e
        return [
            child.name for child in children
            if not child.name.startswith(".") and child.is_dir()
        ]

    def delete(self, bucket: str) -> bool:
        """Remove a bucket and everything in it, if it exists.

        Returns:
            True if this call removed the bucket, False if it was already gone.

        Raises:
            StorageError: If the bucket exists but cannot be removed.
        """
        path = self._bucket_path(bucket)
        tombstone = self.root / f".{bucket}.deleted-{os.getpid()}"
        try:
            os.rename(path, tombstone)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot remove {path}: {e}") from e
        try:
            shutil.rmtree(tombstone)
        except OSError as e:
            raise StorageError(f"Cannot remove {tombstone}: {e}") from e
        logger.debug("Removed bucket %s", bucket)
        return True

    def _bucket_path(self, bucket: str) -> Path:
        """Return the directory for a bucket, refusing names that escape root."""
        if not bucket or bucket.startswith(".") or "/" in bucket or "\\" in bucket:
            raise StorageError(f"Invalid bucket name {bucket!r}")
        return self.root / bucket

    def _key_path(self, bucket_path: Path, key: str) -> Path:
        """Return the file for a key, refusing names that escape the bucket."""
        if not key or key.startswith(".") or "/" in key or "\x00" in key:
            raise StorageError(f"Invalid key {key!r}")
        path = bucket_path / key
        if path.resolve().parent != bucket_path.resolve():
            raise StorageError(f"Key {key!r} escapes {bucket_path}")
        return path
