"""Cache lookup and restore."""

from __future__ import annotations

import logging
from pathlib import Path

from tqdm import tqdm

from cratecache.archive import ArchiveCodec
from cratecache.cache.keys import CacheKey
from cratecache.errors import CacheFetchFailedError
from cratecache.storage.base import ObjectStore

logger = logging.getLogger(__name__)


def check_exists(store: ObjectStore, key: CacheKey) -> bool:
    """Return whether *key* can be found in the store.

    Any failure, not-found or otherwise, counts as a miss: the run then
    rebuilds and uploads, which is always safe.
    """
    try:
        store.head_object(key.path)
    except Exception as exc:
        logger.debug("Cache lookup for %s treated as miss: %s", key.path, exc)
        return False
    return True


def fetch_archive(
    store: ObjectStore,
    key: CacheKey,
    *,
    dest_dir: Path,
    codec: ArchiveCodec,
    show_progress: bool = False,
) -> int:
    """Download *key* into *dest_dir*, unpack it there and drop the archive.

    Returns the number of bytes downloaded.
    """
    archive_path = dest_dir / key.path.rsplit("/", 1)[-1]
    written = 0
    try:
        total = store.head_object(key.path).content_length
        with archive_path.open("wb") as handle, tqdm(
            total=total,
            desc=f"[downloading {archive_path.name}]",
            unit="B",
            unit_scale=True,
            disable=not show_progress,
        ) as bar:
            for chunk in store.get_object_stream(key.path):
                handle.write(chunk)
                written += len(chunk)
                bar.update(len(chunk))
        codec.decompress(archive_path, cwd=dest_dir)
        archive_path.unlink()
    except Exception as exc:
        archive_path.unlink(missing_ok=True)
        raise CacheFetchFailedError(
            "Failed to restore the cached build output.",
            hint="Delete the partially restored target directory and rerun.",
            context={
                "operation": "fetch",
                "key": key.path,
                "path": str(archive_path),
                "error": str(exc),
            },
        ) from exc
    logger.info("Restored %d bytes from %s", written, key.path)
    return written
