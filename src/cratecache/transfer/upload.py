"""Chunked multipart upload of cache archives."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from tqdm import tqdm

from cratecache.cache.keys import CacheKey
from cratecache.config import CHUNK_SIZE, DEFAULT_RETRY_LIMIT
from cratecache.errors import (
    ChunkUploadExhaustedError,
    CompletionExhaustedError,
    PostUploadVerificationFailedError,
    StorageError,
)
from cratecache.storage.base import CONTENT_TYPE, ObjectHead, ObjectStore, PartResult
from cratecache.transfer.retry import retry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadSession:
    key: CacheKey
    upload_id: str
    parts: list[PartResult] = field(default_factory=list)

    @property
    def next_part_number(self) -> int:
        return len(self.parts) + 1

    def record(self, part: PartResult) -> None:
        if part.part_number != self.next_part_number:
            raise StorageError(
                "Object store acknowledged an unexpected part number.",
                context={
                    "operation": "upload_part",
                    "expected": str(self.next_part_number),
                    "actual": str(part.part_number),
                },
            )
        self.parts.append(part)


def part_count(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    return -(-size // chunk_size)


def iter_chunks(path: Path, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the file at *path* in *chunk_size* pieces; the last may be shorter."""
    with path.open("rb") as handle:
        while chunk := handle.read(chunk_size):
            yield chunk


def upload_archive(
    store: ObjectStore,
    key: CacheKey,
    archive_path: Path,
    *,
    chunk_size: int = CHUNK_SIZE,
    retry_limit: int = DEFAULT_RETRY_LIMIT,
    show_progress: bool = False,
) -> UploadSession:
    """Upload *archive_path* under *key* one part at a time.

    Parts are numbered from 1 and sent strictly in order. Each part, and the
    final completion call, gets up to *retry_limit* attempts.
    """
    upload_id = store.initiate_multipart_upload(key.path, CONTENT_TYPE)
    session = UploadSession(key=key, upload_id=upload_id)
    total = part_count(archive_path.stat().st_size, chunk_size)
    logger.info("Uploading %s in %d part(s)", archive_path.name, total)

    with tqdm(
        total=total,
        desc=f"[uploading {archive_path.name}]",
        unit="part",
        disable=not show_progress,
    ) as bar:
        for chunk in iter_chunks(archive_path, chunk_size):
            part_number = session.next_part_number
            part = retry(
                partial(store.put_multipart_chunk, key.path, upload_id, part_number, chunk),
                limit=retry_limit,
                operation="upload_part",
                exhausted=ChunkUploadExhaustedError,
                context={"key": key.path, "part": str(part_number)},
            )
            session.record(part)
            bar.update(1)

    retry(
        lambda: store.complete_multipart_upload(key.path, upload_id, list(session.parts)),
        limit=retry_limit,
        operation="complete_multipart_upload",
        exhausted=CompletionExhaustedError,
        context={"key": key.path, "parts": str(len(session.parts))},
    )
    return session


def verify_upload(store: ObjectStore, key: CacheKey) -> ObjectHead:
    try:
        head = store.head_object(key.path)
    except Exception as exc:
        raise PostUploadVerificationFailedError(
            "Uploaded cache entry could not be queried.",
            context={"operation": "verify", "key": key.path, "error": str(exc)},
        ) from exc
    if head.status != 200 or head.content_type != CONTENT_TYPE:
        raise PostUploadVerificationFailedError(
            "Uploaded cache entry metadata does not match.",
            hint="Inspect the bucket; the entry may need to be removed by hand.",
            context={
                "operation": "verify",
                "key": key.path,
                "status": str(head.status),
                "content_type": str(head.content_type),
            },
        )
    return head
