"""Protocol for remote object stores holding cache archives."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class ObjectHead:
    status: int
    content_type: str | None = None
    content_length: int | None = None


@dataclass(frozen=True, slots=True)
class PartResult:
    part_number: int
    etag: str


class ObjectStore(Protocol):
    def head_object(self, key: str) -> ObjectHead:
        """Return object metadata; raise when the object cannot be queried."""

    def get_object_stream(self, key: str) -> Iterator[bytes]:
        """Yield the object's bytes in order."""

    def initiate_multipart_upload(self, key: str, content_type: str) -> str:
        """Start a multipart upload and return its upload id."""

    def put_multipart_chunk(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> PartResult:
        """Store one part of a multipart upload."""

    def complete_multipart_upload(
        self,
        key: str,
        upload_id: str,
        parts: Sequence[PartResult],
    ) -> None:
        """Assemble the acknowledged parts into the final object."""
