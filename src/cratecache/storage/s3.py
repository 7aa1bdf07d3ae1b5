"""S3-compatible object store backed by boto3."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cratecache.config import CacheConfig
from cratecache.errors import StorageError
from cratecache.storage.base import ObjectHead, PartResult

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 1024 * 1024


class S3ObjectStore:
    """Thin adapter from the :class:`ObjectStore` protocol to an S3 client."""

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: CacheConfig) -> S3ObjectStore:
        session = boto3.session.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
        )
        client = session.client(
            "s3",
            endpoint_url=config.endpoint,
            config=Config(s3={"addressing_style": "path"}),
        )
        return cls(client, config.bucket_name)

    def head_object(self, key: str) -> ObjectHead:
        response = self._call("head_object", key, Bucket=self.bucket, Key=key)
        return ObjectHead(
            status=response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
        )

    def get_object_stream(self, key: str) -> Iterator[bytes]:
        response = self._call("get_object", key, Bucket=self.bucket, Key=key)
        body = response["Body"]
        try:
            yield from body.iter_chunks(STREAM_CHUNK_SIZE)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                "Object stream was interrupted.",
                context={"operation": "get_object", "key": key, "error": str(exc)},
            ) from exc
        finally:
            body.close()

    def initiate_multipart_upload(self, key: str, content_type: str) -> str:
        response = self._call(
            "create_multipart_upload",
            key,
            Bucket=self.bucket,
            Key=key,
            ContentType=content_type,
        )
        return response["UploadId"]

    def put_multipart_chunk(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> PartResult:
        response = self._call(
            "upload_part",
            key,
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=data,
        )
        return PartResult(part_number=part_number, etag=response["ETag"])

    def complete_multipart_upload(
        self,
        key: str,
        upload_id: str,
        parts: Sequence[PartResult],
    ) -> None:
        self._call(
            "complete_multipart_upload",
            key,
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={
                "Parts": [{"PartNumber": part.part_number, "ETag": part.etag} for part in parts]
            },
        )

    def _call(self, operation: str, key: str, **params: Any) -> dict[str, Any]:
        try:
            return getattr(self.client, operation)(**params)
        except (BotoCoreError, ClientError) as exc:
            logger.debug("S3 %s failed for %s: %s", operation, key, exc)
            raise StorageError(
                f"S3 {operation} failed.",
                context={
                    "operation": operation,
                    "bucket": self.bucket,
                    "key": key,
                    "error": str(exc),
                },
            ) from exc
