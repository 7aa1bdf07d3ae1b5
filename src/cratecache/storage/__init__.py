"""Object store adapters."""

from .base import CONTENT_TYPE, ObjectHead, ObjectStore, PartResult
from .s3 import S3ObjectStore

__all__ = ["CONTENT_TYPE", "ObjectHead", "ObjectStore", "PartResult", "S3ObjectStore"]
