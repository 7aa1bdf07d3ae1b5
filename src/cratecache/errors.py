"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across the run pipeline."""

    CONFIG_MISSING = "E_CONFIG_MISSING"
    MANIFEST_UNREADABLE = "E_MANIFEST_UNREADABLE"
    MANIFEST_MALFORMED = "E_MANIFEST_MALFORMED"
    TOOLCHAIN = "E_TOOLCHAIN"
    PLATFORM = "E_PLATFORM"
    BUILD_OUTPUT_MISSING = "E_BUILD_OUTPUT_MISSING"
    STAGING_IMBALANCE = "E_STAGING_IMBALANCE"
    ARCHIVE = "E_ARCHIVE"
    STORAGE = "E_STORAGE"
    CHUNK_UPLOAD_EXHAUSTED = "E_CHUNK_UPLOAD_EXHAUSTED"
    COMPLETION_EXHAUSTED = "E_COMPLETION_EXHAUSTED"
    POST_UPLOAD_VERIFICATION = "E_POST_UPLOAD_VERIFICATION"
    CACHE_FETCH = "E_CACHE_FETCH"


class CrateCacheError(Exception):
    """Failure a cache run can report. Subclasses pin :attr:`error_code`.

    ``context`` values are stored as strings so the error can be written to
    the JSON run log unchanged. Empty values are kept but not rendered.
    """

    error_code: ClassVar[ErrorCode]

    message: str
    hint: str | None
    context: dict[str, str]

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = {name: str(value) for name, value in (context or {}).items()}

    @property
    def code(self) -> str:
        return self.error_code.value

    @property
    def operation(self) -> str | None:
        return self.context.get("operation")

    def __str__(self) -> str:
        lines = [self.message]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {name}: {value}" for name, value in self.context.items() if value)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigMissingError(CrateCacheError):
    error_code = ErrorCode.CONFIG_MISSING


class ManifestUnreadableError(CrateCacheError):
    error_code = ErrorCode.MANIFEST_UNREADABLE


class ManifestMalformedError(CrateCacheError):
    error_code = ErrorCode.MANIFEST_MALFORMED


class ToolchainError(CrateCacheError):
    error_code = ErrorCode.TOOLCHAIN


class PlatformError(CrateCacheError):
    error_code = ErrorCode.PLATFORM


class BuildOutputMissingError(CrateCacheError):
    """Nothing to cache yet. Callers treat this as a soft no-op."""

    error_code = ErrorCode.BUILD_OUTPUT_MISSING


class StagingImbalanceError(CrateCacheError):
    error_code = ErrorCode.STAGING_IMBALANCE


class ArchiveError(CrateCacheError):
    error_code = ErrorCode.ARCHIVE


class StorageError(CrateCacheError):
    error_code = ErrorCode.STORAGE


class ChunkUploadExhaustedError(CrateCacheError):
    error_code = ErrorCode.CHUNK_UPLOAD_EXHAUSTED


class CompletionExhaustedError(CrateCacheError):
    error_code = ErrorCode.COMPLETION_EXHAUSTED


class PostUploadVerificationFailedError(CrateCacheError):
    error_code = ErrorCode.POST_UPLOAD_VERIFICATION


class CacheFetchFailedError(CrateCacheError):
    error_code = ErrorCode.CACHE_FETCH


__all__ = [
    "ArchiveError",
    "BuildOutputMissingError",
    "CacheFetchFailedError",
    "ChunkUploadExhaustedError",
    "CompletionExhaustedError",
    "ConfigMissingError",
    "CrateCacheError",
    "ErrorCode",
    "ManifestMalformedError",
    "ManifestUnreadableError",
    "PlatformError",
    "PostUploadVerificationFailedError",
    "StagingImbalanceError",
    "StorageError",
    "ToolchainError",
]
