"""Remote build-output cache for Cargo projects."""

from .archive import ArchiveCodec, TarCodec
from .cache import CacheKey, archive_name, derive_cache_key
from .config import CacheConfig, TransferSettings
from .errors import (
    ArchiveError,
    BuildOutputMissingError,
    CacheFetchFailedError,
    ChunkUploadExhaustedError,
    CompletionExhaustedError,
    ConfigMissingError,
    CrateCacheError,
    ManifestMalformedError,
    ManifestUnreadableError,
    PlatformError,
    PostUploadVerificationFailedError,
    StagingImbalanceError,
    StorageError,
    ToolchainError,
)
from .runner import CacheRun, RunResult, RunState
from .targets import TargetSpec, discover_targets, normalize_profile

__all__ = [
    "ArchiveCodec",
    "ArchiveError",
    "BuildOutputMissingError",
    "CacheConfig",
    "CacheFetchFailedError",
    "CacheKey",
    "CacheRun",
    "ChunkUploadExhaustedError",
    "CompletionExhaustedError",
    "ConfigMissingError",
    "CrateCacheError",
    "ManifestMalformedError",
    "ManifestUnreadableError",
    "PlatformError",
    "PostUploadVerificationFailedError",
    "RunResult",
    "RunState",
    "StagingImbalanceError",
    "StorageError",
    "TarCodec",
    "TargetSpec",
    "ToolchainError",
    "TransferSettings",
    "archive_name",
    "derive_cache_key",
    "discover_targets",
    "normalize_profile",
]
