"""Remote cache key APIs."""

from .keys import ARCHIVE_SUFFIX, CacheKey, archive_name, derive_cache_key

__all__ = ["ARCHIVE_SUFFIX", "CacheKey", "archive_name", "derive_cache_key"]
