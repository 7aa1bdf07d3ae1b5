"""Run configuration built once at the process boundary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from cratecache.errors import ConfigMissingError

REQUIRED_ENV_VARS = ("BUCKET_NAME", "REGION", "ENDPOINT", "ACCESS_KEY", "SECRET_KEY")

CHUNK_SIZE = 100_000_000
DEFAULT_RETRY_LIMIT = 10


@dataclass(frozen=True, slots=True)
class CacheConfig:
    bucket_name: str
    region: str
    endpoint: str
    access_key: str
    secret_key: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> CacheConfig:
        missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
        if missing:
            raise ConfigMissingError(
                "Object store configuration is incomplete.",
                hint=(
                    "Make sure that you have "
                    + ", ".join(REQUIRED_ENV_VARS)
                    + " values configured."
                ),
                context={"missing": ", ".join(missing)},
            )
        return cls(
            bucket_name=environ["BUCKET_NAME"],
            region=environ["REGION"],
            endpoint=environ["ENDPOINT"],
            access_key=environ["ACCESS_KEY"],
            secret_key=environ["SECRET_KEY"],
        )

    def __repr__(self) -> str:
        return (
            f"CacheConfig(bucket_name={self.bucket_name!r}, region={self.region!r}, "
            f"endpoint={self.endpoint!r})"
        )


@dataclass(frozen=True, slots=True)
class TransferSettings:
    chunk_size: int = CHUNK_SIZE
    retry_limit: int = DEFAULT_RETRY_LIMIT
    show_progress: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.retry_limit <= 0:
            raise ValueError("retry_limit must be positive")
