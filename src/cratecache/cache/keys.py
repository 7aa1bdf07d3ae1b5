"""Cache key derivation."""

from __future__ import annotations

from dataclasses import dataclass

from cratecache.fingerprint.manifest import ManifestInfo, manifest_hash
from cratecache.fingerprint.platform import PlatformInfo, platform_hash
from cratecache.targets import TargetSpec

ARCHIVE_SUFFIX = ".tar.gz"


@dataclass(frozen=True, slots=True)
class CacheKey:
    package_name: str
    platform_hash: str
    manifest_hash: str
    archive_name: str

    @property
    def path(self) -> str:
        return f"{self.package_name}/{self.platform_hash}/{self.manifest_hash}/{self.archive_name}"

    def __str__(self) -> str:
        return self.path


def archive_name(target_name: str) -> str:
    return target_name.replace("/", "_") + ARCHIVE_SUFFIX


def derive_cache_key(
    *,
    manifest: ManifestInfo,
    toolchain_version: str,
    platform: PlatformInfo,
    target: TargetSpec,
) -> CacheKey:
    return CacheKey(
        package_name=manifest.package_name,
        platform_hash=platform_hash(platform),
        manifest_hash=manifest_hash(toolchain_version, manifest),
        archive_name=archive_name(target.name),
    )
