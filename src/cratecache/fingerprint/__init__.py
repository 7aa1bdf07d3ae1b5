"""Host, toolchain and manifest fingerprints."""

from .digest import joined_digest
from .manifest import LOCK_FILE, MANIFEST_FILE, ManifestInfo, manifest_hash, read_manifest
from .platform import PlatformInfo, current_platform, platform_hash
from .toolchain import ToolchainVersion, parse_verbose_version, query_toolchain_version

__all__ = [
    "LOCK_FILE",
    "MANIFEST_FILE",
    "ManifestInfo",
    "PlatformInfo",
    "ToolchainVersion",
    "current_platform",
    "joined_digest",
    "manifest_hash",
    "parse_verbose_version",
    "platform_hash",
    "query_toolchain_version",
    "read_manifest",
]
