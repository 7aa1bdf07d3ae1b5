"""Cargo manifest reading and fingerprinting."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from cratecache.errors import ManifestMalformedError, ManifestUnreadableError
from cratecache.fingerprint.digest import joined_digest

MANIFEST_FILE = "Cargo.toml"
LOCK_FILE = "Cargo.lock"


@dataclass(frozen=True, slots=True)
class ManifestInfo:
    package_name: str
    manifest_text: str
    lock_text: str


def read_manifest(project_root: str | Path) -> ManifestInfo:
    """Read ``Cargo.toml`` and ``Cargo.lock`` from *project_root*.

    Both files are kept as raw text so any edit, cosmetic or not,
    invalidates the fingerprint. The manifest is parsed only to find the
    package name.
    """
    root = Path(project_root)
    manifest_text = _read_text(
        root / MANIFEST_FILE,
        hint="Run the tool from the package directory and check the file permissions.",
    )
    lock_text = _read_text(
        root / LOCK_FILE,
        hint="Run a build first so Cargo writes the lock file.",
    )
    return ManifestInfo(
        package_name=_package_name(manifest_text, root / MANIFEST_FILE),
        manifest_text=manifest_text,
        lock_text=lock_text,
    )


def manifest_hash(toolchain_version: str, manifest: ManifestInfo) -> str:
    return joined_digest(toolchain_version, manifest.manifest_text, manifest.lock_text)


def _read_text(path: Path, *, hint: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestUnreadableError(
            f"Couldn't read {path.name}.",
            hint=hint,
            context={"operation": "read_manifest", "path": str(path), "error": str(exc)},
        ) from exc


def _package_name(manifest_text: str, path: Path) -> str:
    try:
        parsed = tomllib.loads(manifest_text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestMalformedError(
            f"Malformed {path.name} file.",
            hint=str(exc),
            context={"operation": "read_manifest", "path": str(path)},
        ) from exc
    package = parsed.get("package")
    name = package.get("name") if isinstance(package, dict) else None
    if not isinstance(name, str) or not name:
        raise ManifestMalformedError(
            f"{path.name} has no [package] name.",
            hint="Point the tool at a package manifest, not a virtual workspace root.",
            context={"operation": "read_manifest", "path": str(path)},
        )
    return name
