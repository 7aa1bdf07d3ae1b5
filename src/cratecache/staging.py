"""Temporarily move the package's own ``deps`` artifacts out of the archive.

Files Cargo produces for the package being built are cheap to rebuild and
change on every commit, so they are moved aside while the build output is
archived and put back afterwards. Matching is by file name prefix, so a
dependency whose name extends the package name (`serde_json` for `serde`)
is moved aside too and rebuilt on the next run. The staging directory is
shared by every target directory of a run and is not safe against
concurrent runs in the same project.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from cratecache.errors import StagingImbalanceError

logger = logging.getLogger(__name__)

STAGING_DIR = ".cratecache-staging"


@dataclass(frozen=True, slots=True)
class StagedFile:
    original: Path
    staged: Path


@dataclass(slots=True)
class StagedFileSet:
    staging_dir: Path
    entries: list[StagedFile] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)


def artifact_prefixes(package_name: str) -> tuple[str, ...]:
    # Cargo writes `my-crate` artifacts as `my_crate-<hash>`.
    underscored = package_name.replace("-", "_")
    if underscored == package_name:
        return (package_name,)
    return (package_name, underscored)


def stage(
    target_dirs: Sequence[Path],
    package_name: str,
    *,
    staging_dir: Path,
) -> StagedFileSet:
    """Move every ``deps`` entry named after *package_name* into *staging_dir*."""
    if staging_dir.exists() and any(staging_dir.iterdir()):
        raise StagingImbalanceError(
            "Staging directory from a previous run still holds files.",
            hint="Move its contents back into the target directories or delete it, then rerun.",
            context={"operation": "stage", "path": str(staging_dir)},
        )
    prefixes = artifact_prefixes(package_name)
    staged = StagedFileSet(staging_dir=staging_dir)
    staging_dir.mkdir(parents=True, exist_ok=True)
    try:
        for index, target_dir in enumerate(target_dirs):
            deps_dir = target_dir / "deps"
            if not deps_dir.is_dir():
                continue
            bucket = staging_dir / str(index)
            for entry in sorted(deps_dir.iterdir()):
                if not entry.name.startswith(prefixes):
                    continue
                bucket.mkdir(exist_ok=True)
                destination = bucket / entry.name
                shutil.move(str(entry), destination)
                staged.entries.append(StagedFile(original=entry, staged=destination))
    except OSError as exc:
        restore(staged)
        raise StagingImbalanceError(
            "Failed to stage package artifacts.",
            hint="Staged files were moved back; check permissions on the target directory.",
            context={"operation": "stage", "error": str(exc)},
        ) from exc
    logger.debug("Staged %d package artifacts into %s", len(staged), staging_dir)
    return staged


def restore(staged: StagedFileSet) -> None:
    """Move staged files back and remove the staging directory."""
    unrecoverable: list[str] = []
    for item in staged.entries:
        try:
            item.original.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(item.staged), item.original)
        except OSError as exc:
            logger.error("Could not restore %s: %s", item.original, exc)
            unrecoverable.append(str(item.staged))
    if unrecoverable:
        raise StagingImbalanceError(
            "Some staged artifacts could not be restored.",
            hint="Move the listed files back into their deps directories before the next run.",
            context={
                "operation": "restore",
                "staging_dir": str(staged.staging_dir),
                "files": ", ".join(unrecoverable),
            },
        )
    staged.entries.clear()
    if staged.staging_dir.exists():
        shutil.rmtree(staged.staging_dir)


@contextmanager
def staged_artifacts(
    target_dirs: Sequence[Path],
    package_name: str,
    *,
    staging_dir: Path,
) -> Iterator[StagedFileSet]:
    staged = stage(target_dirs, package_name, staging_dir=staging_dir)
    try:
        yield staged
    finally:
        restore(staged)
