"""Run orchestration: derive the key, then restore or upload."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from cratecache.archive import ArchiveCodec, TarCodec
from cratecache.cache.keys import CacheKey, derive_cache_key
from cratecache.config import TransferSettings
from cratecache.errors import BuildOutputMissingError, CrateCacheError
from cratecache.fingerprint.manifest import read_manifest
from cratecache.fingerprint.platform import PlatformInfo, current_platform
from cratecache.fingerprint.toolchain import ToolchainVersion, query_toolchain_version
from cratecache.observability import StructuredLogger
from cratecache.staging import STAGING_DIR, staged_artifacts
from cratecache.storage.base import ObjectStore
from cratecache.targets import TARGET_DIR, TargetSpec, discover_targets
from cratecache.transfer.download import check_exists, fetch_archive
from cratecache.transfer.upload import upload_archive, verify_upload

RunOutcome = Literal["hit", "uploaded", "no_build_output"]


class RunState(StrEnum):
    START = "start"
    KEY_DERIVED = "key_derived"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    FETCHED = "fetched"
    STAGED = "staged"
    ARCHIVED = "archived"
    UNSTAGED = "unstaged"
    UPLOADED = "uploaded"
    VERIFIED = "verified"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class RunResult:
    outcome: RunOutcome
    key: CacheKey
    size: int | None = None


@dataclass(slots=True)
class CacheRun:
    """One linear cache run against a Cargo project.

    Collaborators are injected so the run never reads the environment
    itself. Errors propagate as :class:`CrateCacheError`; the caller picks
    the exit code.
    """

    project_root: Path
    target: TargetSpec
    store: ObjectStore
    codec: ArchiveCodec = field(default_factory=TarCodec)
    settings: TransferSettings = field(default_factory=TransferSettings)
    toolchain_query: Callable[[], ToolchainVersion] = query_toolchain_version
    platform_query: Callable[[], PlatformInfo] = current_platform
    run_log: StructuredLogger = field(default_factory=StructuredLogger)
    state: RunState = RunState.START

    def run(self) -> RunResult:
        try:
            return self._run()
        except CrateCacheError as exc:
            self._transition(RunState.ABORTED, str(exc), level="error", extra=exc.to_dict())
            raise

    def derive_key(self) -> CacheKey:
        manifest = read_manifest(self.project_root)
        toolchain = self.toolchain_query()
        key = derive_cache_key(
            manifest=manifest,
            toolchain_version=toolchain.version,
            platform=self.platform_query(),
            target=self.target,
        )
        self._transition(
            RunState.KEY_DERIVED,
            f"Cache key {key.path}",
            key=key,
            extra={"toolchain": toolchain.version, "commit_date": toolchain.commit_date},
        )
        return key

    def _run(self) -> RunResult:
        self.codec.ensure_available()
        self._report_target_presence()
        key = self.derive_key()

        if check_exists(self.store, key):
            self._transition(RunState.CACHE_HIT, "Cache found!", key=key)
            size = fetch_archive(
                self.store,
                key,
                dest_dir=self.project_root,
                codec=self.codec,
                show_progress=self.settings.show_progress,
            )
            self._transition(RunState.FETCHED, f"Restored {size} bytes", key=key)
            self._transition(RunState.DONE, "Build output restored from cache", key=key)
            return RunResult(outcome="hit", key=key, size=size)

        self._transition(RunState.CACHE_MISS, "No cache entry; archiving build output", key=key)
        try:
            dirs = self._output_dirs()
        except BuildOutputMissingError as exc:
            self._transition(RunState.DONE, str(exc), key=key, level="warning")
            return RunResult(outcome="no_build_output", key=key)

        size = self._archive_and_upload(key, dirs)
        self._transition(RunState.DONE, f"Uploaded {size} bytes", key=key)
        return RunResult(outcome="uploaded", key=key, size=size)

    def _archive_and_upload(self, key: CacheKey, dirs: list[Path]) -> int | None:
        archive_path = self.project_root / key.archive_name
        try:
            with staged_artifacts(
                dirs,
                key.package_name,
                staging_dir=self.project_root / STAGING_DIR,
            ) as staged:
                self._transition(
                    RunState.STAGED, f"Staged {len(staged)} package artifacts", key=key
                )
                self.codec.compress(dirs, archive_path, cwd=self.project_root)
                self._transition(
                    RunState.ARCHIVED, f"Archived into {archive_path.name}", key=key
                )
            self._transition(RunState.UNSTAGED, "Package artifacts restored", key=key)

            session = upload_archive(
                self.store,
                key,
                archive_path,
                chunk_size=self.settings.chunk_size,
                retry_limit=self.settings.retry_limit,
                show_progress=self.settings.show_progress,
            )
            self._transition(
                RunState.UPLOADED,
                f"Uploaded {len(session.parts)} part(s)",
                key=key,
                extra={"upload_id": session.upload_id},
            )
            head = verify_upload(self.store, key)
            self._transition(RunState.VERIFIED, "Upload verified", key=key)
        finally:
            archive_path.unlink(missing_ok=True)
        return head.content_length

    def _output_dirs(self) -> list[Path]:
        output_dir = self.target.output_dir(self.project_root)
        discovered = discover_targets(self.project_root / TARGET_DIR)
        if self.target.name not in discovered and not output_dir.is_dir():
            raise BuildOutputMissingError(
                f"Build output directory for `{self.target.name}` does not exist.",
                hint=f'can you run "{self._build_command()}" first?',
                context={"operation": "resolve_target", "path": str(output_dir)},
            )
        return [path for path in self.target.directories(self.project_root) if path.is_dir()]

    def _report_target_presence(self) -> None:
        discovered = discover_targets(self.project_root / TARGET_DIR)
        if self.target.name in discovered:
            message = f"Current target ({self.target.name}) found"
        else:
            message = f"Current target ({self.target.name}) not found"
        self._transition(
            RunState.START,
            message,
            extra={"discovered": sorted(discovered)},
        )

    def _build_command(self) -> str:
        command = "cargo build"
        if self.target.profile == "release":
            command += " --release"
        elif self.target.profile != "debug":
            command += f" --profile {self.target.profile}"
        if self.target.target_triple:
            command += f" --target {self.target.target_triple}"
        return command

    def _transition(
        self,
        state: RunState,
        message: str,
        *,
        key: CacheKey | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.state = state
        self.run_log.log(
            operation="run",
            state=state.value,
            key=key.path if key is not None else None,
            message=message,
            level=level,
            extra=extra,
        )
