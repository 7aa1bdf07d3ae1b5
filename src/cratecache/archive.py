"""``tar`` command wrapper used to pack and unpack build output."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cratecache.errors import ArchiveError

logger = logging.getLogger(__name__)


class ArchiveCodec(Protocol):
    def ensure_available(self) -> None:
        """Fail early when the codec cannot run on this host."""

    def compress(self, dirs: Sequence[Path], out_path: Path, *, cwd: Path) -> Path:
        """Pack *dirs* as top-level entries of a gzip archive at *out_path*."""

    def decompress(self, archive_path: Path, *, cwd: Path) -> None:
        """Unpack *archive_path* into *cwd*."""


@dataclass(slots=True)
class TarCodec:
    binary: str = "tar"

    def ensure_available(self) -> None:
        if shutil.which(self.binary) is None:
            raise ArchiveError(
                f"`{self.binary}` was not found.",
                hint="Install tar and make sure it is on your PATH.",
                context={"operation": "archive"},
            )
        self._run([self.binary, "--version"], cwd=None, operation="archive")

    def compress(self, dirs: Sequence[Path], out_path: Path, *, cwd: Path) -> Path:
        if not dirs:
            raise ArchiveError("Nothing to archive.", context={"operation": "compress"})
        members = [str(_relative_to(path, cwd)) for path in dirs]
        self._run(
            [self.binary, "-czf", str(out_path), *members],
            cwd=cwd,
            operation="compress",
        )
        logger.info("Archived %s into %s", ", ".join(members), out_path)
        return out_path

    def decompress(self, archive_path: Path, *, cwd: Path) -> None:
        self._run([self.binary, "-xzf", str(archive_path)], cwd=cwd, operation="decompress")
        logger.info("Unpacked %s into %s", archive_path.name, cwd)

    def _run(self, command: list[str], *, cwd: Path | None, operation: str) -> str:
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                check=False,
                text=True,
                capture_output=True,
            )
        except OSError as exc:
            raise ArchiveError(
                "Unable to run tar.",
                hint="Check your PATH.",
                context={"operation": operation, "argv": " ".join(command), "error": str(exc)},
            ) from exc
        if completed.returncode != 0:
            raise ArchiveError(
                "tar command failed.",
                hint="Inspect the tar output for details.",
                context={
                    "operation": operation,
                    "argv": " ".join(command),
                    "returncode": str(completed.returncode),
                    "stderr": completed.stderr.strip()[:2000],
                },
            )
        return completed.stdout


def _relative_to(path: Path, root: Path) -> Path:
    try:
        return path.resolve().relative_to(root.resolve())
    except ValueError:
        return path
