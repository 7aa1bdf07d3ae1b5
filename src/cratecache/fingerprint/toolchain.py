"""Rust toolchain version query and parsing."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass

from cratecache.errors import ToolchainError


@dataclass(frozen=True, slots=True)
class ToolchainVersion:
    version: str
    commit_date: str | None = None


def parse_verbose_version(report: str) -> ToolchainVersion | None:
    """Extract version and commit date from ``rustc --verbose --version`` output.

    ``release:`` and ``commit-date:`` lines win over the summary
    ``rustc X.Y.Z (hash date)`` line. A commit date of ``unknown`` is
    treated as absent. Returns ``None`` when no version can be found.
    """
    version: str | None = None
    date: str | None = None
    for line in report.splitlines():
        stripped = line.strip()
        head = stripped.split(" ", 1)[0]
        if head == "rustc":
            summary_version, summary_date = _parse_summary_line(stripped)
            version = version or summary_version
            date = date or summary_date
        elif head == "release:":
            version = _field_value(stripped)
        elif head == "commit-date:":
            value = _field_value(stripped)
            date = None if value in (None, "unknown") else value
    if not version:
        return None
    return ToolchainVersion(version=version, commit_date=date)


def query_toolchain_version(rustc: str | None = None) -> ToolchainVersion:
    binary = rustc or os.environ.get("RUSTC") or "rustc"
    command = [binary, "--verbose", "--version"]
    try:
        completed = subprocess.run(
            command,
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError as exc:
        raise ToolchainError(
            "Unable to run the Rust compiler.",
            hint="Install a Rust toolchain or point RUSTC at the compiler binary.",
            context={"operation": "toolchain", "argv": " ".join(command), "error": str(exc)},
        ) from exc
    if completed.returncode != 0:
        raise ToolchainError(
            "Rust compiler version query failed.",
            hint="Inspect the toolchain installation.",
            context={
                "operation": "toolchain",
                "argv": " ".join(command),
                "stderr": completed.stderr.strip(),
            },
        )
    parsed = parse_verbose_version(completed.stdout)
    if parsed is None:
        raise ToolchainError(
            "Rust compiler did not report a version.",
            context={"operation": "toolchain", "argv": " ".join(command)},
        )
    return parsed


def _field_value(line: str) -> str | None:
    _, sep, value = line.partition(":")
    if not sep:
        return None
    return value.strip() or None


def _parse_summary_line(line: str) -> tuple[str | None, str | None]:
    # e.g. "rustc 1.76.0 (07dca489a 2024-02-04)"
    components = line.split()
    version = components[1] if len(components) > 1 else None
    date = None
    for component in components[2:]:
        if component.endswith(")"):
            date = component.rstrip(")").lstrip("(") or None
            break
    return version, date
