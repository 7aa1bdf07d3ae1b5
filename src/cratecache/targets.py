"""Build-output directory resolution for Cargo target layouts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

TARGET_DIR = "target"
KNOWN_PROFILES = ("debug", "release")
PROFILE_ALIASES = {"dev": "debug"}


def normalize_profile(profile: str) -> str:
    """Map a Cargo profile name onto its output directory name."""
    return PROFILE_ALIASES.get(profile, profile)


@dataclass(frozen=True, slots=True)
class TargetSpec:
    target_triple: str | None
    profile: str

    @classmethod
    def create(cls, *, target_triple: str | None = None, profile: str = "release") -> TargetSpec:
        return cls(target_triple=target_triple or None, profile=normalize_profile(profile))

    @property
    def name(self) -> str:
        if self.target_triple:
            return f"{self.target_triple}/{self.profile}"
        return self.profile

    def output_dir(self, project_root: str | Path) -> Path:
        return Path(project_root) / TARGET_DIR / self.name

    def directories(self, project_root: str | Path) -> list[Path]:
        """Return the directories to archive, output directory first.

        Cross builds also include ``target/{profile}``: Cargo keeps build
        scripts and proc-macro dependencies there for every target.
        """
        dirs = [self.output_dir(project_root)]
        if self.target_triple:
            dirs.append(Path(project_root) / TARGET_DIR / self.profile)
        return dirs


def discover_targets(target_root: str | Path) -> set[str]:
    """List the ``{target}/{profile}`` names present under *target_root*.

    Top-level profile directories are reported bare (``release``). Any other
    directory holding profile subdirectories is treated as a cross target.
    ``dev`` is reported alongside every ``debug`` directory.
    """
    root = Path(target_root)
    if not root.is_dir():
        return set()
    found: set[str] = set()
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        if entry.name in KNOWN_PROFILES:
            found.update(_with_aliases(entry.name))
            continue
        for profile in KNOWN_PROFILES:
            if (entry / profile).is_dir():
                found.update(f"{entry.name}/{name}" for name in _with_aliases(profile))
    return found


def _with_aliases(profile: str) -> list[str]:
    return [profile, *(alias for alias, target in PROFILE_ALIASES.items() if target == profile)]
