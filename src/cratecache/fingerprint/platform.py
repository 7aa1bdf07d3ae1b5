"""Host platform fingerprint."""

from __future__ import annotations

import platform
from dataclasses import dataclass

from cratecache.errors import PlatformError
from cratecache.fingerprint.digest import joined_digest


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    system: str
    distribution: str
    release: str
    machine: str
    os_name: str


def current_platform() -> PlatformInfo:
    """Query the running host for the fields that make up its fingerprint."""
    try:
        uname = platform.uname()
    except OSError as exc:
        raise PlatformError(
            "Unable to query host platform information.",
            hint="A platform fingerprint is required to derive the cache key.",
            context={"operation": "platform", "error": str(exc)},
        ) from exc
    if not uname.system:
        raise PlatformError(
            "Host platform reported an empty system name.",
            context={"operation": "platform"},
        )
    return PlatformInfo(
        system=uname.system,
        distribution=_distribution_name(uname.system),
        release=uname.release,
        machine=uname.machine,
        os_name=_os_name(uname.system),
    )


def platform_hash(info: PlatformInfo) -> str:
    # System name leads so digests match entries written by earlier releases.
    return joined_digest(
        info.system,
        info.distribution,
        info.release,
        info.machine,
        info.os_name,
    )


def _distribution_name(system: str) -> str:
    if system != "Linux":
        return system
    try:
        release = platform.freedesktop_os_release()
    except OSError:
        return "Linux"
    return release.get("NAME") or release.get("ID") or "Linux"


def _os_name(system: str) -> str:
    if system == "Linux":
        return "GNU/Linux"
    if system == "Windows":
        return "Windows_NT"
    return system
