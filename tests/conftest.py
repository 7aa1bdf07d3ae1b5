"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cratecache.fingerprint.platform import PlatformInfo
from cratecache.fingerprint.toolchain import ToolchainVersion

from fakes import FakeObjectStore

PACKAGE_NAME = "demo"

MANIFEST = """\
[package]
name = "demo"
version = "0.1.0"
edition = "2021"

[dependencies]
serde = "1"
"""

LOCKFILE = """\
version = 3

[[package]]
name = "demo"
version = "0.1.0"
"""


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def platform_info() -> PlatformInfo:
    return PlatformInfo(
        system="Linux",
        distribution="Ubuntu",
        release="6.5.0-1016-azure",
        machine="x86_64",
        os_name="GNU/Linux",
    )


@pytest.fixture
def toolchain() -> ToolchainVersion:
    return ToolchainVersion(version="1.76.0", commit_date="2024-02-04")


@pytest.fixture
def cargo_project(tmp_path: Path) -> Path:
    """A Cargo project with a release build in ``target/release``."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Cargo.toml").write_text(MANIFEST, encoding="utf-8")
    (root / "Cargo.lock").write_text(LOCKFILE, encoding="utf-8")
    release = root / "target" / "release"
    deps = release / "deps"
    deps.mkdir(parents=True)
    (deps / f"{PACKAGE_NAME}-abc.o").write_bytes(b"own object")
    (deps / f"{PACKAGE_NAME}-def.rlib").write_bytes(b"own rlib")
    (deps / "other-lib.o").write_bytes(b"dependency object" * 10)
    (release / "build").mkdir()
    (release / "build" / "serde-123").mkdir()
    (release / "build" / "serde-123" / "output").write_text("cargo:rerun-if-changed=build.rs\n")
    return root
