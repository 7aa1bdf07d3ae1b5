import argparse
import logging
from pathlib import Path

import pytest

from cratecache import cli
from cratecache.cache import CacheKey
from cratecache.config import REQUIRED_ENV_VARS
from cratecache.errors import CacheFetchFailedError
from cratecache.runner import CacheRun, RunResult

KEY = CacheKey(
    package_name="demo",
    platform_hash="p" * 32,
    manifest_hash="m" * 32,
    archive_name="release.tar.gz",
)


def test_parser_defaults_to_release_profile() -> None:
    args = cli.build_parser().parse_args([])

    assert args.profile == "release"
    assert args.target is None
    assert args.retry_limit == 10
    assert args.project_dir == Path(".")


def test_parser_accepts_target_and_profile() -> None:
    args = cli.build_parser().parse_args(["--target", "aarch64-apple-darwin", "-p", "dev"])

    assert args.target == "aarch64-apple-darwin"
    assert args.profile == "dev"


@pytest.mark.parametrize("outcome", ["hit", "uploaded", "no_build_output"])
def test_main_exits_zero_for_every_outcome(
    monkeypatch: pytest.MonkeyPatch,
    outcome: str,
) -> None:
    monkeypatch.setattr(cli, "run", lambda args: RunResult(outcome=outcome, key=KEY, size=10))

    assert cli.main(["--no-progress"]) == 0


def test_main_reports_missing_configuration(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    for name in REQUIRED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    with caplog.at_level(logging.ERROR, logger="cratecache"):
        code = cli.main([])

    assert code == 1
    assert "BUCKET_NAME" in caplog.text
    assert "SECRET_KEY" in caplog.text


def test_main_exits_non_zero_on_fatal_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_run(args: argparse.Namespace) -> RunResult:
        raise CacheFetchFailedError("Failed to restore the cached build output.")

    monkeypatch.setattr(cli, "run", failing_run)

    assert cli.main([]) == 1


def test_main_rejects_non_positive_retry_limit() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--retry-limit", "0"])

    assert excinfo.value.code == 2


def test_run_wires_configuration_and_writes_log(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    captured: dict[str, CacheRun] = {}

    def fake_run(self: CacheRun) -> RunResult:
        captured["run"] = self
        self.run_log.log(operation="run", state="done", key=None, message="ok")
        return RunResult(outcome="hit", key=KEY)

    monkeypatch.setattr(CacheRun, "run", fake_run)
    env = {name: "value" for name in REQUIRED_ENV_VARS}
    env["ENDPOINT"] = "http://127.0.0.1:9000"
    args = cli.build_parser().parse_args(
        [
            "--project-dir",
            str(tmp_path),
            "--profile",
            "dev",
            "--retry-limit",
            "3",
            "--no-progress",
            "--log-json",
            str(tmp_path / "run.jsonl"),
        ]
    )

    result = cli.run(args, environ=env)

    cache_run = captured["run"]
    assert result.outcome == "hit"
    assert cache_run.project_root == tmp_path.resolve()
    assert cache_run.target.profile == "debug"
    assert cache_run.settings.retry_limit == 3
    assert cache_run.settings.show_progress is False
    assert (tmp_path / "run.jsonl").read_text(encoding="utf-8").count("\n") == 1
