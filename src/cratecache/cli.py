"""Command-line entry point.

Usage:
    cratecache [--target TRIPLE] [--profile NAME]

Reads BUCKET_NAME, REGION, ENDPOINT, ACCESS_KEY and SECRET_KEY from the
environment. Exits 0 on a cache hit, a successful upload, or when there is
no build output to cache yet.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from cratecache.config import DEFAULT_RETRY_LIMIT, CacheConfig, TransferSettings
from cratecache.errors import CrateCacheError
from cratecache.observability import StructuredLogger
from cratecache.runner import CacheRun, RunResult
from cratecache.storage.s3 import S3ObjectStore
from cratecache.targets import TargetSpec

logger = logging.getLogger("cratecache")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cratecache",
        description="Restore or upload Cargo build output from an S3-compatible cache",
    )
    parser.add_argument("-t", "--target", help="Cross-compilation target triple")
    parser.add_argument(
        "-p",
        "--profile",
        default="release",
        help="Cargo profile to cache (default: release; dev is an alias for debug)",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path("."),
        help="Directory holding Cargo.toml and target/",
    )
    parser.add_argument(
        "--retry-limit",
        type=int,
        default=DEFAULT_RETRY_LIMIT,
        help=f"Attempts per upload call (default: {DEFAULT_RETRY_LIMIT})",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    parser.add_argument("--log-json", type=Path, help="Write the run log as JSON lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(args: argparse.Namespace, environ: Mapping[str, str] | None = None) -> RunResult:
    config = CacheConfig.from_env(os.environ if environ is None else environ)
    project_root = args.project_dir.resolve()
    run_log = StructuredLogger()
    cache_run = CacheRun(
        project_root=project_root,
        target=TargetSpec.create(target_triple=args.target, profile=args.profile),
        store=S3ObjectStore.from_config(config),
        settings=TransferSettings(
            retry_limit=args.retry_limit,
            show_progress=not args.no_progress,
        ),
        run_log=run_log,
    )
    try:
        return cache_run.run()
    finally:
        if args.log_json is not None:
            run_log.to_json_lines(args.log_json)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.retry_limit <= 0:
        parser.error("--retry-limit must be positive")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        result = run(args)
    except CrateCacheError as exc:
        logger.error("%s", exc)
        return 1

    if result.outcome == "hit":
        logger.info("Cache restored from %s", result.key.path)
    elif result.outcome == "uploaded":
        logger.info("Uploaded %s bytes to %s", result.size, result.key.path)
    else:
        logger.info("Nothing to cache yet; exiting without uploading.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
