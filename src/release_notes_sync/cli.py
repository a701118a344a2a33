"""Command-line entry point.

Usage:
    GH_PERSONAL_ACCESS_TOKEN=ghp_... release-notes-sync releases/index.yml releases-index
    release-notes-sync releases/index.yml releases-index --config sync.yml --log-level DEBUG

Prints the sync report as JSON on stdout. Logs go to stderr.
Exit status is 0 when the run completes (even if some sources could not be
fetched from GitHub) and 1 when it was aborted.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from release_notes_sync.catalog import YamlReleaseCatalog
from release_notes_sync.config import load_sync_config
from release_notes_sync.engine import ReleaseNotesSynchronizer
from release_notes_sync.errors import SyncError
from release_notes_sync.github import GitHubReleaseService, ReleaseFetcher
from release_notes_sync.logging_config import get_logger, setup_logging

TOKEN_ENV_VAR = "GH_PERSONAL_ACCESS_TOKEN"

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-notes-sync",
        description="Import GitHub release notes into the release index",
    )
    parser.add_argument(
        "index_path",
        help="Path to the releases index file (eg releases/index.yml)",
    )
    parser.add_argument(
        "index_dir",
        help="Directory holding release versions (eg releases-index)",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Optional YAML file overriding API URL, page size and rate-limit settings",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="DEBUG, INFO, WARNING or ERROR (defaults to LOG_LEVEL or INFO)",
    )
    return parser


def build_synchronizer(
    index_path: str, index_dir: str, config_path: str | None = None
) -> ReleaseNotesSynchronizer:
    """Wire the catalog, GitHub service and fetcher into a synchronizer."""
    config = load_sync_config(
        config_path, github_token=os.environ.get(TOKEN_ENV_VAR) or None
    )

    service = GitHubReleaseService(
        token=config.github_token,
        base_url=config.api_base_url,
        timeout=config.timeout,
    )
    fetcher = ReleaseFetcher(
        service,
        per_page=config.per_page,
        low_water_mark=config.rate_limit_low_water,
    )
    catalog = YamlReleaseCatalog(index_path, index_dir)
    return ReleaseNotesSynchronizer(catalog, fetcher, host=config.supported_host)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(log_level=args.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        synchronizer = build_synchronizer(args.index_path, args.index_dir, args.config)
        report = asyncio.run(synchronizer.sync())
    except (SyncError, ValueError) as exc:
        logger.error("sync_failed", error=str(exc))
        print(f"Failed: {exc}", file=sys.stderr)
        return 1

    print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
