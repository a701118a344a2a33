"""Mapping of catalog release sources to GitHub repositories."""

from __future__ import annotations

from release_notes_sync.config import GITHUB_HOST
from release_notes_sync.schemas import ReleaseSource, RemoteRepoRef


def resolve_source(source: ReleaseSource, host: str = GITHUB_HOST) -> RemoteRepoRef | None:
    """Return the repository a source points at, or None if it isn't one.

    Only the exact form "<host>/<owner>/<repo>" is recognized. Sources from
    other hosts, or with more or fewer path segments, are routine and are
    not treated as errors.

    Args:
        source: Release source read from the catalog
        host: The supported host, "github.com" by default

    Returns:
        A RemoteRepoRef, or None for unsupported sources
    """
    parts = source.full_identifier.split("/")
    if len(parts) != 3 or parts[0] != host:
        return None

    owner, repo = parts[1], parts[2]
    if not owner or not repo:
        return None

    return RemoteRepoRef(owner=owner, repo=repo)
