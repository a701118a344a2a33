"""Pairing of local release versions with GitHub releases.

A local version "1.2.3" matches a GitHub release whose name or tag is
"v1.2.3". The first such release in the order GitHub returned them wins;
later releases with the same label are ignored.

Matched versions always get their notes overwritten, including with empty
content when the release has no body, so notes removed upstream are also
removed locally. Unmatched versions are left untouched.
"""

from __future__ import annotations

from collections.abc import Sequence

from release_notes_sync.catalog import LocalVersionRecord
from release_notes_sync.errors import NotePersistError
from release_notes_sync.logging_config import get_logger
from release_notes_sync.schemas import (
    NoteRecord,
    RemoteRelease,
    SyncOutcome,
    VersionMatch,
)

logger = get_logger(__name__)


def expected_label(version_raw: str) -> str:
    """Label a GitHub release must carry to match a local version."""
    return "v" + version_raw


def release_matches(release: RemoteRelease, label: str) -> bool:
    """Either release name or git tag name match."""
    return release.name == label or release.tag_name == label


def find_release(label: str, releases: Sequence[RemoteRelease]) -> RemoteRelease | None:
    """Return the first release carrying the label, or None."""
    for release in releases:
        if release_matches(release, label):
            return release
    return None


def build_note(release: RemoteRelease) -> NoteRecord:
    return NoteRecord(content=release.body or "")


def match_versions(
    records: Sequence[LocalVersionRecord],
    releases: Sequence[RemoteRelease],
) -> list[VersionMatch]:
    """Write GitHub notes onto every local version that has a matching release.

    Args:
        records: Local versions of one release source
        releases: All GitHub releases of the corresponding repository

    Returns:
        One VersionMatch per record, in record order

    Raises:
        NotePersistError: If saving notes for a version fails
    """
    results: list[VersionMatch] = []

    for record in records:
        label = expected_label(record.version_raw)
        release = find_release(label, releases)

        if release is None:
            results.append(
                VersionMatch(version_raw=record.version_raw, outcome=SyncOutcome.NO_MATCH)
            )
            continue

        try:
            record.set_notes(build_note(release))
        except Exception as exc:
            raise NotePersistError(
                f"Saving notes for release version '{record.version_raw}': {exc}"
            ) from exc

        logger.debug(
            "notes_updated",
            version=record.version_raw,
            release=release.name or release.tag_name,
            empty=not release.body,
        )
        results.append(
            VersionMatch(
                version_raw=record.version_raw,
                outcome=SyncOutcome.MATCHED,
                release_label=label,
            )
        )

    return results
