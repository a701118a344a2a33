"""Synchronization engine: imports GitHub release notes into the catalog.

For each release source in the catalog the engine:
1. Resolves the source to a GitHub repository (other sources are skipped)
2. Lists the source's local versions (none: nothing is fetched)
3. Fetches every GitHub release of the repository
4. Overwrites the notes of every version that has a matching release

Failure policy:
- Catalog listing and note persistence failures abort the run; they point
  at the storage layer rather than at one source.
- A failed GitHub fetch only skips its own source. One repository being
  unreachable, renamed or rate-limited must not block the others.

Sources are processed one at a time. The only waiting happens inside the
fetcher when the GitHub quota runs low.
"""

from __future__ import annotations

from release_notes_sync.catalog import ReleaseCatalogProtocol
from release_notes_sync.config import GITHUB_HOST
from release_notes_sync.errors import CatalogError, NotePersistError, ReleaseFetchError
from release_notes_sync.github import ReleaseFetcher
from release_notes_sync.logging_config import get_logger
from release_notes_sync.matcher import match_versions
from release_notes_sync.schemas import (
    ReleaseSource,
    SourceReport,
    SyncOutcome,
    SyncReport,
)
from release_notes_sync.sources import resolve_source

logger = get_logger(__name__)


class ReleaseNotesSynchronizer:
    """Keeps catalog release notes in step with GitHub Releases.

    Usage:
        synchronizer = ReleaseNotesSynchronizer(catalog, fetcher)
        report = await synchronizer.sync()
    """

    def __init__(
        self,
        catalog: ReleaseCatalogProtocol,
        fetcher: ReleaseFetcher,
        host: str = GITHUB_HOST,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            catalog: Where release sources and versions are read and notes written
            fetcher: Fetches all GitHub releases of a repository
            host: Host prefix identifying GitHub release sources
        """
        self.catalog = catalog
        self.fetcher = fetcher
        self.host = host

    async def sync(self) -> SyncReport:
        """Run one synchronization pass over every release source.

        Returns:
            A report with one entry per source. Sources whose fetch failed
            are reported as FETCH_FAILED; the run still succeeds.

        Raises:
            CatalogError: If listing sources or versions fails
            NotePersistError: If saving notes for a version fails
        """
        try:
            sources = self.catalog.list_sources()
        except CatalogError as exc:
            raise CatalogError(f"Listing releases: {exc}") from exc

        logger.info("sync_started", sources_count=len(sources))

        report = SyncReport()
        for source in sources:
            report.sources.append(await self._sync_source(source))

        logger.info(
            "sync_complete",
            sources_count=len(report.sources),
            notes_updated=report.notes_updated,
            failed_sources=report.failed_sources,
        )
        return report

    async def _sync_source(self, source: ReleaseSource) -> SourceReport:
        ref = resolve_source(source, host=self.host)
        if ref is None:
            logger.debug("source_skipped", source=source.full_identifier, reason="unsupported")
            return SourceReport(
                source=source.full_identifier, outcome=SyncOutcome.UNSUPPORTED_SOURCE
            )

        try:
            records = self.catalog.list_versions(source.full_identifier)
        except CatalogError as exc:
            raise CatalogError(
                f"Listing all versions for release source '{source.full_identifier}': {exc}"
            ) from exc

        # Fast path if there are no release versions
        if not records:
            logger.debug("source_skipped", source=source.full_identifier, reason="no_versions")
            return SourceReport(source=source.full_identifier, outcome=SyncOutcome.NO_VERSIONS)

        try:
            releases = await self.fetcher.fetch_all(ref)
        except ReleaseFetchError as exc:
            # Continue onto other release sources
            logger.error(
                "release_fetch_failed",
                source=source.full_identifier,
                repo=str(ref),
                error=str(exc),
                partial_count=len(exc.partial),
            )
            return SourceReport(
                source=source.full_identifier,
                outcome=SyncOutcome.FETCH_FAILED,
                error=str(exc),
            )

        try:
            matches = match_versions(records, releases)
        except NotePersistError as exc:
            raise NotePersistError(
                f"Importing notes for release source '{source.full_identifier}': {exc}"
            ) from exc

        logger.info(
            "source_synced",
            source=source.full_identifier,
            versions_count=len(records),
            releases_count=len(releases),
            matched=sum(1 for m in matches if m.outcome == SyncOutcome.MATCHED),
        )
        return SourceReport(
            source=source.full_identifier, outcome=SyncOutcome.SYNCED, matches=matches
        )
