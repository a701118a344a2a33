"""Pydantic models shared by the catalog, the GitHub fetcher and the engine.

Release sources and version records are owned by the catalog; remote
releases and repository references are rebuilt on every run and never
persisted. The result types (VersionMatch, SourceReport, SyncReport) tag
every skip and match explicitly so callers never have to guess whether a
source was unsupported, empty or failed.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SyncOutcome(StrEnum):
    """What happened to a single version or source during a run.

    MATCHED: A remote release matched and its notes were written
    NO_MATCH: No remote release carried the expected label (left untouched)
    UNSUPPORTED_SOURCE: The source is not a GitHub repository
    NO_VERSIONS: The source has no local versions; nothing was fetched
    FETCH_FAILED: Fetching remote releases failed; the source was skipped
    SYNCED: The source was processed (see its per-version matches)
    """

    MATCHED = "MATCHED"
    NO_MATCH = "NO_MATCH"
    UNSUPPORTED_SOURCE = "UNSUPPORTED_SOURCE"
    NO_VERSIONS = "NO_VERSIONS"
    FETCH_FAILED = "FETCH_FAILED"
    SYNCED = "SYNCED"


# ---------------------------------------------------------------------------
# Catalog and remote models
# ---------------------------------------------------------------------------


class ReleaseSource(BaseModel):
    """One upstream release origin, e.g. "github.com/owner/repo"."""

    model_config = ConfigDict(frozen=True)

    full_identifier: str = Field(..., description="Source identifier as stored in the catalog")


class RemoteRepoRef(BaseModel):
    """A release source recognized as a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class RemoteRelease(BaseModel):
    """A release object as returned by the GitHub Releases API.

    Attributes:
        name: Release title (may be missing or null)
        tag_name: Git tag the release points at
        body: Markdown notes; None means no notes were published
    """

    name: str | None = None
    tag_name: str | None = None
    body: str | None = None


class NoteRecord(BaseModel):
    """Notes payload written back to a local version record."""

    content: str = ""


class RateLimit(BaseModel):
    """Request quota reported by the service after a request."""

    remaining: int = Field(..., ge=0)
    reset_at: datetime


class ReleasePage(BaseModel):
    """One page of a paginated release listing."""

    releases: list[RemoteRelease] = Field(default_factory=list)
    next_page: int | None = None
    rate: RateLimit | None = None


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------


class VersionMatch(BaseModel):
    """Result of matching one local version against the remote releases."""

    version_raw: str
    outcome: SyncOutcome
    release_label: str | None = Field(
        None, description="Name or tag of the release that matched"
    )


class SourceReport(BaseModel):
    """Result of processing one release source."""

    source: str
    outcome: SyncOutcome
    matches: list[VersionMatch] = Field(default_factory=list)
    error: str = ""


class SyncReport(BaseModel):
    """Summary of a completed synchronization pass."""

    sources: list[SourceReport] = Field(default_factory=list)

    @computed_field
    @property
    def notes_updated(self) -> int:
        return sum(
            1
            for s in self.sources
            for m in s.matches
            if m.outcome == SyncOutcome.MATCHED
        )

    @computed_field
    @property
    def failed_sources(self) -> list[str]:
        return [s.source for s in self.sources if s.outcome == SyncOutcome.FETCH_FAILED]
