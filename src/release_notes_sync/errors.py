"""Exception types raised during a synchronization pass.

CatalogError and NotePersistError abort the whole run. ReleaseFetchError
is raised by the fetcher and isolated per source by the engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from release_notes_sync.schemas import RemoteRelease, RemoteRepoRef


class SyncError(Exception):
    """Base class for all synchronization errors."""


class CatalogError(SyncError):
    """Reading from the release catalog failed."""


class NotePersistError(SyncError):
    """Writing notes for a release version failed."""


class ReleaseFetchError(SyncError):
    """Listing releases for one repository failed.

    Attributes:
        ref: The repository being fetched
        partial: Releases accumulated from pages fetched before the failure
    """

    def __init__(
        self,
        message: str,
        ref: RemoteRepoRef,
        partial: list[RemoteRelease] | None = None,
    ) -> None:
        super().__init__(message)
        self.ref = ref
        self.partial = partial or []
