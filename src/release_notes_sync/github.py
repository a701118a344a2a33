"""GitHub Releases client and paginated release fetcher.

Two layers live here:
- A release *service* that performs one paginated "list releases" request
  and reports the next page and the remaining request quota
  (GitHubReleaseService for the real API, MockReleaseService for tests).
- ReleaseFetcher, which walks every page of a repository's releases and
  throttles itself when the quota runs low.

Design notes:
- Uses httpx for async HTTP requests
- The token is passed in at construction time; nothing here reads the
  environment
- The fetcher's sleep and clock are injectable so rate-limit backoff can be
  tested without waiting
- A failed page is never retried; the fetch aborts and the caller decides
  what to do with the source

GitHub API docs: https://docs.github.com/en/rest/releases/releases
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Protocol

import httpx

from release_notes_sync.errors import ReleaseFetchError
from release_notes_sync.logging_config import get_logger
from release_notes_sync.schemas import (
    RateLimit,
    ReleasePage,
    RemoteRelease,
    RemoteRepoRef,
)

logger = get_logger(__name__)

DEFAULT_PER_PAGE = 30
DEFAULT_LOW_WATER_MARK = 50

# Releases accumulated before progress is logged for a single repository
_MANY_RELEASES = 200


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class ReleaseServiceProtocol(Protocol):
    """Protocol for a service that lists releases one page at a time."""

    async def list_releases(
        self, owner: str, repo: str, page: int, per_page: int
    ) -> ReleasePage:
        """Fetch one page of releases.

        Args:
            owner: Repository owner
            repo: Repository name
            page: 1-based page number
            per_page: Maximum releases on the page

        Returns:
            The page's releases, the next page number (None on the last
            page) and the remaining request quota

        Raises:
            httpx.HTTPError: If the request fails
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitHubReleaseService:
    """Lists repository releases through the GitHub REST API.

    Usage:
        service = GitHubReleaseService(token="ghp_...")
        page = await service.list_releases("cloudfoundry", "bosh", 1, 30)
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str = "",
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            token: GitHub personal access token. Unauthenticated access is
                   limited to 60 reqs/hour.
            base_url: API root, for GitHub Enterprise installations
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url or self.BASE_URL
        self._timeout = timeout
        self._transport = transport
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    async def list_releases(
        self, owner: str, repo: str, page: int, per_page: int
    ) -> ReleasePage:
        """Fetch one page of releases via GET /repos/{owner}/{repo}/releases.

        Raises:
            httpx.HTTPStatusError: If GitHub answers with an error status
            httpx.RequestError: On transport failures
            ValueError: If the response body is not a list of releases
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            resp = await client.get(
                f"/repos/{owner}/{repo}/releases",
                params={"page": page, "per_page": per_page},
            )
            resp.raise_for_status()
            data = resp.json()

        if not isinstance(data, list):
            raise ValueError(f"Expected a list of releases, got {type(data).__name__}")

        return ReleasePage(
            releases=[RemoteRelease.model_validate(r) for r in data],
            next_page=self._parse_next_page(resp.headers.get("link", "")),
            rate=self._parse_rate_limit(resp.headers),
        )

    @staticmethod
    def _parse_next_page(link_header: str) -> int | None:
        """Extract the 'next' page number from a GitHub Link header."""
        if not link_header:
            return None
        for part in link_header.split(","):
            if 'rel="next"' in part:
                url = part.split(";")[0].strip().strip("<>")
                page = httpx.URL(url).params.get("page")
                return int(page) if page else None
        return None

    @staticmethod
    def _parse_rate_limit(headers: Mapping[str, str]) -> RateLimit | None:
        """Read the X-RateLimit-* headers, if the server sent them."""
        remaining = headers.get("x-ratelimit-remaining")
        reset = headers.get("x-ratelimit-reset")
        if remaining is None or reset is None:
            return None
        return RateLimit(
            remaining=int(remaining),
            reset_at=datetime.fromtimestamp(int(reset), tz=UTC),
        )


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class ReleaseFetcher:
    """Retrieves every release of a repository, page by page.

    After each page the fetcher checks the remaining quota. Below the
    low-water mark it sleeps until the quota resets, turning what would
    become a hard rate-limit error into a bounded delay. The quota is shared
    by all requests, so the sleep also applies after a repository's last
    page.

    Usage:
        fetcher = ReleaseFetcher(GitHubReleaseService(token="ghp_..."))
        releases = await fetcher.fetch_all(RemoteRepoRef(owner="o", repo="r"))
    """

    def __init__(
        self,
        service: ReleaseServiceProtocol,
        per_page: int = DEFAULT_PER_PAGE,
        low_water_mark: int = DEFAULT_LOW_WATER_MARK,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            service: Release service to page through
            per_page: Fixed page size for every request
            low_water_mark: Sleep until reset when fewer requests remain
            sleep: Awaitable taking a duration in seconds (asyncio.sleep by default)
            clock: Returns the current aware UTC time
        """
        self._service = service
        self._per_page = per_page
        self._low_water_mark = low_water_mark
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or _utcnow

    async def fetch_all(self, ref: RemoteRepoRef) -> list[RemoteRelease]:
        """Fetch all releases for a repository, in the order GitHub returns them.

        Args:
            ref: Repository to list releases for

        Returns:
            Every release across all pages

        Raises:
            ReleaseFetchError: If any page request fails. The releases
                gathered so far are attached as ``partial``.
        """
        logger.debug("fetching_releases", repo=str(ref))

        all_releases: list[RemoteRelease] = []
        page = 1

        while True:
            try:
                result = await self._service.list_releases(
                    ref.owner, ref.repo, page, self._per_page
                )
            except (httpx.HTTPError, ValueError) as exc:
                raise ReleaseFetchError(
                    f"Listing github releases for '{ref}' (page {page}): {exc}",
                    ref=ref,
                    partial=all_releases,
                ) from exc

            await self._throttle(result.rate)

            all_releases.extend(result.releases)
            if result.next_page is None:
                break

            if len(all_releases) > _MANY_RELEASES:
                logger.debug(
                    "many_releases_found", repo=str(ref), count=len(all_releases)
                )

            page = result.next_page

        return all_releases

    async def _throttle(self, rate: RateLimit | None) -> None:
        """Sleep until the quota resets if it has dropped below the low-water mark."""
        if rate is None:
            return

        if rate.remaining < self._low_water_mark:
            wait = (rate.reset_at - self._clock()).total_seconds()
            logger.debug(
                "rate_limit_sleep",
                remaining=rate.remaining,
                wait_seconds=wait,
            )
            # A reset time already in the past needs no wait
            if wait > 0:
                await self._sleep(wait)
        else:
            logger.debug("rate_limit_remaining", remaining=rate.remaining)


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockReleaseService:
    """In-memory release service that pages through predefined releases.

    Usage:
        service = MockReleaseService(
            releases={"cloudfoundry/bosh": [{"tag_name": "v1.0.0", "body": "notes"}]},
        )
        page = await service.list_releases("cloudfoundry", "bosh", 1, 30)
    """

    def __init__(
        self,
        releases: Mapping[str, list[RemoteRelease | dict]] | None = None,
        failures: Mapping[str, Exception] | None = None,
        rate: RateLimit | None = None,
    ) -> None:
        """Initialize with predefined data.

        Args:
            releases: "owner/repo" -> releases in service order
            failures: "owner/repo" -> exception raised on every request
            rate: Quota reported with every page (None reports no quota)
        """
        self._releases = {
            key: [RemoteRelease.model_validate(r) for r in items]
            for key, items in (releases or {}).items()
        }
        self._failures = dict(failures or {})
        self._rate = rate
        self.calls: list[tuple[str, str, int, int]] = []

    async def list_releases(
        self, owner: str, repo: str, page: int, per_page: int
    ) -> ReleasePage:
        """Return the requested slice of the predefined releases.

        Raises:
            httpx.HTTPError: For configured failures and unknown repositories
        """
        self.calls.append((owner, repo, page, per_page))
        key = f"{owner}/{repo}"

        if key in self._failures:
            raise self._failures[key]
        if key not in self._releases:
            raise httpx.HTTPError(f"404 Not Found: {key}")

        items = self._releases[key]
        start = (page - 1) * per_page
        end = start + per_page
        return ReleasePage(
            releases=items[start:end],
            next_page=page + 1 if end < len(items) else None,
            rate=self._rate,
        )
