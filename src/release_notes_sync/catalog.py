"""Release catalog: the local store of release sources and versions.

The engine only needs to list sources, list the versions of a source and
replace a version's notes. Two implementations are provided:

- YamlReleaseCatalog: the on-disk release index

    releases/index.yml                   # - url: github.com/cloudfoundry/bosh
    releases-index/
      github.com/cloudfoundry/bosh/
        255.3/
          release.v1.yml                 # version: "255.3"
          notes.v1.yml                   # content: "..." (written by sync)

- InMemoryReleaseCatalog: dict-backed, for tests and local experiments
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import yaml

from release_notes_sync.errors import CatalogError
from release_notes_sync.schemas import NoteRecord, ReleaseSource

RELEASE_FILE = "release.v1.yml"
NOTES_FILE = "notes.v1.yml"

# ---------------------------------------------------------------------------
# Protocols (Interface)
# ---------------------------------------------------------------------------


class LocalVersionRecord(Protocol):
    """A locally tracked release version whose notes can be replaced."""

    version_raw: str

    def set_notes(self, note: NoteRecord) -> None:
        """Replace the stored notes unconditionally.

        Raises:
            Exception: Any storage failure; the caller treats it as fatal.
        """
        ...


class ReleaseCatalogProtocol(Protocol):
    """Read side of the release catalog used by the synchronizer."""

    def list_sources(self) -> list[ReleaseSource]:
        """Return every tracked release source."""
        ...

    def list_versions(self, source_identifier: str) -> Sequence[LocalVersionRecord]:
        """Return the local versions belonging to a source (may be empty)."""
        ...


# ---------------------------------------------------------------------------
# YAML Implementation
# ---------------------------------------------------------------------------


@dataclass
class YamlVersionRecord:
    """A version directory in the release index."""

    version_raw: str
    path: Path

    @property
    def notes_path(self) -> Path:
        return self.path / NOTES_FILE

    def set_notes(self, note: NoteRecord) -> None:
        self.notes_path.write_text(
            yaml.safe_dump(note.model_dump(), allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )

    def read_notes(self) -> NoteRecord | None:
        """Return the stored notes, or None if none were ever written."""
        if not self.notes_path.exists():
            return None
        return NoteRecord.model_validate(
            yaml.safe_load(self.notes_path.read_text(encoding="utf-8")) or {}
        )


class YamlReleaseCatalog:
    """Release catalog backed by an index file and a directory of versions.

    Usage:
        catalog = YamlReleaseCatalog("releases/index.yml", "releases-index")
        for source in catalog.list_sources():
            records = catalog.list_versions(source.full_identifier)
    """

    def __init__(self, index_path: str | Path, index_dir: str | Path) -> None:
        """Initialize the catalog.

        Args:
            index_path: YAML list of ``{url: <source>}`` entries
            index_dir: Root directory holding one directory per release version
        """
        self._index_path = Path(index_path)
        self._index_dir = Path(index_dir)

    def list_sources(self) -> list[ReleaseSource]:
        """Read all release sources from the index file.

        Raises:
            CatalogError: If the index is missing, unreadable or malformed
        """
        entries = self._load_yaml(self._index_path)
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise CatalogError(f"Expected a list of releases in {self._index_path}")

        sources = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("url"):
                raise CatalogError(
                    f"Release entry without url in {self._index_path}: {entry!r}"
                )
            sources.append(ReleaseSource(full_identifier=str(entry["url"])))
        return sources

    def list_versions(self, source_identifier: str) -> list[YamlVersionRecord]:
        """List the version directories of a source, in sorted order.

        A source without a directory simply has no versions yet.

        Raises:
            CatalogError: If a release file is unreadable or malformed
        """
        source_dir = self._index_dir / source_identifier
        if not source_dir.is_dir():
            return []

        try:
            version_dirs = sorted(p for p in source_dir.iterdir() if p.is_dir())
        except OSError as exc:
            raise CatalogError(f"Reading {source_dir}: {exc}") from exc

        records = []
        for version_dir in version_dirs:
            release_file = version_dir / RELEASE_FILE
            if not release_file.exists():
                continue

            data = self._load_yaml(release_file) or {}
            if not isinstance(data, dict):
                raise CatalogError(f"Expected a mapping in {release_file}")

            # Unquoted YAML numbers (version: 1.10) lose their text form
            version = data.get("version")
            if not isinstance(version, str) or version == "":
                version = version_dir.name
            records.append(YamlVersionRecord(version_raw=version, path=version_dir))
        return records

    @staticmethod
    def _load_yaml(path: Path) -> object:
        try:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise CatalogError(f"Reading {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise CatalogError(f"Invalid YAML in {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# In-Memory Implementation
# ---------------------------------------------------------------------------


@dataclass
class InMemoryVersionRecord:
    """Version record that keeps its notes in memory."""

    version_raw: str
    notes: NoteRecord | None = None
    writes: int = field(default=0, compare=False)

    def set_notes(self, note: NoteRecord) -> None:
        self.notes = note
        self.writes += 1


class InMemoryReleaseCatalog:
    """Dict-backed release catalog.

    Usage:
        catalog = InMemoryReleaseCatalog(
            versions={"github.com/cloudfoundry/bosh": ["1.0.0", "1.1.0"]},
        )
    """

    def __init__(
        self,
        versions: Mapping[str, Iterable[str | InMemoryVersionRecord]] | None = None,
    ) -> None:
        """Initialize with predefined sources.

        Args:
            versions: source identifier -> versions, in catalog order
        """
        self._records: dict[str, list[InMemoryVersionRecord]] = {}
        for source, items in (versions or {}).items():
            self._records[source] = [
                item if isinstance(item, InMemoryVersionRecord) else InMemoryVersionRecord(item)
                for item in items
            ]

    def list_sources(self) -> list[ReleaseSource]:
        return [ReleaseSource(full_identifier=s) for s in self._records]

    def list_versions(self, source_identifier: str) -> list[InMemoryVersionRecord]:
        return list(self._records.get(source_identifier, []))

    def record(self, source_identifier: str, version_raw: str) -> InMemoryVersionRecord:
        """Look up a single record.

        Raises:
            KeyError: If the source or version is unknown
        """
        for rec in self._records[source_identifier]:
            if rec.version_raw == version_raw:
                return rec
        raise KeyError(f"{source_identifier} {version_raw}")
