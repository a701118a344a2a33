"""Tests for the YAML release catalog.

These tests verify that YamlReleaseCatalog:
- Reads release sources from the index file
- Lists version directories and their versions
- Writes notes next to each version
- Reports unreadable or malformed files as CatalogError

They also run the synchronizer end to end against an on-disk index.

Run with: pytest tests/test_catalog.py -v
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from release_notes_sync.catalog import (
    NOTES_FILE,
    InMemoryReleaseCatalog,
    YamlReleaseCatalog,
    YamlVersionRecord,
)
from release_notes_sync.engine import ReleaseNotesSynchronizer
from release_notes_sync.errors import CatalogError
from release_notes_sync.github import MockReleaseService, ReleaseFetcher
from release_notes_sync.schemas import NoteRecord, ReleaseSource

BOSH = "github.com/cloudfoundry/bosh"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def write_version(index_dir: Path, source: str, dirname: str, version: str | None) -> Path:
    version_dir = index_dir / source / dirname
    version_dir.mkdir(parents=True)
    data = {"version": version} if version is not None else {}
    (version_dir / "release.v1.yml").write_text(yaml.safe_dump(data))
    return version_dir


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    path = tmp_path / "index.yml"
    path.write_text(
        yaml.safe_dump(
            [
                {"url": BOSH},
                {"url": "github.com/cloudfoundry/garden-runc-release"},
                {"url": "bosh.io/community/tool"},
            ]
        )
    )
    return path


@pytest.fixture
def index_dir(tmp_path: Path) -> Path:
    root = tmp_path / "releases-index"
    write_version(root, BOSH, "255.3", "255.3")
    write_version(root, BOSH, "255.4", "255.4")
    write_version(root, BOSH, "legacy", None)
    return root


@pytest.fixture
def catalog(index_path: Path, index_dir: Path) -> YamlReleaseCatalog:
    return YamlReleaseCatalog(index_path, index_dir)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


class TestYamlCatalogRead:
    """Tests for listing sources and versions."""

    def test_list_sources(self, catalog: YamlReleaseCatalog) -> None:
        assert catalog.list_sources() == [
            ReleaseSource(full_identifier=BOSH),
            ReleaseSource(full_identifier="github.com/cloudfoundry/garden-runc-release"),
            ReleaseSource(full_identifier="bosh.io/community/tool"),
        ]

    def test_list_versions_sorted(self, catalog: YamlReleaseCatalog) -> None:
        records = catalog.list_versions(BOSH)
        assert [r.version_raw for r in records] == ["255.3", "255.4", "legacy"]

    def test_version_falls_back_to_directory_name(self, catalog: YamlReleaseCatalog) -> None:
        records = catalog.list_versions(BOSH)
        assert records[-1].version_raw == "legacy"

    def test_source_without_directory_has_no_versions(
        self, catalog: YamlReleaseCatalog
    ) -> None:
        assert catalog.list_versions("github.com/cloudfoundry/garden-runc-release") == []

    def test_directory_without_release_file_is_ignored(
        self, catalog: YamlReleaseCatalog, index_dir: Path
    ) -> None:
        (index_dir / BOSH / "scratch").mkdir()
        assert len(catalog.list_versions(BOSH)) == 3

    def test_empty_index(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("")
        assert YamlReleaseCatalog(path, tmp_path).list_sources() == []

    def test_missing_index_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError, match="Reading"):
            YamlReleaseCatalog(tmp_path / "missing.yml", tmp_path).list_sources()

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("- url: [unclosed")
        with pytest.raises(CatalogError, match="Invalid YAML"):
            YamlReleaseCatalog(path, tmp_path).list_sources()

    def test_index_must_be_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("url: github.com/o/r\n")
        with pytest.raises(CatalogError, match="Expected a list"):
            YamlReleaseCatalog(path, tmp_path).list_sources()

    def test_entry_without_url_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text(yaml.safe_dump([{"url": BOSH}, {"name": "orphan"}]))
        with pytest.raises(CatalogError, match="without url"):
            YamlReleaseCatalog(path, tmp_path).list_sources()

    def test_malformed_release_file_raises(
        self, catalog: YamlReleaseCatalog, index_dir: Path
    ) -> None:
        broken = index_dir / BOSH / "256.0"
        broken.mkdir()
        (broken / "release.v1.yml").write_text("- not\n- a mapping\n")
        with pytest.raises(CatalogError, match="Expected a mapping"):
            catalog.list_versions(BOSH)

    @pytest.mark.parametrize(
        ("dirname", "raw"),
        [
            ("1.10", "version: 1.10\n"),
            ("2.0", "version: 2.0\n"),
            ("0", "version: 0\n"),
            ("3", "version: 3\n"),
            ("4.1.0", "version:\n"),
            ("5.0", 'version: ""\n'),
        ],
    )
    def test_non_string_version_uses_directory_name(
        self, tmp_path: Path, dirname: str, raw: str
    ) -> None:
        """Unquoted numeric versions keep their on-disk spelling."""
        version_dir = tmp_path / BOSH / dirname
        version_dir.mkdir(parents=True)
        (version_dir / "release.v1.yml").write_text(raw)

        records = YamlReleaseCatalog(tmp_path / "index.yml", tmp_path).list_versions(BOSH)

        assert [r.version_raw for r in records] == [dirname]

    def test_quoted_version_is_used_verbatim(self, tmp_path: Path) -> None:
        version_dir = tmp_path / BOSH / "release-1.10"
        version_dir.mkdir(parents=True)
        (version_dir / "release.v1.yml").write_text('version: "1.10"\n')

        records = YamlReleaseCatalog(tmp_path / "index.yml", tmp_path).list_versions(BOSH)

        assert [r.version_raw for r in records] == ["1.10"]

    def test_unreadable_source_directory_raises(
        self, catalog: YamlReleaseCatalog, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def denied(self: Path):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "iterdir", denied)

        with pytest.raises(CatalogError, match="Permission denied"):
            catalog.list_versions(BOSH)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


class TestYamlVersionRecord:
    """Tests for writing notes."""

    def test_set_notes_writes_file(self, tmp_path: Path) -> None:
        record = YamlVersionRecord(version_raw="1.0.0", path=tmp_path)

        record.set_notes(NoteRecord(content="## Fixes\n- crash on start"))

        assert yaml.safe_load((tmp_path / NOTES_FILE).read_text()) == {
            "content": "## Fixes\n- crash on start"
        }
        assert record.read_notes() == NoteRecord(content="## Fixes\n- crash on start")

    def test_set_notes_replaces_previous_content(self, tmp_path: Path) -> None:
        record = YamlVersionRecord(version_raw="1.0.0", path=tmp_path)
        record.set_notes(NoteRecord(content="old"))

        record.set_notes(NoteRecord(content=""))

        assert record.read_notes() == NoteRecord(content="")

    def test_read_notes_before_any_write(self, tmp_path: Path) -> None:
        assert YamlVersionRecord(version_raw="1.0.0", path=tmp_path).read_notes() is None

    def test_non_ascii_notes_are_written_as_utf8(self, tmp_path: Path) -> None:
        record = YamlVersionRecord(version_raw="1.0.0", path=tmp_path)
        content = "🚀 Überarbeitete Ausgabe, 修复崩溃"

        record.set_notes(NoteRecord(content=content))

        assert content in (tmp_path / NOTES_FILE).read_bytes().decode("utf-8")
        assert record.read_notes() == NoteRecord(content=content)

    def test_non_ascii_release_file_is_read_as_utf8(self, tmp_path: Path) -> None:
        version_dir = tmp_path / BOSH / "1.0.0"
        version_dir.mkdir(parents=True)
        (version_dir / "release.v1.yml").write_bytes("version: 1.0.0\nname: café\n".encode())

        records = YamlReleaseCatalog(tmp_path / "index.yml", tmp_path).list_versions(BOSH)

        assert [r.version_raw for r in records] == ["1.0.0"]

    def test_set_notes_into_missing_directory_raises(self, tmp_path: Path) -> None:
        record = YamlVersionRecord(version_raw="1.0.0", path=tmp_path / "gone")
        with pytest.raises(OSError):
            record.set_notes(NoteRecord(content="x"))


# ---------------------------------------------------------------------------
# In-memory catalog
# ---------------------------------------------------------------------------


class TestInMemoryCatalog:
    """Tests for InMemoryReleaseCatalog."""

    def test_lists_sources_and_versions(self) -> None:
        catalog = InMemoryReleaseCatalog(versions={BOSH: ["1.0.0", "1.1.0"]})

        assert catalog.list_sources() == [ReleaseSource(full_identifier=BOSH)]
        assert [r.version_raw for r in catalog.list_versions(BOSH)] == ["1.0.0", "1.1.0"]
        assert catalog.list_versions("github.com/other/repo") == []

    def test_unknown_record_raises(self) -> None:
        with pytest.raises(KeyError):
            InMemoryReleaseCatalog(versions={BOSH: []}).record(BOSH, "1.0.0")


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestYamlCatalogSync:
    """Runs the synchronizer against an on-disk index."""

    @pytest.mark.asyncio
    async def test_sync_writes_notes_files(
        self, catalog: YamlReleaseCatalog, index_dir: Path
    ) -> None:
        service = MockReleaseService(
            releases={
                "cloudfoundry/bosh": [
                    {"name": "v255.4", "tag_name": "v255.4", "body": "- Fixes director"},
                    {"name": None, "tag_name": "v255.3", "body": None},
                ],
                "cloudfoundry/garden-runc-release": [],
            }
        )

        async def no_sleep(seconds: float) -> None:
            return None

        synchronizer = ReleaseNotesSynchronizer(catalog, ReleaseFetcher(service, sleep=no_sleep))
        report = await synchronizer.sync()

        bosh_dir = index_dir / BOSH
        assert yaml.safe_load((bosh_dir / "255.4" / NOTES_FILE).read_text()) == {
            "content": "- Fixes director"
        }
        assert yaml.safe_load((bosh_dir / "255.3" / NOTES_FILE).read_text()) == {"content": ""}
        assert not (bosh_dir / "legacy" / NOTES_FILE).exists()
        assert report.notes_updated == 2
        # garden-runc has no versions on disk and bosh.io is not GitHub
        assert [c[1] for c in service.calls] == ["bosh"]

    @pytest.mark.asyncio
    async def test_unquoted_version_matches_upstream_tag(self, tmp_path: Path) -> None:
        index_path = tmp_path / "index.yml"
        index_path.write_text(yaml.safe_dump([{"url": BOSH}]))
        version_dir = tmp_path / "releases-index" / BOSH / "1.10"
        version_dir.mkdir(parents=True)
        (version_dir / "release.v1.yml").write_text("version: 1.10\n")
        service = MockReleaseService(
            releases={"cloudfoundry/bosh": [{"tag_name": "v1.10", "body": "n"}]}
        )

        async def no_sleep(seconds: float) -> None:
            return None

        catalog = YamlReleaseCatalog(index_path, tmp_path / "releases-index")
        report = await ReleaseNotesSynchronizer(
            catalog, ReleaseFetcher(service, sleep=no_sleep)
        ).sync()

        assert report.notes_updated == 1
        assert yaml.safe_load((version_dir / NOTES_FILE).read_text()) == {"content": "n"}
