"""Tests for the finding repository: save, exists, load, list."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from fuzz_findings.exceptions import (
    FindingAlreadyExistsError,
    FindingDecodeError,
    FindingError,
    FindingNotExistError,
)
from fuzz_findings.repository import (
    FINDING_JSON_NAME,
    FINDINGS_DIR_NAME,
    FindingRepository,
    exists,
    finding_dir_path,
    list_findings,
    load_finding,
    replace_record,
    save,
)


class TestSave:
    def test_writes_record(self, project_dir, finding_factory):
        path = save(project_dir, finding_factory("crash-abc"))
        assert path == project_dir / ".cifuzz-findings" / "crash-abc" / "finding.json"
        assert json.loads(path.read_text())["name"] == "crash-abc"

    def test_exists(self, project_dir, finding_factory):
        assert not exists(project_dir, "crash-abc")
        save(project_dir, finding_factory("crash-abc"))
        assert exists(project_dir, "crash-abc")

    def test_second_save_already_exists(self, project_dir, finding_factory):
        save(project_dir, finding_factory("crash-abc", details="first"))
        with pytest.raises(FindingAlreadyExistsError) as exc_info:
            save(project_dir, finding_factory("crash-abc", details="second"))

        assert exc_info.value.name == "crash-abc"
        assert isinstance(exc_info.value, FindingError)
        assert load_finding(project_dir, "crash-abc").details == "first"

    def test_directory_without_record(self, project_dir, finding_factory):
        """A directory left by an input store does not block the first save."""
        finding_dir_path(project_dir, "crash-abc").mkdir(parents=True)
        save(project_dir, finding_factory("crash-abc"))
        assert exists(project_dir, "crash-abc")

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b"])
    def test_invalid_name(self, project_dir, finding_factory, name):
        with pytest.raises(ValueError):
            save(project_dir, finding_factory(name))


class TestReplaceRecord:
    def test_overwrites(self, project_dir, finding_factory):
        finding = finding_factory("crash-abc", details="before")
        save(project_dir, finding)

        finding.details = "after"
        path = replace_record(project_dir, finding)

        assert path == project_dir / ".cifuzz-findings" / "crash-abc" / "finding.json"
        assert load_finding(project_dir, "crash-abc").details == "after"
        assert sorted(p.name for p in path.parent.iterdir()) == ["finding.json"]

    def test_requires_existing_record(self, project_dir, finding_factory):
        finding_dir_path(project_dir, "crash-abc").mkdir(parents=True)
        with pytest.raises(FindingNotExistError):
            replace_record(project_dir, finding_factory("crash-abc"))
        assert not exists(project_dir, "crash-abc")


class TestLoad:
    def test_roundtrip(self, project_dir, finding_factory):
        original = finding_factory("crash-abc", logs=["line 1", "line 2"], tag=7)
        save(project_dir, original)
        assert load_finding(project_dir, "crash-abc") == original

    def test_missing(self, project_dir):
        with pytest.raises(FindingNotExistError) as exc_info:
            load_finding(project_dir, "nope")
        assert exc_info.value.name == "nope"

    def test_malformed(self, project_dir):
        finding_dir = project_dir / FINDINGS_DIR_NAME / "broken"
        finding_dir.mkdir(parents=True)
        (finding_dir / FINDING_JSON_NAME).write_text("{")

        with pytest.raises(FindingDecodeError):
            load_finding(project_dir, "broken")


class TestList:
    def test_missing_root(self, project_dir):
        assert list_findings(project_dir) == []

    def test_newest_first(self, project_dir, finding_factory):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for name, days in [("old", 0), ("newest", 2), ("middle", 1)]:
            save(project_dir, finding_factory(name, created_at=base + timedelta(days=days)))

        names = [f.name for f in list_findings(project_dir)]
        assert names == ["newest", "middle", "old"]

    def test_mixed_offsets(self, project_dir, finding_factory):
        """Ordering compares instants, not wall-clock text."""
        plus_two = timezone(timedelta(hours=2))
        save(project_dir, finding_factory("earlier", created_at=datetime(2024, 1, 1, 13, 0, tzinfo=plus_two)))
        save(project_dir, finding_factory("later", created_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)))

        assert [f.name for f in list_findings(project_dir)] == ["later", "earlier"]

    def test_unset_timestamp_last(self, project_dir, finding_factory):
        undated = finding_factory("undated")
        undated.created_at = None
        save(project_dir, undated)
        save(project_dir, finding_factory("dated"))

        assert [f.name for f in list_findings(project_dir)] == ["dated", "undated"]

    def test_skips_incomplete_and_files(self, project_dir, finding_factory):
        save(project_dir, finding_factory("crash-abc"))
        (project_dir / FINDINGS_DIR_NAME / "in-progress").mkdir()
        (project_dir / FINDINGS_DIR_NAME / "stray.txt").write_text("x")

        assert [f.name for f in list_findings(project_dir)] == ["crash-abc"]

    def test_malformed_record_fails(self, project_dir, finding_factory):
        save(project_dir, finding_factory("crash-abc"))
        broken = project_dir / FINDINGS_DIR_NAME / "broken"
        broken.mkdir()
        (broken / FINDING_JSON_NAME).write_text("[]")

        with pytest.raises(FindingDecodeError):
            list_findings(project_dir)


class TestFindingRepository:
    def test_wraps_module_functions(self, project_dir, finding_factory):
        repo = FindingRepository(project_dir)
        assert repo.findings_dir == project_dir / FINDINGS_DIR_NAME
        assert repo.list() == []

        repo.save(finding_factory("crash-abc"))
        assert repo.exists("crash-abc")
        assert repo.load("crash-abc").name == "crash-abc"
        assert [f.name for f in repo.list()] == ["crash-abc"]
        assert repo.finding_dir("crash-abc") == project_dir / FINDINGS_DIR_NAME / "crash-abc"
