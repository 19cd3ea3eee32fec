"""Tests for storing crashing inputs: slots, deduplication, corpus copies, log rewriting."""

import os
from pathlib import Path

import pytest

from fuzz_findings.content_store import store_input
from fuzz_findings.exceptions import FindingAlreadyExistsError, StorageError
from fuzz_findings.repository import FindingRepository, load_finding, save

SLOT_1 = os.path.join(".cifuzz-findings", "crash-abc", "crashing-input-1")
SLOT_2 = os.path.join(".cifuzz-findings", "crash-abc", "crashing-input-2")


def _slots(project_dir):
    finding_dir = project_dir / ".cifuzz-findings" / "crash-abc"
    return sorted(p.name for p in finding_dir.iterdir() if p.name.startswith("crashing-input"))


class TestStoreScenario:
    """Save, store, then store an identical input again."""

    def test_store_then_duplicate(self, project_dir, corpus_dir, input_factory, finding_factory, monkeypatch):
        monkeypatch.chdir(project_dir)
        in1 = input_factory(b"AAAA", "in1")
        finding = finding_factory("crash-abc", input_file=in1)

        save(project_dir, finding)
        assert (project_dir / ".cifuzz-findings" / "crash-abc" / "finding.json").is_file()

        slot = store_input(finding, project_dir, corpus_dir)
        assert slot == project_dir / SLOT_1
        assert slot.read_bytes() == b"AAAA"
        assert (corpus_dir / "crash-abc-1").read_bytes() == b"AAAA"
        assert not in1.exists()
        assert finding.input_file == SLOT_1
        assert finding.seed_path == str(corpus_dir / "crash-abc-1")

        in2 = input_factory(b"AAAA", "in2")
        again = finding_factory("crash-abc", input_file=in2)
        assert store_input(again, project_dir, corpus_dir) is None

        assert _slots(project_dir) == ["crashing-input-1"]
        assert sorted(p.name for p in corpus_dir.iterdir()) == ["crash-abc-1"]
        assert not in2.exists()
        assert again.input_file == str(in2)
        assert again.seed_path == ""

        assert load_finding(project_dir, "crash-abc").input_file == SLOT_1


class TestRecordUpdate:
    """A record saved before its input is stored is rewritten on disk."""

    def test_saved_record_points_at_slot(self, tmp_path, project_dir, corpus_dir, input_factory, finding_factory, monkeypatch):
        monkeypatch.chdir(tmp_path)
        source = input_factory(b"AAAA")
        finding = finding_factory("crash-abc", input_file=source, logs=[f"Running: {source}"])
        save(project_dir, finding)

        store_input(finding, project_dir, corpus_dir)

        record = load_finding(project_dir, "crash-abc")
        assert record.input_file == SLOT_1
        assert record.logs == [f"Running: {os.path.join('project', SLOT_1)}"]

        raw = (project_dir / ".cifuzz-findings" / "crash-abc" / "finding.json").read_text()
        assert str(source) not in raw
        assert str(tmp_path) not in raw

    def test_no_temporary_files_left(self, project_dir, corpus_dir, input_factory, finding_factory):
        finding = finding_factory("crash-abc", input_file=input_factory(b"AAAA"))
        save(project_dir, finding)
        store_input(finding, project_dir, corpus_dir)

        finding_dir = project_dir / ".cifuzz-findings" / "crash-abc"
        assert sorted(p.name for p in finding_dir.iterdir()) == [".lock", "crashing-input-1", "finding.json"]

    def test_merged_input_keeps_first_record(self, project_dir, corpus_dir, input_factory, finding_factory):
        first = finding_factory("crash-abc", input_file=input_factory(b"AAAA"), details="first run")
        save(project_dir, first)
        store_input(first, project_dir, corpus_dir)

        second_source = input_factory(b"BBBB")
        second = finding_factory("crash-abc", input_file=second_source, details="second run")
        with pytest.raises(FindingAlreadyExistsError):
            save(project_dir, second)
        assert store_input(second, project_dir, corpus_dir) == project_dir / SLOT_2

        record = load_finding(project_dir, "crash-abc")
        assert record.details == "first run"
        assert record.input_file == SLOT_1
        assert second.input_file == SLOT_2

    def test_stored_before_save(self, project_dir, corpus_dir, input_factory, finding_factory):
        finding = finding_factory("crash-abc", input_file=input_factory(b"AAAA"))
        store_input(finding, project_dir, corpus_dir)
        assert not (project_dir / ".cifuzz-findings" / "crash-abc" / "finding.json").exists()

        save(project_dir, finding)
        assert load_finding(project_dir, "crash-abc").input_file == SLOT_1


class TestDeduplication:
    def test_repeated_identical_inputs(self, project_dir, corpus_dir, input_factory, finding_factory):
        sources = []
        results = []
        for _ in range(4):
            source = input_factory(b"same bytes")
            finding = finding_factory("crash-abc", input_file=source)
            store_input(finding, project_dir, corpus_dir)
            sources.append(str(source))
            results.append(finding.input_file)

        assert _slots(project_dir) == ["crashing-input-1"]
        assert len(list(corpus_dir.iterdir())) == 1
        assert results == [SLOT_1] + sources[1:]

    def test_same_finding_stored_twice(self, project_dir, corpus_dir, input_factory, finding_factory):
        """Storing an already stored finding leaves its slot in place."""
        finding = finding_factory("crash-abc", input_file=input_factory(b"AAAA"))
        store_input(finding, project_dir, corpus_dir)
        seed_path = finding.seed_path

        assert store_input(finding, project_dir, corpus_dir) is None
        assert (project_dir / SLOT_1).read_bytes() == b"AAAA"
        assert finding.input_file == SLOT_1
        assert finding.seed_path == seed_path

    def test_distinct_inputs_get_own_slots(self, project_dir, corpus_dir, input_factory, finding_factory):
        first = finding_factory("crash-abc", input_file=input_factory(b"AAAA"))
        second = finding_factory("crash-abc", input_file=input_factory(b"BBBB"))

        store_input(first, project_dir, corpus_dir)
        store_input(second, project_dir, corpus_dir)

        assert _slots(project_dir) == ["crashing-input-1", "crashing-input-2"]
        assert (project_dir / SLOT_1).read_bytes() == b"AAAA"
        assert (project_dir / SLOT_2).read_bytes() == b"BBBB"
        assert (corpus_dir / "crash-abc-1").read_bytes() == b"AAAA"
        assert (corpus_dir / "crash-abc-2").read_bytes() == b"BBBB"
        assert first.seed_path != second.seed_path
        assert second.input_file == SLOT_2

    def test_duplicate_of_later_slot(self, project_dir, corpus_dir, input_factory, finding_factory):
        for content in (b"AAAA", b"BBBB", b"BBBB"):
            store_input(finding_factory("crash-abc", input_file=input_factory(content)), project_dir, corpus_dir)

        assert _slots(project_dir) == ["crashing-input-1", "crashing-input-2"]
        assert len(list(corpus_dir.iterdir())) == 2

    def test_prefix_is_not_a_duplicate(self, project_dir, corpus_dir, input_factory, finding_factory):
        store_input(finding_factory("crash-abc", input_file=input_factory(b"AAAA")), project_dir, corpus_dir)
        store_input(finding_factory("crash-abc", input_file=input_factory(b"AAAAA")), project_dir, corpus_dir)
        assert _slots(project_dir) == ["crashing-input-1", "crashing-input-2"]

    def test_removed_slot_is_filled(self, project_dir, corpus_dir, input_factory, finding_factory):
        for content in (b"AAAA", b"BBBB"):
            store_input(finding_factory("crash-abc", input_file=input_factory(content)), project_dir, corpus_dir)
        (project_dir / SLOT_1).unlink()

        finding = finding_factory("crash-abc", input_file=input_factory(b"CCCC"))
        store_input(finding, project_dir, corpus_dir)

        assert finding.input_file == SLOT_1
        assert (project_dir / SLOT_1).read_bytes() == b"CCCC"
        assert (project_dir / SLOT_2).read_bytes() == b"BBBB"

    def test_findings_do_not_share_slots(self, project_dir, corpus_dir, input_factory, finding_factory):
        store_input(finding_factory("crash-abc", input_file=input_factory(b"AAAA")), project_dir, corpus_dir)
        other = finding_factory("crash-xyz", input_file=input_factory(b"AAAA"))
        store_input(other, project_dir, corpus_dir)

        assert other.input_file == os.path.join(".cifuzz-findings", "crash-xyz", "crashing-input-1")
        assert sorted(p.name for p in corpus_dir.iterdir()) == ["crash-abc-1", "crash-xyz-1"]


class TestLogRewriting:
    def test_source_path_replaced(self, project_dir, corpus_dir, input_factory, finding_factory, monkeypatch):
        monkeypatch.chdir(project_dir)
        source = input_factory(b"AAAA")
        finding = finding_factory(
            "crash-abc",
            input_file=source,
            logs=[
                f"Running: {source}",
                "==42==ERROR: AddressSanitizer: heap-buffer-overflow",
                f"artifact {source} and again {source}",
            ],
        )

        store_input(finding, project_dir, corpus_dir)

        assert finding.logs == [
            f"Running: {SLOT_1}",
            "==42==ERROR: AddressSanitizer: heap-buffer-overflow",
            f"artifact {SLOT_1} and again {SLOT_1}",
        ]
        assert all(str(source) not in line for line in finding.logs)

    def test_relative_to_working_directory(self, tmp_path, project_dir, corpus_dir, input_factory, finding_factory, monkeypatch):
        monkeypatch.chdir(tmp_path)
        source = input_factory(b"AAAA")
        finding = finding_factory("crash-abc", input_file=source, logs=[f"crash in {source}"])

        store_input(finding, project_dir, corpus_dir)

        assert finding.logs == [f"crash in {os.path.join('project', SLOT_1)}"]
        # input_file stays relative to the project, not the working directory
        assert finding.input_file == SLOT_1

    def test_duplicate_leaves_finding_unchanged(self, project_dir, corpus_dir, input_factory, finding_factory, monkeypatch):
        monkeypatch.chdir(project_dir)
        store_input(finding_factory("crash-abc", input_file=input_factory(b"AAAA")), project_dir, corpus_dir)

        source = input_factory(b"AAAA")
        dup = finding_factory("crash-abc", input_file=source, logs=[f"input {source}"])
        assert store_input(dup, project_dir, corpus_dir) is None

        assert dup.logs == [f"input {source}"]
        assert dup.input_file == str(source)
        assert dup.seed_path == ""
        assert not source.exists()


class TestFailures:
    def test_missing_source(self, project_dir, corpus_dir, tmp_path, finding_factory):
        finding = finding_factory("crash-abc", input_file=tmp_path / "gone")
        with pytest.raises(StorageError) as exc_info:
            store_input(finding, project_dir, corpus_dir)
        assert exc_info.value.operation == "read"
        assert not corpus_dir.exists()

    def test_no_input_file(self, project_dir, corpus_dir, finding_factory):
        with pytest.raises(StorageError):
            store_input(finding_factory("crash-abc"), project_dir, corpus_dir)

    def test_corpus_not_writable(self, project_dir, tmp_path, input_factory, finding_factory):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where the corpus directory should go")
        source = input_factory(b"AAAA")
        finding = finding_factory("crash-abc", input_file=source)

        with pytest.raises(StorageError):
            store_input(finding, project_dir, blocker / "corpus")

        # The slot copy is kept and the source is not removed
        assert (project_dir / SLOT_1).read_bytes() == b"AAAA"
        assert source.exists()
        assert finding.input_file == str(source)


class TestRepositoryStoreInput:
    def test_delegates(self, project_dir, corpus_dir, input_factory, finding_factory):
        repo = FindingRepository(project_dir)
        finding = finding_factory("crash-abc", input_file=input_factory(b"AAAA"))
        repo.save(finding)

        assert repo.store_input(finding, corpus_dir) == project_dir / SLOT_1
        assert Path(finding.seed_path).parent == corpus_dir
