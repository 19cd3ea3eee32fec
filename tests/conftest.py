"""Shared test fixtures for fuzz-findings tests."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from fuzz_findings.models import ErrorType, Finding


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path_factory):
    """Keep user and environment config files out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for var in (
        "FUZZ_FINDINGS_PROJECT_DIR",
        "FUZZ_FINDINGS_SEED_CORPUS_DIR",
        "FUZZ_FINDINGS_VERBOSITY",
        "FUZZ_FINDINGS_LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _restore_logger():
    """Undo handlers and levels installed by setup_logging."""
    logger = logging.getLogger("fuzz_findings")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def project_dir(tmp_path):
    """Empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def corpus_dir(tmp_path):
    """Seed corpus location (not created yet)."""
    return tmp_path / "corpus"


@pytest.fixture
def input_factory(tmp_path):
    """Write crashing inputs to a scratch directory outside the project."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    counter = {"n": 0}

    def make(content: bytes, name: str = "") -> Path:
        counter["n"] += 1
        path = scratch / (name or f"in{counter['n']}")
        path.write_bytes(content)
        return path

    return make


def make_finding(name="crash-abc", input_file="", created_at=None, logs=None, **kwargs) -> Finding:
    return Finding(
        name=name,
        type=kwargs.pop("type", ErrorType.CRASH),
        input_file=str(input_file),
        created_at=created_at or datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc),
        logs=list(logs or []),
        **kwargs,
    )


@pytest.fixture
def finding_factory():
    """Build in-memory findings with sensible defaults."""
    return make_finding
