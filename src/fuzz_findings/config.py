"""Configuration loading for fuzz-findings.

Configuration sources are merged in priority order:
    1. Defaults (defined in FindingsConfig)
    2. Global config (~/.fuzz-findings.toml)
    3. Project config (./fuzz-findings.toml)
    4. Explicit config file
    5. Environment variables (FUZZ_FINDINGS_* prefix)
    6. Overrides (passed as kwargs, typically CLI flags)

Example:
    >>> config = load_config(verbose=True)
    >>> config.verbosity
    'verbose'
    >>> config.corpus_dir
    PosixPath('.cifuzz-corpus')
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, Optional

from .exceptions import ConfigFileError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

VERBOSITY_LEVELS = ("quiet", "normal", "verbose")

DEFAULT_CORPUS_DIR_NAME = ".cifuzz-corpus"

ENV_PREFIX = "FUZZ_FINDINGS_"


@dataclass(frozen=True)
class FindingsConfig:
    """Settings for reading and writing findings.

    Attributes:
        project_dir: Project root holding .cifuzz-findings
        seed_corpus_dir: Corpus that receives copies of new crashing
            inputs (None = <project_dir>/.cifuzz-corpus)
        verbosity: Logging verbosity level
        log_file: Optional file that also receives log records
    """

    project_dir: str = "."
    seed_corpus_dir: Optional[str] = None
    verbosity: Verbosity = "normal"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.verbosity not in VERBOSITY_LEVELS:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"must be one of {', '.join(VERBOSITY_LEVELS)}"
            )
        if not self.project_dir:
            raise InvalidConfigError("project_dir", self.project_dir, "must not be empty")

    @property
    def corpus_dir(self) -> Path:
        """Seed corpus directory, defaulting to one inside the project."""
        if self.seed_corpus_dir:
            return Path(self.seed_corpus_dir)
        return Path(self.project_dir) / DEFAULT_CORPUS_DIR_NAME


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> FindingsConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides; ``verbose``/``quiet`` booleans are
            mapped to ``verbosity``. ``None`` values are ignored.

    Returns:
        Validated FindingsConfig instance

    Raises:
        ConfigFileError: If a config file is missing or cannot be parsed
        InvalidConfigError: If a value is invalid or unknown
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".fuzz-findings.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "fuzz-findings.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileError(config_file, "file not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(FindingsConfig)}
    for key, value in merged.items():
        if key not in known:
            raise InvalidConfigError(key, value, "unknown setting")
        if value is not None and not isinstance(value, (str, os.PathLike)):
            raise InvalidConfigError(key, value, "must be a string")

    return FindingsConfig(**{k: (str(v) if v is not None else None) for k, v in merged.items()})


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from FUZZ_FINDINGS_* environment variables.

    Supported environment variables:
        FUZZ_FINDINGS_PROJECT_DIR
        FUZZ_FINDINGS_SEED_CORPUS_DIR
        FUZZ_FINDINGS_VERBOSITY: quiet/normal/verbose
        FUZZ_FINDINGS_LOG_FILE
    """
    result: dict[str, Any] = {}
    for f in fields(FindingsConfig):
        value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value:
            result[f.name] = value
    return result


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file, reading settings from its top level.

    Raises:
        ConfigFileError: If TOML support is missing or parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigFileError(
                path,
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli",
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, str(e)) from e
