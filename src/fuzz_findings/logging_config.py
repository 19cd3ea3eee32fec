"""
Logging configuration for fuzz-findings.

Records of the ``fuzz_findings`` logger go to stderr through rich and, when a
log file is configured, to that file as plain text. The CLI calls
``setup_logging`` once with the merged configuration, so the verbosity and
log file can come from a TOML file, ``FUZZ_FINDINGS_*`` variables or flags.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "fuzz_findings"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Marks handlers installed here, so a second setup replaces them
_HANDLER_FLAG = "_fuzz_findings_handler"


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the fuzz_findings logger.

    Args:
        verbosity: One of ``quiet``, ``normal`` or ``verbose``
        log_file: Optional file that receives the same records; its parent
            directory is created if needed and the file is appended to

    Returns:
        The configured fuzz_findings logger

    Raises:
        ValueError: If ``verbosity`` is unknown
        OSError: If the log file cannot be opened
    """
    if verbosity not in LEVELS:
        raise ValueError(f"Unknown verbosity {verbosity!r}, expected one of {', '.join(LEVELS)}")
    level = LEVELS[verbosity]
    verbose = level == logging.DEBUG

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=verbose,
            show_path=verbose,
        )
    ]

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logger = logging.getLogger(LOGGER_NAME)
    for old in [h for h in logger.handlers if getattr(h, _HANDLER_FLAG, False)]:
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger below the fuzz_findings namespace.

    ``get_logger(__name__)`` in a package module returns that module's
    logger; any other name is prefixed with ``fuzz_findings.``.
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)

    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)
