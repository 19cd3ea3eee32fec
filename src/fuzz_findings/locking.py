"""Advisory cross-process locking for finding directories.

Several fuzzing processes can discover inputs for the same finding at the
same time. Every mutation of a finding directory happens while holding an
exclusive lock on ``<finding_dir>/.lock``, so slot allocation is serialized
machine-wide.

The lock is advisory: it only excludes callers that take it too. It is held
through ``flock(2)`` on POSIX and ``msvcrt.locking`` on Windows, both tied to
an open file description, so two threads of the same process that open the
lock file separately also exclude each other.
"""

from __future__ import annotations

import errno
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar, Union

from .exceptions import LockError
from .file_ops import ensure_dir
from .logging_config import get_logger

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = get_logger(__name__)

LOCK_FILE_NAME = ".lock"

T = TypeVar("T")


def _lock_fd(fd: int) -> None:
    if sys.platform == "win32":
        os.lseek(fd, 0, os.SEEK_SET)
        while True:
            try:
                # LK_LOCK gives up after ~10 attempts; keep waiting
                msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
                return
            except OSError as e:
                if e.errno != errno.EDEADLK:
                    raise
    else:
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                return
            except InterruptedError:
                continue


def _unlock_fd(fd: int) -> None:
    if sys.platform == "win32":
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_UN)


class FileMutex:
    """Exclusive advisory lock on a sentinel file.

    The sentinel is created on first use and never removed; its existence
    carries no meaning, only the lock held on it.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._fd: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def lock(self) -> None:
        """Block until the lock is held."""
        if self._fd is not None:
            raise LockError(self.path, "already locked by this mutex")

        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise LockError(self.path, f"cannot open lock file: {e.strerror or e}") from e

        try:
            _lock_fd(fd)
        except OSError as e:
            os.close(fd)
            raise LockError(self.path, f"cannot acquire lock: {e.strerror or e}") from e

        self._fd = fd
        logger.debug(f"Acquired lock {self.path}")

    def unlock(self) -> None:
        """Release the lock and close the sentinel file."""
        if self._fd is None:
            raise LockError(self.path, "not locked")

        fd, self._fd = self._fd, None
        try:
            _unlock_fd(fd)
        except OSError as e:
            raise LockError(self.path, f"cannot release lock: {e.strerror or e}") from e
        finally:
            try:
                os.close(fd)
            except OSError as e:
                logger.debug(f"Closing lock file {self.path} failed: {e}")
        logger.debug(f"Released lock {self.path}")

    def __enter__(self) -> FileMutex:
        self.lock()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unlock()


@contextmanager
def finding_lock(finding_dir: Union[str, Path]) -> Iterator[FileMutex]:
    """
    Hold the lock of one finding directory for the duration of the block.

    The directory is created if missing. When the block raises, a failure
    to release the lock is only logged so the original error propagates.
    When the block succeeds, a release failure raises ``LockError``.

    Raises:
        LockError: If the lock cannot be acquired, or released after success
    """
    finding_dir = ensure_dir(finding_dir)
    mutex = FileMutex(finding_dir / LOCK_FILE_NAME)
    mutex.lock()
    try:
        yield mutex
    except BaseException:
        try:
            mutex.unlock()
        except LockError as unlock_error:
            logger.error(f"{unlock_error}")
        raise
    mutex.unlock()


def with_lock(finding_dir: Union[str, Path], fn: Callable[[], T]) -> T:
    """Run ``fn`` while holding the lock of ``finding_dir`` and return its result."""
    with finding_lock(finding_dir):
        return fn()
