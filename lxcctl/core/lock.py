"""Console lock files.

Only one console can be attached to a container at a time. The lock is the
presence of a file in the container directory; it is removed when the holder
exits normally or with an error. A crashed holder leaves a stale lock behind,
which has to be removed by hand.
"""
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from lxcctl.core.errors import AlreadyLocked
from lxcctl.core.logger import get_logger

logger = get_logger(__name__)


class ConsoleLock:
    """Exclusive-access lock file for a container console."""

    def __init__(self, name: str, lock_file: Path):
        """Initialize lock.

        Args:
            name: Container the lock guards
            lock_file: Path to the lock file
        """
        self.name = name
        self.lock_file = Path(lock_file)
        self.held = False

    def acquire(self) -> bool:
        """Create the lock file.

        Returns:
            True if lock acquired

        Raises:
            AlreadyLocked: If the lock file already exists
        """
        try:
            fd = os.open(self.lock_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            raise AlreadyLocked(self.name, read_lock_info(self.lock_file)) from None

        with os.fdopen(fd, 'w') as f:
            f.write(f"{os.getpid()}\n")
            f.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')}\n")

        self.held = True
        logger.debug(f"Acquired console lock: {self.lock_file}")
        return True

    def release(self):
        """Remove the lock file if this instance holds it."""
        if not self.held:
            return
        self.held = False
        try:
            self.lock_file.unlink()
            logger.debug(f"Released console lock: {self.lock_file}")
        except FileNotFoundError:
            logger.warning(f"Console lock {self.lock_file} was removed by someone else")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


@contextmanager
def console_lock(name: str, lock_file: Path) -> Iterator[ConsoleLock]:
    """Hold the console lock for ``name`` for the duration of the block.

    Usage:
        with console_lock("web", config.console_lock_path("web")):
            runtime.console("web")

    Raises:
        AlreadyLocked: If the console is already held
    """
    lock = ConsoleLock(name, lock_file)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()


def read_lock_info(lock_file: Path) -> Optional[dict]:
    """Return the PID and time recorded in a lock file, or None."""
    try:
        lines = Path(lock_file).read_text().splitlines()
    except OSError:
        return None

    if len(lines) >= 2:
        return {'pid': lines[0].strip(), 'time': lines[1].strip()}
    return {'pid': 'unknown', 'time': 'unknown'}
