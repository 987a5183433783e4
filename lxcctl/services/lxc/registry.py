"""Containers known to the host."""
from pathlib import Path
from typing import Iterator, List

from lxcctl.core.errors import ContainerNotFound
from lxcctl.core.logger import get_logger

logger = get_logger(__name__)


class ContainerRegistry:
    """Enumerates containers by looking at the runtime's storage directory.

    A container exists when ``<lxc_root>/<name>`` is a directory.
    """

    def __init__(self, lxc_root: Path):
        self.lxc_root = Path(lxc_root)

    def exists(self, name: str) -> bool:
        """Check if a container exists.

        Args:
            name: Container name

        Returns:
            True if the container's storage directory exists
        """
        if not name or '/' in name or name in ('.', '..'):
            return False
        return (self.lxc_root / name).is_dir()

    def check_valid(self, name: str) -> None:
        """Raise ContainerNotFound unless ``name`` is an existing container."""
        if not self.exists(name):
            raise ContainerNotFound(name)

    def iter_names(self) -> Iterator[str]:
        """Yield container names in directory listing order.

        The listing is read fresh on every call.
        """
        if not self.lxc_root.is_dir():
            logger.debug(f"Container root {self.lxc_root} does not exist")
            return
        for entry in self.lxc_root.iterdir():
            if entry.is_dir():
                yield entry.name

    def list_all(self) -> List[str]:
        """Return all container names, sorted."""
        return sorted(self.iter_names())
