"""Running commands inside containers over ssh."""
import shlex
import subprocess
from typing import List, Optional, Sequence

from lxcctl.core.config import LxcConfig
from lxcctl.core.errors import NoNetworkAddress, RuntimeCommandFailure
from lxcctl.core.logger import get_logger

logger = get_logger(__name__)


class RemoteShell:
    """Runs commands in a container via ssh to the address the guest reported.

    The guest writes its address into the network-ready marker; a container
    without one cannot be reached.
    """

    def __init__(self, config: LxcConfig):
        self.config = config

    def address(self, name: str) -> str:
        """Return the container's IP address.

        Raises:
            NoNetworkAddress: If the guest has not reported an address
        """
        marker = self.config.network_marker_path(name)
        try:
            content = marker.read_text().strip()
        except OSError:
            raise NoNetworkAddress(name) from None

        if not content:
            raise NoNetworkAddress(name)
        return content.split()[0]

    def _ssh_command(self, name: str, command: Optional[Sequence[str]], tty: bool) -> List[str]:
        cmd = ['ssh']
        if tty:
            cmd.append('-t')
        cmd.extend(self.config.ssh_options)
        cmd.append(f"{self.config.ssh_user}@{self.address(name)}")
        if command:
            cmd.append(shlex.join(command))
        return cmd

    def run(self, name: str, command: Sequence[str], tty: bool = False) -> int:
        """Run a command inside the container.

        Args:
            name: Container name
            command: Command and arguments
            tty: Allocate a terminal (for interactive commands)

        Returns:
            Exit status of the remote command
        """
        cmd = self._ssh_command(name, command, tty)
        logger.debug(f"Executing in container {name}: {shlex.join(command)}")
        return self._call(cmd)

    def enter(self, name: str) -> int:
        """Open an interactive shell in the container."""
        cmd = self._ssh_command(name, None, tty=True)
        logger.debug(f"Opening shell in container {name}")
        return self._call(cmd)

    @staticmethod
    def _call(cmd: List[str]) -> int:
        try:
            return subprocess.run(cmd, check=False).returncode
        except FileNotFoundError as e:
            raise RuntimeCommandFailure(cmd, 127, str(e)) from e
        except OSError as e:
            raise RuntimeCommandFailure(cmd, 126, str(e)) from e
