"""Adapter over the lxc-* command line tools."""
import re
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from lxcctl.core.errors import InspectorFailure, RuntimeCommandFailure
from lxcctl.core.logger import get_logger
from lxcctl.models.container import RunState

logger = get_logger(__name__)

# lxc-info output: "'web' is RUNNING" (lxc < 1.0) or "State:   RUNNING"
_LEGACY_STATE_RE = re.compile(r"^'(?P<name>.+)' is (?P<state>[A-Z]+)\s*$", re.MULTILINE)
_STATE_RE = re.compile(r"^State:\s+(?P<state>[A-Z]+)\s*$", re.MULTILINE)


class RuntimeGateway(ABC):
    """Interface to the container runtime's primitive operations.

    Mutating primitives raise RuntimeCommandFailure when the runtime reports
    an error. State is decoded here, once, into a RunState.
    """

    @abstractmethod
    def create(self, name: str, template: str, config_file: Optional[Path] = None) -> None:
        """Create a container from a template."""

    @abstractmethod
    def start(self, name: str) -> None:
        """Start a container in the background."""

    @abstractmethod
    def stop(self, name: str) -> None:
        """Forcefully stop a container."""

    @abstractmethod
    def destroy(self, name: str) -> None:
        """Remove a stopped container and its storage."""

    @abstractmethod
    def wait_for_state(self, name: str, state: RunState) -> None:
        """Block until the container reaches ``state``."""

    @abstractmethod
    def info(self, name: str) -> str:
        """Return the runtime's free-text status report for a container."""

    @abstractmethod
    def list_processes(self) -> Tuple[str, int]:
        """Return the host process list annotated with containers, and its exit status."""

    @abstractmethod
    def console(self, name: str) -> int:
        """Attach to the container console, returning its exit status."""

    def state(self, name: str) -> RunState:
        """Return the decoded run state of a container.

        Raises:
            InspectorFailure: If the status report cannot be understood
        """
        return parse_state(name, self.info(name))

    def process_count(self, name: str) -> int:
        """Count processes running inside a container.

        Raises:
            InspectorFailure: If the process list cannot be read
        """
        output, returncode = self.list_processes()
        if returncode != 0:
            raise InspectorFailure(
                f"Could not list processes (exit status {returncode}): {output.strip()}"
            )
        return count_container_processes(output, name)


def parse_state(name: str, output: str) -> RunState:
    """Decode lxc-info output into a RunState."""
    match = _STATE_RE.search(output)
    if match is None:
        match = _LEGACY_STATE_RE.search(output)
        if match is not None and match.group('name') != name:
            match = None
    if match is None:
        raise InspectorFailure(f"Could not get status for container '{name}'")
    return RunState.from_lxc(match.group('state'))


def count_container_processes(output: str, name: str) -> int:
    """Count rows of ``lxc-ps --lxc`` output belonging to container ``name``.

    Host processes have an empty first column, so only rows starting with a
    container name are considered.
    """
    count = 0
    for line in output.splitlines()[1:]:
        if not line or line[0].isspace():
            continue
        if line.split(None, 1)[0] == name:
            count += 1
    return count


class LxcRuntime(RuntimeGateway):
    """RuntimeGateway backed by the lxc userspace tools."""

    def _run(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {shlex.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise RuntimeCommandFailure(cmd, 127, str(e)) from e

        if check and result.returncode != 0:
            raise RuntimeCommandFailure(cmd, result.returncode, result.stderr or result.stdout)
        return result

    def create(self, name: str, template: str, config_file: Optional[Path] = None) -> None:
        cmd = ['lxc-create', '-n', name]
        if config_file:
            cmd.extend(['-f', str(config_file)])
        cmd.extend(['-t', template])
        logger.info(f"Creating container {name} from template {template}")
        self._run(cmd)

    def start(self, name: str) -> None:
        self._run(['lxc-start', '-n', name, '-d'])

    def stop(self, name: str) -> None:
        self._run(['lxc-stop', '-n', name])

    def destroy(self, name: str) -> None:
        self._run(['lxc-destroy', '-n', name])

    def wait_for_state(self, name: str, state: RunState) -> None:
        self._run(['lxc-wait', '-n', name, '-s', state.value.upper()])

    def info(self, name: str) -> str:
        cmd = ['lxc-info', '-n', name]
        result = self._run(cmd, check=False)
        if result.returncode != 0:
            raise InspectorFailure(
                f"{shlex.join(cmd)} failed with exit status {result.returncode}: "
                f"{(result.stderr or result.stdout).strip()}"
            )
        return result.stdout

    def list_processes(self) -> Tuple[str, int]:
        try:
            result = self._run(['lxc-ps', '--lxc', '-e'], check=False)
        except RuntimeCommandFailure as e:
            raise InspectorFailure(str(e)) from e
        return result.stdout, result.returncode

    def console(self, name: str) -> int:
        cmd = ['lxc-console', '-n', name]
        logger.debug(f"Running: {shlex.join(cmd)}")
        return subprocess.run(cmd, check=False).returncode

    def version(self) -> str:
        """Return the installed lxc version, or an empty string."""
        for cmd in (['lxc-version'], ['lxc-create', '--version']):
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, check=False)
            except FileNotFoundError:
                continue
            if result.returncode == 0:
                return result.stdout.strip()
        return ""


