"""Container lifecycle management (start, stop, restart, resync, destroy)."""
from typing import Optional, Sequence

from lxcctl.core.config import LxcConfig
from lxcctl.core.errors import (
    AlreadyRunning,
    AlreadyStopped,
    ContainerStopped,
    NoNetworkAddress,
    RuntimeCommandFailure,
)
from lxcctl.core.lock import console_lock
from lxcctl.core.logger import get_logger
from lxcctl.models.container import RestartResult, RunState, StartResult, StopResult
from lxcctl.services.lxc.provisioning import Provisioner
from lxcctl.services.lxc.readiness import ReadinessWaiter
from lxcctl.services.lxc.registry import ContainerRegistry
from lxcctl.services.lxc.remote_shell import RemoteShell
from lxcctl.services.lxc.runtime import RuntimeGateway

logger = get_logger(__name__)


class LifecycleController:
    """Drives containers between the Stopped and Running states.

    Run state is read from the runtime on every call, never cached. Every
    operation validates the container name before touching anything.
    """

    def __init__(
        self,
        config: LxcConfig,
        runtime: RuntimeGateway,
        registry: Optional[ContainerRegistry] = None,
        waiter: Optional[ReadinessWaiter] = None,
        shell: Optional[RemoteShell] = None,
        provisioner: Optional[Provisioner] = None,
    ):
        self.config = config
        self.runtime = runtime
        self.registry = registry or ContainerRegistry(config.lxc_root)
        self.waiter = waiter or ReadinessWaiter(config, runtime)
        self.shell = shell or RemoteShell(config)
        self.provisioner = provisioner or Provisioner(config, runtime, self.registry)

    def status(self, name: str) -> RunState:
        """Return the current run state of a container."""
        self.registry.check_valid(name)
        return self.runtime.state(name)

    def info(self, name: str) -> str:
        """Return the runtime's status report for a container."""
        self.registry.check_valid(name)
        return self.runtime.info(name)

    def is_autostart(self, name: str) -> bool:
        return self.config.autostart_path(name).exists()

    def create(self, name: str, **options) -> None:
        """Create and provision a new container (see Provisioner.create)."""
        self.provisioner.create(name, **options)

    def start(self, name: str) -> StartResult:
        """Start a stopped container and wait for its network.

        Returns:
            StartResult; network_confirmed is False if the guest did not
            report its network in time (the container is running anyway)

        Raises:
            ContainerNotFound: If the container does not exist
            AlreadyRunning: If the container is already running
            RuntimeCommandFailure: If lxc-start or lxc-wait fails
        """
        self.registry.check_valid(name)
        if self.runtime.state(name) is RunState.RUNNING:
            raise AlreadyRunning(name)

        # A marker left over from an unclean shutdown would confirm too early
        self._clear_network_marker(name)

        logger.info(f"Starting {name}")
        self.runtime.start(name)
        self.runtime.wait_for_state(name, RunState.RUNNING)

        network = self.waiter.wait_for_network(name)
        if not network:
            logger.warning(
                f"Could not confirm {name} started: "
                f"no network after {network.attempts} attempts"
            )
            return StartResult(name, network_confirmed=False, attempts=network.attempts)

        logger.info(f"✓ Started {name}")
        return StartResult(name, network_confirmed=True, attempts=network.attempts)

    def stop(self, name: str) -> StopResult:
        """Stop a running container, gracefully if possible.

        Asks the guest to halt, then waits for its processes to exit. If they
        are still there after the shutdown window, the container is stopped
        forcefully.

        Raises:
            ContainerNotFound: If the container does not exist
            AlreadyStopped: If the container is not running
            InspectorFailure: If the process list cannot be read
            RuntimeCommandFailure: If lxc-stop or lxc-wait fails
        """
        self.registry.check_valid(name)
        if self.runtime.state(name) is RunState.STOPPED:
            raise AlreadyStopped(name)

        logger.info(f"Stopping {name}")
        try:
            halted = self._request_halt(name)
        finally:
            self._clear_network_marker(name)

        attempts = 0
        if halted:
            gone = self.waiter.wait_for_processes_gone(name)
            attempts = gone.attempts
            if gone:
                self.runtime.wait_for_state(name, RunState.STOPPED)
                logger.info(f"✓ Stopped {name}")
                return StopResult(name, forced=False, attempts=attempts)
            logger.warning(
                f"{name} did not shut down within {self.config.shutdown_timeout:g}s, "
                f"stopping it forcefully"
            )

        self.runtime.stop(name)
        self.runtime.wait_for_state(name, RunState.STOPPED)
        logger.info(f"✓ Stopped {name} (forced)")
        return StopResult(name, forced=True, attempts=attempts)

    def restart(self, name: str) -> RestartResult:
        """Stop the container if it is running, then start it."""
        self.registry.check_valid(name)

        stop_result = None
        if self.runtime.state(name) is RunState.STOPPED:
            logger.info(f"{name} is not running, skipping stop")
        else:
            stop_result = self.stop(name)

        return RestartResult(name, stop=stop_result, start=self.start(name))

    def resync(self, name: str) -> int:
        """Re-apply configuration management inside a running container.

        Returns:
            Exit status of the resync command

        Raises:
            ContainerStopped: If the container is not running
            NoNetworkAddress: If the container has no known address
            RuntimeCommandFailure: If the resync command reports failure
        """
        self._require_running(name)

        logger.info(f"Resyncing {name}")
        command = self.config.resync_command
        returncode = self.shell.run(name, command)
        if returncode not in self.config.resync_ok_codes:
            raise RuntimeCommandFailure(command, returncode, f"resync of {name} failed")

        logger.info(f"✓ Resynced {name}")
        return returncode

    def destroy(self, name: str) -> None:
        """Destroy a container, stopping it first if necessary."""
        self.registry.check_valid(name)

        if self.runtime.state(name) is RunState.RUNNING:
            self.stop(name)

        logger.info(f"Destroying {name}")
        self.runtime.destroy(name)
        logger.info(f"✓ Destroyed {name}")

    def console(self, name: str) -> int:
        """Attach to the container console while holding its console lock.

        Raises:
            ContainerStopped: If the container is not running
            AlreadyLocked: If the console is open elsewhere
        """
        self._require_running(name)

        with console_lock(name, self.config.console_lock_path(name)):
            return self.runtime.console(name)

    def enter(self, name: str) -> int:
        """Open an interactive shell in a running container."""
        self._require_running(name)
        return self.shell.enter(name)

    def exec(self, name: str, command: Sequence[str], tty: bool = False) -> int:
        """Run a command in a running container, returning its exit status."""
        self._require_running(name)
        return self.shell.run(name, command, tty=tty)

    def _require_running(self, name: str) -> None:
        self.registry.check_valid(name)
        if self.runtime.state(name) is RunState.STOPPED:
            raise ContainerStopped(name)

    def _request_halt(self, name: str) -> bool:
        """Ask the guest to shut itself down.

        Returns:
            False if the guest could not be reached
        """
        try:
            returncode = self.shell.run(name, self.config.halt_command)
        except NoNetworkAddress:
            logger.warning(f"{name} has no known address, cannot halt it gracefully")
            return False
        except RuntimeCommandFailure as e:
            logger.warning(f"Could not reach {name} to halt it: {e}")
            return False

        # ssh often loses the connection as the guest goes down
        if returncode != 0:
            logger.debug(f"Halt command in {name} exited with {returncode}")
        return True

    def _clear_network_marker(self, name: str) -> None:
        self.config.network_marker_path(name).unlink(missing_ok=True)
