"""Operations over every container on the host."""
from typing import Callable, Optional

from lxcctl.core.errors import AlreadyRunning, AlreadyStopped, LxcError
from lxcctl.core.logger import get_logger
from lxcctl.models.container import FleetItem, FleetReport, Outcome, RunState
from lxcctl.services.lxc.lifecycle import LifecycleController
from lxcctl.services.lxc.registry import ContainerRegistry

logger = get_logger(__name__)


class FleetOrchestrator:
    """Applies lifecycle operations to every container, one at a time.

    Containers are processed in name order. A failure is recorded in the
    report against the container it happened to, and the pass carries on
    with the next one.
    """

    def __init__(self, controller: LifecycleController, registry: Optional[ContainerRegistry] = None):
        self.controller = controller
        self.registry = registry or controller.registry

    def status_all(self) -> FleetReport:
        """Report the run state of every container."""
        report = FleetReport("status")
        for name in self.registry.list_all():
            try:
                state = self.controller.status(name)
            except Exception as e:
                self._failed(report, name, e, state=RunState.UNKNOWN)
                continue
            report.add(FleetItem(name, Outcome.OK, state=state))
        return report

    def resync_all(self, all: bool = False) -> FleetReport:
        """Resync every running container.

        Args:
            all: Also resync stopped containers, starting them for the
                duration and stopping them again afterwards
        """
        report = FleetReport("resync")
        for name in self.registry.list_all():
            try:
                state = self.controller.status(name)
            except Exception as e:
                self._failed(report, name, e, state=RunState.UNKNOWN)
                continue

            if state is RunState.STOPPED and not all:
                logger.info(f"Skipping {name}, it is stopped")
                report.add(FleetItem(name, Outcome.SKIPPED, "stopped", state=state))
                continue

            if state is RunState.STOPPED:
                report.add(self._resync_stopped(name))
            else:
                report.add(self._attempt(name, lambda: self.controller.resync(name)))
        return report

    def autostart_all(self) -> FleetReport:
        """Start every container carrying the autostart marker."""
        report = FleetReport("autostart")
        for name in self.registry.list_all():
            if not self.controller.is_autostart(name):
                report.add(FleetItem(name, Outcome.SKIPPED, "not set to autostart"))
                continue
            report.add(self._attempt(name, lambda: self.controller.start(name)))
        return report

    def stop_all(self) -> FleetReport:
        """Gracefully stop every running container."""
        report = FleetReport("stopall")
        for name in self.registry.list_all():
            try:
                state = self.controller.status(name)
            except Exception as e:
                self._failed(report, name, e, state=RunState.UNKNOWN)
                continue

            if state is RunState.STOPPED:
                report.add(FleetItem(name, Outcome.SKIPPED, "already stopped", state=state))
                continue
            report.add(self._attempt(name, lambda: self.controller.stop(name)))
        return report

    def _resync_stopped(self, name: str) -> FleetItem:
        """Start a stopped container, resync it, and stop it again.

        If the start fails the resync is not attempted. The container is
        returned to the stopped state whatever happened in between.
        """
        item = self._attempt(name, lambda: self.controller.start(name))
        if not item.failed:
            item = self._attempt(name, lambda: self.controller.resync(name))

        restore = self._restore_stopped(name)
        if restore is not None and not item.failed:
            item = restore
        if not item.failed:
            item.detail = "started, resynced and stopped again"
        return item

    def _restore_stopped(self, name: str) -> Optional[FleetItem]:
        """Stop ``name`` if it is running; return a failure item if that fails."""
        try:
            if self.controller.status(name) is RunState.STOPPED:
                return None
            self.controller.stop(name)
        except Exception as e:
            logger.error(f"Could not return {name} to stopped: {e}")
            return FleetItem(name, Outcome.FAILED, f"could not stop again: {e}", exit_code=exit_code_of(e))
        return None

    def _attempt(self, name: str, operation: Callable[[], object]) -> FleetItem:
        """Run one per-container operation and describe how it went."""
        try:
            result = operation()
        except (AlreadyRunning, AlreadyStopped) as e:
            logger.info(str(e))
            return FleetItem(name, Outcome.SKIPPED, str(e))
        except Exception as e:
            logger.error(f"{name}: {e}")
            return FleetItem(name, Outcome.FAILED, str(e), exit_code=exit_code_of(e))

        if getattr(result, 'network_confirmed', True) is False:
            return FleetItem(name, Outcome.DEGRADED, "started, network not confirmed")
        if getattr(result, 'forced', False):
            return FleetItem(name, Outcome.OK, "stopped forcefully")
        return FleetItem(name, Outcome.OK)

    @staticmethod
    def _failed(report: FleetReport, name: str, error: Exception, state: Optional[RunState] = None):
        logger.error(f"{name}: {error}")
        report.add(FleetItem(name, Outcome.FAILED, str(error), state=state, exit_code=exit_code_of(error)))


def exit_code_of(error: Exception) -> int:
    """Exit status a failure should give the command that hit it."""
    return error.exit_code if isinstance(error, LxcError) else 1
