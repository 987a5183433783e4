"""Shared test fixtures for lxcctl tests."""
import shutil
from typing import Dict, List, Optional, Set, Tuple

import pytest

from lxcctl.core.config import LxcConfig
from lxcctl.core.errors import NoNetworkAddress, RuntimeCommandFailure
from lxcctl.models.container import RunState
from lxcctl.services.lxc import ContainerRegistry, FleetOrchestrator, LifecycleController, ReadinessWaiter
from lxcctl.services.lxc.runtime import RuntimeGateway


class FakeRuntime(RuntimeGateway):
    """In-memory runtime backed by directories under the config's lxc_root."""

    def __init__(self, config: LxcConfig):
        self.config = config
        self.states: Dict[str, RunState] = {}
        self.processes: Dict[str, int] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail: Dict[Tuple[str, str], int] = {}
        self.stuck: Set[str] = set()
        self.network_on_start = True
        self.inspector_broken = False
        self.console_returncode = 0

    def add(self, name: str, running: bool = False) -> None:
        self.config.rootfs(name).mkdir(parents=True)
        self.states[name] = RunState.STOPPED
        self.processes[name] = 0
        if running:
            self._boot(name)

    def count(self, op: str, name: Optional[str] = None) -> int:
        return sum(1 for call in self.calls if call[0] == op and (name is None or call[1] == name))

    def _record(self, op: str, name: str) -> None:
        self.calls.append((op, name))
        if (op, name) in self.fail:
            raise RuntimeCommandFailure([f"lxc-{op}", "-n", name], self.fail[(op, name)], "boom")

    def _boot(self, name: str) -> None:
        self.states[name] = RunState.RUNNING
        self.processes[name] = 3
        if self.network_on_start:
            marker = self.config.network_marker_path(name)
            marker.parent.mkdir(parents=True, exist_ok=True)
            marker.write_text("10.0.3.15\n")

    def create(self, name, template, config_file=None):
        self._record("create", name)
        self.add(name)

    def start(self, name):
        self._record("start", name)
        self._boot(name)

    def stop(self, name):
        self._record("stop", name)
        self.states[name] = RunState.STOPPED
        self.processes[name] = 0

    def destroy(self, name):
        self._record("destroy", name)
        shutil.rmtree(self.config.container_dir(name))
        del self.states[name]

    def wait_for_state(self, name, state):
        self._record("wait", name)

    def info(self, name):
        self._record("info", name)
        return f"Name:           {name}\nState:          {self.states[name].value.upper()}\n"

    def list_processes(self):
        if self.inspector_broken:
            return "lxc-ps: cgroup not mounted\n", 1
        lines = ["CONTAINER    PID TTY          TIME CMD", "            1 ?        00:00:01 init"]
        for name, count in self.processes.items():
            for pid in range(count):
                lines.append(f"{name:<12}{100 + pid:>5} ?        00:00:00 sleep")
        return "\n".join(lines) + "\n", 0

    def console(self, name):
        self._record("console", name)
        return self.console_returncode


class FakeShell:
    """Stands in for RemoteShell; halting a guest ends its processes."""

    def __init__(self, config: LxcConfig, runtime: FakeRuntime):
        self.config = config
        self.runtime = runtime
        self.commands: List[Tuple[str, List[str]]] = []
        self.returncodes: Dict[str, int] = {}
        self.errors: Dict[str, Exception] = {}

    def _check_address(self, name: str) -> None:
        if not self.config.network_marker_path(name).exists():
            raise NoNetworkAddress(name)

    def run(self, name, command, tty=False):
        self._check_address(name)
        self.commands.append((name, list(command)))
        if list(command) == self.config.halt_command:
            if name not in self.runtime.stuck:
                self.runtime.processes[name] = 0
                self.runtime.states[name] = RunState.STOPPED
            return 0
        if name in self.errors:
            raise self.errors[name]
        return self.returncodes.get(name, 0)

    def enter(self, name):
        self._check_address(name)
        self.commands.append((name, ["<shell>"]))
        return self.returncodes.get(name, 0)

    def resyncs(self, name: Optional[str] = None) -> int:
        return sum(
            1 for n, cmd in self.commands
            if cmd == self.config.resync_command and (name is None or n == name)
        )


@pytest.fixture
def config(tmp_path):
    """Config rooted in a temporary directory with short waits."""
    return LxcConfig(
        lxc_root=tmp_path / "lxc",
        network_attempts=5,
        network_interval=0.01,
        shutdown_timeout=0.05,
        process_interval=0.01,
    )


@pytest.fixture
def runtime(config):
    config.lxc_root.mkdir(parents=True, exist_ok=True)
    return FakeRuntime(config)


@pytest.fixture
def shell(config, runtime):
    return FakeShell(config, runtime)


@pytest.fixture
def sleeps():
    """Records requested sleeps instead of sleeping."""
    return []


@pytest.fixture
def controller(config, runtime, shell, sleeps):
    registry = ContainerRegistry(config.lxc_root)
    waiter = ReadinessWaiter(config, runtime, sleep=sleeps.append)
    return LifecycleController(config, runtime, registry=registry, waiter=waiter, shell=shell)


@pytest.fixture
def fleet(controller):
    return FleetOrchestrator(controller)
