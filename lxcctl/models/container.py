"""Container state and operation result models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class RunState(str, Enum):
    """Observed run state of a container."""
    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"  # the runtime could not answer

    @classmethod
    def from_lxc(cls, state: str) -> "RunState":
        """Decode an lxc state word (RUNNING, STOPPED, STARTING, ...).

        Only STOPPED means the init process is gone; transitional states
        (STARTING, STOPPING, FROZEN, ...) still have it executing.
        """
        state = state.strip().upper()
        if not state:
            return cls.UNKNOWN
        if state == "STOPPED":
            return cls.STOPPED
        return cls.RUNNING


@dataclass
class StartResult:
    """Result of starting a container.

    network_confirmed is False when the guest did not report its network
    within the polling window; the container is running regardless.
    """
    name: str
    network_confirmed: bool = True
    attempts: int = 0


@dataclass
class StopResult:
    """Result of stopping a container."""
    name: str
    forced: bool = False
    attempts: int = 0


@dataclass
class RestartResult:
    name: str
    stop: Optional[StopResult]
    start: StartResult

    @property
    def was_running(self) -> bool:
        return self.stop is not None


class Outcome(str, Enum):
    """Per-container outcome of a fleet operation."""
    OK = "ok"
    DEGRADED = "degraded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FleetItem:
    """What happened to a single container during a fleet operation."""
    name: str
    outcome: Outcome
    detail: str = ""
    state: Optional[RunState] = None
    exit_code: int = 0

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED


@dataclass
class FleetReport:
    """Aggregated outcome of a fleet operation, one item per container."""
    operation: str
    items: List[FleetItem] = field(default_factory=list)

    def add(self, item: FleetItem) -> FleetItem:
        self.items.append(item)
        return item

    def __iter__(self) -> Iterator[FleetItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def failures(self) -> List[FleetItem]:
        return [item for item in self.items if item.failed]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        """Exit status of the first failure, or 0 if nothing failed."""
        for item in self.failures:
            return item.exit_code or 1
        return 0

    def get(self, name: str) -> Optional[FleetItem]:
        for item in self.items:
            if item.name == name:
                return item
        return None
