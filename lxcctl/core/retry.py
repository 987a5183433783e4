"""Bounded polling with a fixed interval."""
import time
from dataclasses import dataclass
from typing import Callable

from lxcctl.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PollResult:
    """Outcome of a bounded poll.

    Attributes:
        ok: True if the condition was observed before attempts ran out
        attempts: Number of times the condition was evaluated
    """
    ok: bool
    attempts: int

    def __bool__(self) -> bool:
        return self.ok


def poll(
    condition: Callable[[], bool],
    attempts: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "condition",
) -> PollResult:
    """Evaluate ``condition`` until it holds or ``attempts`` are used up.

    Running out of attempts is a normal outcome and is reported through
    ``PollResult.ok``. Exceptions raised by ``condition`` are not retried.

    Args:
        condition: Zero-argument callable returning True when done
        attempts: Maximum number of evaluations (at least one is made)
        interval: Seconds to sleep between evaluations
        sleep: Sleep function, replaceable in tests
        description: Text used in debug logging

    Example:
        result = poll(lambda: marker.exists(), attempts=100, interval=0.1)
        if not result:
            ...
    """
    attempts = max(1, attempts)

    for attempt in range(1, attempts + 1):
        if condition():
            logger.debug(f"{description} met after {attempt} attempt(s)")
            return PollResult(ok=True, attempts=attempt)
        if attempt < attempts:
            sleep(interval)

    logger.debug(f"{description} not met after {attempts} attempt(s)")
    return PollResult(ok=False, attempts=attempts)
