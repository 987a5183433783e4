"""Waiting for containers to reach a milestone."""
import time
from typing import Callable, Optional

from lxcctl.core.config import LxcConfig
from lxcctl.core.logger import get_logger
from lxcctl.core.retry import PollResult, poll
from lxcctl.services.lxc.runtime import RuntimeGateway

logger = get_logger(__name__)


class ReadinessWaiter:
    """Polls guest-visible signals with bounded retries.

    Running out of attempts is reported as a falsy PollResult, never raised.
    Failures of the process inspector are raised (InspectorFailure).
    """

    def __init__(
        self,
        config: LxcConfig,
        runtime: RuntimeGateway,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.runtime = runtime
        self.sleep = sleep

    def wait_for_network(
        self,
        name: str,
        attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> PollResult:
        """Wait for the guest to write its network-ready marker.

        Args:
            name: Container name
            attempts: Polls before giving up (default: config.network_attempts)
            interval: Seconds between polls (default: config.network_interval)
        """
        marker = self.config.network_marker_path(name)
        result = poll(
            marker.exists,
            attempts=attempts if attempts is not None else self.config.network_attempts,
            interval=interval if interval is not None else self.config.network_interval,
            sleep=self.sleep,
            description=f"network of {name}",
        )
        if not result:
            logger.debug(f"No network marker at {marker} after {result.attempts} attempts")
        return result

    def wait_for_processes_gone(
        self,
        name: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> PollResult:
        """Wait until no processes remain inside the container.

        Args:
            name: Container name
            timeout: Seconds to wait (default: config.shutdown_timeout)
            interval: Seconds between polls (default: config.process_interval)

        Raises:
            InspectorFailure: If the process list cannot be read
        """
        interval = interval if interval is not None else self.config.process_interval
        timeout = timeout if timeout is not None else self.config.shutdown_timeout
        attempts = max(1, int(round(timeout / interval)))

        return poll(
            lambda: self.runtime.process_count(name) == 0,
            attempts=attempts,
            interval=interval,
            sleep=self.sleep,
            description=f"shutdown of {name}",
        )
