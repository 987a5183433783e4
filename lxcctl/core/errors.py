"""Exceptions raised by lxcctl operations."""
from typing import Optional, Sequence


class LxcError(Exception):
    """Base class for every lxcctl failure."""

    exit_code = 1


class ConfigError(LxcError):
    """Raised when the configuration file is malformed."""


class PermissionDenied(LxcError):
    """Raised when lxcctl is not run as root."""


class ContainerNotFound(LxcError):
    """Raised when a name does not refer to an existing container."""

    def __init__(self, name: str):
        super().__init__(f"No such container '{name}'")
        self.name = name


class ContainerExists(LxcError):
    """Raised when creating a container whose name is already taken."""

    def __init__(self, name: str):
        super().__init__(f"Container '{name}' already exists")
        self.name = name


class AlreadyRunning(LxcError):
    def __init__(self, name: str):
        super().__init__(f"Container '{name}' IS started")
        self.name = name


class AlreadyStopped(LxcError):
    def __init__(self, name: str):
        super().__init__(f"Container '{name}' IS stopped")
        self.name = name


class ContainerStopped(LxcError):
    """Raised when an operation needs a running container."""

    def __init__(self, name: str):
        super().__init__(f"Container '{name}' is stopped")
        self.name = name


class AlreadyLocked(LxcError):
    """Raised when the console for a container is already held."""

    def __init__(self, name: str, holder: Optional[dict] = None):
        message = "You already have the console for this container open elsewhere"
        if holder:
            message += f" (PID {holder['pid']} since {holder['time']})"
        super().__init__(message)
        self.name = name


class InspectorFailure(LxcError):
    """Raised when the runtime cannot report on container state or processes."""


class NoNetworkAddress(LxcError):
    """Raised when a remote command needs an address the guest never reported."""

    def __init__(self, name: str):
        super().__init__(
            f"Could not determine IP address for '{name}'. "
            f"Is its network up? Try 'lxc {name} restart'."
        )
        self.name = name


class RuntimeCommandFailure(LxcError):
    """Raised when an lxc-* primitive exits non-zero."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = ""):
        message = f"{' '.join(command)} failed with exit status {returncode}"
        if output:
            message += f": {output.strip()}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        self.exit_code = returncode or 1
