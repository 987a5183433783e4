"""LXC container management.

This package separates the container concerns:
- LxcRuntime: lxc-* command adapter (RuntimeGateway)
- ContainerRegistry: Which containers exist
- ReadinessWaiter: Bounded waits for network and shutdown
- RemoteShell: Commands inside containers over ssh
- Provisioner: Create and prepare new containers
- LifecycleController: Start, stop, restart, resync, destroy
- FleetOrchestrator: The same operations across every container
"""
from .fleet import FleetOrchestrator
from .lifecycle import LifecycleController
from .provisioning import Provisioner
from .readiness import ReadinessWaiter
from .registry import ContainerRegistry
from .remote_shell import RemoteShell
from .runtime import LxcRuntime, RuntimeGateway

__all__ = [
    'ContainerRegistry',
    'FleetOrchestrator',
    'LifecycleController',
    'LxcRuntime',
    'Provisioner',
    'ReadinessWaiter',
    'RemoteShell',
    'RuntimeGateway',
]
