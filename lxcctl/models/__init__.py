"""Data models for lxcctl."""
from lxcctl.models.container import (
    FleetItem,
    FleetReport,
    Outcome,
    RestartResult,
    RunState,
    StartResult,
    StopResult,
)

__all__ = [
    'FleetItem',
    'FleetReport',
    'Outcome',
    'RestartResult',
    'RunState',
    'StartResult',
    'StopResult',
]
