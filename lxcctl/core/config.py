"""lxcctl runtime configuration and settings."""
import os
import shlex
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from lxcctl.core.errors import ConfigError

# Config search paths, first match wins
CONFIG_PATHS = [
    "/etc/lxcctl/lxcctl.yml",
]


@dataclass
class LxcConfig:
    """Runtime configuration for lxcctl operations.

    Attributes:
        lxc_root: Directory holding one subdirectory per container
        network_config: lxc config file passed to lxc-create
        template: lxc template used by lxc-create
        network_marker: Path inside the container rootfs that the guest writes
            (containing its address) once networking is configured
        autostart_marker: File in the container directory marking autostart
        console_lock: File in the container directory guarding the console
        network_attempts: Polls of the network marker after start (default: 100)
        network_interval: Seconds between network marker polls (default: 0.1)
        shutdown_timeout: Seconds to wait for guest processes after halt (default: 20)
        process_interval: Seconds between process list polls (default: 0.1)
        halt_command: Command run in the guest for a graceful stop
        resync_command: Command run in the guest to re-apply configuration
        resync_ok_codes: Exit statuses of resync_command treated as success
        ssh_user: User for remote commands
        ssh_options: Extra options passed to ssh
        packages: Packages installed into every new container
    """

    lxc_root: Path = Path("/var/lib/lxc")
    network_config: Path = Path("/etc/lxc/lxc.conf")
    template: str = "ubuntu"

    network_marker: str = "var/lib/lxcctl/network-ready"
    autostart_marker: str = "autostart"
    console_lock: str = "console-lock"

    # 100 attempts at 100ms: ten seconds for the guest to report its address
    network_attempts: int = 100
    network_interval: float = 0.1
    shutdown_timeout: float = 20
    process_interval: float = 0.1

    halt_command: List[str] = field(default_factory=lambda: ["halt"])
    # puppet exits 2 when it applied changes
    resync_command: List[str] = field(default_factory=lambda: ["puppet", "agent", "--test"])
    resync_ok_codes: List[int] = field(default_factory=lambda: [0, 2])

    ssh_user: str = "root"
    ssh_options: List[str] = field(default_factory=lambda: [
        "-o", "StrictHostKeyChecking=no",
        "-o", "UserKnownHostsFile=/dev/null",
        "-o", "LogLevel=ERROR",
    ])

    packages: List[str] = field(default_factory=lambda: ["gpgv", "puppet"])

    def __post_init__(self):
        self.lxc_root = Path(self.lxc_root)
        self.network_config = Path(self.network_config)
        if self.network_attempts < 1:
            raise ConfigError("network_attempts must be at least 1")
        if self.shutdown_timeout < 0:
            raise ConfigError("shutdown_timeout must not be negative")
        if self.network_interval <= 0 or self.process_interval <= 0:
            raise ConfigError("polling intervals must be positive")

    def container_dir(self, name: str) -> Path:
        return self.lxc_root / name

    def rootfs(self, name: str) -> Path:
        return self.container_dir(name) / "rootfs"

    def network_marker_path(self, name: str) -> Path:
        return self.rootfs(name) / self.network_marker

    def autostart_path(self, name: str) -> Path:
        return self.container_dir(name) / self.autostart_marker

    def console_lock_path(self, name: str) -> Path:
        return self.container_dir(name) / self.console_lock

    @classmethod
    def from_env(cls) -> "LxcConfig":
        """Create config from environment variables.

        Environment variables:
            LXCCTL_ROOT: Container storage directory
            LXCCTL_TEMPLATE: lxc template for new containers
            LXCCTL_NETWORK_ATTEMPTS: Network marker polls after start
            LXCCTL_SHUTDOWN_TIMEOUT: Seconds to wait for a graceful stop
            LXCCTL_RESYNC_COMMAND: Shell-quoted resync command

        Returns:
            LxcConfig instance with values from environment or defaults
        """
        defaults = cls()
        resync = os.getenv("LXCCTL_RESYNC_COMMAND")
        try:
            return cls(
                lxc_root=Path(os.getenv("LXCCTL_ROOT", defaults.lxc_root)),
                template=os.getenv("LXCCTL_TEMPLATE", defaults.template),
                network_attempts=int(
                    os.getenv("LXCCTL_NETWORK_ATTEMPTS", defaults.network_attempts)
                ),
                shutdown_timeout=float(
                    os.getenv("LXCCTL_SHUTDOWN_TIMEOUT", defaults.shutdown_timeout)
                ),
                resync_command=shlex.split(resync) if resync else defaults.resync_command,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid LXCCTL_* environment variable: {e}") from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LxcConfig":
        """Create config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        values = dict(data)
        for key in ("halt_command", "resync_command"):
            if isinstance(values.get(key), str):
                values[key] = shlex.split(values[key])
        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> "LxcConfig":
        """Load config from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
        return cls.from_dict(data)


def find_config(config_path: Optional[str] = None) -> Optional[Path]:
    """Locate the active config file, or None if there is none."""
    if config_path:
        return Path(config_path)

    if env_config := os.environ.get("LXCCTL_CONFIG"):
        return Path(env_config)

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def load_config(config_path: Optional[str] = None) -> LxcConfig:
    """Load the config file if one is found, else read the environment."""
    path = find_config(config_path)
    if path is None:
        return LxcConfig.from_env()
    return LxcConfig.from_file(path)
