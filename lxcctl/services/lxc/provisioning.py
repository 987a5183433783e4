"""Provisioning of freshly created containers."""
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jinja2 import Environment, StrictUndefined

from lxcctl.core.config import LxcConfig
from lxcctl.core.errors import ContainerExists, LxcError, RuntimeCommandFailure
from lxcctl.core.logger import get_logger
from lxcctl.services.lxc.registry import ContainerRegistry
from lxcctl.services.lxc.runtime import RuntimeGateway

logger = get_logger(__name__)

UBUNTU_ARCHIVE = "archive.ubuntu.com"

# Files holding password hashes are not world-readable
PRIVATE_FILES = {"shadow": 0o640, "gshadow": 0o640}

INTERFACES_TEMPLATE = """\
auto lo
iface lo inet loopback

auto {{ interface }}
iface {{ interface }} inet dhcp
"""

# Runs in the guest whenever an interface comes up; writes the address the
# host reads to reach the container.
NETWORK_READY_HOOK = """\
#!/bin/sh
[ "$IFACE" = "{{ interface }}" ] || exit 0
mkdir -p "{{ marker_dir }}"
ip -4 -o addr show dev "$IFACE" | awk '{split($4, a, "/"); print a[1]; exit}' > "{{ marker }}.tmp"
[ -s "{{ marker }}.tmp" ] && mv "{{ marker }}.tmp" "{{ marker }}"
exit 0
"""

_jinja = Environment(undefined=StrictUndefined, keep_trailing_newline=True)


def render(template: str, **context) -> str:
    return _jinja.from_string(template).render(**context)


class Provisioner:
    """Creates containers and prepares them for use with lxcctl."""

    def __init__(
        self,
        config: LxcConfig,
        runtime: RuntimeGateway,
        registry: ContainerRegistry,
        host_etc: Path = Path("/etc"),
    ):
        self.config = config
        self.runtime = runtime
        self.registry = registry
        self.host_etc = Path(host_etc)

    def create(
        self,
        name: str,
        user: Optional[str] = None,
        bind_home: bool = False,
        mirror: Optional[str] = None,
        autostart: bool = False,
        install_packages: bool = True,
        interface: str = "eth0",
    ) -> None:
        """Create a new container.

        Args:
            name: Name of the container to create
            user: Host account (and group of the same name) to mirror into
                the container, keeping the same password
            bind_home: Bind mount /home into the container
            mirror: Hostname replacing archive.ubuntu.com in apt sources
            autostart: Start the container on 'lxc autostart'
            install_packages: Install config.packages with apt
            interface: Guest interface reporting network readiness

        Raises:
            ContainerExists: If the name is already taken
            RuntimeCommandFailure: If lxc-create or apt fails
        """
        if not name:
            raise LxcError("Must specify a name for the container to be created")
        if self.registry.exists(name):
            raise ContainerExists(name)

        self.runtime.create(name, self.config.template, self.config.network_config)

        self.write_network_config(name, interface)
        if bind_home:
            self.bind_mount_home(name)
        if user:
            self.install_user(name, user)
        if mirror:
            self.set_mirror(name, mirror)
        if autostart:
            self.config.autostart_path(name).touch()
            logger.info(f"  ✓ {name} will be started by 'lxc autostart'")
        if install_packages and self.config.packages:
            self.install_packages(name, self.config.packages)

        logger.info(f"✓ Container {name} created")

    def write_network_config(self, name: str, interface: str = "eth0") -> None:
        """Write the interfaces file and the hook that reports readiness."""
        rootfs = self.config.rootfs(name)
        marker = "/" + self.config.network_marker.lstrip("/")

        interfaces = rootfs / "etc/network/interfaces"
        interfaces.parent.mkdir(parents=True, exist_ok=True)
        interfaces.write_text(render(INTERFACES_TEMPLATE, interface=interface))

        hook = rootfs / "etc/network/if-up.d/lxcctl-network-ready"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text(render(
            NETWORK_READY_HOOK,
            interface=interface,
            marker=marker,
            marker_dir=str(Path(marker).parent),
        ))
        hook.chmod(0o755)
        logger.info(f"  ✓ Configured {interface} for {name}")

    def bind_mount_home(self, name: str) -> None:
        fstab = self.config.container_dir(name) / "fstab"
        target = self.config.rootfs(name) / "home"
        with open(fstab, 'a') as f:
            f.write(f"/home           {target}         none bind 0 0\n")
        logger.info(f"  ✓ Bind mounted /home into {name}")

    def install_user(self, name: str, user: str) -> None:
        """Copy a host user and its group into the container."""
        rootfs_etc = self.config.rootfs(name) / "etc"
        copied = False
        for filename, key in (("passwd", user), ("shadow", user), ("group", user)):
            entry = find_entry(self.host_etc / filename, key)
            if entry is None:
                logger.warning(f"  No {filename} entry for '{key}' on the host, skipping")
                continue
            upsert_entry(rootfs_etc / filename, entry, mode=PRIVATE_FILES.get(filename))
            copied = True

        if copied:
            logger.info(f"  ✓ Installed user {user} into {name}")

    def set_mirror(self, name: str, mirror: str) -> None:
        sources = self.config.rootfs(name) / "etc/apt/sources.list"
        if not sources.exists():
            logger.warning(f"  {sources} not found, mirror not set")
            return
        sources.write_text(sources.read_text().replace(UBUNTU_ARCHIVE, mirror))
        logger.info(f"  ✓ Using mirror {mirror}")

    def install_packages(self, name: str, packages: Sequence[str]) -> None:
        rootfs = str(self.config.rootfs(name))
        env = {"DEBIAN_FRONTEND": "noninteractive", "PATH": "/usr/sbin:/usr/bin:/sbin:/bin"}

        for cmd in (
            ['chroot', rootfs, 'apt-get', 'update'],
            ['chroot', rootfs, 'apt-get', 'install', '-y', *packages],
        ):
            logger.debug(f"Running: {' '.join(cmd)}")
            result = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
            if result.returncode != 0:
                raise RuntimeCommandFailure(cmd, result.returncode, result.stderr)
        logger.info(f"  ✓ Installed {', '.join(packages)}")


def find_entry(path: Path, key: str) -> Optional[str]:
    """Return the line of a passwd-style file whose first field is ``key``."""
    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return None
    for line in lines:
        if line.split(':', 1)[0] == key:
            return line
    return None


def upsert_entry(path: Path, entry: str, mode: Optional[int] = None) -> None:
    """Replace the entry with the same key in a passwd-style file, or append it.

    When ``mode`` is given the file is restricted to it before the entry is
    written.
    """
    key = entry.split(':', 1)[0]
    lines: List[str] = path.read_text().splitlines() if path.exists() else []
    entries: Dict[str, int] = {line.split(':', 1)[0]: i for i, line in enumerate(lines)}

    if key in entries:
        lines[entries[key]] = entry
    else:
        lines.append(entry)

    path.parent.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        path.touch(mode=mode, exist_ok=True)
        path.chmod(mode)
    path.write_text("\n".join(lines) + "\n")
