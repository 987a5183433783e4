"""Tests for lxcctl configuration."""
import textwrap
from pathlib import Path

import pytest

from lxcctl.core.config import LxcConfig, load_config
from lxcctl.core.errors import ConfigError


def test_defaults():
    config = LxcConfig()

    assert config.lxc_root == Path("/var/lib/lxc")
    assert config.network_attempts == 100
    assert config.network_interval == 0.1
    assert config.shutdown_timeout == 20
    assert config.resync_ok_codes == [0, 2]


def test_container_paths():
    config = LxcConfig(lxc_root="/srv/lxc")

    assert config.container_dir("web") == Path("/srv/lxc/web")
    assert config.network_marker_path("web") == Path("/srv/lxc/web/rootfs/var/lib/lxcctl/network-ready")
    assert config.autostart_path("web") == Path("/srv/lxc/web/autostart")
    assert config.console_lock_path("web") == Path("/srv/lxc/web/console-lock")


def test_from_env(monkeypatch):
    monkeypatch.setenv("LXCCTL_ROOT", "/tmp/lxc")
    monkeypatch.setenv("LXCCTL_SHUTDOWN_TIMEOUT", "5")
    monkeypatch.setenv("LXCCTL_RESYNC_COMMAND", "puppet apply /etc/puppet/site.pp")

    config = LxcConfig.from_env()

    assert config.lxc_root == Path("/tmp/lxc")
    assert config.shutdown_timeout == 5.0
    assert config.resync_command == ["puppet", "apply", "/etc/puppet/site.pp"]


def test_from_file(tmp_path):
    path = tmp_path / "lxcctl.yml"
    path.write_text(textwrap.dedent("""\
        lxc_root: /srv/lxc
        template: debian
        halt_command: shutdown -h now
        packages: [gpgv]
    """))

    config = LxcConfig.from_file(path)

    assert config.lxc_root == Path("/srv/lxc")
    assert config.template == "debian"
    assert config.halt_command == ["shutdown", "-h", "now"]
    assert config.packages == ["gpgv"]
    assert config.network_attempts == 100


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "lxcctl.yml"
    path.write_text("")

    assert LxcConfig.from_file(path) == LxcConfig()


def test_unknown_keys_rejected(tmp_path):
    path = tmp_path / "lxcctl.yml"
    path.write_text("lxc_rot: /srv/lxc\n")

    with pytest.raises(ConfigError, match="lxc_rot"):
        LxcConfig.from_file(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "lxcctl.yml"
    path.write_text("lxc_root: [unclosed\n")

    with pytest.raises(ConfigError):
        LxcConfig.from_file(path)


def test_invalid_values():
    with pytest.raises(ConfigError):
        LxcConfig.from_dict({"network_attempts": 0})


def test_load_config_prefers_explicit_path(tmp_path, monkeypatch):
    path = tmp_path / "lxcctl.yml"
    path.write_text("template: debian\n")
    monkeypatch.setenv("LXCCTL_CONFIG", str(tmp_path / "missing.yml"))

    assert load_config(str(path)).template == "debian"


def test_load_config_missing_explicit_path(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "missing.yml"))


@pytest.mark.parametrize("variable, value", [
    ("LXCCTL_NETWORK_ATTEMPTS", "lots"),
    ("LXCCTL_SHUTDOWN_TIMEOUT", "20s"),
    ("LXCCTL_RESYNC_COMMAND", "puppet apply 'unterminated"),
])
def test_from_env_malformed_value(monkeypatch, variable, value):
    monkeypatch.setenv(variable, value)

    with pytest.raises(ConfigError, match="Invalid LXCCTL_"):
        LxcConfig.from_env()
