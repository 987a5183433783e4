"""Tests for the lxc command line."""
import os

import pytest
from typer.testing import CliRunner

from lxcctl import cli_support
from lxcctl.cli import app, normalize_args
from lxcctl.models.container import RunState

runner = CliRunner()


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(os, "geteuid", lambda: 0)
    monkeypatch.setattr(os, "getuid", lambda: 0)


@pytest.fixture
def cli(monkeypatch, controller, as_root):
    """Invoke the CLI against the in-memory runtime."""
    monkeypatch.delenv("LXCCTL_CONFIG", raising=False)
    monkeypatch.setattr(cli_support, "build_controller", lambda config: controller)

    def invoke(*args, **kwargs):
        return runner.invoke(app, normalize_args(list(args)), **kwargs)

    return invoke


class TestNormalizeArgs:
    def test_name_first(self):
        assert normalize_args(["web", "start"]) == ["start", "web"]

    def test_command_first(self):
        assert normalize_args(["start", "web"]) == ["start", "web"]

    def test_host_wide_command(self):
        assert normalize_args(["stopall"]) == ["stopall"]

    def test_global_options_are_skipped(self):
        assert normalize_args(["--config", "x.yml", "-v", "web", "stop"]) == [
            "--config", "x.yml", "-v", "stop", "web"
        ]

    def test_exec_arguments_untouched(self):
        assert normalize_args(["web", "exec", "--", "ls", "status"]) == [
            "exec", "web", "--", "ls", "status"
        ]


def test_requires_root(monkeypatch, controller, runtime):
    runtime.add("web")
    monkeypatch.setattr(cli_support, "build_controller", lambda config: controller)
    monkeypatch.setattr(os, "geteuid", lambda: 1000)
    monkeypatch.setattr(os, "getuid", lambda: 1000)

    result = runner.invoke(app, ["start", "web"])

    assert result.exit_code == 1
    assert "You must be root" in result.output
    assert runtime.calls == []


def test_start(cli, runtime):
    runtime.add("web")

    result = cli("web", "start")

    assert result.exit_code == 0, result.output
    assert "Started web" in result.output
    assert runtime.states["web"] is RunState.RUNNING


def test_start_unknown_container(cli):
    result = cli("ghost", "start")

    assert result.exit_code == 1
    assert "No such container 'ghost'" in result.output


def test_start_running_container(cli, runtime):
    runtime.add("web", running=True)

    result = cli("web", "start")

    assert result.exit_code == 1
    assert "IS started" in result.output


def test_start_without_network_still_succeeds(cli, runtime):
    runtime.add("web")
    runtime.network_on_start = False

    result = cli("web", "start")

    assert result.exit_code == 0
    assert "could not confirm" in result.output


def test_runtime_failure_exit_status(cli, runtime):
    runtime.add("web")
    runtime.fail[("start", "web")] = 4

    result = cli("web", "start")

    assert result.exit_code == 4


def test_stop_and_restart(cli, runtime):
    runtime.add("web", running=True)

    assert cli("web", "stop").exit_code == 0
    assert runtime.states["web"] is RunState.STOPPED

    result = cli("web", "restart")
    assert result.exit_code == 0
    assert "was not running" in result.output
    assert runtime.states["web"] is RunState.RUNNING


def test_destroy_asks_for_confirmation(cli, runtime, config):
    runtime.add("web")

    result = cli("web", "destroy", input="n\n")
    assert result.exit_code == 1
    assert "Aborted" in result.output
    assert config.container_dir("web").exists()

    result = cli("web", "destroy", input="y\n")
    assert result.exit_code == 0
    assert not config.container_dir("web").exists()


def test_destroy_unknown_does_not_prompt(cli):
    result = cli("ghost", "destroy")

    assert result.exit_code == 1
    assert "Are you sure" not in result.output


def test_exec_propagates_exit_status(cli, runtime, shell):
    runtime.add("web", running=True)
    shell.returncodes["web"] = 5

    result = cli("web", "exec", "--", "false")

    assert result.exit_code == 5
    assert ("web", ["false"]) in shell.commands


def test_console_already_locked(cli, runtime, config):
    runtime.add("web", running=True)
    config.console_lock_path("web").write_text("")

    result = cli("web", "console")

    assert result.exit_code == 1
    assert "open elsewhere" in result.output
    assert runtime.count("console") == 0


def test_status_single_brief(cli, runtime):
    runtime.add("web")

    result = cli("web", "status", "--brief")

    assert result.exit_code == 0
    assert result.output.strip() == "stopped"


def test_status_all(cli, runtime):
    runtime.add("web")
    runtime.add("db", running=True)

    result = cli("status", "--brief")

    assert result.exit_code == 0
    assert result.output.splitlines() == ["db running", "web stopped"]


def test_stopall(cli, runtime):
    runtime.add("web")
    runtime.add("db", running=True)
    runtime.add("cache")

    result = cli("stopall")

    assert result.exit_code == 0, result.output
    assert runtime.states["db"] is RunState.STOPPED
    assert "lxc stopall" in result.output


def test_resync_all_reports_failures(cli, runtime, shell):
    runtime.add("web", running=True)
    runtime.add("db", running=True)
    shell.returncodes["db"] = 1

    result = cli("resync")

    assert result.exit_code == 1
    assert "1 of 2 container(s) failed" in result.output
    assert shell.resyncs("web") == 1


def test_autostart(cli, runtime, config):
    runtime.add("web")
    config.autostart_path("web").touch()

    result = cli("autostart")

    assert result.exit_code == 0
    assert runtime.states["web"] is RunState.RUNNING


def test_autostart_failure_exit_status(cli, runtime, config):
    runtime.add("web")
    config.autostart_path("web").touch()
    runtime.fail[("start", "web")] = 4

    result = cli("autostart")

    assert result.exit_code == 4
    assert "1 of 1 container(s) failed" in result.output


def test_create_installs_sudo_user(cli, monkeypatch, controller):
    captured = {}
    monkeypatch.setenv("SUDO_USER", "alice")
    monkeypatch.setattr(controller, "create", lambda name, **options: captured.update(name=name, **options))

    result = cli("web", "create", "--mirror", "mirror.example.com", "--no-packages")

    assert result.exit_code == 0, result.output
    assert captured == {
        "name": "web",
        "user": "alice",
        "bind_home": True,
        "mirror": "mirror.example.com",
        "autostart": False,
        "install_packages": False,
    }


def test_malformed_environment_config(monkeypatch, as_root):
    monkeypatch.delenv("LXCCTL_CONFIG", raising=False)
    monkeypatch.setenv("LXCCTL_SHUTDOWN_TIMEOUT", "soon")

    result = runner.invoke(app, ["stopall"])

    assert result.exit_code == 1
    assert "Invalid LXCCTL_" in result.output
