"""
Tests for the systemd unit, the alias block and systemctl pass-through.
"""

import pytest

from sdtd_launcher import service as service_mod
from sdtd_launcher.errors import ServiceError
from sdtd_launcher.process_runner import CommandResult
from sdtd_launcher.service import (ALIAS_BEGIN, ALIAS_END, ServiceManager, render_unit,
                                   strip_alias_block)

LAUNCHER = "/usr/local/bin/sdtd-launcher"


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(service_mod.os, "geteuid", lambda: 0)


def test_unit_file(settings):
    unit = render_unit(settings, LAUNCHER)
    assert f"WorkingDirectory={settings.server_dir}" in unit
    assert f"ExecStartPre={LAUNCHER} update" in unit
    assert f"ExecStart={settings.server_dir}/startserver.sh -configfile=serverconfig.xml -logfile /dev/stdout" in unit
    assert "Restart=on-failure" in unit
    assert "TimeoutStartSec=10min" in unit
    assert "WantedBy=multi-user.target" in unit


def test_strip_alias_block():
    text = f"export PATH=/usr/bin\n{ALIAS_BEGIN}\nalias 7d2d_start='x'\n{ALIAS_END}\nalias ll='ls -l'\n"
    assert strip_alias_block(text) == "export PATH=/usr/bin\nalias ll='ls -l'\n"


def test_strip_legacy_alias_function():
    text = (
        "alias ll='ls -l'\n"
        "# 7 Days to Die service management aliases\n"
        "alias 7d2d_start='systemctl start 7d2d.service'\n"
        "7d2d_serverlog() {\n"
        "    tail -f \"$LOG\"\n"
        "}\n"
        "export EDITOR=vim\n"
    )
    assert strip_alias_block(text) == "alias ll='ls -l'\nexport EDITOR=vim\n"


def test_aliases_installed_once(settings, runner):
    settings.bashrc_file.write_text("alias ll='ls -l'\n", encoding="utf-8")
    svc = ServiceManager(settings, runner)
    svc.install_aliases(LAUNCHER)
    first = settings.bashrc_file.read_text(encoding="utf-8")
    svc.install_aliases(LAUNCHER)
    second = settings.bashrc_file.read_text(encoding="utf-8")

    assert first == second
    assert second.startswith("alias ll='ls -l'\n")
    assert second.count(ALIAS_BEGIN) == 1
    assert "alias 7d2d_start='systemctl start 7d2d.service'" in second
    assert "alias 7d2d_log='journalctl -u 7d2d.service -f'" in second
    assert f"alias 7d2d_serverlog='{LAUNCHER} serverlog --follow'" in second


def test_install_requires_root(settings, runner, monkeypatch):
    monkeypatch.setattr(service_mod.os, "geteuid", lambda: 1000)
    with pytest.raises(ServiceError):
        ServiceManager(settings, runner).install(LAUNCHER)
    assert not settings.service_file.exists()
    assert runner.calls == []


def test_install_enables_unit(settings, runner, as_root):
    runner.on("is-active", returncode=3)
    info = ServiceManager(settings, runner).install(LAUNCHER)

    assert settings.service_file.read_text(encoding="utf-8") == render_unit(settings, LAUNCHER)
    assert runner.commands()[:2] == ["systemctl daemon-reload", "systemctl enable 7d2d.service"]
    assert not runner.ran("systemctl restart")
    assert info == {"unit_file": str(settings.service_file), "restarted": False}
    assert ALIAS_BEGIN in settings.bashrc_file.read_text(encoding="utf-8")


def test_install_restarts_running_service(settings, runner, as_root):
    info = ServiceManager(settings, runner).install(LAUNCHER)
    assert runner.ran("systemctl restart 7d2d.service")
    assert info["restarted"]


def test_enable_failure(settings, runner, as_root):
    runner.on("systemctl enable", returncode=1)
    with pytest.raises(ServiceError):
        ServiceManager(settings, runner).install(LAUNCHER)


def test_status_parses_systemctl_show(settings, runner):
    runner.on("systemctl show", stdout="ActiveState=active\nSubState=running\nMainPID=4242\n")
    assert ServiceManager(settings, runner).status() == {
        "ActiveState": "active", "SubState": "running", "MainPID": "4242",
    }


def test_journal_follow(settings, runner):
    ServiceManager(settings, runner).journal(follow=True, lines=20)
    assert runner.commands() == ["journalctl -u 7d2d.service -n 20 -f"]


def test_start_failure(settings, runner):
    runner.on("systemctl start", returncode=5)
    res = ServiceManager(settings, runner).start()
    assert isinstance(res, CommandResult)
    assert not res.ok
