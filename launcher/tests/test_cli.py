"""
Tests for the command line entry point.
"""

import json

import pytest

from sdtd_launcher import cli

from conftest import app_info, install_tarball_steamcmd, touch_aged, write_manifest


@pytest.fixture
def host(settings, runner, monkeypatch):
    for name, value in {
        "SERVER_DIR": settings.server_dir,
        "STEAMCMD_ROOT": settings.steamcmd_root,
        "STEAMCMD_LINK": settings.steamcmd_link,
        "LOG_FILE": settings.log_file,
        "ADMIN_FILE": settings.admin_file,
        "CONFIG_OVERRIDE": settings.config_override,
        "SERVICE_FILE": settings.service_file,
        "BASHRC_FILE": settings.bashrc_file,
        "LOCK_TIMEOUT": "1",
        "SKIP_SYSTEM_UPDATE": "true",
    }.items():
        monkeypatch.setenv(name, str(value))
    monkeypatch.setattr(cli, "setup_logging", lambda s: None)
    monkeypatch.setattr(cli, "CommandRunner", lambda: runner)
    return settings


def test_plan_prints_json(host, runner, capsys):
    install_tarball_steamcmd(host)
    write_manifest(host, "20000000")
    runner.on("+app_info_print", stdout=app_info("20000000"))

    assert cli.main(["plan"]) == 0
    plan = json.loads(capsys.readouterr().out)
    assert plan["ok"]
    app_update = [a for a in plan["actions"] if a["action"] == "app_update"][0]
    assert app_update["will_change"] is False


def test_update_exit_code_on_fatal_error(host, runner):
    install_tarball_steamcmd(host)
    runner.on("+app_update", returncode=8)
    assert cli.main(["update"]) == 1


def test_update_clears_log(host, runner):
    install_tarball_steamcmd(host)
    write_manifest(host, "20000000")
    runner.on("+app_info_print", stdout=app_info("20000000"))
    host.log_file.parent.mkdir(parents=True)
    host.log_file.write_text("old run\n", encoding="utf-8")

    assert cli.main(["update", "-c"]) == 0
    text = host.log_file.read_text(encoding="utf-8")
    assert "old run" not in text
    assert text.startswith("Log file cleared at ")


def test_serverlog_prints_tail(host, capsys):
    log = touch_aged(host.server_dir / "output_log__2024.txt", 0)
    log.write_text("one\ntwo\nthree\n", encoding="utf-8")
    assert cli.main(["serverlog", "-n", "2"]) == 0
    assert capsys.readouterr().out == "two\nthree\n"


def test_serverlog_missing(host, capsys):
    assert cli.main(["serverlog"]) == 1
    assert "Server log not found" in capsys.readouterr().out


def test_journal_passthrough(host, runner):
    assert cli.main(["journal", "-n", "10"]) == 0
    assert runner.commands() == ["journalctl -u 7d2d.service -n 10"]


def test_start_failure_exit_code(host, runner):
    runner.on("systemctl start", returncode=1)
    assert cli.main(["start"]) == 1
