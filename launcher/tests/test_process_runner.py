"""
Tests for the real CommandRunner against small shell commands.
"""

import logging

from sdtd_launcher.process_runner import NOT_FOUND_RC, CommandRunner
from sdtd_launcher.steamcmd import SteamCMD


def test_run_captures_output():
    res = CommandRunner().run(["sh", "-c", "echo out; echo err >&2; exit 3"])
    assert res.returncode == 3
    assert res.stdout == "out\n"
    assert res.stderr == "err\n"
    assert not res.ok


def test_run_survives_invalid_utf8():
    res = CommandRunner().run(["sh", "-c", "printf 'build \\377 done\\n'"])
    assert res.ok
    assert res.stdout == "build \ufffd done\n"


def test_stream_survives_invalid_utf8(caplog):
    with caplog.at_level(logging.DEBUG):
        rc = CommandRunner().stream(["sh", "-c", "printf 'Get:1 \\377 pkg\\n'"], noise=())
    assert rc == 0
    assert "Get:1 \ufffd pkg" in caplog.text


def test_missing_executable_returns_127():
    runner = CommandRunner()
    assert runner.run(["sdtd-no-such-binary"]).returncode == NOT_FOUND_RC
    assert runner.stream(["sdtd-no-such-binary"]) == NOT_FOUND_RC
    assert runner.call(["sdtd-no-such-binary"]) == NOT_FOUND_RC


def test_timeout_returns_failure():
    res = CommandRunner().run(["sh", "-c", "sleep 5"], timeout=0.2)
    assert res.returncode == -1


def test_env_is_overlaid():
    res = CommandRunner().run(["sh", "-c", "echo $SDTD_MARKER"], env={"SDTD_MARKER": "set"})
    assert res.stdout == "set\n"


def test_garbled_app_info_means_unknown_build(tmp_path):
    fake = tmp_path / "steamcmd.sh"
    fake.write_text("#!/bin/sh\nprintf 'Loading Steam API...\\377\\n'\n")
    fake.chmod(0o755)
    assert SteamCMD(fake, CommandRunner(), home=tmp_path).latest_build(294420) is None
