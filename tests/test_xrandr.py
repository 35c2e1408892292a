from __future__ import annotations

import subprocess

import pytest

from hzctl.backends.xrandr import XrandrBackend, parse_query
from hzctl.core.errors import BackendUnavailableError, DisplayChangeError
from hzctl.core.model import ChangeFailure, ChangeStatus, CurrentSettings, DisplayDevice

QUERY_OUTPUT = """\
Screen 0: minimum 320 x 200, current 4480 x 1440, maximum 16384 x 16384
DP-1 connected primary 2560x1440+0+0 (normal left inverted right x axis y axis) 597mm x 336mm
   2560x1440     59.95 + 143.97*  119.88    99.95
   1920x1080     60.00    59.94
DP-2 disconnected (normal left inverted right x axis y axis)
HDMI-1 connected 1920x1080+2560+0 (normal left inverted right x axis y axis) 527mm x 296mm
   1920x1080     60.00*+  50.00    59.94
   1280x720      60.00    50.00
HDMI-2 connected (normal left inverted right x axis y axis)
   1920x1080     60.00 +
"""


def _cp(cmd: list[str], rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def test_parse_query_numbers_every_output() -> None:
    outputs = parse_query(QUERY_OUTPUT)
    assert [(o.index, o.name, o.connected, o.active) for o in outputs] == [
        (1, "DP-1", True, True),
        (2, "DP-2", False, False),
        (3, "HDMI-1", True, True),
        (4, "HDMI-2", True, False),
    ]


def test_parse_query_finds_current_mode_and_rates() -> None:
    dp1 = parse_query(QUERY_OUTPUT)[0]
    mode = dp1.current_mode
    assert mode is not None
    assert mode.name == "2560x1440"
    assert mode.rates == ("59.95", "143.97", "119.88", "99.95")
    assert mode.current_rate == "143.97"


def test_parse_query_without_current_mode() -> None:
    hdmi2 = parse_query(QUERY_OUTPUT)[3]
    assert hdmi2.current_mode is None


def test_enumerate_active_devices_skips_inactive_outputs(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        assert cmd == ["xrandr", "--query"]
        return _cp(cmd, 0, stdout=QUERY_OUTPUT)

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = XrandrBackend().enumerate_active_devices()
    assert devices == [
        DisplayDevice(index=1, handle="DP-1", name="DP-1"),
        DisplayDevice(index=3, handle="HDMI-1", name="HDMI-1"),
    ]


def test_display_option_is_passed_through(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        return _cp(cmd, 0, stdout=QUERY_OUTPUT)

    monkeypatch.setattr(subprocess, "run", fake_run)

    XrandrBackend(command="/opt/bin/xrandr", display=":1").enumerate_active_devices()
    assert calls == [["/opt/bin/xrandr", "--display", ":1", "--query"]]


def test_missing_xrandr_raises_clean_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(BackendUnavailableError):
        XrandrBackend().enumerate_active_devices()


def test_query_failure_raises_with_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, 1, stderr="Can't open display")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(BackendUnavailableError) as exc:
        XrandrBackend().enumerate_active_devices()
    assert "Can't open display" in str(exc.value)


def test_get_current_settings_rounds_rate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(subprocess, "run", lambda cmd, check, capture_output, text: _cp(cmd, 0, stdout=QUERY_OUTPUT))

    assert XrandrBackend().get_current_settings("DP-1") == CurrentSettings(width=2560, height=1440, refresh_rate=144)


def test_get_current_settings_for_output_without_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(subprocess, "run", lambda cmd, check, capture_output, text: _cp(cmd, 0, stdout=QUERY_OUTPUT))

    with pytest.raises(DisplayChangeError) as exc:
        XrandrBackend().get_current_settings("HDMI-2")
    assert exc.value.reason is ChangeFailure.SETTINGS_UNAVAILABLE


def test_apply_settings_uses_exact_rate_for_current_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        if cmd[-1] == "--query":
            return _cp(cmd, 0, stdout=QUERY_OUTPUT)
        return _cp(cmd, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)

    status = XrandrBackend().apply_settings("DP-1", 120)

    assert status is ChangeStatus.APPLIED
    assert calls[-1] == ["xrandr", "--output", "DP-1", "--mode", "2560x1440", "--rate", "119.88"]


def test_apply_settings_prefers_closest_of_equally_rounded_rates(monkeypatch: pytest.MonkeyPatch) -> None:
    query = """\
DP-1 connected 1920x1080+0+0 (normal left inverted right x axis y axis) 527mm x 296mm
   1920x1080     59.94*   60.00
"""
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        if cmd[-1] == "--query":
            return _cp(cmd, 0, stdout=query)
        return _cp(cmd, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)

    status = XrandrBackend().apply_settings("DP-1", 60)

    assert status is ChangeStatus.APPLIED
    assert calls[-1] == ["xrandr", "--output", "DP-1", "--mode", "1920x1080", "--rate", "60.00"]


def test_apply_settings_rejects_rate_not_offered(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd, check, capture_output, text):
        calls.append(cmd)
        return _cp(cmd, 0, stdout=QUERY_OUTPUT)

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DisplayChangeError) as exc:
        XrandrBackend().apply_settings("HDMI-1", 144)

    assert exc.value.reason is ChangeFailure.MODE_UNSUPPORTED
    assert "60, 50, 60" in str(exc.value)
    assert len(calls) == 1


def test_apply_settings_reports_driver_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        if cmd[-1] == "--query":
            return _cp(cmd, 0, stdout=QUERY_OUTPUT)
        return _cp(cmd, 1, stderr="xrandr: Configure crtc 0 failed")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DisplayChangeError) as exc:
        XrandrBackend().apply_settings("HDMI-1", 50)

    assert exc.value.reason is ChangeFailure.DRIVER_FAILED
    assert exc.value.detail == "xrandr: Configure crtc 0 failed"
    assert not exc.value.reason.is_bug
