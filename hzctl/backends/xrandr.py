"""X11 display backend driven by the `xrandr` command."""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from hzctl.core.errors import BackendUnavailableError, DisplayChangeError
from hzctl.core.model import ChangeFailure, ChangeStatus, CurrentSettings, DisplayDevice

_OUTPUT_LINE_RE = re.compile(r"^(\S+)\s+(connected|disconnected)\b(.*)$")
_GEOMETRY_RE = re.compile(r"\b\d+x\d+\+\d+\+\d+\b")
_MODE_LINE_RE = re.compile(r"^\s+((\d+)x(\d+)\S*)\s+(.*)$")
_RATE_RE = re.compile(r"(\d+(?:\.\d+)?)(\*)?")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class XrandrMode:
    name: str
    width: int
    height: int
    rates: tuple[str, ...]
    current_rate: str | None = None


@dataclass(frozen=True)
class XrandrOutput:
    index: int
    name: str
    connected: bool
    active: bool
    modes: tuple[XrandrMode, ...]

    @property
    def current_mode(self) -> XrandrMode | None:
        for mode in self.modes:
            if mode.current_rate is not None:
                return mode
        return None


def _parse_mode_line(match: re.Match[str]) -> XrandrMode:
    rates: list[str] = []
    current: str | None = None
    for rate_match in _RATE_RE.finditer(match.group(4)):
        rates.append(rate_match.group(1))
        if rate_match.group(2):
            current = rate_match.group(1)
    return XrandrMode(
        name=match.group(1),
        width=int(match.group(2)),
        height=int(match.group(3)),
        rates=tuple(rates),
        current_rate=current,
    )


def parse_query(stdout: str) -> list[XrandrOutput]:
    """Parse `xrandr --query` output into outputs numbered from 1 in listing order."""
    outputs: list[XrandrOutput] = []
    header: tuple[str, bool, bool] | None = None
    modes: list[XrandrMode] = []

    def _flush() -> None:
        if header is not None:
            name, connected, active = header
            outputs.append(
                XrandrOutput(
                    index=len(outputs) + 1,
                    name=name,
                    connected=connected,
                    active=active,
                    modes=tuple(modes),
                )
            )

    for line in stdout.splitlines():
        output_match = _OUTPUT_LINE_RE.match(line)
        if output_match:
            _flush()
            connected = output_match.group(2) == "connected"
            active = connected and bool(_GEOMETRY_RE.search(output_match.group(3)))
            header = (output_match.group(1), connected, active)
            modes = []
            continue

        mode_match = _MODE_LINE_RE.match(line)
        if mode_match and header is not None:
            modes.append(_parse_mode_line(mode_match))

    _flush()
    return outputs


def _rate_value(rate: str) -> int:
    return round(float(rate))


def _run_xrandr(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None


class XrandrBackend:
    name = "xrandr"

    def __init__(self, command: str = "xrandr", display: str | None = None) -> None:
        self.command = command
        self.display = display

    def _base_cmd(self) -> list[str]:
        cmd = [self.command]
        if self.display:
            cmd.extend(["--display", self.display])
        return cmd

    def query(self) -> list[XrandrOutput]:
        cmd = [*self._base_cmd(), "--query"]
        LOGGER.debug("Running %s", " ".join(cmd))
        result = _run_xrandr(cmd)
        if result is None:
            raise BackendUnavailableError(
                f"'{self.command}' was not found. Install xrandr or pick another backend with --backend."
            )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip() or f"exit status {result.returncode}"
            raise BackendUnavailableError(f"xrandr query failed: {stderr}")
        return parse_query(result.stdout)

    def enumerate_active_devices(self) -> list[DisplayDevice]:
        return [
            DisplayDevice(index=output.index, handle=output.name, name=output.name)
            for output in self.query()
            if output.active
        ]

    def _current_mode(self, handle: str) -> tuple[XrandrMode, str]:
        try:
            outputs = self.query()
        except BackendUnavailableError as exc:
            raise DisplayChangeError(ChangeFailure.SETTINGS_UNAVAILABLE, str(exc)) from exc

        output = next((o for o in outputs if o.name == handle), None)
        if output is None:
            raise DisplayChangeError(ChangeFailure.SETTINGS_UNAVAILABLE, f"output {handle} not found")
        mode = output.current_mode
        if mode is None or mode.current_rate is None:
            raise DisplayChangeError(ChangeFailure.SETTINGS_UNAVAILABLE, f"output {handle} has no active mode")
        return mode, mode.current_rate

    def get_current_settings(self, handle: str) -> CurrentSettings:
        mode, current_rate = self._current_mode(handle)
        return CurrentSettings(
            width=mode.width,
            height=mode.height,
            refresh_rate=_rate_value(current_rate),
        )

    def apply_settings(self, handle: str, refresh_rate: int) -> ChangeStatus:
        mode, _ = self._current_mode(handle)
        candidates = [r for r in mode.rates if _rate_value(r) == refresh_rate]
        if not candidates:
            offered = ", ".join(str(_rate_value(r)) for r in mode.rates)
            raise DisplayChangeError(
                ChangeFailure.MODE_UNSUPPORTED,
                f"{mode.name} offers {offered} Hz",
            )
        # 59.94 and 60.00 both round to 60; prefer the closest one
        rate = min(candidates, key=lambda r: abs(float(r) - refresh_rate))

        cmd =[*self._base_cmd(), "--output", handle, "--mode", mode.name, "--rate", rate]
        LOGGER.debug("Running %s", " ".join(cmd))
        result = _run_xrandr(cmd)
        if result is None:
            raise DisplayChangeError(ChangeFailure.DRIVER_FAILED, f"'{self.command}' was not found")
        if result.returncode != 0:
            stderr = (result.stderr or "").strip() or f"exit status {result.returncode}"
            raise DisplayChangeError(ChangeFailure.DRIVER_FAILED, stderr)
        return ChangeStatus.APPLIED
