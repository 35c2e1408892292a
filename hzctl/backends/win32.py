"""Windows GDI display backend using pywin32."""

from __future__ import annotations

import logging
from typing import Any

from hzctl.core.errors import BackendUnavailableError, DisplayChangeError
from hzctl.core.model import ChangeFailure, ChangeStatus, CurrentSettings, DisplayDevice

# wingdi.h
DISPLAY_DEVICE_ATTACHED_TO_DESKTOP = 0x00000001
ENUM_CURRENT_SETTINGS = -1
DM_DISPLAYFREQUENCY = 0x00400000

DISP_CHANGE_SUCCESSFUL = 0
DISP_CHANGE_RESTART = 1
DISP_CHANGE_FAILED = -1
DISP_CHANGE_BADMODE = -2
DISP_CHANGE_NOTUPDATED = -3
DISP_CHANGE_BADFLAGS = -4
DISP_CHANGE_BADPARAM = -5
DISP_CHANGE_BADDUALVIEW = -6

_DISP_CHANGE_STATUS = {
    DISP_CHANGE_SUCCESSFUL: ChangeStatus.APPLIED,
    DISP_CHANGE_RESTART: ChangeStatus.NEEDS_RESTART,
}

_DISP_CHANGE_FAILURE = {
    DISP_CHANGE_BADDUALVIEW: ChangeFailure.DUAL_VIEW,
    DISP_CHANGE_BADMODE: ChangeFailure.MODE_UNSUPPORTED,
    DISP_CHANGE_FAILED: ChangeFailure.DRIVER_FAILED,
    DISP_CHANGE_NOTUPDATED: ChangeFailure.REGISTRY_WRITE_FAILED,
    DISP_CHANGE_BADPARAM: ChangeFailure.BAD_PARAMETER,
    DISP_CHANGE_BADFLAGS: ChangeFailure.BAD_FLAGS,
}

LOGGER = logging.getLogger(__name__)


def disp_change_to_status(code: int) -> ChangeStatus:
    """Map a `ChangeDisplaySettingsEx` return code to a status or raise."""
    status = _DISP_CHANGE_STATUS.get(code)
    if status is not None:
        return status
    failure = _DISP_CHANGE_FAILURE.get(code, ChangeFailure.UNEXPECTED_RESULT)
    detail = f"DISP_CHANGE code {code}" if failure is ChangeFailure.UNEXPECTED_RESULT else None
    raise DisplayChangeError(failure, detail)


def _load_win32() -> tuple[Any, Any]:
    try:
        import pywintypes  # type: ignore
        import win32api  # type: ignore
    except ImportError as exc:
        raise BackendUnavailableError(
            "The win32 backend requires 'pywin32' on Windows. Install it or pick another backend with --backend."
        ) from exc
    return win32api, pywintypes


class Win32Backend:
    name = "win32"

    def __init__(self) -> None:
        self._win32api: Any = None
        self._pywintypes: Any = None

    def _api(self) -> Any:
        if self._win32api is None:
            self._win32api, self._pywintypes = _load_win32()
        return self._win32api

    def enumerate_active_devices(self) -> list[DisplayDevice]:
        api = self._api()
        devices: list[DisplayDevice] = []
        position = 0
        while True:
            try:
                info = api.EnumDisplayDevices(None, position)
            except self._pywintypes.error:
                break
            position += 1
            # Windows remembers every display ever attached; keep the ones on the desktop.
            if not info.StateFlags & DISPLAY_DEVICE_ATTACHED_TO_DESKTOP:
                continue
            devices.append(DisplayDevice(index=position, handle=info.DeviceName, name=info.DeviceName))
        LOGGER.debug("EnumDisplayDevices reported %d active device(s) of %d", len(devices), position)
        return devices

    def _current_devmode(self, handle: str) -> Any:
        api = self._api()
        try:
            return api.EnumDisplaySettings(handle, ENUM_CURRENT_SETTINGS)
        except self._pywintypes.error as exc:
            raise DisplayChangeError(ChangeFailure.SETTINGS_UNAVAILABLE) from exc

    def get_current_settings(self, handle: str) -> CurrentSettings:
        devmode = self._current_devmode(handle)
        return CurrentSettings(
            width=int(devmode.PelsWidth),
            height=int(devmode.PelsHeight),
            refresh_rate=int(devmode.DisplayFrequency),
        )

    def apply_settings(self, handle: str, refresh_rate: int) -> ChangeStatus:
        devmode = self._current_devmode(handle)
        devmode.DisplayFrequency = refresh_rate
        devmode.Fields = devmode.Fields | DM_DISPLAYFREQUENCY
        code = self._api().ChangeDisplaySettingsEx(handle, devmode, 0)
        LOGGER.debug("ChangeDisplaySettingsEx(%s, %d Hz) -> %d", handle, refresh_rate, code)
        return disp_change_to_status(code)
