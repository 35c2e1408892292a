"""Display backend interface."""

from __future__ import annotations

from typing import Protocol

from hzctl.core.model import ChangeStatus, CurrentSettings, DisplayDevice


class DisplayBackend(Protocol):
    name: str

    def enumerate_active_devices(self) -> list[DisplayDevice]:
        """Return the displays the OS currently reports as active."""

    def get_current_settings(self, handle: str) -> CurrentSettings:
        """Return the current mode of one display."""

    def apply_settings(self, handle: str, refresh_rate: int) -> ChangeStatus:
        """Switch one display to `refresh_rate`, keeping its current resolution."""
