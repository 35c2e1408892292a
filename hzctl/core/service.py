"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence

from hzctl.backends.base import DisplayBackend
from hzctl.backends.win32 import Win32Backend
from hzctl.backends.xrandr import XrandrBackend
from hzctl.core.batch import OutcomeCallback, build_roster, execute_batch, validate_batch
from hzctl.core.config import BACKEND_CHOICES, Settings, load_settings
from hzctl.core.errors import ConfigError, DisplayChangeError
from hzctl.core.model import DeviceRoster, DisplayListing, DisplayTarget, RunResult

LOGGER = logging.getLogger(__name__)


def create_backend(settings: Settings, backend_name: str | None = None) -> DisplayBackend:
    name = (backend_name or settings.backend).lower()
    if name not in BACKEND_CHOICES:
        raise ConfigError(f"Unknown backend '{name}'. Choose one of: {', '.join(BACKEND_CHOICES)}")
    if name == "auto":
        name = "win32" if sys.platform == "win32" else "xrandr"

    LOGGER.debug("Using %s display backend", name)
    if name == "win32":
        return Win32Backend()
    return XrandrBackend(command=settings.xrandr.command, display=settings.xrandr.display)


class DisplayService:
    def __init__(
        self,
        *,
        backend: DisplayBackend | None = None,
        settings: Settings | None = None,
        backend_name: str | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.backend = backend or create_backend(self.settings, backend_name)
        self.runtime_warnings = _runtime_warnings(self.backend)

    def device_roster(self) -> DeviceRoster:
        return build_roster(self.backend.enumerate_active_devices())

    def list_displays(self) -> list[DisplayListing]:
        """Describe every active display; a display whose mode can't be read keeps its row."""
        listings: list[DisplayListing] = []
        for device in sorted(self.backend.enumerate_active_devices(), key=lambda d: d.index):
            try:
                settings = self.backend.get_current_settings(device.handle)
            except DisplayChangeError as exc:
                LOGGER.debug("Could not read settings for display %d: %s", device.index, exc.reason.value)
                listings.append(DisplayListing(device=device, error=exc))
                continue
            listings.append(DisplayListing(device=device, settings=settings))
        return listings

    def set_refresh_rates(
        self,
        targets: Sequence[DisplayTarget],
        on_outcome: OutcomeCallback | None = None,
    ) -> RunResult:
        """Validate the batch, then attempt every target against the current roster.

        Raises `DuplicateTargetError` before touching any display.
        """
        mapping = validate_batch(targets)
        roster = self.device_roster()
        return execute_batch(
            mapping,
            roster,
            self.backend,
            on_outcome=on_outcome,
            max_workers=self.settings.jobs,
        )


def _runtime_warnings(backend: DisplayBackend) -> tuple[str, ...]:
    warnings: list[str] = []
    if isinstance(backend, XrandrBackend):
        if not backend.display and not os.environ.get("DISPLAY"):
            warnings.append(
                "DISPLAY is not set; xrandr needs an X11 session (or xrandr.display in the config)."
            )
    elif isinstance(backend, Win32Backend) and sys.platform != "win32":
        warnings.append("The win32 backend only works on Windows; display commands will fail.")
    return tuple(warnings)
