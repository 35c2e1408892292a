"""Stable public API for building tooling on top of hzctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from collections.abc import Iterable

from hzctl.backends.base import DisplayBackend
from hzctl.core.batch import OutcomeCallback
from hzctl.core.config import Settings
from hzctl.core.errors import (
    BackendUnavailableError,
    ConfigError,
    DisplayChangeError,
    DuplicateTargetError,
    HzctlError,
    TokenParseError,
)
from hzctl.core.model import (
    ChangeFailure,
    ChangeStatus,
    CurrentSettings,
    DisplayConfig,
    DisplayDevice,
    DisplayListing,
    DisplayTarget,
    OutcomeKind,
    ParseErrorKind,
    RunResult,
    TargetOutcome,
)
from hzctl.core.service import DisplayService
from hzctl.core.token_parser import parse_token, parse_tokens

__all__ = [
    "HzctlError",
    "ConfigError",
    "TokenParseError",
    "DuplicateTargetError",
    "BackendUnavailableError",
    "DisplayChangeError",
    "ChangeFailure",
    "ChangeStatus",
    "CurrentSettings",
    "DisplayBackend",
    "DisplayConfig",
    "DisplayDevice",
    "DisplayListing",
    "DisplayTarget",
    "OutcomeKind",
    "ParseErrorKind",
    "RunResult",
    "Settings",
    "TargetOutcome",
    "Client",
]


class Client:
    """Public client for listing displays and changing refresh rates.

    A `Client` wraps settings loading, backend selection, token parsing, and
    batch execution behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts).
    """

    def __init__(
        self,
        *,
        backend: DisplayBackend | None = None,
        settings: Settings | None = None,
        backend_name: str | None = None,
    ) -> None:
        self._service = DisplayService(backend=backend, settings=settings, backend_name=backend_name)

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_displays(self) -> list[DisplayListing]:
        return self._service.list_displays()

    def list_devices(self) -> list[DisplayDevice]:
        return sorted(self._service.device_roster().values(), key=lambda d: d.index)

    def parse_targets(self, tokens: Iterable[str]) -> list[DisplayTarget]:
        return parse_tokens(tokens)

    def set_refresh_rates(
        self,
        targets: Iterable[DisplayTarget | str],
        *,
        on_outcome: OutcomeCallback | None = None,
    ) -> RunResult:
        """Apply a batch given as `DisplayTarget`s or raw `index:rate` tokens."""
        parsed = [t if isinstance(t, DisplayTarget) else parse_token(t) for t in targets]
        return self._service.set_refresh_rates(parsed, on_outcome=on_outcome)
