"""Core data models used across parser, executor, backends, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ParseErrorKind(Enum):
    NO_SEPARATOR = "no_separator"
    TOO_MANY_SEPARATORS = "too_many_separators"
    MISSING_INDEX = "missing_index"
    MISSING_RATE = "missing_rate"
    ZERO_REFRESH_RATE = "zero_refresh_rate"
    INVALID_INTEGER = "invalid_integer"

    @property
    def is_syntax(self) -> bool:
        """True for token grammar violations, False for number-format errors."""
        return self is not ParseErrorKind.INVALID_INTEGER


class ChangeFailure(Enum):
    MODE_UNSUPPORTED = "mode_unsupported"
    DRIVER_FAILED = "driver_failed"
    REGISTRY_WRITE_FAILED = "registry_write_failed"
    DUAL_VIEW = "dual_view"
    SETTINGS_UNAVAILABLE = "settings_unavailable"
    BAD_PARAMETER = "bad_parameter"
    BAD_FLAGS = "bad_flags"
    UNEXPECTED_RESULT = "unexpected_result"

    @property
    def is_bug(self) -> bool:
        """Whether the failure points at a malformed call rather than the display/driver."""
        return self in _BUG_FAILURES


_BUG_FAILURES = frozenset(
    {ChangeFailure.BAD_PARAMETER, ChangeFailure.BAD_FLAGS, ChangeFailure.UNEXPECTED_RESULT}
)


class ChangeStatus(Enum):
    APPLIED = "applied"
    NEEDS_RESTART = "needs_restart"


class OutcomeKind(Enum):
    APPLIED = "applied"
    NEEDS_RESTART = "needs_restart"
    FAILED = "failed"
    UNKNOWN_INDEX = "unknown_index"


@dataclass(frozen=True)
class DisplayConfig:
    refresh_rate: int


@dataclass(frozen=True)
class DisplayTarget:
    index: int
    config: DisplayConfig

    @property
    def refresh_rate(self) -> int:
        return self.config.refresh_rate


TargetMapping = dict[int, DisplayConfig]


@dataclass(frozen=True)
class DisplayDevice:
    index: int
    handle: str
    name: str


DeviceRoster = dict[int, DisplayDevice]


@dataclass(frozen=True)
class CurrentSettings:
    width: int
    height: int
    refresh_rate: int


@dataclass(frozen=True)
class DisplayListing:
    device: DisplayDevice
    settings: CurrentSettings | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class TargetOutcome:
    target: DisplayTarget
    kind: OutcomeKind
    device: DisplayDevice | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.kind in (OutcomeKind.APPLIED, OutcomeKind.NEEDS_RESTART)


@dataclass(frozen=True)
class RunResult:
    outcomes: tuple[TargetOutcome, ...]

    @property
    def succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.outcomes)

    @property
    def failures(self) -> tuple[TargetOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.succeeded)
