"""Domain-specific errors for hzctl."""

from __future__ import annotations

from collections.abc import Sequence

from hzctl.core.messages import describe_change_failure, describe_duplicate, describe_parse_error
from hzctl.core.model import ChangeFailure, DisplayTarget, ParseErrorKind


class HzctlError(Exception):
    """Base error for hzctl."""


class ConfigError(HzctlError):
    """Raised when the settings file cannot be read or does not validate."""


class TokenParseError(HzctlError):
    """Raised when a command-line token is not a valid `<index>:<rate>` pair."""

    def __init__(self, token: str, kind: ParseErrorKind, *, part: str | None = None) -> None:
        super().__init__(token, kind)
        self.token = token
        self.kind = kind
        self.part = part

    def __str__(self) -> str:
        return describe_parse_error(self.token, self.kind, self.part)


class DuplicateTargetError(HzctlError):
    """Raised when a batch assigns settings to the same display more than once."""

    def __init__(self, rejected: Sequence[DisplayTarget]) -> None:
        super().__init__(tuple(rejected))
        self.rejected = tuple(rejected)

    def __str__(self) -> str:
        return " ".join(describe_duplicate(target) for target in self.rejected)


class BackendUnavailableError(HzctlError):
    """Raised when the display backend cannot be loaded or queried."""


class DisplayChangeError(HzctlError):
    """Raised by a backend when reading or changing one display's mode fails."""

    def __init__(self, reason: ChangeFailure, detail: str | None = None) -> None:
        super().__init__(reason, detail)
        self.reason = reason
        self.detail = detail

    def __str__(self) -> str:
        return describe_change_failure(self.reason, self.detail)
