"""User-facing text for error kinds and per-target outcomes.

Errors and outcomes only carry tagged kinds plus context; wording lives here.
"""

from __future__ import annotations

from hzctl.core.model import (
    ChangeFailure,
    ChangeStatus,
    DisplayListing,
    DisplayTarget,
    OutcomeKind,
    ParseErrorKind,
    TargetOutcome,
)

_PARSE_ERROR_TEXT: dict[ParseErrorKind, str] = {
    ParseErrorKind.NO_SEPARATOR: "couldn't find any `:` in the input",
    ParseErrorKind.TOO_MANY_SEPARATORS: "found another `:` after the first `:`",
    ParseErrorKind.MISSING_INDEX: "no display index before the `:`; see `hzctl list` for indices",
    ParseErrorKind.MISSING_RATE: "no refresh rate after the `:`",
    ParseErrorKind.ZERO_REFRESH_RATE: "the refresh rate must be greater than 0",
    ParseErrorKind.INVALID_INTEGER: "the {part} is not a valid non-negative integer",
}

_CHANGE_FAILURE_TEXT: dict[ChangeFailure, str] = {
    ChangeFailure.MODE_UNSUPPORTED: "The requested mode is not supported by the display",
    ChangeFailure.DRIVER_FAILED: "The display driver failed to apply the requested mode",
    ChangeFailure.REGISTRY_WRITE_FAILED: "Unable to write the settings to the registry",
    ChangeFailure.DUAL_VIEW: "The change was rejected because the system is DualView capable",
    ChangeFailure.SETTINGS_UNAVAILABLE: "Couldn't get the current display settings",
    ChangeFailure.BAD_PARAMETER: "An invalid parameter or combination of flags was passed in",
    ChangeFailure.BAD_FLAGS: "An invalid set of flags was passed in",
    ChangeFailure.UNEXPECTED_RESULT: "The backend returned an unexpected result",
}

_STATUS_TEXT: dict[ChangeStatus, str] = {
    ChangeStatus.APPLIED: "Display successfully changed.",
    ChangeStatus.NEEDS_RESTART: "Display changed; a restart is required for the new mode to take effect.",
}


def describe_parse_error(token: str, kind: ParseErrorKind, part: str | None = None) -> str:
    reason = _PARSE_ERROR_TEXT[kind].format(part=part or "value")
    return f"Invalid token `{token}`: {reason}."


def describe_duplicate(target: DisplayTarget) -> str:
    return (
        f"Found settings for display {target.index} ({target.index}:{target.refresh_rate}), "
        "but there is already a settings assignment for that display."
    )


def describe_change_failure(reason: ChangeFailure, detail: str | None = None) -> str:
    text = _CHANGE_FAILURE_TEXT[reason]
    if reason.is_bug:
        text = f"{text}. This is likely to be a bug!"
    if detail:
        text = f"{text} ({detail})"
    return text


def describe_status(status: ChangeStatus) -> str:
    return _STATUS_TEXT[status]


def describe_outcome(outcome: TargetOutcome) -> str:
    prefix = f"[{outcome.target.index}]"
    if outcome.kind is OutcomeKind.APPLIED:
        return f"{prefix} {describe_status(ChangeStatus.APPLIED)}"
    if outcome.kind is OutcomeKind.NEEDS_RESTART:
        return f"{prefix} {describe_status(ChangeStatus.NEEDS_RESTART)}"
    if outcome.kind is OutcomeKind.UNKNOWN_INDEX:
        return f"{prefix} Unknown display index. Use 'hzctl list' to see active displays."
    return f"{prefix} Change on display failed: {outcome.error}"


def describe_listing(listing: DisplayListing) -> str:
    device = listing.device
    if listing.settings is None:
        return f"[{device.index}] {device.name}: {listing.error}"
    settings = listing.settings
    return (
        f"[{device.index}] {device.name}: "
        f"{settings.width}x{settings.height} @ {settings.refresh_rate} Hz"
    )
