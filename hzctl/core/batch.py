"""Batch validation and per-target execution of refresh-rate changes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from hzctl.backends.base import DisplayBackend
from hzctl.core.errors import DisplayChangeError, DuplicateTargetError
from hzctl.core.model import (
    ChangeStatus,
    DeviceRoster,
    DisplayDevice,
    DisplayTarget,
    OutcomeKind,
    RunResult,
    TargetMapping,
    TargetOutcome,
)

LOGGER = logging.getLogger(__name__)

OutcomeCallback = Callable[[TargetOutcome], None]

_STATUS_TO_KIND = {
    ChangeStatus.APPLIED: OutcomeKind.APPLIED,
    ChangeStatus.NEEDS_RESTART: OutcomeKind.NEEDS_RESTART,
}


def validate_batch(targets: Sequence[DisplayTarget]) -> TargetMapping:
    """Build the index -> config mapping, rejecting repeated indices.

    The first target for an index is kept; every later one is collected and the
    whole batch is refused with `DuplicateTargetError`.
    """
    mapping: TargetMapping = {}
    rejected: list[DisplayTarget] = []
    for target in targets:
        if target.index in mapping:
            rejected.append(target)
            continue
        mapping[target.index] = target.config

    if rejected:
        raise DuplicateTargetError(rejected)
    return mapping


def build_roster(devices: Iterable[DisplayDevice]) -> DeviceRoster:
    return {device.index: device for device in devices}


def apply_target(target: DisplayTarget, roster: DeviceRoster, backend: DisplayBackend) -> TargetOutcome:
    device = roster.get(target.index)
    if device is None:
        LOGGER.debug("Display %d is not in the active roster", target.index)
        return TargetOutcome(target=target, kind=OutcomeKind.UNKNOWN_INDEX)

    LOGGER.debug("Applying %d Hz to display %d (%s)", target.refresh_rate, target.index, device.handle)
    try:
        status = backend.apply_settings(device.handle, target.refresh_rate)
    except DisplayChangeError as exc:
        LOGGER.debug("Display %d change failed: %s", target.index, exc.reason.value)
        return TargetOutcome(target=target, kind=OutcomeKind.FAILED, device=device, error=exc)

    return TargetOutcome(target=target, kind=_STATUS_TO_KIND[status], device=device)


def execute_batch(
    mapping: TargetMapping,
    roster: DeviceRoster,
    backend: DisplayBackend,
    *,
    on_outcome: OutcomeCallback | None = None,
    max_workers: int = 1,
) -> RunResult:
    """Attempt every target in `mapping` once and aggregate the outcomes.

    `on_outcome` is called as soon as each target finishes. Failures never stop
    the remaining targets. With `max_workers > 1` targets are applied
    concurrently; callbacks still run one at a time on the calling thread and the
    result keeps mapping order.
    """
    targets = [DisplayTarget(index=index, config=config) for index, config in mapping.items()]

    if max_workers <= 1 or len(targets) <= 1:
        outcomes: list[TargetOutcome] = []
        for target in targets:
            outcome = apply_target(target, roster, backend)
            if on_outcome is not None:
                on_outcome(outcome)
            outcomes.append(outcome)
        return RunResult(outcomes=tuple(outcomes))

    return _execute_concurrently(targets, roster, backend, on_outcome, max_workers)


def _execute_concurrently(
    targets: list[DisplayTarget],
    roster: DeviceRoster,
    backend: DisplayBackend,
    on_outcome: OutcomeCallback | None,
    max_workers: int,
) -> RunResult:
    by_index: dict[int, TargetOutcome] = {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="hzctl") as pool:
        futures = {pool.submit(apply_target, target, roster, backend): target for target in targets}
        for future in as_completed(futures):
            outcome = future.result()
            if on_outcome is not None:
                on_outcome(outcome)
            by_index[outcome.target.index] = outcome

    return RunResult(outcomes=tuple(by_index[target.index] for target in targets))

