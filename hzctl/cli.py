"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import sys

import typer

from hzctl.core.batch import validate_batch
from hzctl.core.errors import DuplicateTargetError, HzctlError, TokenParseError
from hzctl.core.messages import describe_duplicate, describe_listing, describe_outcome
from hzctl.core.model import DisplayTarget, TargetOutcome
from hzctl.core.service import DisplayService
from hzctl.core.token_parser import parse_token

app = typer.Typer(help="List display monitors and change their refresh rates")


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("hzctl")
    if not verbose or logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def _build_service(ctx: typer.Context) -> DisplayService:
    options = ctx.obj or {}
    service = DisplayService(backend_name=options.get("backend"))
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _parse_target(value: str) -> DisplayTarget:
    try:
        return parse_token(value)
    except TokenParseError as exc:
        raise typer.BadParameter(str(exc), param_hint="'INDEX:RATE...'") from None


def _echo_outcome(outcome: TargetOutcome) -> None:
    if outcome.succeeded:
        typer.echo(describe_outcome(outcome))
    else:
        typer.echo(f"Error: {describe_outcome(outcome)}", err=True)


@app.callback()
def main(
    ctx: typer.Context,
    backend: str | None = typer.Option(
        None, "--backend", help="Display backend: auto, xrandr or win32 (overrides config)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log backend calls to stderr"),
) -> None:
    _configure_logging(verbose)
    ctx.obj = {"backend": backend}


@app.command("list")
def list_displays(ctx: typer.Context) -> None:
    """List active displays with their index and current refresh rate."""
    try:
        service = _build_service(ctx)
        listings = service.list_displays()
    except HzctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if not listings:
        typer.echo("No active displays found")
        return

    for listing in listings:
        if listing.error is None:
            typer.echo(describe_listing(listing))
        else:
            typer.echo(f"Error: {describe_listing(listing)}", err=True)


@app.command("set")
def set_refresh_rates(
    ctx: typer.Context,
    targets: list[DisplayTarget] = typer.Argument(
        ...,
        metavar="INDEX:RATE...",
        parser=_parse_target,
        help="New refresh rates as `<display_index>:<refresh_rate>`, e.g. 1:144 2:60",
    ),
) -> None:
    """Change the refresh rate of one or more displays.

    Every target is attempted even if an earlier one fails; the exit code is
    non-zero unless all of them succeed.
    """
    try:
        validate_batch(targets)
    except DuplicateTargetError as exc:
        for target in exc.rejected:
            typer.echo(f"Error: {describe_duplicate(target)}", err=True)
        raise typer.Exit(code=1) from None

    try:
        service = _build_service(ctx)
        result = service.set_refresh_rates(targets, on_outcome=_echo_outcome)
    except HzctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if not result.succeeded:
        raise typer.Exit(code=1)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
