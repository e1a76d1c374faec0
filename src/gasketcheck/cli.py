"""
Command-line interface for GasketCheck.

Provides commands for analyzing recorded pressure traces, browsing the
result history and managing calibration and configuration.
"""

import json
import logging
import sys

from collections.abc import Iterable
from datetime import datetime
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click

from pydantic import ValidationError

from gasketcheck.analysis.session import SealTestSession
from gasketcheck.analysis.types import Calibration, PressureSample, SealTestResult
from gasketcheck.config import (
    get_config_path,
    get_database_path,
    load_analyzer_config,
    load_calibration_defaults,
    load_config,
    load_session_settings,
)
from gasketcheck.constants import (
    DEFAULT_HISTORY_LIMIT,
    MILLISECONDS_PER_SECOND,
    VERDICT_LABELS,
)
from gasketcheck.constants import StreamConstants as STC
from gasketcheck.database import history
from gasketcheck.database.session import init_database
from gasketcheck.logging_config import setup_logging
from gasketcheck.sensors.streams import downsample, gate_pressure
from gasketcheck.sensors.trace import TraceFormatError, load_motion, load_trace

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("gasketcheck")
except PackageNotFoundError:
    __version__ = "dev"


def _init_db(db: str | None) -> str:
    db_path = str(Path(db)) if db else get_database_path()
    init_database(db_path)
    return db_path


def _format_result_line(result: SealTestResult) -> str:
    when = datetime.fromtimestamp(result.timestamp_ms / MILLISECONDS_PER_SECOND)
    return (
        f"{when:%Y-%m-%d %H:%M}  {result.score:>3}/100  "
        f"({result.confidence * 100:>3.0f}%)  "
        f"dP {result.delta_p_hpa:.2f} hPa  tau {result.tau_sec:.2f} s  "
        f"{VERDICT_LABELS[result.verdict]}"
    )


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Show version."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"gasketcheck, version {__version__}")
    ctx.exit()


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """GasketCheck: seal integrity from press-and-release pressure traces"""
    setup_logging(verbose=verbose)


@cli.command()
@click.argument("trace", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--settle",
    type=float,
    default=None,
    help="Seconds of samples to collect after completion (default from config)",
)
@click.option(
    "--motion",
    type=click.Path(exists=True, dir_okay=False),
    help="Accelerometer CSV (time_ns, ax, ay, az) used to gate the press",
)
@click.option(
    "--no-downsample", is_flag=True, help="Feed every sample, ignoring the rate limit"
)
@click.option("--save/--no-save", default=True, help="Store the result in history")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--db", type=click.Path(), help="Database path")
def analyze(
    trace: str,
    settle: float | None,
    motion: str | None,
    no_downsample: bool,
    save: bool,
    as_json: bool,
    db: str | None,
) -> None:
    """Analyze a recorded pressure trace (CSV: time_ns, pressure_hpa[, motion_ok])."""
    try:
        config = load_analyzer_config()
        settings = load_session_settings()
    except (ValidationError, ValueError) as e:
        raise click.ClickException(
            f"Invalid configuration in {get_config_path()}: {e}"
        ) from e

    try:
        rows = load_trace(trace)
    except TraceFormatError as e:
        raise click.ClickException(f"Cannot read trace: {e}") from e

    if not rows:
        raise click.ClickException(f"Trace {trace} contains no samples")

    if motion:
        try:
            motion_samples = load_motion(motion)
        except TraceFormatError as e:
            raise click.ClickException(f"Cannot read motion data: {e}") from e
        # MotionGate compares consecutive samples, so fix the rate first
        gated = gate_pressure(
            (sample for sample, _ in rows),
            downsample(motion_samples, STC.MOTION_DOWNSAMPLE_HZ),
            settings.motion_threshold,
        )
        rows = [
            (sample, gate_ok and trace_ok)
            for (sample, gate_ok), (_, trace_ok) in zip(gated, rows, strict=True)
        ]

    calibration = load_calibration_defaults()
    if save or db:
        _init_db(db)
        calibration = history.get_calibration(default=calibration)

    try:
        session = SealTestSession(
            config=config,
            calibration=calibration,
            settle_sec=settings.settle_sec if settle is None else settle,
            expected_rate_hz=settings.expected_rate_hz,
        )
    except ValueError as e:
        raise click.ClickException(f"Invalid settle time: {e}") from e

    samples: Iterable[tuple[PressureSample, bool]] = rows
    if not no_downsample:
        samples = downsample(
            rows, settings.downsample_hz, key=lambda row: row[0].time_ns
        )

    logger.debug(
        f"Analyzing {trace}: {len(rows)} samples, settle={session.settle_sec}s, "
        f"downsample={'off' if no_downsample else settings.downsample_hz}"
    )
    result = session.run(samples)

    if result is None:
        click.echo(
            f"Test did not complete (ended in phase {session.phase.value}). "
            "Press firmly, hold, then release and keep still.",
            err=True,
        )
        sys.exit(1)

    if save:
        history.add_result(result)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    click.echo(f"\nResult: {result.score} / 100  ({VERDICT_LABELS[result.verdict]})")
    click.echo(f"  Delta P:    {result.delta_p_hpa:.3f} hPa")
    click.echo(f"  Tau:        {result.tau_sec:.2f} s")
    click.echo(f"  Fit R^2:    {result.r2:.3f}")
    click.echo(f"  Confidence: {result.confidence * 100:.0f}%")
    click.echo("\nThis is guidance only; not a certified water-resistance test.")


@cli.group("history")
def history_group() -> None:
    """Stored result history."""
    pass


@history_group.command("list")
@click.option(
    "--limit",
    "-n",
    type=int,
    default=DEFAULT_HISTORY_LIMIT,
    help="Max results to show (use 0 for all)",
)
@click.option("--db", type=click.Path(), help="Database path")
def history_list(limit: int, db: str | None) -> None:
    """List stored results, newest first."""
    _init_db(db)

    results = history.list_results(limit=limit)
    if not results:
        click.echo("No results yet.")
        return

    click.echo(
        f"\n{'Date':<17} {'Score':>9}  {'Conf':>6}  {'Delta P':<14} {'Tau':<12} Verdict"
    )
    click.echo("=" * 78)
    for result in results:
        click.echo(_format_result_line(result))

    total = history.count_results()
    if limit > 0 and len(results) < total:
        click.echo(f"\nShowing {len(results)} of {total} results (most recent first)")


@history_group.command("clear")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
@click.option("--db", type=click.Path(), help="Database path")
def history_clear(force: bool, db: str | None) -> None:
    """Delete all stored results."""
    _init_db(db)

    total = history.count_results()
    if total == 0:
        click.echo("No results to delete.")
        return

    if not force:
        click.echo(f"⚠️  This will delete {total} result(s) and cannot be undone!")
        if not click.confirm("Are you sure you want to delete all results?"):
            click.echo("Deletion cancelled")
            return

    deleted = history.clear_results()
    click.echo(f"✓ Deleted {deleted} result(s)")


@cli.group()
def calibration() -> None:
    """Scoring calibration commands."""
    pass


@calibration.command("show")
@click.option("--db", type=click.Path(), help="Database path")
def calibration_show(db: str | None) -> None:
    """Show the active scoring calibration."""
    _init_db(db)
    current = history.get_calibration(default=load_calibration_defaults())
    click.echo(f"Low delta P:  {current.low_delta_p:.3f} hPa")
    click.echo(f"High tau:     {current.high_tau_sec:.3f} s")
    click.echo(f"Version:      {current.version}")


@calibration.command("set")
@click.option("--low-delta-p", type=float, help="Delta pressure that scores zero (hPa)")
@click.option("--high-tau", type=float, help="Tau span for a full tau score (s)")
@click.option("--db", type=click.Path(), help="Database path")
def calibration_set(
    low_delta_p: float | None, high_tau: float | None, db: str | None
) -> None:
    """Update the scoring calibration."""
    if low_delta_p is None and high_tau is None:
        raise click.UsageError("Specify --low-delta-p and/or --high-tau")

    _init_db(db)
    current = history.get_calibration(default=load_calibration_defaults())
    try:
        updated = Calibration(
            low_delta_p=current.low_delta_p if low_delta_p is None else low_delta_p,
            high_tau_sec=current.high_tau_sec if high_tau is None else high_tau,
            version=current.version,
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid calibration: {e}") from e

    history.set_calibration(updated)
    click.echo(
        f"✓ Calibration: low delta P {updated.low_delta_p:.3f} hPa, "
        f"high tau {updated.high_tau_sec:.3f} s"
    )


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
def config_path_cmd() -> None:
    """Show the configuration file location."""
    click.echo(str(get_config_path()))


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    if not config_path.exists():
        click.echo(f"No config file: {config_path}")
        return

    click.echo(f"Config file: {config_path}\n")
    config_data = load_config()
    if not config_data:
        click.echo("Configuration is empty.")
        return

    click.echo("Settings:")
    for section, values in config_data.items():
        if not isinstance(values, dict):
            click.echo(f"  {section} = {values!r}")
            continue
        click.echo(f"  [{section}]")
        for key, value in values.items():
            click.echo(f"    {key} = {value!r}")
