"""Position, visibility, ground track and constellation status commands."""
from datetime import timedelta
from typing import Optional

import click
from rich.table import Table

from core.models.observer import ObserverLocation

from ..utils import (
    CliContext,
    cli_errors,
    console,
    echo_json,
    format_time,
    json_option,
    observer_options,
    parse_time_option,
)


@click.command()
@click.argument("satellite_id")
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@json_option
@click.pass_obj
def position(obj: CliContext, satellite_id: str, at: Optional[str], as_json: bool):
    """Show a satellite's sub-satellite point."""
    with cli_errors():
        t = parse_time_option(at, obj, "at")
        pos = obj.predictor().get_position(satellite_id, t)

    if as_json:
        echo_json({'satellite_id': satellite_id, **pos.to_dict()})
        return

    console.print(
        f"[cyan]{satellite_id}[/cyan] at {format_time(t)} UTC: "
        f"lat {pos.latitude_deg:.4f}°, lon {pos.longitude_deg:.4f}°, alt {pos.altitude_km:.1f} km"
    )


@click.command()
@click.argument("satellite_id")
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@click.option("--min-elevation", type=float, default=None, help="Visibility threshold in degrees")
@observer_options
@json_option
@click.pass_obj
def visibility(
    obj: CliContext,
    satellite_id: str,
    at: Optional[str],
    min_elevation: Optional[float],
    observer: ObserverLocation,
    as_json: bool
):
    """Show a satellite's elevation above an observer's horizon."""
    with cli_errors():
        t = parse_time_option(at, obj, "at")
        sample = obj.predictor().get_visibility(satellite_id, observer, t, min_elevation)

    if as_json:
        echo_json({'satellite_id': satellite_id, 'observer': observer.to_dict(), **sample.to_dict()})
        return

    state = "[green]visible[/green]" if sample.is_visible else "[dim]not visible[/dim]"
    console.print(
        f"[cyan]{satellite_id}[/cyan] at {format_time(t)} UTC: "
        f"elevation {sample.elevation_deg:.2f}°, range {sample.slant_range_km:.0f} km, {state}"
    )


@click.command()
@click.argument("satellite_id")
@click.option("--start", default=None, help="ISO-8601 start time [default: now]")
@click.option("--minutes", type=float, default=None, help="Track length in minutes [default: one orbit]")
@click.option("--step", "step_seconds", type=float, default=60.0, show_default=True, help="Step in seconds")
@json_option
@click.pass_obj
def track(
    obj: CliContext,
    satellite_id: str,
    start: Optional[str],
    minutes: Optional[float],
    step_seconds: float,
    as_json: bool
):
    """Print a satellite's ground track."""
    if step_seconds <= 0:
        raise click.BadParameter("must be > 0", param_hint="--step")
    if minutes is not None and minutes <= 0:
        raise click.BadParameter("must be > 0", param_hint="--minutes")

    with cli_errors():
        predictor = obj.predictor()
        elements = obj.catalog.get_elements(satellite_id)
        t0 = parse_time_option(start, obj, "start")
        duration = timedelta(minutes=minutes) if minutes is not None else None
        points = predictor.propagator.ground_track(
            elements, t0, duration=duration, time_step=timedelta(seconds=step_seconds)
        )

    if as_json:
        echo_json({
            'satellite_id': satellite_id,
            'points': [
                {'timestamp': t.isoformat(), 'latitude_deg': lat, 'longitude_deg': lon}
                for t, lat, lon in points
            ],
        })
        return

    table = Table(title=f"{elements.name} ground track")
    table.add_column("Time (UTC)", style="green")
    table.add_column("Latitude (°)", justify="right")
    table.add_column("Longitude (°)", justify="right")
    for t, lat, lon in points:
        table.add_row(format_time(t), f"{lat:.3f}", f"{lon:.3f}")
    console.print(table)


@click.command()
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@observer_options
@json_option
@click.pass_obj
def status(obj: CliContext, at: Optional[str], observer: ObserverLocation, as_json: bool):
    """Show every satellite's current elevation and next pass."""
    with cli_errors():
        t = parse_time_option(at, obj, "at")
        statuses = obj.predictor().constellation_status(observer, t)

    if as_json:
        echo_json({
            'timestamp': t.isoformat(),
            'observer': observer.to_dict(),
            'satellites': [s.to_dict() for s in statuses],
        })
        return

    table = Table(title=f"Constellation status at {format_time(t)} UTC")
    table.add_column("Satellite", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Elevation (°)", justify="right")
    table.add_column("Visible")
    table.add_column("Next pass")
    for s in statuses:
        table.add_row(
            s.name,
            s.status,
            f"{s.elevation_deg:.1f}",
            "yes" if s.is_visible else "no",
            s.next_pass.describe() if s.next_pass else "none within search horizon",
        )
    console.print(table)
