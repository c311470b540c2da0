"""Pass prediction commands."""
from datetime import timedelta
from typing import Optional, Tuple

import click

from core.models.observer import ObserverLocation
from core.tracking.pass_alerts import PassAlertMonitor
from core.tracking.pass_predictor import PassPredictor

from ...yaml_loader import YamlLoader
from ..utils import (
    CliContext,
    cli_errors,
    console,
    echo_json,
    format_minutes,
    format_time,
    json_option,
    observer_options,
    parse_time_option,
    passes_table,
    positive_hours,
)


def _names(obj: CliContext) -> dict:
    return {e.satellite_id: e.name for e in obj.catalog.satellites()}


@click.command()
@click.argument("satellite_ids", nargs=-1)
@click.option("--start", default=None, help="ISO-8601 search start [default: now]")
@click.option("--hours", "horizon", type=float, default=None, callback=positive_hours,
              help="Search horizon in hours [default: from configuration]")
@click.option("--step", "step_seconds", type=float, default=None, help="Sampling step in seconds")
@click.option("--min-elevation", type=float, default=None, help="Visibility threshold in degrees")
@click.option("--max-count", type=int, default=None, help="Stop after this many passes per satellite")
@click.option("--extended", is_flag=True, help="Use the extended forecast (days ahead, capped count)")
@observer_options
@json_option
@click.pass_obj
def passes(
    obj: CliContext,
    satellite_ids: Tuple[str, ...],
    start: Optional[str],
    horizon: Optional[timedelta],
    step_seconds: Optional[float],
    min_elevation: Optional[float],
    max_count: Optional[int],
    extended: bool,
    observer: ObserverLocation,
    as_json: bool
):
    """Predict passes of one or more satellites (all when none given)."""
    if step_seconds is not None and step_seconds <= 0:
        raise click.BadParameter("must be > 0", param_hint="--step")

    with cli_errors():
        predictor = obj.predictor()
        t0 = parse_time_option(start, obj, "start")
        ids = list(satellite_ids) or list(obj.catalog)

        results = {}
        for sat_id in ids:
            if extended:
                results[sat_id] = predictor.predict_extended(sat_id, observer, t0)
            else:
                results[sat_id] = predictor.find_passes(
                    sat_id,
                    observer,
                    t0,
                    horizon=horizon,
                    time_step=timedelta(seconds=step_seconds) if step_seconds else None,
                    min_elevation=min_elevation,
                    max_count=max_count,
                )

    if as_json:
        echo_json({
            'start': t0.isoformat(),
            'observer': observer.to_dict(),
            'passes': {sat_id: [p.to_dict() for p in items] for sat_id, items in results.items()},
        })
        return

    merged = sorted(p for items in results.values() for p in items)
    if not merged:
        console.print("No passes found in the search window.")
        return
    console.print(passes_table(merged, f"Passes over {observer.name or 'observer'}", _names(obj)))
    if any(p.in_progress for p in merged):
        console.print("* already visible at search start")


@click.command(name="next-pass")
@click.argument("satellite_ids", nargs=-1)
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@observer_options
@json_option
@click.pass_obj
def next_pass(
    obj: CliContext,
    satellite_ids: Tuple[str, ...],
    at: Optional[str],
    observer: ObserverLocation,
    as_json: bool
):
    """Show the current or next pass for each satellite."""
    with cli_errors():
        predictor = obj.predictor()
        t = parse_time_option(at, obj, "at")
        ids = list(satellite_ids) or list(obj.catalog)
        summaries = {sat_id: predictor.next_pass(sat_id, observer, t) for sat_id in ids}

    if as_json:
        echo_json({
            'at': t.isoformat(),
            'next_passes': {
                sat_id: info.to_dict() if info else None for sat_id, info in summaries.items()
            },
        })
        return

    names = _names(obj)
    for sat_id, info in summaries.items():
        text = info.describe() if info else "No pass within search horizon"
        console.print(f"[cyan]{names.get(sat_id, sat_id)}[/cyan]: {text}")


@click.command()
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@click.option("--hours", "window", type=float, default=None, callback=positive_hours,
              help="Look-ahead window in hours [default: from configuration]")
@click.option("--min-peak", type=float, default=None, help="Minimum peak elevation in degrees")
@observer_options
@json_option
@click.pass_obj
def upcoming(
    obj: CliContext,
    at: Optional[str],
    window: Optional[timedelta],
    min_peak: Optional[float],
    observer: ObserverLocation,
    as_json: bool
):
    """List good passes of all satellites starting soon, in time order."""
    with cli_errors():
        t = parse_time_option(at, obj, "at")
        items = obj.predictor().upcoming_passes(observer, t, window=window, min_peak_deg=min_peak)

    if as_json:
        echo_json({'at': t.isoformat(), 'passes': [p.to_dict() for p in items]})
        return

    if not items:
        console.print("No upcoming passes.")
        return
    console.print(passes_table(items, f"Upcoming passes after {format_time(t)} UTC", _names(obj)))


@click.command()
@click.option("--at", "at", default=None, help="ISO-8601 time [default: now]")
@click.option("--lead-minutes", type=float, default=None, help="Alert lead time in minutes")
@click.option("--min-peak", type=float, default=None, help="Minimum peak elevation in degrees")
@observer_options
@json_option
@click.pass_obj
def alerts(
    obj: CliContext,
    at: Optional[str],
    lead_minutes: Optional[float],
    min_peak: Optional[float],
    observer: ObserverLocation,
    as_json: bool
):
    """Report high-quality passes that are about to start."""
    if lead_minutes is not None and lead_minutes < 0:
        raise click.BadParameter("must not be negative", param_hint="--lead-minutes")

    with cli_errors():
        t = parse_time_option(at, obj, "at")
        monitor = PassAlertMonitor(
            obj.predictor(),
            observer,
            lead_time=timedelta(minutes=lead_minutes) if lead_minutes is not None else None,
            min_peak_deg=min_peak,
        )
        found = monitor.check(t)

    if as_json:
        echo_json({'at': t.isoformat(), 'alerts': [a.to_dict() for a in found]})
        return

    if not found:
        console.print("No imminent passes.")
        return
    for alert in found:
        console.print(f"[bold yellow]Pass alert:[/bold yellow] {alert.message}")


@click.command()
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@json_option
def scenario(scenario_file: str, as_json: bool):
    """Predict passes for every satellite in a YAML scenario file."""
    with cli_errors():
        loaded = YamlLoader().load_scenario(scenario_file)
        predictor = PassPredictor(loaded.catalog, loaded.config)
        results = {
            sat_id: predictor.find_passes(sat_id, loaded.observer, loaded.start_time, horizon=loaded.horizon)
            for sat_id in loaded.catalog
        }

    if as_json:
        echo_json({
            'scenario': loaded.name,
            'start': loaded.start_time.isoformat(),
            'end': loaded.end_time.isoformat(),
            'observer': loaded.observer.to_dict(),
            'passes': {sat_id: [p.to_dict() for p in items] for sat_id, items in results.items()},
        })
        return

    merged = sorted(p for items in results.values() for p in items)
    names = {e.satellite_id: e.name for e in loaded.catalog.satellites()}
    console.print(passes_table(merged, loaded.name, names))
    total = sum(p.duration_minutes for p in merged)
    console.print(f"{len(merged)} passes, {format_minutes(total)} visible minutes")
