"""Pass coverage statistics command."""
from datetime import timedelta
from typing import Optional, Tuple

import click
from rich.table import Table

from core.models.observer import ObserverLocation
from evaluation.coverage_metrics import PassStatisticsCalculator

from ..utils import (
    CliContext,
    cli_errors,
    console,
    echo_json,
    format_minutes,
    json_option,
    observer_options,
    parse_time_option,
    positive_hours,
)


@click.command()
@click.argument("satellite_ids", nargs=-1)
@click.option("--start", default=None, help="ISO-8601 window start [default: now]")
@click.option("--hours", "horizon", type=float, default=None, callback=positive_hours,
              help="Window length in hours [default: from configuration]")
@observer_options
@json_option
@click.pass_obj
def stats(
    obj: CliContext,
    satellite_ids: Tuple[str, ...],
    start: Optional[str],
    horizon: Optional[timedelta],
    observer: ObserverLocation,
    as_json: bool
):
    """Summarize pass coverage over a time window."""
    with cli_errors():
        predictor = obj.predictor()
        t0 = parse_time_option(start, obj, "start")
        horizon = horizon or obj.config.horizon
        ids = list(satellite_ids) or list(obj.catalog)

        all_passes = []
        for sat_id in ids:
            all_passes.extend(predictor.find_passes(sat_id, observer, t0, horizon=horizon))

        calculator = PassStatisticsCalculator(t0, t0 + horizon)
        per_satellite = calculator.calculate_per_satellite(all_passes)
        combined = calculator.calculate(all_passes)

    if as_json:
        echo_json({
            'start': t0.isoformat(),
            'end': (t0 + horizon).isoformat(),
            'observer': observer.to_dict(),
            'satellites': {sat_id: per_satellite[sat_id].to_dict() if sat_id in per_satellite
                           else calculator.calculate([]).to_dict() for sat_id in ids},
            'combined': combined.to_dict(),
        })
        return

    table = Table(title=f"Pass coverage, {horizon.total_seconds() / 3600:.0f} h window")
    table.add_column("Satellite", style="cyan")
    table.add_column("Passes", justify="right")
    table.add_column("Visible (min)", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Mean gap (min)", justify="right")
    table.add_column("Max gap (min)", justify="right")
    table.add_column("Mean peak (°)", justify="right", style="yellow")

    rows = [(sat_id, per_satellite.get(sat_id) or calculator.calculate([])) for sat_id in ids]
    rows.append(("All", combined))
    for label, s in rows:
        table.add_row(
            label,
            str(s.pass_count),
            format_minutes(s.total_visible_minutes),
            f"{s.coverage_fraction:.1%}",
            format_minutes(s.mean_revisit_gap_minutes),
            format_minutes(s.max_revisit_gap_minutes),
            f"{s.mean_peak_elevation_deg:.1f}",
        )
    console.print(table)
