"""Shared CLI helpers.

Option decorators, the command context object, time parsing and
output rendering shared by all ``satpass`` commands.
"""
import functools
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator, List, Optional

import click
from rich.console import Console
from rich.table import Table

from core.config import EngineConfig
from core.exceptions import SatPassError
from core.models.catalog import SatelliteCatalog
from core.models.observer import DEFAULT_OBSERVER, ObserverLocation
from core.models.orbital_elements import parse_timestamp
from core.orbit.visibility.base import Pass
from core.tracking.pass_predictor import PassPredictor

from ..config_loader import ConfigLoadError
from ..json_utils import dumps
from ..logger import LoggerConfigError


console = Console()


@dataclass
class CliContext:
    """State shared between the group callback and its commands."""
    catalog: SatelliteCatalog
    config: EngineConfig
    invoked_at: datetime

    def predictor(self) -> PassPredictor:
        return PassPredictor(self.catalog, self.config)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Translate engine and configuration errors into click errors."""
    try:
        yield
    except (SatPassError, ConfigLoadError, LoggerConfigError) as e:
        raise click.ClickException(str(e)) from e
    except FileNotFoundError as e:
        raise click.ClickException(f"File not found: {e.filename or e}") from e


def parse_time_option(value: Optional[str], ctx_obj: CliContext, name: str = "time") -> datetime:
    """Parse an ISO-8601 option; default to the time the CLI was invoked."""
    if value is None:
        return ctx_obj.invoked_at
    return parse_timestamp(value, name)


def now_utc() -> datetime:
    """Current wall-clock time; read once per CLI invocation."""
    return datetime.now(timezone.utc)


def observer_options(func: Callable) -> Callable:
    """Add --lat/--lon/--elevation-m/--observer-name and pass ``observer``."""
    @click.option("--lat", "latitude", type=float, default=None,
                  help=f"Observer latitude in degrees [default: {DEFAULT_OBSERVER.latitude_deg}]")
    @click.option("--lon", "longitude", type=float, default=None,
                  help=f"Observer longitude in degrees [default: {DEFAULT_OBSERVER.longitude_deg}]")
    @click.option("--elevation-m", type=float, default=None,
                  help=f"Observer elevation above sea level in metres [default: {DEFAULT_OBSERVER.elevation_m}]")
    @click.option("--observer-name", default=None, help="Observer label")
    @functools.wraps(func)
    def wrapper(*args, latitude, longitude, elevation_m, observer_name, **kwargs):
        if latitude is None and longitude is None and elevation_m is None:
            observer = DEFAULT_OBSERVER
        else:
            if latitude is None or longitude is None:
                raise click.UsageError("--lat and --lon must be given together")
            with cli_errors():
                observer = ObserverLocation(
                    latitude_deg=latitude,
                    longitude_deg=longitude,
                    elevation_m=elevation_m if elevation_m is not None else 0.0,
                    name=observer_name or "",
                )
        return func(*args, observer=observer, **kwargs)
    return wrapper


def json_option(func: Callable) -> Callable:
    """Add a --json flag."""
    return click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")(func)


def echo_json(data: Any) -> None:
    click.echo(dumps(data))


def format_time(t: Optional[datetime]) -> str:
    return t.strftime("%Y-%m-%d %H:%M:%S") if t else "-"


def format_minutes(minutes: float) -> str:
    return f"{minutes:.1f}"


def passes_table(passes: List[Pass], title: str, names: Optional[dict] = None) -> Table:
    """Render passes as a rich table."""
    table = Table(title=title)
    table.add_column("Satellite", style="cyan")
    table.add_column("Start (UTC)", style="green")
    table.add_column("End (UTC)", style="green")
    table.add_column("Duration (min)", justify="right")
    table.add_column("Peak (°)", justify="right", style="yellow")
    table.add_column("Quality")
    table.add_column("Score", justify="right")
    table.add_column("Direction")

    for p in passes:
        label = names.get(p.satellite_id, p.satellite_id) if names else p.satellite_id
        if p.in_progress:
            label = f"{label} *"
        table.add_row(
            label,
            format_time(p.start_time),
            format_time(p.end_time),
            format_minutes(p.duration_minutes),
            f"{p.peak_elevation_deg:.1f}",
            p.quality_tier.value if p.quality_tier else "-",
            str(p.data_opportunity_score) if p.data_opportunity_score is not None else "-",
            p.direction or "-",
        )
    return table


def positive_hours(ctx, param, value):
    """click callback converting an hours option into a timedelta."""
    if value is None:
        return None
    if value <= 0:
        raise click.BadParameter("must be > 0")
    return timedelta(hours=value)
