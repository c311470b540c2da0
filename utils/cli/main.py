"""Main CLI entry point.

This module defines the ``satpass`` group: it loads the satellite catalog
and engine configuration once, configures logging, and registers all
commands.
"""
from typing import Optional

import click

from core.config import load_engine_config
from core.models.catalog import SatelliteCatalog

from ..logger import LOG_FORMATS, configure_logging
from .commands.catalog import catalog
from .commands.passes import passes, next_pass, upcoming, alerts, scenario
from .commands.status import position, visibility, track, status
from .commands.stats import stats
from .utils import CliContext, cli_errors, now_utc


@click.group()
@click.version_option(version="0.1.0", prog_name="satpass")
@click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False), default=None,
              help="Satellite catalog file (JSON or YAML); defaults to the built-in constellation")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Engine configuration file (YAML, JSON or INI)")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
              help="Logging level [default: from configuration]")
@click.option("--log-format", default="text", type=click.Choice(list(LOG_FORMATS)), show_default=True)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to this file")
@click.pass_context
def main(
    ctx: click.Context,
    catalog_path: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
    log_format: str,
    log_file: Optional[str]
):
    """Satellite orbit propagation and pass prediction."""
    with cli_errors():
        config = load_engine_config(config_path)
        configure_logging(log_level or config.log_level, log_format, log_file)
        sat_catalog = SatelliteCatalog.load(catalog_path) if catalog_path else SatelliteCatalog.default()

    ctx.obj = CliContext(catalog=sat_catalog, config=config, invoked_at=now_utc())


main.add_command(catalog)

main.add_command(position)
main.add_command(visibility)
main.add_command(track)
main.add_command(status)

main.add_command(passes)
main.add_command(next_pass)
main.add_command(upcoming)
main.add_command(alerts)
main.add_command(scenario)

main.add_command(stats)


if __name__ == "__main__":
    main()
