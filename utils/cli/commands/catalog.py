"""Satellite catalog commands."""
from typing import Optional

import click
from rich.table import Table

from ..utils import CliContext, cli_errors, console, echo_json, json_option


@click.command()
@click.option("--export", "export_path", type=click.Path(dir_okay=False), default=None,
              help="Write the catalog to a JSON or YAML file")
@json_option
@click.pass_obj
def catalog(obj: CliContext, export_path: Optional[str], as_json: bool):
    """List the satellites in the catalog."""
    if export_path:
        with cli_errors():
            obj.catalog.save(export_path)
        click.echo(f"Catalog written to {export_path}", err=True)

    if as_json:
        echo_json(obj.catalog.to_dict())
        return

    table = Table(title="Satellite Catalog")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Altitude (km)", justify="right")
    table.add_column("Inclination (°)", justify="right")
    table.add_column("Period (min)", justify="right")
    table.add_column("Status", style="yellow")
    table.add_column("Data products")

    for elements in obj.catalog.satellites():
        table.add_row(
            elements.satellite_id,
            elements.name,
            f"{elements.altitude_km:.1f}",
            f"{elements.inclination_deg:.1f}",
            f"{elements.period_minutes:.1f}",
            elements.status,
            ", ".join(elements.data_products) or "-",
        )

    console.print(table)
