"""codecity metrics command - list the metrics of a snapshot."""

import json

import click
from rich.console import Console
from rich.table import Table

from codecity.cli.utils import open_context
from codecity.core.errors import CodeCityError


@click.command()
@click.argument("snapshot_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def metrics_command(ctx: click.Context, snapshot_id: int, as_json: bool) -> None:
    """List metrics with values under SNAPSHOT_ID, with their file min/max."""
    context = open_context(ctx)
    try:
        metrics = context.repository.get_distinct_metrics_by_snapshot_id(snapshot_id)
        rows = [
            (metric, context.repository.get_min_max_metric_values(snapshot_id, metric.id))
            for metric in metrics
        ]
    except CodeCityError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": metric.id,
                        "name": metric.name,
                        "description": metric.description,
                        "min": bounds.min_value,
                        "max": bounds.max_value,
                    }
                    for metric, bounds in rows
                ]
            )
        )
        return

    if not rows:
        click.echo(f"No metrics for snapshot {snapshot_id}")
        return

    table = Table(title=f"Metrics of snapshot {snapshot_id}")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for metric, bounds in rows:
        table.add_row(
            str(metric.id),
            metric.name,
            metric.description or "",
            f"{bounds.min_value:g}",
            f"{bounds.max_value:g}",
        )
    Console().print(table)
