"""CodeCity CLI - codecity command."""

from pathlib import Path

import click

from codecity.cli.import_ import import_command
from codecity.cli.metrics import metrics_command
from codecity.cli.serve import serve_command
from codecity.cli.status import status_command
from codecity.cli.tree import tree_command
from codecity.config.loader import load_config
from codecity.core.errors import ConfigError
from codecity.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="codecity")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (default: .codecity/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """CodeCity - code-city visualization trees from analysis snapshots."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    ctx.obj["config"] = config

    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)


cli.add_command(serve_command, name="serve")
cli.add_command(tree_command, name="tree")
cli.add_command(metrics_command, name="metrics")
cli.add_command(import_command, name="import")
cli.add_command(status_command, name="status")


if __name__ == "__main__":
    cli()
