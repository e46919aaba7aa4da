"""codecity serve command - run the HTTP daemon."""

import asyncio

import click
from pydantic import ValidationError

from codecity.cli.utils import get_config, open_context
from codecity.config.models import ServerConfig
from codecity.daemon.lifecycle import run_server


@click.command()
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Port (overrides config)")
@click.pass_context
def serve_command(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve visualization trees over HTTP."""
    config = get_config(ctx)
    overrides: dict[str, object] = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if overrides:
        try:
            server = ServerConfig.model_validate({**config.server.model_dump(), **overrides})
        except ValidationError as e:
            raise click.BadParameter(e.errors()[0]["msg"]) from e
        ctx.find_root().obj["config"] = config.model_copy(update={"server": server})

    context = open_context(ctx)
    server_config = context.config.server
    click.echo(f"CodeCity serving on http://{server_config.host}:{server_config.port}", err=True)
    asyncio.run(run_server(context))
