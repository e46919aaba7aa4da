"""CLI utilities."""

import click

from codecity.config.models import CodeCityConfig
from codecity.context import AppContext
from codecity.core.errors import CodeCityError


def get_config(ctx: click.Context) -> CodeCityConfig:
    """Configuration loaded by the root command."""
    config = ctx.find_root().obj["config"]
    assert isinstance(config, CodeCityConfig)
    return config


def open_context(ctx: click.Context) -> AppContext:
    """Create the application context and close it when the command ends.

    Raises:
        click.ClickException: If the snapshot database cannot be opened
    """
    try:
        context = AppContext.create(get_config(ctx))
    except CodeCityError as e:
        raise click.ClickException(str(e)) from e
    ctx.call_on_close(context.close)
    return context
