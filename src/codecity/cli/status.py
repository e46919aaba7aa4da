"""codecity status command - query a running daemon."""

import json

import click
import httpx

from codecity.cli.utils import get_config


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, as_json: bool) -> None:
    """Show the status of the daemon at the configured host and port."""
    server = get_config(ctx).server
    url = f"http://{server.host}:{server.port}/status"

    try:
        response = httpx.get(url, timeout=5.0)
        status_data = response.json()
    except (httpx.RequestError, json.JSONDecodeError) as e:
        if as_json:
            click.echo(json.dumps({"running": False, "url": url, "error": str(e)}))
        else:
            click.echo(f"Daemon: not reachable at {url} ({e})")
        return

    if as_json:
        click.echo(json.dumps({"running": True, **status_data}))
        return

    trees = status_data.get("trees", {})
    click.echo(f"Daemon: running (version {status_data.get('version', '?')})")
    click.echo(f"Uptime: {status_data.get('uptime_seconds', 0)}s")
    click.echo(f"Cached trees: {trees.get('count', 0)}")
    for key in trees.get("keys", []):
        click.echo(f"  {key}")
