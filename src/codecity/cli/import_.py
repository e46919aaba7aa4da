"""codecity import command - load a snapshot document."""

from pathlib import Path

import click

from codecity.cli.utils import open_context
from codecity.core.errors import CodeCityError
from codecity.snapshots.document import load_document


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_command(ctx: click.Context, file: Path) -> None:
    """Import the YAML (or JSON) snapshot document FILE.

    Prints the id of the new root snapshot.
    """
    try:
        document = load_document(file)
        context = open_context(ctx)
        root_id = context.repository.import_snapshot(document)
    except CodeCityError as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"Imported {len(document.files)} files of '{document.project}' "
        f"as snapshot {root_id}",
        err=True,
    )
    click.echo(root_id)
