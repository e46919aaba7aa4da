"""codecity tree command - build and render a visualization tree."""

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from codecity.cli.utils import open_context
from codecity.core.errors import CodeCityError
from codecity.tree.models import LayoutViewType, TreeNode, TreeNodeType, VisualizationRequest
from codecity.tree.serialize import tree_to_dict


def _node_label(node: TreeNode) -> str:
    label = f"{escape(node.label)} [dim]#{node.id}[/dim]"
    if node.type == TreeNodeType.FILE:
        return (
            f"[green]{label}[/green] "
            f"[cyan]footprint={node.footprint_value:g} height={node.height_value:g}[/cyan]"
        )
    if node.type == TreeNodeType.DEPENDENCY_GENERATED:
        return f"[magenta]{label}[/magenta]"
    return f"[bold]{label}[/bold]"


def _add_children(branch: Tree, node: TreeNode, depth_left: int | None) -> None:
    if depth_left == 0:
        if not node.is_leaf:
            branch.add(f"[dim]… {len(node.children)} more[/dim]")
        return
    next_depth = None if depth_left is None else depth_left - 1
    for child in sorted(node.child_nodes(), key=lambda n: n.label):
        _add_children(branch.add(_node_label(child)), child, next_depth)


def render_tree(root: TreeNode, max_depth: int | None = None) -> Tree:
    """Rich renderable of a tree, truncated below max_depth levels."""
    tree = Tree(_node_label(root))
    _add_children(tree, root, max_depth)
    return tree


@click.command()
@click.argument("root_id", type=int)
@click.option("--footprint", "footprint_name", required=True, help="Footprint metric name")
@click.option("--height", "height_name", required=True, help="Height metric name")
@click.option(
    "--view",
    type=click.Choice([v.value for v in LayoutViewType]),
    default=LayoutViewType.CITY.value,
    show_default=True,
)
@click.option("--depth", type=click.IntRange(min=0), default=None, help="Levels to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tree_command(
    ctx: click.Context,
    root_id: int,
    footprint_name: str,
    height_name: str,
    view: str,
    depth: int | None,
    as_json: bool,
) -> None:
    """Build the visualization tree for ROOT_ID and print it."""
    context = open_context(ctx)
    try:
        request = VisualizationRequest(
            root_snapshot_id=root_id,
            view_type=LayoutViewType(view),
            footprint_metric_id=context.repository.get_metric_id_by_name(footprint_name),
            height_metric_id=context.repository.get_metric_id_by_name(height_name),
        )
        key = context.tree_service.get_or_create_tree_structure(request)
        root = context.tree_service.get_tree_structure(key)
    except CodeCityError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(tree_to_dict(root, depth), indent=2))
        return

    console = Console()
    console.print(f"[dim]key {key}[/dim]")
    console.print(render_tree(root, depth))
