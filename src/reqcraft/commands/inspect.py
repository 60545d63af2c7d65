"""Inspect commands -- examine the resolved configuration.

Provides the ``reqcraft inspect`` sub-command group with read-only views of
the merged document: flattened endpoints, the category tree, config
variables and headers, the full document, and the mock payload an endpoint
would answer with. Every sub-command resolves the root document first and
presents the data in table or structured output format.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.tree import Tree

from reqcraft.commands.common import load_snapshot
from reqcraft.exceptions import InvalidUsageError
from reqcraft.exit_codes import EXIT_INVALID_USAGE
from reqcraft.models import CategoryInfo, EndpointType
from reqcraft.output import OutputFormat, error, format_data, get_output
from reqcraft.projection import find_endpoint, headers, mock_payload, variables


inspect_app = typer.Typer(no_args_is_help=True)


@inspect_app.command("endpoints")
def inspect_endpoints(
    ctx: typer.Context,
    endpoint_type: Optional[EndpointType] = typer.Option(
        None, "--type", "-t", help="Only show endpoints of this kind."
    ),
) -> None:
    """List all endpoints with their prefixed paths.

    Example::

        reqcraft inspect endpoints
        reqcraft inspect endpoints --type websocket
    """
    snapshot = load_snapshot(ctx)
    endpoints = snapshot.endpoints()
    if endpoint_type is not None:
        endpoints = [e for e in endpoints if e.endpoint_type is endpoint_type]

    rows = [
        [
            endpoint.id,
            endpoint.endpoint_type.value,
            endpoint.method or "-",
            endpoint.path,
            endpoint.name or "-",
            endpoint.category_name or endpoint.category_id or "-",
        ]
        for endpoint in endpoints
    ]
    get_output().print_table(
        ["ID", "Type", "Method", "Path", "Name", "Category"],
        rows,
        title=f"Endpoints ({len(rows)})",
    )


def _category_label(info: CategoryInfo) -> str:
    label = info.name or info.id
    return f"{label} ({info.endpoint_count})"


def _add_branches(tree: Tree, nodes: list[CategoryInfo]) -> None:
    for node in nodes:
        branch = tree.add(_category_label(node))
        _add_branches(branch, node.children)


def _plain_lines(nodes: list[CategoryInfo], depth: int = 0) -> list[str]:
    lines: list[str] = []
    for node in nodes:
        lines.append(f"{'  ' * depth}{node.id}\t{node.name or '-'}\t{node.endpoint_count}")
        lines.extend(_plain_lines(node.children, depth + 1))
    return lines


@inspect_app.command("categories")
def inspect_categories(ctx: typer.Context) -> None:
    """Show the category tree with per-category endpoint counts."""
    snapshot = load_snapshot(ctx)
    categories = snapshot.categories()

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_data([c.model_dump(by_alias=True, exclude_none=True) for c in categories])
    elif output.format == OutputFormat.PLAIN:
        for line in _plain_lines(categories):
            output.print_data(line)
    else:
        tree = Tree("Categories")
        _add_branches(tree, categories)
        output.print_renderable(tree)


@inspect_app.command("variables")
def inspect_variables(ctx: typer.Context) -> None:
    """List the variables declared in ``config``."""
    snapshot = load_snapshot(ctx)
    rows = [
        [var.name, var.var_type, var.default_value if var.default_value is not None else "-"]
        for var in variables(snapshot.document)
    ]
    get_output().print_table(["Name", "Type", "Default"], rows, title=f"Variables ({len(rows)})")


@inspect_app.command("headers")
def inspect_headers(ctx: typer.Context) -> None:
    """List the headers declared in ``config``."""
    snapshot = load_snapshot(ctx)
    rows = [
        [header.name, header.default_value if header.default_value is not None else "-"]
        for header in headers(snapshot.document)
    ]
    get_output().print_table(["Name", "Default"], rows, title=f"Headers ({len(rows)})")


@inspect_app.command("document")
def inspect_document(ctx: typer.Context) -> None:
    """Dump the merged document as JSON."""
    snapshot = load_snapshot(ctx)
    format_data(snapshot.document.model_dump(mode="json", by_alias=True, exclude_none=True))


@inspect_app.command("mock")
def inspect_mock(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, e.g. GET."),
    path: str = typer.Argument(..., help="Full endpoint path including category prefixes."),
) -> None:
    """Render the mock response of an HTTP endpoint.

    Example::

        reqcraft inspect mock GET /v1/users/list

    Raises:
        InvalidUsageError: If *path* is not an absolute endpoint path.
    """
    if not path.startswith("/"):
        raise InvalidUsageError(f"Endpoint path must start with '/' (got '{path}')")

    snapshot = load_snapshot(ctx)
    endpoint = find_endpoint(snapshot.endpoints(), method, path)
    if endpoint is None:
        error(f"No HTTP endpoint matches {method.upper()} {path}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    format_data(mock_payload(endpoint.response))
