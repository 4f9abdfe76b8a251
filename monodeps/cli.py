"""CLI entry point for monodeps."""

from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Annotated

import typer

from monodeps.changeset import changeset, query_downstream
from monodeps.discovery import find_workspace_root
from monodeps.errors import GraphError
from monodeps.graph import DependencyGraph, build_graph
from monodeps.log import configure_logging
from monodeps.models import Target
from monodeps.toon import encode, encode_text


class OutputFormat(str, enum.Enum):
    """Graph output formats."""

    TOON = "toon"
    JSON = "json"
    TEXT = "text"


RootOption = Annotated[
    Path | None,
    typer.Option(
        "--root",
        "-r",
        help="Workspace root (default: nearest parent holding workspace.json).",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
]
FastOption = Annotated[
    bool,
    typer.Option("--fast", help="Infer packages in parallel worker processes."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log debug output to stderr."),
]


def _fail(exc: GraphError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    for note in getattr(exc, "__notes__", []):
        typer.echo(f"Error: {note}", err=True)
    return typer.Exit(1)


def _load_graph(root: Path | None, *, fast: bool, verbose: bool) -> DependencyGraph:
    """Locate the workspace, build its graph and report warnings."""
    configure_logging(verbose=verbose)
    try:
        if root is None:
            root = find_workspace_root(Path.cwd())
        graph = build_graph(root, fast=fast)
    except GraphError as exc:
        raise _fail(exc) from None

    for package, warning in graph.warnings:
        typer.echo(f"Warning: {package.label}: {warning}", err=True)
    for cycle in graph.cycles():
        path = " -> ".join(t.label for t in [*cycle, cycle[0]])
        typer.echo(f"Warning: dependency cycle: {path}", err=True)
    if verbose:
        for dropped in graph.unresolved:
            typer.echo(
                f"Dropped: {dropped.target.label}: {dropped.spec.value!r} "
                f"({dropped.reason})",
                err=True,
            )
    return graph


def _echo_labels(targets: set[Target] | frozenset[Target]) -> None:
    for target in sorted(targets):
        typer.echo(target.label)


app = typer.Typer(
    name="monodeps",
    help="Track dependencies between the packages of a monorepo.",
    no_args_is_help=True,
)


@app.command("graph")
def graph_command(
    root: RootOption = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TOON,
    target: Annotated[
        str | None,
        typer.Option(
            "--target",
            "-t",
            help="Only show this label's dependencies and dependents.",
        ),
    ] = None,
    fast: FastOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Print the workspace dependency graph."""
    graph = _load_graph(root, fast=fast, verbose=verbose)

    if target is not None:
        try:
            targets = graph.lookup(target)
        except GraphError as exc:
            raise _fail(exc) from None
        for t in targets:
            typer.echo(t.label)
            typer.echo("  dependencies:")
            for dep in sorted(graph.dependencies(t)):
                typer.echo(f"    {dep.label}")
            typer.echo("  dependents:")
            for dep in sorted(graph.downstream([t])):
                typer.echo(f"    {dep.label}")
        return

    export = graph.export()
    if output_format is OutputFormat.JSON:
        typer.echo(json.dumps(export.to_dict(), indent=2))
    elif output_format is OutputFormat.TEXT:
        typer.echo(encode_text(export))
    else:
        typer.echo(encode(export))


@app.command("changeset")
def changeset_command(
    paths: Annotated[
        list[str] | None,
        typer.Argument(
            help="Changed paths, relative to the workspace root. "
            "Read from stdin when omitted.",
            show_default=False,
        ),
    ] = None,
    root: RootOption = None,
    fast: FastOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Print every target affected by the changed paths."""
    if not paths:
        paths = typer.get_text_stream("stdin").read().split()
    graph = _load_graph(root, fast=fast, verbose=verbose)
    result = changeset(graph, paths)
    _echo_labels(result.affected)


@app.command("downstream")
def downstream_command(
    label: Annotated[
        str, typer.Argument(help="Target (//path:kind) or package (//path) label.")
    ],
    root: RootOption = None,
    fast: FastOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Print every target that depends on LABEL, directly or transitively."""
    graph = _load_graph(root, fast=fast, verbose=verbose)
    try:
        dependents = query_downstream(graph, label)
    except GraphError as exc:
        raise _fail(exc) from None
    _echo_labels(dependents)
