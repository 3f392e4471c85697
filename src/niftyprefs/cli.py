# src/niftyprefs/cli.py
"""
niftyprefs Command Line Interface (CLI).

Small tooling around preference files, built with `typer` and `rich`.
It only uses the node layer of the library: no classes need to be registered
to inspect or reformat a file.

Commands
--------
- **show**: Parse a preferences file and render its node tree (tags,
  properties, children) as a rich tree.
- **fmt**: Re-emit a preferences file as canonical, indented XML, either to
  stdout or atomically to another file.
- **version**: Print the library version.

Usage
-----
    $ niftyprefs show people.xml
    $ niftyprefs fmt people.xml --output people.pretty.xml
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from niftyprefs.core.codec import node_to_buffer, node_to_file
from niftyprefs.core.context import Prefs
from niftyprefs.core.errors import PrefsError
from niftyprefs.core.node import PrefsNode
from niftyprefs.core.version import __version__

# Pick up NIFTYPREFS_* overrides from a local .env before settings are read
load_dotenv()

app = typer.Typer(
    help="niftyprefs: inspect and reformat XML preference files.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers: Rendering & I/O
# --------------------------------------------------------------------------- #


def _label(node: PrefsNode) -> str:
    props = " ".join(
        f"[cyan]{escape(k)}[/cyan]=[green]{escape(repr(v))}[/green]" for k, v in node.props().items()
    )
    return f"[bold]<{escape(node.name)}>[/bold] {props}".rstrip()


def _build_tree(node: PrefsNode, branch: Tree | None = None) -> Tree:
    """Helper: Mirror the node tree into a rich Tree, children in document order."""
    tree = Tree(_label(node)) if branch is None else branch.add(_label(node))
    for child in node.children():
        _build_tree(child, tree)
    return tree


def _load(file: Path, verbose: bool) -> tuple[Prefs, PrefsNode]:
    """Helper: Parse ``file`` into a fresh context; exit 1 on failure."""
    prefs = Prefs()
    parsed = prefs.node_from_file(file)
    if parsed.is_err():
        _abort(parsed.unwrap_err(), verbose)
    return prefs, parsed.unwrap()


def _abort(error: PrefsError, verbose: bool) -> NoReturn:
    """Helper: Report ``error`` (with its cause chain if verbose) and exit 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(error.message)}")
    if verbose:
        cause = error.cause
        while cause is not None:
            console.print(f"[dim]  caused by {escape(cause.kind.value)}: {escape(cause.message)}[/dim]")
            cause = cause.cause
    raise typer.Exit(code=1)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def show(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to the XML preferences file.",
        ),
    ],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show the full error chain."),
    ] = False,
) -> None:
    """
    Render the node tree of a preferences file.

    Each line shows one node: its tag (the class name) followed by its
    properties. Children are nested in document order.
    """
    prefs, root = _load(file, verbose)
    try:
        count = sum(1 for _ in root.walk())
        console.print(
            Panel.fit(
                f"[bold cyan]{escape(file.name)}[/bold cyan]\n{count} node(s)",
                border_style="cyan",
            )
        )
        console.print(_build_tree(root))
    finally:
        prefs.exit()


@app.command()  # type: ignore[misc]
def fmt(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to the XML preferences file.",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the formatted document here instead of stdout.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show the full error chain."),
    ] = False,
) -> None:
    """
    Re-emit a preferences file as canonical indented XML.
    """
    prefs, root = _load(file, verbose)
    indent = prefs.settings.xml_indent
    try:
        if output is None:
            text = node_to_buffer(root, indent=indent)
            if text.is_err():
                _abort(text.unwrap_err(), verbose)
            typer.echo(text.unwrap(), nl=False)
            return

        written = node_to_file(root, output, indent=indent)
        if written.is_err():
            _abort(written.unwrap_err(), verbose)
        console.print(f"[dim]Wrote {escape(str(written.unwrap()))}[/dim]")
    finally:
        prefs.exit()


@app.command()  # type: ignore[misc]
def version() -> None:
    """Print the niftyprefs version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
