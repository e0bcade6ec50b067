"""
digraph CLI

Command-line interface for building daVinci graphs out of a directory
tree or out of the dependencies of source files.

Commands:
    digraph tree [DIRECTORY]    Graph a directory and its sub-directories
    digraph deps FILE...        Graph the files a script depends on

Usage:
    $ digraph tree ./my-project
    $ digraph deps --ascii -I /usr/share/perl5 script.pl
    $ digraph deps --lang python app/main.py
"""

from enum import Enum
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from digraph import GraphError, __version__
from digraph.scan import SCANNERS, build_directory_graph
from digraph.writer import DEFAULT_FORMAT

# Initialize Typer app and Rich consoles
app = typer.Typer(
    name="digraph",
    help="digraph: build directed graphs for the daVinci graph visualizer",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


# Default paths
DEFAULT_TREE_OUTPUT = "dgraph.daVinci"
GRAPH_SUFFIX = ".daVinci"


class Language(str, Enum):
    """Source languages the deps command can follow."""

    perl = "perl"
    python = "python"


@app.command()
def tree(
    directory: Path = typer.Argument(
        Path("."),
        help="Directory to graph (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    output: Path = typer.Option(
        Path(DEFAULT_TREE_OUTPUT),
        "--output",
        "-o",
        help="File to save the graph into",
    ),
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Skip directories whose name matches this glob (repeatable)",
    ),
    follow_symlinks: bool = typer.Option(
        False,
        "--follow-symlinks",
        help="Descend into symlinked directories",
    ),
    graph_format: str = typer.Option(
        DEFAULT_FORMAT,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Graph a directory and all of its sub-directories.

    Every directory becomes a node labelled with its name, with an edge
    from each directory to each of its sub-directories.
    """
    try:
        result = build_directory_graph(
            directory,
            exclude_patterns=exclude,
            follow_symlinks=follow_symlinks,
        )
        result.root.save(output, graph_format)
    except (GraphError, OSError) as e:
        _fail(e)

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Label", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Directories", str(result.node_count))
    table.add_row("Edges", str(result.edge_count))
    table.add_row("Unreadable", str(result.error_count))
    table.add_row("Scan time", f"{result.scan_time_seconds:.2f}s")
    table.add_row("Graph", escape(str(output)))

    console.print(
        Panel(table, title="[bold green]✓ Graph Saved[/bold green]", border_style="green")
    )

    _print_errors(result.errors)


@app.command()
def deps(
    files: list[Path] = typer.Argument(
        ...,
        help="Source files to graph",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    lang: Language = typer.Option(
        Language.perl,
        "--lang",
        "-l",
        help="Language of the source files",
    ),
    include: Optional[list[Path]] = typer.Option(
        None,
        "--include",
        "-I",
        help="Directory to search for dependencies (repeatable)",
    ),
    ascii_tree: bool = typer.Option(
        False,
        "--ascii",
        "-a",
        help="Print an ASCII version of the dependency tree",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Report every occurrence of a dependency, not just the first",
    ),
    output_dir: Path = typer.Option(
        Path("."),
        "--output-dir",
        "-o",
        help="Directory to save <file>.daVinci graphs into",
        file_okay=False,
        dir_okay=True,
    ),
    graph_format: str = typer.Option(
        DEFAULT_FORMAT,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Graph the dependencies of each source file.

    Follows the modules and files each script loads through the search
    path and saves one graph per script, named after it. A script that
    cannot be graphed is reported and skipped; the exit status is 1 if
    any was.
    """
    scanner = SCANNERS[lang.value](include_dirs=include, verbose=verbose)
    failed = False

    for file_path in files:
        save_path = output_dir / f"{file_path.name}{GRAPH_SUFFIX}"

        try:
            result = scanner.scan(file_path)
            if ascii_tree:
                for line in result.ascii_tree():
                    typer.echo(line)
            result.root.save(save_path, graph_format)
        except (GraphError, OSError) as e:
            _print_error(e)
            failed = True
            continue

        for parent, name, filename in result.missing:
            err_console.print(
                f"[yellow]    {escape(name)} ({escape(filename)}) NOT FOUND[/yellow]"
                f" [dim]from {escape(parent)}[/dim]",
                highlight=False,
            )
        _print_errors(result.errors)

        err_console.print(
            f"[bold blue]Dependency graph in[/bold blue] {escape(str(save_path))} "
            f"[dim]({result.node_count} nodes, {result.edge_count} edges)[/dim]",
            highlight=False,
        )

    if failed:
        raise typer.Exit(1)


# Helper functions for output formatting

def _print_error(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")


def _fail(error: Exception) -> NoReturn:
    """Print an error and exit with status 1."""
    _print_error(error)
    raise typer.Exit(1)


def _print_errors(errors: list[tuple[str, str]], limit: int = 5) -> None:
    """Print the paths that could not be read."""
    if not errors:
        return

    err_console.print(f"\n[yellow]⚠️  {len(errors)} path(s) could not be read:[/yellow]")
    for path, error in errors[:limit]:
        err_console.print(f"   • {escape(path)}: {escape(error)}")
    if len(errors) > limit:
        err_console.print(f"   ... and {len(errors) - limit} more")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]digraph[/bold] version {__version__}")
        raise typer.Exit()


# Version command
@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """
    digraph: build directed graphs for the daVinci graph visualizer.
    """


if __name__ == "__main__":
    app()
