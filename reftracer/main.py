"""Command line interface for reftracer.

Traces the paths of a JSON trace map through JavaScript files and prints
every match as a table with code snippets, or as JSON.
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from reftracer import __version__
from reftracer.core.engine import ALL_STRATEGIES, Strategy, TraceResult, trace_source
from reftracer.core.models import TraceMode
from reftracer.core.schema import TraceMapError, load_trace_map


console = Console()
err_console = Console(stderr=True)

TYPE_STYLES = {
    "read": "cyan",
    "call": "green",
    "construct": "magenta",
}


def setup_logging(verbose: bool):
    """Send library logs to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def read_source(filepath: Path) -> str | None:
    """Read a source file, printing an error on failure."""
    try:
        return filepath.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error: cannot read {filepath}: {e}[/red]")
        return None


def _format_entry(entry) -> str:
    if isinstance(entry, str):
        return entry
    return json.dumps(entry)


def display_result(result: TraceResult):
    """Print the matches of one file as a table."""
    if not result.parsed_cleanly:
        console.print(f"[yellow]Warning: {result.filepath} has syntax errors, results may be incomplete[/yellow]")

    if not result.matches:
        console.print(f"[dim]{result.filepath}: no matches[/dim]")
        return

    table = Table(title=result.filepath, title_justify="left", show_lines=True)
    table.add_column("Line", justify="right", style="bold")
    table.add_column("Path")
    table.add_column("Type")
    table.add_column("Entry")
    table.add_column("Code", overflow="fold")

    for match in result.matches:
        style = TYPE_STYLES.get(match.type.value, "white")
        code = ""
        if result.parser is not None and match.line:
            code = (result.parser.get_line_content(match.line) or "").strip()
        table.add_row(
            str(match.line),
            Text(match.dotted_path) if match.path else Text("(global object)", style="dim"),
            Text(match.type.value, style=style),
            Text(_format_entry(match.entry)),
            Text(code),
        )

    console.print(table)


@click.command()
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--map", "-m", "map_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON trace map describing the paths to look for",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in TraceMode], case_sensitive=False),
    help="How CommonJS module maps are seen by import syntax (default: strict)",
)
@click.option(
    "--strategy", "-s", "strategies",
    multiple=True,
    type=click.Choice([s.value for s in Strategy], case_sensitive=False),
    help="Entry strategy to run (repeatable, default: all)",
)
@click.option(
    "--global-object", "global_objects",
    multiple=True,
    help="Name of the global object (repeatable, default: global, self, window)",
)
@click.option("--json", "as_json", is_flag=True, help="Print matches as JSON")
@click.option("--verbose", is_flag=True, help="Show debug logs")
@click.option("--version", "-v", is_flag=True, help="Show version")
def cli(files, map_path, mode, strategies, global_objects, as_json, verbose, version):
    """reftracer - find every use of JavaScript APIs, however they were aliased.

    Examples:

        reftracer --map deprecated.json src/app.js

        reftracer --map node.json --strategy cjs --json lib/*.js

        reftracer --map esm.json --mode legacy src/index.mjs
    """
    if version:
        console.print(f"reftracer {__version__}")
        return

    setup_logging(verbose)

    if map_path is None:
        err_console.print("[red]Error: --map is required[/red]")
        sys.exit(1)
    if not files:
        err_console.print("[red]Error: no input files given[/red]")
        sys.exit(1)

    try:
        trace_map = load_trace_map(map_path)
    except TraceMapError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    results = []
    failed = False
    for filepath in files:
        source = read_source(filepath)
        if source is None:
            failed = True
            continue
        results.append(trace_source(
            source,
            trace_map,
            strategies=strategies or ALL_STRATEGIES,
            mode=mode,
            global_object_names=global_objects or None,
            filepath=str(filepath),
        ))

    if as_json:
        click.echo(json.dumps([result.to_dict() for result in results], indent=2))
    else:
        for result in results:
            display_result(result)
        total = sum(len(result.matches) for result in results)
        console.print(f"\n[bold]{total} match(es) in {len(results)} file(s)[/bold]")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
