"""provtrace CLI - static provenance tracing for JSX/TSX sources."""

import json
import time
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.markup import escape

from provtrace.utils.safe_console import SafeConsole
from provtrace.utils.logger import configure_logging
from provtrace.config import __version__, get_config
from provtrace.analyzer.analysis import analyze_file
from provtrace.analyzer.cache import GraphCache
from provtrace.analyzer.module_graph import ROW_TYPES
from provtrace.analyzer.scanner import ProjectScanner, ScanResult

app = typer.Typer(
    name="provtrace",
    help="Trace where rendered values come from, statically",
    add_completion=False
)
console = SafeConsole()

# Cache management sub-command
cache_app = typer.Typer(name="cache", help="Manage the module graph cache")


def _resolve_project(project_path: str) -> Path:
    project = Path(project_path).resolve()
    if not project.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project))}")
        raise typer.Exit(1)
    return project


def _load_config():
    try:
        config = get_config()
        # Validate boolean settings up front
        config.use_cache
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    return config


def run_scan(project: Path, use_cache: Optional[bool] = None, show_progress: bool = True) -> tuple[ProjectScanner, ScanResult]:
    """Shared scanning logic for scan, literals and deps."""
    scanner = ProjectScanner(project, config=_load_config(), use_cache=use_cache)

    if not show_progress:
        return scanner, scanner.scan()

    total = len(scanner.discover_files())
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task("Collecting module graphs", total=total)
        result = scanner.scan(on_file=lambda _path: progress.advance(task))

    return scanner, result


@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Project root path to scan"),
    json_out: Optional[Path] = typer.Option(None, "--json", help="Write the registry as JSON to this file"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore and do not update the graph cache"),
):
    """Collect module graphs for every source file of a project."""
    project = _resolve_project(project_path)
    console.print(f"[bold blue]Scanning project:[/bold blue] {escape(str(project))}\n")

    start_time = time.time()
    _, result = run_scan(project, use_cache=False if no_cache else None)
    elapsed = time.time() - start_time

    totals = {table: 0 for table in ROW_TYPES}
    for _, graph in result.registry.items():
        for table, count in graph.counts().items():
            totals[table] += count

    table = Table(title="Module Graph Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_row("Files", str(len(result.files)))
    table.add_row("Imports", str(totals['imports']))
    table.add_row("Exports", str(totals['exports']))
    table.add_row("Re-exports", str(totals['reexports']))
    table.add_row("Definitions", str(totals['defs']))
    table.add_row("Mutations", str(totals['mutations']))
    table.add_row("Literals", str(totals['literal_index']))
    console.print(table)

    console.print(
        f"[dim]{result.analyzed} analyzed, {result.cached} from cache, "
        f"{len(result.skipped)} skipped in {elapsed:.2f}s[/dim]"
    )

    if json_out is not None:
        payload = {
            'project': str(project),
            'files': result.files,
            'skipped': result.skipped,
            'modules': result.registry.to_dict(),
        }
        json_out.write_text(json.dumps(payload, indent=2), encoding='utf-8')
        console.print(f"[green]✓ Wrote {escape(str(json_out))}[/green]")


@app.command()
def trace(
    file_path: str = typer.Argument(..., help="JS/TS source file to trace"),
    line: Optional[int] = typer.Option(None, "--line", "-n", help="Only elements covering this line"),
    as_json: bool = typer.Option(False, "--json", help="Print element reports as JSON"),
):
    """Show where the values rendered by each JSX element come from."""
    path = Path(file_path)
    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(file_path)}")
        raise typer.Exit(1)

    analysis = analyze_file(path, display_path=file_path)
    if analysis is None:
        console.print(f"[bold red]Error:[/bold red] Unsupported file type: {escape(file_path)}")
        raise typer.Exit(1)

    elements = analysis.elements if line is None else analysis.elements_at_line(line)

    if as_json:
        typer.echo(json.dumps([e.to_dict() for e in elements], indent=2))
        return

    if not elements:
        console.print("[yellow]No JSX elements found.[/yellow]")
        return

    table = Table(title=f"Provenance: {escape(file_path)}")
    table.add_column("Element", style="cyan")
    table.add_column("Lines", style="green")
    table.add_column("Kinds", style="yellow")
    table.add_column("Edit candidates", style="magenta", no_wrap=False)

    for element in elements:
        candidates = "\n".join(
            f"{c.reason} → {escape(c.target)}" for c in element.candidates
        ) or "-"
        kinds = ", ".join(element.kinds) or "-"
        if element.chain.truncated:
            kinds += " …"
        table.add_row(f"<{escape(element.tag)}>", element.line_range, kinds, candidates)

    console.print(table)


@app.command()
def graph(
    file_path: str = typer.Argument(..., help="JS/TS source file"),
    as_json: bool = typer.Option(False, "--json", help="Print the module graph as JSON"),
):
    """Print the module graph (imports, exports, defs, mutations, literals) of one file."""
    path = Path(file_path)
    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(file_path)}")
        raise typer.Exit(1)

    analysis = analyze_file(path, display_path=file_path)
    if analysis is None:
        console.print(f"[bold red]Error:[/bold red] Unsupported file type: {escape(file_path)}")
        raise typer.Exit(1)

    module_graph = analysis.graph
    if as_json:
        typer.echo(json.dumps(module_graph.to_dict(), indent=2))
        return

    for table_name, row_type in ROW_TYPES.items():
        rows = getattr(module_graph, table_name)
        if not rows:
            continue
        table = Table(title=table_name)
        columns = [f.name for f in fields(row_type)]
        for column in columns:
            table.add_column(column)
        for row in rows:
            values = asdict(row)
            table.add_row(*(escape(str(values[column])) for column in columns))
        console.print(table)

    summary = ", ".join(f"{name}: {count}" for name, count in module_graph.counts().items())
    console.print(f"[dim]{summary}[/dim]")


@app.command()
def literals(
    project_path: str = typer.Argument(..., help="Project root path"),
    text: str = typer.Argument(..., help="Literal text to look up"),
    contains: bool = typer.Option(False, "--contains", help="Substring match instead of exact"),
):
    """Find exported string literals by text."""
    project = _resolve_project(project_path)
    _, result = run_scan(project, show_progress=False)

    matches = result.registry.find_literals(text, exact=not contains)
    if not matches:
        console.print(f"[yellow]No exported literal matches {escape(repr(text))}.[/yellow]")
        return

    table = Table(title="Literal Matches")
    table.add_column("File", style="cyan")
    table.add_column("Export", style="green")
    table.add_column("Path", style="yellow")
    table.add_column("Text", style="magenta")
    table.add_column("Span")
    for file_path, row in matches:
        table.add_row(escape(file_path), escape(row.export_name), escape(row.path),
                      escape(row.text), escape(row.span))
    console.print(table)


@app.command()
def deps(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Print resolved module dependency edges."""
    project = _resolve_project(project_path)
    scanner, result = run_scan(project, show_progress=False)
    dependency_graph = result.registry.dependency_graph(scanner.resolver())

    if dependency_graph.number_of_edges() == 0:
        console.print("[yellow]No resolved module dependencies.[/yellow]")
    else:
        table = Table(title="Module Dependencies")
        table.add_column("From", style="cyan")
        table.add_column("To", style="green")
        table.add_column("Kind", style="yellow")
        table.add_column("Names", style="magenta")
        for source, target, data in sorted(dependency_graph.edges(data=True)):
            table.add_row(escape(source), escape(target), data['kind'], escape(", ".join(data['names'])))
        console.print(table)

    console.print(
        f"[dim]{dependency_graph.number_of_nodes()} modules, "
        f"{dependency_graph.number_of_edges()} edges[/dim]"
    )


# =========================================================================
# CACHE MANAGEMENT COMMANDS
# =========================================================================

@cache_app.command("clear")
def cache_clear(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Clear the module graph cache for a project."""
    project = _resolve_project(project_path)

    with GraphCache(project, _load_config().cache_dir) as cache:
        cache.clear_cache()

    console.print(f"[green]✓ Cache cleared for {escape(str(project))}[/green]")


@cache_app.command("stats")
def cache_stats(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Display cache statistics for a project."""
    project = _resolve_project(project_path)

    with GraphCache(project, _load_config().cache_dir) as cache:
        stats = cache.get_cache_stats()

    table = Table(title="Cache Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_row("Total Files Cached", str(stats['total_files']))
    table.add_row("Module Graphs", str(stats['module_graphs_cached']))

    console.print(table)


# Register cache sub-command
app.add_typer(cache_app)


def _version_callback(value: bool):
    if value:
        typer.echo(f"provtrace {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show version and exit"),
):
    """provtrace - static provenance tracing for JSX/TSX sources."""
    configure_logging(verbose, console=console)


if __name__ == "__main__":
    app()
