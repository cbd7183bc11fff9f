"""CLI entry point for treeplug."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from treeplug import __version__
from treeplug.compiler import Severity, get_compiler, get_module_path
from treeplug.modules import (
    ModuleDefinitionError,
    ModuleKind,
    ModuleRegistry,
    create_descriptor,
    load_directory,
    new_module_source,
)

console = Console()
app = typer.Typer(
    name="treeplug",
    help="treeplug - compile user modules and browse the module catalog.",
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main_options(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def check(
    path: Annotated[Path, typer.Argument(help="Module source file")],
):
    """Compile a module file and report its diagnostics.

    Nothing is registered; the exit code is 1 when compilation fails.
    """
    if not path.is_file():
        console.print(f"[red]Error: File does not exist: {path}[/red]")
        raise typer.Exit(1)

    result = get_compiler().try_compile(path.read_text())

    for diagnostic in result.diagnostics:
        colour = "red" if diagnostic.is_failure else "yellow"
        label = "error" if diagnostic.severity == Severity.ERROR else "warning"
        if diagnostic.is_warning_as_error:
            label = "warning as error"
        console.print(f"[{colour}]{label}[/{colour}] {diagnostic.format()}")

    if not result.success:
        console.print(f"\n[red]Compilation failed with {len(result.errors)} error(s)[/red]")
        raise typer.Exit(1)

    try:
        descriptor = create_descriptor(result.unit)
    except ModuleDefinitionError as e:
        console.print(f"[yellow]Compiled, but not a valid module: {e}[/yellow]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold]{descriptor.name}[/bold]\n"
            f"[dim]{descriptor.help_text}[/dim]\n\n"
            f"Kind: {descriptor.kind.value}\n"
            f"Id: {descriptor.id}\n"
            f"Repeatable: {'yes' if descriptor.repeatable else 'no'}",
            title="[green]Compiled[/green]",
            border_style="green",
        )
    )


@app.command()
def new(
    kind: Annotated[ModuleKind, typer.Argument(help="Kind of module to create")],
    name: Annotated[str, typer.Option("--name", "-n", help="Display name of the module")] = "A name for your module.",
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write to this file instead of stdout")] = None,
):
    """Create starter source for a new module."""
    source = new_module_source(kind, name=name)

    if output is None:
        typer.echo(source)
        return

    if output.exists():
        console.print(f"[red]Error: File already exists: {output}[/red]")
        raise typer.Exit(1)

    output.write_text(source)
    console.print(f"[green]✓[/green] Wrote {kind.value} module to {output}")


@app.command("list")
def list_modules(
    directory: Annotated[Optional[Path], typer.Argument(help="Directory of module files")] = None,
    kind: Annotated[Optional[ModuleKind], typer.Option("--kind", "-k", help="Only modules of this kind")] = None,
    query: Annotated[Optional[str], typer.Option("--filter", "-f", help="Filter by name or help text")] = None,
    show_ids: Annotated[bool, typer.Option("--ids", help="Show module Ids")] = False,
):
    """Load a module directory and show its catalog."""
    directory = directory or get_module_path()
    registry = ModuleRegistry()
    result = load_directory(directory, registry=registry)

    kinds = [kind] if kind is not None else list(ModuleKind)

    table = Table(title=f"Modules in {directory}")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Repeatable")
    table.add_column("Description", style="dim")
    if show_ids:
        table.add_column("Id", style="dim")

    shown = 0
    for each_kind in kinds:
        for descriptor in registry.filter(each_kind, query):
            row = [
                each_kind.value,
                descriptor.name,
                "yes" if descriptor.repeatable else "no",
                descriptor.help_text,
            ]
            if show_ids:
                row.append(descriptor.id)
            table.add_row(*row)
            shown += 1

    if shown:
        console.print(table)
    else:
        console.print("[yellow]No matching modules found.[/yellow]")

    if result.failed:
        console.print("\n[bold]Failed to load:[/bold]")
        for path, error in result.failed.items():
            first_line = error.splitlines()[0] if error else ""
            console.print(f"  • {Path(path).name}: [red]{first_line}[/red]")


@app.command()
def serve(
    port: Annotated[int, typer.Option("--port", "-p", help="Port to run the server on")] = 7879,
    host: Annotated[str, typer.Option("--host", help="Host to bind the server to")] = "127.0.0.1",
):
    """Start the module catalog API server."""
    import uvicorn

    display_host = "localhost" if host in ("127.0.0.1", "0.0.0.0") else host
    url = f"http://{display_host}:{port}"

    console.print()
    console.print(
        Panel(
            f"[bold green]Starting treeplug server...[/bold green]\n\n"
            f"[link={url}/docs]{url}/docs[/link]\n"
            f"[dim]Modules: {get_module_path()}[/dim]\n\n"
            f"[dim]Press Ctrl+C to stop the server[/dim]",
            border_style="green",
        )
    )

    # Suppress verbose uvicorn logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    uvicorn.run(
        "treeplug.api.main:app",
        host=host,
        port=port,
        log_level="warning",
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"treeplug v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
