"""Validate command: load the knowledge pack and report skipped records."""

import click
from rich.table import Table

from cli.utils import build_service, console
from retrieval import LoadError


@click.command()
@click.pass_context
def validate(ctx):
    """Load the knowledge pack and list any records that were skipped."""
    try:
        service = build_service(ctx.obj["config"])
    except LoadError as e:
        console.print(f"[red]Load failed:[/] {e}")
        raise SystemExit(1)

    result = service.load_result
    console.print(f"Facts: {len(result.facts)}")
    console.print(f"Disclaimers: {len(result.disclaimers)}")

    if not result.diagnostics:
        console.print("[green]No skipped records[/]")
        return

    table = Table(title=f"Skipped records ({len(result.diagnostics)})")
    table.add_column("File", style="dim")
    table.add_column("Line", justify="right")
    table.add_column("Reason")
    for diag in result.diagnostics:
        table.add_row(diag.path.name, str(diag.line_no or "-"), diag.reason)
    console.print(table)
