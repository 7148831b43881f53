"""Disclaimer lookup command."""

import click

from cli.utils import build_service, console
from retrieval import LoadError


@click.command()
@click.argument("disclaimer_ids", nargs=-1, required=True)
@click.option("--separator", default=" ", help="Separator between disclaimer texts")
@click.pass_context
def disclaimer(ctx, disclaimer_ids: tuple[str, ...], separator: str):
    """Print the text of one or more disclaimers by id."""
    try:
        service = build_service(ctx.obj["config"])
    except LoadError as e:
        console.print(f"[red]Load failed:[/] {e}")
        raise SystemExit(1)

    text, missing = service.format_disclaimer_block(list(disclaimer_ids), separator=separator)
    if text:
        click.echo(text)
    for disclaimer_id in missing:
        console.print(f"[yellow]Unknown disclaimer:[/] {disclaimer_id}")
    if missing and not text:
        raise SystemExit(1)
