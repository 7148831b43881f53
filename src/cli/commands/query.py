"""Query command: print a budgeted facts pack for a topic."""

import click
from rich.table import Table

from cli.utils import build_service, console
from retrieval import LoadError, RetrievalError
from retrieval.models import estimate_tokens, serialized_bytes


@click.command()
@click.argument("topic")
@click.option("-k", "--top-k", type=int, default=None, help="Candidate cap before budget trimming")
@click.option("--max-tokens", type=int, default=None, help="Estimated token cap")
@click.option("--max-bytes", type=int, default=None, help="Serialized byte cap")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON pack")
@click.pass_context
def query(ctx, topic: str, top_k: int | None, max_tokens: int | None, max_bytes: int | None, as_json: bool):
    """Retrieve facts and disclaimers for TOPIC within token/byte caps."""
    try:
        service = build_service(ctx.obj["config"])
        pack = service.retrieve_facts_pack(
            topic, top_k=top_k, max_tokens=max_tokens, max_bytes=max_bytes
        )
    except LoadError as e:
        console.print(f"[red]Load failed:[/] {e}")
        raise SystemExit(1)
    except (RetrievalError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1)

    serialized = pack.to_json()
    if as_json:
        click.echo(serialized)
        return

    if not pack.facts:
        console.print(f"[yellow]No grounded facts for:[/] {pack.topic}")
    else:
        table = Table(title=pack.topic)
        table.add_column("ID", style="cyan")
        table.add_column("Fact")
        table.add_column("Source", style="dim")
        for fact in pack.facts:
            table.add_row(fact.id, fact.text, fact.source)
        console.print(table)

    if pack.disclaimers:
        console.print(f"Disclaimers: {', '.join(pack.disclaimers)}")
    console.print(
        f"[dim]{serialized_bytes(serialized)} bytes, ~{estimate_tokens(serialized)} tokens[/]"
    )
