"""CLI commands for factpack."""

from pathlib import Path

import click

from cli.commands import disclaimer, query, validate
from cli.config import load_config_model
from cli.logging_config import setup_logging
from cli.utils import console


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON on stderr")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ./factpack.yaml or ~/.factpack/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool, config_path: Path | None):
    """factpack - budgeted knowledge retrieval."""
    try:
        config = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        raise SystemExit(1)

    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=json_logs or config.logging.json_mode, level=level)
    ctx.obj = {"config": config}


cli.add_command(query)
cli.add_command(validate)
cli.add_command(disclaimer)


if __name__ == "__main__":
    cli()
