"""Root command group for Daybook."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from ..config import get_config, load_config
from .analytics_commands import analytics_cli


def configure_logging(level: str, verbose: bool = False) -> None:
    """Send log records to stderr through rich."""
    if verbose:
        level = "DEBUG"
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """Daybook - productivity analytics for your tasks and tracked time."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    try:
        settings = load_config(Path(config)) if config else get_config()
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    configure_logging(settings.log_level, verbose)


main.add_command(analytics_cli)


if __name__ == "__main__":
    main()
