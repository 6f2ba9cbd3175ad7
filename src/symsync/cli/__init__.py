"""
SymSync CLI - Main application entry point.

Sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from symsync import __version__
from symsync.cli import branch
from symsync.core.config.env import load_layered_env

app = typer.Typer(
    name="symsync",
    help="Publish build server symbols to a symbol store, once per build",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure process-wide logging.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    SymSync - keep a symbol store in step with the build server.

    Each configured branch has a latest build pointer on the build server.
    `symsync sync` publishes that build's symbols to the store exactly once
    and records it in the branch history.
    """
    setup_logging(debug)
    load_layered_env()


app.command(name="sync")(branch.sync)
app.command(name="builds")(branch.builds)
app.command(name="symbols")(branch.symbols)
app.command(name="info")(branch.info)
app.command(name="delete")(branch.delete)


@app.command()
def version() -> None:
    """Show symsync version and exit."""
    console.print(f"symsync version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
