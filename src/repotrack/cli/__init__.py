"""
repotrack CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer
from rich.console import Console

from repotrack import __version__
from repotrack.cli import checkout, manifest

PANEL_MANIFEST = "Inspect Manifests"
PANEL_CHECKOUT = "Work with a Checkout"

app = typer.Typer(
    name="repotrack",
    help="Track repo checkouts and work out which projects changed between builds",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    repotrack - state tracking for repo checkouts.

    Records the revision of every project in a repo manifest for each build,
    and compares builds to decide whether anything relevant changed.

    Examples:
        repotrack parse manifest.xml         # Show projects in a static manifest
        repotrack diff old.xml new.xml       # Compare two manifests
        repotrack checkout --build 42        # Sync and record build 42
        repotrack poll                       # Is a new build needed?
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    ctx.obj = {"debug": debug}


app.command(name="parse", rich_help_panel=PANEL_MANIFEST)(manifest.parse)
app.command(name="diff", rich_help_panel=PANEL_MANIFEST)(manifest.diff)

app.command(name="checkout", rich_help_panel=PANEL_CHECKOUT)(checkout.checkout)
app.command(name="poll", rich_help_panel=PANEL_CHECKOUT)(checkout.poll)
app.command(name="history", rich_help_panel=PANEL_CHECKOUT)(checkout.history)


@app.command()
def version() -> None:
    """Show repotrack version and exit."""
    console.print(f"repotrack version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
