"""
Main CLI entry point for loreindex
"""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

from .. import __version__

# Install rich traceback handler for better error display
install(show_locals=False)

# Initialize console
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)


@click.group()
@click.version_option(version=__version__, prog_name="loreindex")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, no_color: bool, config_path: str) -> None:
    """
    loreindex - Semantic index for game-design content

    Embeds lore, quests, NPCs, items, characters and manifests into Qdrant
    and serves similarity search and context assembly.

    Examples:
      loreindex init                                # Create collections
      loreindex embed lore lore.json                # Embed lore rows
      loreindex search "dragon war" --type lore     # Similarity search
      loreindex context "who rules the north"       # Context for generation
      loreindex stats                               # Embedding counts
    """
    ctx.ensure_object(dict)

    # Configure console
    if no_color:
        ctx.obj["console"] = Console(force_terminal=False, no_color=True)
    else:
        ctx.obj["console"] = console

    # Configure logging level
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger("loreindex").setLevel(logging.DEBUG)
        ctx.obj["verbose"] = True
    else:
        ctx.obj["verbose"] = False

    if config_path:
        ctx.obj["config_path"] = config_path


# Import and register commands at module level to support testing
from .commands import context, delete, embed, init, search, status  # noqa: E402

cli.add_command(init.init)
cli.add_command(embed.embed)
cli.add_command(search.search)
cli.add_command(context.context)
cli.add_command(delete.delete)
cli.add_command(status.stats)
cli.add_command(status.health)


def main() -> None:
    """Main entry point for the CLI application"""
    try:
        cli()

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
