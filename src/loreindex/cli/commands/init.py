"""
Init command for provisioning the content collections.
"""

import click
from rich.console import Console
from rich.markup import escape

from ...models.exceptions import LoreIndexError
from ..utils.async_runner import async_command
from ..utils.service import open_service


@click.command()
@click.pass_context
@async_command
async def init(ctx: click.Context) -> None:
    """
    Create the per-kind collections and payload indexes.

    Safe to run repeatedly; existing collections are left untouched.
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    try:
        service = await open_service(ctx)
        try:
            if not await service.health_check():
                console.print("[red]Vector store is not reachable[/red]")
                ctx.exit(1)

            existing = await service.vector_store.list_collections()
            console.print(f"[cyan]Found {len(existing)} existing collections[/cyan]")

            with console.status("Initializing collections..."):
                created = await service.collections.initialize_collections()
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Initialization failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    for name in service.collections.collection_names().values():
        marker = "[green]created[/green]" if name in created else "[dim]exists[/dim]"
        console.print(f"  {name}: {marker}")
    console.print("[bold green]✓ Collections ready[/bold green]")
