"""
Delete command for removing a content record's embedding.
"""

import click
from rich.console import Console
from rich.markup import escape

from ...models.exceptions import LoreIndexError
from ..utils.async_runner import async_command
from ..utils.service import open_service
from .search import CONTENT_TYPES


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_TYPES, case_sensitive=False))
@click.argument("content_id")
@click.pass_context
@async_command
async def delete(ctx: click.Context, kind: str, content_id: str) -> None:
    """
    Delete the embedding of CONTENT_ID from the KIND collection.

    Deleting an id that was never embedded is not an error.
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    try:
        service = await open_service(ctx)
        try:
            await service.delete_embedding(kind, content_id)
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Delete failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    console.print(f"[green]✓ Deleted embedding for {kind}:{escape(content_id)}[/green]")
