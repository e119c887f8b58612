"""
Statistics and health check commands
"""

import json

import click
from rich.console import Console
from rich.markup import escape

from ...models.exceptions import LoreIndexError
from ..ui.display import create_stats_table, create_status_panel
from ..utils.async_runner import async_command
from ..utils.service import open_service


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON")
@click.pass_context
@async_command
async def stats(ctx: click.Context, as_json: bool) -> None:
    """
    Show embedding counts and status per content type.

    Collections that cannot be read are listed with an error instead of
    failing the report.
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    try:
        service = await open_service(ctx)
        try:
            rows = await service.get_stats()
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Error collecting statistics: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    if as_json:
        console.print_json(json.dumps([row.model_dump(mode="json") for row in rows]))
        return

    console.print(create_stats_table(rows))
    total = sum(row.total_embeddings for row in rows)
    console.print(f"\nTotal embeddings: [bold]{total}[/bold]")


@click.command()
@click.pass_context
@async_command
async def health(ctx: click.Context) -> None:
    """
    Check vector store connectivity and embedding configuration.

    Exits with status 1 when the store is unreachable.
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    try:
        service = await open_service(ctx)
        try:
            store_healthy = await service.health_check()
            embedding_enabled = service.enabled
            store_url = service.config.qdrant.location or service.config.qdrant.url
            model = service.config.embedding.model
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Error during health check: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    console.print(
        create_status_panel(
            "Vector Store",
            {
                "healthy": store_healthy,
                "details": store_url,
                "error": "collection listing failed",
            },
        )
    )
    console.print(
        create_status_panel(
            "Embedding Provider",
            {
                "healthy": embedding_enabled,
                "details": model,
                "error": "API key not configured",
            },
        )
    )

    if store_healthy:
        console.print("\n[bold green]✓ Vector store operational[/bold green]")
    else:
        console.print("\n[bold red]✗ Vector store unavailable[/bold red]")
        ctx.exit(1)
