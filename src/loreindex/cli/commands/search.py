"""
Search command for finding similar game content.
"""

import json
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape

from ...models.content_models import ContentKind
from ...models.exceptions import LoreIndexError
from ...models.vector_models import SimilarContent
from ..ui.display import create_results_table
from ..utils.async_runner import async_command
from ..utils.service import open_service
from ..utils.validation import show_validation_error, validate_search_options

CONTENT_TYPES = [kind.value for kind in ContentKind]


@click.command()
@click.argument("query", required=True)
@click.option(
    "--type",
    "-t",
    "content_type",
    type=click.Choice(CONTENT_TYPES, case_sensitive=False),
    default=None,
    help="Restrict the search to one content type (default: all)",
)
@click.option("--limit", "-l", type=int, default=None, help="Maximum number of results (1-100)")
@click.option(
    "--threshold", type=float, default=None, help="Minimum similarity between 0 and 1"
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["list", "table", "json"], case_sensitive=False),
    default="list",
    help="Output format: list (default), table, or json",
)
@click.pass_context
@async_command
async def search(
    ctx: click.Context,
    query: str,
    content_type: Optional[str],
    limit: Optional[int],
    threshold: Optional[float],
    format: str,
) -> None:
    """
    Search indexed content by meaning.

    QUERY is a natural-language description of what to find.

    Examples:
      loreindex search "ancient dragon war"
      loreindex search "healing potion" --type item --limit 5
      loreindex search "blacksmith" --threshold 0.5 --format json
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    error = validate_search_options(query, limit, threshold)
    if error:
        show_validation_error(console, error)
        ctx.exit(1)

    try:
        service = await open_service(ctx)
        try:
            with console.status("[cyan]Searching content index...[/cyan]"):
                results = await service.find_similar(
                    query, content_type=content_type, limit=limit, threshold=threshold
                )
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Search failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    if format == "json":
        _display_json_results(console, results, query)
        return

    if not results:
        console.print(f"[yellow]No content found matching: '{escape(query)}'[/yellow]")
        console.print("\n[dim]Try a lower --threshold or a broader query[/dim]")
        return

    if format == "table":
        console.print(create_results_table(results, query))
    else:
        _display_list_results(console, results, query)


def _display_list_results(console: Console, results: List[SimilarContent], query: str) -> None:
    """Display search results in simple list format."""
    console.print(f"[bold blue]Content matching '{escape(query)}' ({len(results)} found):[/bold blue]\n")

    for i, result in enumerate(results, 1):
        console.print(
            f"[bold green]{i}. {result.content_type.value}:{escape(result.content_id)}[/bold green]"
            f" [yellow]({result.similarity:.3f})[/yellow]"
        )
        content = result.content
        if len(content) > 200:
            content = content[:197] + "..."
        console.print(f"   [dim]{escape(content)}[/dim]")
        console.print()


def _display_json_results(console: Console, results: List[SimilarContent], query: str) -> None:
    """Display search results in JSON format."""
    output = {
        "query": query,
        "total_results": len(results),
        "results": [result.model_dump(mode="json") for result in results],
    }
    console.print_json(json.dumps(output, ensure_ascii=False))
