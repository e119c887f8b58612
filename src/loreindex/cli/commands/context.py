"""
Context command for assembling retrieval-augmented generation input.
"""

from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from ...models.exceptions import LoreIndexError
from ..ui.display import create_context_panel
from ..utils.async_runner import async_command
from ..utils.service import open_service
from ..utils.validation import show_validation_error, validate_search_options
from .search import CONTENT_TYPES


@click.command()
@click.argument("query", required=True)
@click.option(
    "--type",
    "-t",
    "content_type",
    type=click.Choice(CONTENT_TYPES, case_sensitive=False),
    default=None,
    help="Restrict context to one content type (default: all)",
)
@click.option("--limit", "-l", type=int, default=None, help="Maximum number of sources (default 5)")
@click.option("--threshold", type=float, default=None, help="Minimum similarity (default 0.7)")
@click.option("--raw", is_flag=True, help="Print only the context text")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
@async_command
async def context(
    ctx: click.Context,
    query: str,
    content_type: Optional[str],
    limit: Optional[int],
    threshold: Optional[float],
    raw: bool,
    as_json: bool,
) -> None:
    """
    Build an attributed context block for QUERY.

    Examples:
      loreindex context "who rules the northern kingdoms"
      loreindex context "quest rewards" --type quest --raw
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
            result = await service.build_context(
                query, content_type=content_type, limit=limit, threshold=threshold
            )
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Context assembly failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    if as_json:
        console.print_json(result.model_dump_json(by_alias=True))
    elif raw:
        click.echo(result.context_text)
    else:
        console.print(create_context_panel(result, query))
