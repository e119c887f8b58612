"""
Embed command for indexing content rows from a JSON file.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import click
from rich.console import Console
from rich.markup import escape

from ...models.exceptions import LoreIndexError
from ...models.vector_models import BatchEmbedItem
from ..utils.async_runner import async_command
from ..utils.service import open_service
from .search import CONTENT_TYPES


def load_rows(path: Path) -> List[Dict[str, Any]]:
    """
    Read content rows from a JSON file.

    Accepts a single object, a list of objects, or ``{"items": [...]}``.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict) and isinstance(data.get("items"), list):
        data = data["items"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON object or a list of objects", param_hint="FILE")

    return [row for row in data if isinstance(row, dict)]


def build_items(rows: List[Dict[str, Any]], id_field: str) -> Tuple[List[BatchEmbedItem], int]:
    """Batch items for rows that carry an id; returns the items and the rows without one."""
    items = []
    missing = 0
    for row in rows:
        content_id = row.get(id_field)
        if content_id is None or str(content_id) == "":
            missing += 1
            continue
        items.append(BatchEmbedItem(id=str(content_id), data=row))
    return items, missing


@click.command()
@click.argument("kind", type=click.Choice(CONTENT_TYPES, case_sensitive=False))
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--id-field", default="id", show_default=True, help="Row field holding the content id")
@click.pass_context
@async_command
async def embed(ctx: click.Context, kind: str, file: Path, id_field: str) -> None:
    """
    Embed the content rows in FILE as KIND.

    FILE is JSON: one row object, a list of rows, or {"items": [...]}.

    Examples:
      loreindex embed lore lore.json
      loreindex embed quest quests.json --id-field questId
    """
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj.get("verbose", False)

    try:
        rows = load_rows(file)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {escape(str(file))}: {escape(str(e))}[/red]")
        ctx.exit(1)

    items, missing = build_items(rows, id_field)
    if missing:
        console.print(f"[yellow]Skipping {missing} rows without '{escape(id_field)}'[/yellow]")

    try:
        service = await open_service(ctx, initialize=True)
        try:
            with console.status(f"[cyan]Embedding {len(items)} {kind} rows...[/cyan]"):
                result = await service.embed_batch(kind, items)
        finally:
            await service.shutdown()
    except LoreIndexError as e:
        console.print(f"[red]Embedding failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    console.print(f"[green]✓ Embedded {result.count} {kind} rows[/green]")
    skipped = result.skipped + missing
    if skipped:
        console.print(f"[yellow]Skipped {skipped} rows[/yellow]")
