"""
Rich display components for search results, context and statistics
"""

from typing import Any, Dict, List

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...models.vector_models import CollectionStats, ContextResult, SimilarContent


def _truncate(text: str, width: int) -> str:
    text = " ".join(text.split())
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def create_status_panel(component: str, status_info: Dict[str, Any]) -> Panel:
    """
    Create a status panel for a system component
    """
    is_healthy = status_info.get("healthy", False)

    if is_healthy:
        color = "green"
        status_text = "✓ Healthy"
    else:
        color = "red"
        status_text = "✗ Unhealthy"

    content_lines = [f"[{color}]{status_text}[/{color}]"]

    if "details" in status_info and status_info["details"]:
        content_lines.append("")
        content_lines.append(status_info["details"])

    if not is_healthy and "error" in status_info:
        content_lines.append("")
        content_lines.append(f"[red]Error: {status_info['error']}[/red]")

    return Panel(
        "\n".join(content_lines), title=component, border_style=color, padding=(0, 1)
    )


def create_results_table(results: List[SimilarContent], query: str) -> Table:
    """
    Create a Rich table of similar content
    """
    table = Table(
        title=f"Content matching '{escape(query)}' ({len(results)} found)",
        show_header=True,
        header_style="bold cyan",
        title_style="bold blue",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="magenta", no_wrap=True)
    table.add_column("Content ID", style="green")
    table.add_column("Similarity", justify="right", style="yellow")
    table.add_column("Content", style="white")

    for rank, result in enumerate(results, 1):
        table.add_row(
            str(rank),
            result.content_type.value,
            escape(result.content_id),
            f"{result.similarity:.3f}",
            escape(_truncate(result.content, 80)),
        )

    return table


def create_context_panel(result: ContextResult, query: str) -> Panel:
    """
    Create a panel holding an assembled context block
    """
    if not result.has_context:
        return Panel(
            "[yellow]No relevant context found[/yellow]",
            title=f"Context for '{escape(query)}'",
            border_style="yellow",
        )

    sources = ", ".join(f"{s.type.value}:{s.id}" for s in result.sources)
    return Panel(
        f"{escape(result.context_text)}\n\n[dim]Sources: {escape(sources)}[/dim]",
        title=f"Context for '{escape(query)}'",
        border_style="green",
        padding=(0, 1),
    )


def create_stats_table(rows: List[CollectionStats]) -> Table:
    """
    Create the per-collection statistics table
    """
    table = Table(title="Embedding Statistics", show_header=True, header_style="bold blue")
    table.add_column("Content Type", style="cyan", no_wrap=True)
    table.add_column("Embeddings", justify="right", style="green")
    table.add_column("Vector Size", justify="right")
    table.add_column("Status", style="yellow")

    for row in rows:
        status = f"[red]{row.error}[/red]" if row.error else row.status
        table.add_row(
            row.content_type.value,
            str(row.total_embeddings),
            str(row.vector_size),
            status,
        )

    return table
