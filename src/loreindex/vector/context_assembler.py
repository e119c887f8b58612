"""
Context Assembler - Turns ranked search hits into an attributed text block.

The block is meant as retrieval-augmented input for a text-generation call.
Each hit is rendered as::

    [LORE 1] (92% relevant)
    <source text>

and blocks are separated by blank lines. Ranks follow the merged search
order, and ``sources`` lists the same hits in the same order.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from ..models.content_models import ContentKind
from ..models.vector_models import ContextResult, ContextSource, SearchHit
from .embedding_engine import EmbeddingEngine
from .vector_search_engine import VectorSearchEngine

logger = logging.getLogger(__name__)


def similarity_percent(score: float) -> int:
    """Similarity as a whole percentage, halves rounded up."""
    return int(math.floor(score * 100 + 0.5))


def format_context(hits: List[SearchHit]) -> ContextResult:
    """Render hits into a context result; no hits gives an empty, non-null result."""
    if not hits:
        return ContextResult(has_context=False, context_text="", sources=[])

    blocks = []
    sources = []
    for rank, hit in enumerate(hits, start=1):
        kind = hit.payload.content_type.value.upper()
        blocks.append(
            f"[{kind} {rank}] ({similarity_percent(hit.score)}% relevant)\n"
            f"{hit.payload.source_text}"
        )
        sources.append(
            ContextSource(
                type=hit.payload.content_type,
                id=hit.payload.content_id,
                similarity=hit.score,
            )
        )

    return ContextResult(has_context=True, context_text="\n\n".join(blocks), sources=sources)


class ContextAssembler:
    """Embeds a query, searches, and formats the hits as context."""

    def __init__(
        self,
        embedding_engine: EmbeddingEngine,
        search_engine: VectorSearchEngine,
        default_limit: int = 5,
        default_threshold: float = 0.7,
    ):
        self.embedding_engine = embedding_engine
        self.search_engine = search_engine
        self.default_limit = default_limit
        self.default_threshold = default_threshold

    async def build_context(
        self,
        query_text: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        content_type: Optional[ContentKind] = None,
        filter: Optional[Dict[str, Any]] = None,
    ) -> ContextResult:
        """
        Build an attributed context block for a query.

        Args:
            query_text: Natural-language query, embedded once
            limit: Maximum number of blocks (default 5)
            threshold: Minimum similarity (default 0.7); 0 is honored
            content_type: Restrict to one kind, or None for all kinds
            filter: Payload equality conditions

        Returns:
            Context result; ``has_context`` is False when nothing matched
        """
        query_vector = await self.embedding_engine.generate_embedding(query_text)

        hits = await self.search_engine.search(
            query_vector,
            content_type=content_type,
            limit=self.default_limit if limit is None else limit,
            score_threshold=self.default_threshold if threshold is None else threshold,
            filter=filter,
        )

        result = format_context(hits)
        logger.info(f"Built context from {len(result.sources)} sources")
        return result
