"""
Vector-side models: stored payloads, search hits and service results.

Payload keys are stored in camelCase (``contentId``, ``sourceText``) so that
points written by other clients of the same collections stay readable.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .content_models import ContentKind

PointId = Union[int, str]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VectorPayload(_CamelModel):
    """Payload stored alongside every vector."""

    content_id: str
    content_type: ContentKind
    embedding_model: str = ""
    embedding_dimensions: int = 0
    source_text: str = ""
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_store(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used in the store."""
        return self.model_dump(by_alias=True, mode="json")


class BatchPoint(BaseModel):
    """One entry of a kind-uniform batch upsert."""

    content_id: str
    embedding: List[float]
    source_text: str
    metadata: Optional[Dict[str, Any]] = None


class SearchHit(BaseModel):
    """Scored point returned by a similarity search."""

    id: str
    score: float
    payload: VectorPayload


class SimilarContent(BaseModel):
    """Search hit flattened for application consumers."""

    id: str
    content_type: ContentKind
    content_id: str
    content: str
    similarity: float
    created_at: Optional[datetime] = None


class ContextSource(BaseModel):
    """Attribution entry for one block of an assembled context."""

    type: ContentKind
    id: str
    similarity: float


class ContextResult(_CamelModel):
    """Retrieval-augmented context block with per-source attribution."""

    has_context: bool
    context_text: str = ""
    sources: List[ContextSource] = Field(default_factory=list)


class BatchEmbedItem(BaseModel):
    """Raw row submitted for batch embedding."""

    id: str
    data: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None


class BatchEmbedResult(BaseModel):
    """Outcome of a batch embedding call."""

    success: bool
    count: int
    skipped: int = 0


class EmbedResult(BaseModel):
    """Outcome of a single embed-and-store call."""

    success: bool
    id: str
    point_id: PointId


class CollectionStats(BaseModel):
    """Per-kind row of the embedding statistics report."""

    content_type: ContentKind
    total_embeddings: int = 0
    vector_size: int = 0
    status: str = "unknown"
    error: Optional[str] = None
