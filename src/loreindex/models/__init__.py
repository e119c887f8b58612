"""
Data models for loreindex: content records, vector payloads and errors.
"""

from .content_models import (
    CharacterRecord,
    ContentKind,
    ContentRecord,
    ItemRecord,
    LoreRecord,
    ManifestRecord,
    NpcRecord,
    QuestRecord,
    parse_record,
)
from .exceptions import (
    CollectionError,
    ConfigurationError,
    ContentValidationError,
    DimensionMismatchError,
    EmbeddingProviderError,
    EmbeddingServiceDisabledError,
    LoreIndexError,
    PointIdCollisionError,
    VectorStoreError,
)
from .vector_models import (
    BatchEmbedItem,
    BatchPoint,
    BatchEmbedResult,
    CollectionStats,
    ContextResult,
    ContextSource,
    EmbedResult,
    SearchHit,
    SimilarContent,
    VectorPayload,
)

__all__ = [
    # Content records
    "ContentKind",
    "ContentRecord",
    "LoreRecord",
    "QuestRecord",
    "NpcRecord",
    "ItemRecord",
    "CharacterRecord",
    "ManifestRecord",
    "parse_record",

    # Vector models
    "VectorPayload",
    "SearchHit",
    "SimilarContent",
    "ContextSource",
    "ContextResult",
    "BatchEmbedItem",
    "BatchPoint",
    "BatchEmbedResult",
    "EmbedResult",
    "CollectionStats",

    # Errors
    "LoreIndexError",
    "ConfigurationError",
    "ContentValidationError",
    "EmbeddingServiceDisabledError",
    "EmbeddingProviderError",
    "VectorStoreError",
    "CollectionError",
    "DimensionMismatchError",
    "PointIdCollisionError",
]
