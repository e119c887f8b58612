"""
Exception hierarchy for loreindex.

Every error carries the collection and content id it concerns (when known)
and the underlying cause, so no failure reaches a caller without context.
"""

from typing import Optional


class LoreIndexError(Exception):
    """Base exception for all loreindex errors."""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        content_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.collection = collection
        self.content_id = content_id
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.collection:
            parts.append(f"collection={self.collection}")
        if self.content_id:
            parts.append(f"content_id={self.content_id}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)


class ConfigurationError(LoreIndexError):
    """Invalid or unreadable configuration."""


class ContentValidationError(LoreIndexError):
    """Content that cannot be embedded (unknown kind, empty or too-short text)."""


class EmbeddingServiceDisabledError(LoreIndexError):
    """Embedding provider credentials are not configured."""

    def __init__(self, message: str = "Embedding service is disabled - API key not configured"):
        super().__init__(message)


class EmbeddingProviderError(LoreIndexError):
    """The embedding provider rejected the request or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        self.status_code = status_code
        super().__init__(message, cause=cause)


class VectorStoreError(LoreIndexError):
    """A vector store operation failed."""


class CollectionError(VectorStoreError):
    """A collection or payload index could not be provisioned."""


class DimensionMismatchError(VectorStoreError):
    """An embedding does not match the collection's vector size."""


class PointIdCollisionError(VectorStoreError):
    """Two distinct content ids map to the same point id."""
