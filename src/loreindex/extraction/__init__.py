"""
Content extraction for embedding: canonical text and metadata per content kind.
"""

from .content_extractor import (
    extract_metadata,
    extract_text,
    is_embeddable,
    summarize_value,
)

__all__ = [
    "extract_text",
    "extract_metadata",
    "is_embeddable",
    "summarize_value",
]
