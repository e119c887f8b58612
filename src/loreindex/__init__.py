"""
loreindex - Semantic index for game-design content

Maintains vector representations of lore, quests, NPCs, items, characters and
data manifests in Qdrant, and serves similarity search and retrieval-augmented
context assembly for downstream generation.
"""

__version__ = "1.0.0"
__author__ = "loreindex Team"

from .core.config_manager import ConfigManager, LoreIndexConfig
from .models.content_models import ContentKind, parse_record
from .vector.content_embedder import ContentEmbedderService, create_content_embedder

__all__ = [
    "ConfigManager",
    "LoreIndexConfig",
    "ContentKind",
    "parse_record",
    "ContentEmbedderService",
    "create_content_embedder",
]
