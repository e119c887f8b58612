"""
Configuration and environment handling for loreindex.
"""

from .config_manager import (
    ConfigManager,
    EmbeddingConfig,
    LoreIndexConfig,
    QdrantConfig,
    SearchConfig,
)
from .environment_manager import EnvironmentManager

__all__ = [
    "ConfigManager",
    "LoreIndexConfig",
    "EmbeddingConfig",
    "QdrantConfig",
    "SearchConfig",
    "EnvironmentManager",
]
