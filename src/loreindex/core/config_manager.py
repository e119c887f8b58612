"""
Configuration management for loreindex.

Configuration is a tree of pydantic models loaded from an optional YAML file
and then overridden by environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..models.exceptions import ConfigurationError
from .environment_manager import DEFAULT_QDRANT_URL, OPENAI_BASE_URL, EnvironmentManager

logger = logging.getLogger(__name__)

POINT_ID_SCHEMES = ("uuid5", "legacy32")


class EmbeddingConfig(BaseModel):
    """Configuration for the embedding provider."""

    api_key: Optional[str] = Field(default=None, description="Provider API key")
    model: str = Field(default="text-embedding-3-small", description="Embedding model")
    dimensions: int = Field(default=1536, ge=1, le=65536, description="Vector dimensionality")
    base_url: str = Field(default=OPENAI_BASE_URL, description="OpenAI-compatible API base URL")
    timeout: float = Field(default=30.0, ge=1.0, le=300.0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=1, le=10, description="Attempts for transient failures")
    batch_size: int = Field(default=100, ge=1, le=2048, description="Texts per provider call")
    max_concurrent_requests: int = Field(default=10, ge=1, le=50, description="Max concurrent requests")

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class QdrantConfig(BaseModel):
    """Configuration for the Qdrant vector store."""

    url: str = Field(default=DEFAULT_QDRANT_URL, description="Qdrant HTTP endpoint")
    api_key: Optional[str] = Field(default=None, description="Qdrant API key")
    location: Optional[str] = Field(default=None, description="Local mode location, e.g. ':memory:'")
    collection_prefix: str = Field(default="content_", description="Collection name prefix")
    distance: str = Field(default="Cosine", description="Distance metric")
    timeout: float = Field(default=30.0, ge=0.1, le=300.0, description="Per-call timeout in seconds")

    # HNSW configuration
    hnsw_m: int = Field(default=16, ge=4, description="HNSW M parameter")
    hnsw_ef_construct: int = Field(default=100, ge=4, description="HNSW ef_construct parameter")
    default_segment_number: int = Field(default=2, ge=1, description="Optimizer segment count")

    @field_validator("distance")
    @classmethod
    def validate_distance(cls, v: str) -> str:
        valid = ["Cosine", "Dot", "Euclid", "Manhattan"]
        if v.capitalize() not in valid:
            raise ValueError(f"Invalid distance metric. Must be one of: {valid}")
        return v.capitalize()


class SearchConfig(BaseModel):
    """Defaults and bounds for search and context assembly."""

    default_limit: int = Field(default=10, ge=1, le=100)
    default_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    context_limit: int = Field(default=5, ge=1, le=20)
    context_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_limit: int = Field(default=100, ge=1, le=1000)
    min_text_length: int = Field(default=3, ge=1, description="Shortest embeddable canonical text")


class LoreIndexConfig(BaseModel):
    """Complete configuration for the content index."""

    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    point_id_scheme: str = Field(default="uuid5", description="uuid5 or legacy32")
    log_level: str = Field(default="WARNING", description="Logging level")

    @field_validator("point_id_scheme")
    @classmethod
    def validate_point_id_scheme(cls, v: str) -> str:
        if v not in POINT_ID_SCHEMES:
            raise ValueError(f"Invalid point id scheme. Must be one of: {list(POINT_ID_SCHEMES)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


def _field_annotation(path: str) -> Any:
    """Annotation of the config field at a dotted path."""
    model: Any = LoreIndexConfig
    keys = path.split(".")
    for key in keys[:-1]:
        model = model.model_fields[key].annotation
    return model.model_fields[keys[-1]].annotation


class ConfigManager:
    """Configuration manager with YAML file and environment variable support."""

    # Plain environment variables mapped onto config paths
    ENV_MAPPINGS = {
        "LOREINDEX_EMBEDDING_MODEL": "embedding.model",
        "LOREINDEX_EMBEDDING_DIMENSIONS": "embedding.dimensions",
        "LOREINDEX_EMBEDDING_TIMEOUT": "embedding.timeout",
        "LOREINDEX_EMBEDDING_BATCH_SIZE": "embedding.batch_size",
        "LOREINDEX_QDRANT_LOCATION": "qdrant.location",
        "LOREINDEX_QDRANT_TIMEOUT": "qdrant.timeout",
        "LOREINDEX_COLLECTION_PREFIX": "qdrant.collection_prefix",
        "LOREINDEX_POINT_ID_SCHEME": "point_id_scheme",
        "LOREINDEX_LOG_LEVEL": "log_level",
    }

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self.config_path = config_path or os.getenv("LOREINDEX_CONFIG_PATH")
        self._environ = environ if environ is not None else dict(os.environ)
        self.env_manager = EnvironmentManager(self._environ)
        self._config: Optional[LoreIndexConfig] = None

    def load_config(
        self,
        config_path: Optional[Union[str, Path]] = None,
        from_env: bool = True,
    ) -> LoreIndexConfig:
        """
        Load configuration from file and environment variables.

        Args:
            config_path: Path to a YAML configuration file
            from_env: Whether to apply environment variable overrides

        Returns:
            Validated configuration object

        Raises:
            ConfigurationError: If the file cannot be parsed or values are invalid
        """
        config_data: Dict[str, Any] = {}

        file_path = config_path or self.config_path
        if file_path:
            config_data = self._load_from_file(Path(file_path))

        if from_env:
            config_data = self._merge_configs(config_data, self._load_from_environment())

        try:
            self._config = LoreIndexConfig(**config_data)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError("Configuration validation failed", cause=e) from e

        logger.debug("Configuration loaded successfully")
        return self._config

    def get_config(self) -> LoreIndexConfig:
        """Get the current configuration, loading it on first use."""
        if not self._config:
            return self.load_config()
        return self._config

    def _load_from_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML file."""
        path = path.expanduser()
        if not path.exists():
            logger.warning(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration file {path}", cause=e) from e

        if config_data is not None and not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        logger.info(f"Configuration loaded from {path}")
        return config_data or {}

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables."""
        env_config: Dict[str, Any] = {}

        for env_var, config_path in self.ENV_MAPPINGS.items():
            value = self._environ.get(env_var)
            if value is not None and value.strip():
                self._set_nested_value(
                    env_config, config_path, self._convert_env_value(value, config_path)
                )

        # Credentials and endpoints
        credentials = self.env_manager.get_embedding_credentials()
        if credentials["api_key"]:
            self._set_nested_value(env_config, "embedding.api_key", credentials["api_key"])
            self._set_nested_value(env_config, "embedding.base_url", credentials["base_url"])

        if any(self._environ.get(v) for v in ("QDRANT_URL", "QDRANT_PRIVATE_DOMAIN")):
            try:
                self._set_nested_value(env_config, "qdrant.url", self.env_manager.get_qdrant_url())
            except ValueError as e:
                raise ConfigurationError("Invalid Qdrant endpoint", cause=e) from e

        qdrant_api_key = self.env_manager.get_qdrant_api_key()
        if qdrant_api_key:
            self._set_nested_value(env_config, "qdrant.api_key", qdrant_api_key)

        return env_config

    def _convert_env_value(self, value: str, config_path: str) -> Union[str, int, float, bool]:
        """Convert environment variable string to the type of its target field."""
        if _field_annotation(config_path) in (str, Optional[str]):
            return value

        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """Set a nested configuration value using dot notation."""
        keys = path.split(".")
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def create_template_config(self, file_path: Union[str, Path]) -> None:
        """Write a template configuration file with the default settings."""
        template = LoreIndexConfig().model_dump()
        template["embedding"]["api_key"] = None
        template["qdrant"]["api_key"] = None

        with open(file_path, "w") as f:
            f.write("# loreindex configuration\n")
            f.write("# Credentials are read from OPENAI_API_KEY / AI_GATEWAY_API_KEY\n")
            f.write("# and QDRANT_URL / QDRANT_API_KEY when not set here.\n\n")
            yaml.dump(template, f, default_flow_style=False, indent=2, sort_keys=False)

        logger.info(f"Template configuration created at {file_path}")
