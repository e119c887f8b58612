"""
Environment variable management for provider and vector store credentials.
"""

import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_QDRANT_URL = "http://localhost:6333"
DEFAULT_QDRANT_PORT = 6333
OPENAI_BASE_URL = "https://api.openai.com/v1"
AI_GATEWAY_BASE_URL = "https://ai-gateway.vercel.sh/v1"


class EnvironmentManager:
    """Resolves credentials and endpoints from environment variables."""

    def __init__(self, environ: Optional[Dict[str, str]] = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def _get(self, name: str) -> Optional[str]:
        value = self._environ.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    def uses_gateway(self) -> bool:
        """True when embeddings should be routed through the AI gateway."""
        return bool(self._get("AI_GATEWAY_API_KEY") or self._get("VERCEL_ENV"))

    def get_embedding_credentials(self) -> Dict[str, Optional[str]]:
        """
        Get the embedding API key and base URL.

        The gateway key wins over a direct OpenAI key. A missing key is not
        an error here; the embedding service reports itself disabled instead.
        """
        if self.uses_gateway():
            return {
                "api_key": self._get("AI_GATEWAY_API_KEY"),
                "base_url": AI_GATEWAY_BASE_URL,
            }

        api_key = self._get("OPENAI_API_KEY")
        if not api_key:
            logger.warning("Missing OPENAI_API_KEY - embedding features disabled")

        return {"api_key": api_key, "base_url": OPENAI_BASE_URL}

    def get_qdrant_url(self) -> str:
        """
        Resolve the Qdrant endpoint.

        ``QDRANT_URL`` wins; otherwise the URL is built from
        ``QDRANT_PRIVATE_DOMAIN`` and ``QDRANT_PORT`` (private networking on
        hosted platforms); otherwise localhost.
        """
        url = self._get("QDRANT_URL")
        if url:
            return url

        host = self._get("QDRANT_PRIVATE_DOMAIN")
        if host:
            port = self._get("QDRANT_PORT") or str(DEFAULT_QDRANT_PORT)
            if not port.isdigit() or not 1 <= int(port) <= 65535:
                raise ValueError(f"QDRANT_PORT must be a port number, got {port!r}")
            url = f"http://{host}:{port}"
            logger.info(f"Auto-constructed Qdrant URL from private domain: {url}")
            return url

        return DEFAULT_QDRANT_URL

    def get_qdrant_api_key(self) -> Optional[str]:
        """Get the Qdrant API key, if any."""
        return self._get("QDRANT_API_KEY")
