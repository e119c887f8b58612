"""
Service construction for CLI commands
"""

import logging
from typing import Any

import click

from ...core.config_manager import ConfigManager
from ...vector.content_embedder import ContentEmbedderService, create_content_embedder


async def open_service(ctx: click.Context, initialize: bool = False) -> ContentEmbedderService:
    """
    Build the content embedder from the CLI's configuration.

    ``ctx.obj["service_factory"]`` replaces ``create_content_embedder`` when
    set, which lets callers run commands against a prepared store.
    """
    obj: Any = ctx.obj or {}
    config = ConfigManager(obj.get("config_path")).load_config()

    # --verbose wins over the configured level
    if not obj.get("verbose"):
        logging.getLogger("loreindex").setLevel(config.log_level)

    factory = obj.get("service_factory") or create_content_embedder
    return await factory(config, initialize=initialize)
