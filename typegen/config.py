"""
Configuration for the type generator.

Settings are read from environment variables prefixed with ``TYPEGEN_``
and can be overridden by passing keyword arguments.

Invariants:
    - Defaults reproduce the declarations downstream code imports
      (BetterAuthFullSchema, ModelKey, PluginId, Base<Entity>Fields, ...)
    - Changing a name setting changes the generated type surface

How to change safely:
    - Add new settings with defaults that keep the output unchanged
"""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

from .schema.aggregate import DuplicatePolicy

DEFAULT_HEADER = """/**
 * Auto-generated Better Auth types.
 * DO NOT EDIT - Run `pnpm generate:types` to regenerate.
 *
 * Generated from Better Auth schema introspection.
 * Contains types for all supported plugins and their field additions.
 */"""


class GeneratorSettings(BaseSettings):
    """Type generator configuration."""

    # Output text
    header: str = Field(default=DEFAULT_HEADER, description="Comment block opening the output")
    base_prefix: str = Field(default="Base")
    fields_suffix: str = Field(default="Fields")
    plugin_fields_suffix: str = Field(default="PluginFields")
    plugin_id_type: str = Field(default="PluginId")
    full_schema_type: str = Field(default="BetterAuthFullSchema")
    model_key_type: str = Field(default="ModelKey")

    # Aggregation
    duplicate_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.IGNORE,
        description="Reaction to a repeated extension id (ignore, warn, error)",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "TYPEGEN_"}


def setup_logging(settings: GeneratorSettings) -> None:
    """Configure the ``typegen`` logger from settings.

    Args:
        settings: Generator settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = logging.Formatter(
            '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
        )
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("typegen")
    package_logger.setLevel(level)
    package_logger.handlers = [handler]
