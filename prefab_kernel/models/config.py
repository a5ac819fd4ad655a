"""Prefab kernel configuration."""

import logging
from typing import Optional

from pydantic import BaseModel, Field


class PrefabConfig(BaseModel):
    """Configuration for loading and spawning prefabs."""

    asset_root: Optional[str] = None
    abort_on_unresolved: bool = True  # Skip spawning when any node failed to resolve
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def configure_logging(config: PrefabConfig) -> None:
    """Apply the configured level to the package loggers."""
    logging.getLogger("prefab_kernel").setLevel(config.log_level)
