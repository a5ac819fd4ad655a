"""Prefab kernel data models."""

from prefab_kernel.models.assets import AssetKind, Handle, LoadState
from prefab_kernel.models.config import PrefabConfig, configure_logging
from prefab_kernel.models.world import (
    Entity,
    EntityLocation,
    EntitySnapshot,
    WorldSnapshot,
)

__all__ = [
    "AssetKind",
    "Entity",
    "EntityLocation",
    "EntitySnapshot",
    "Handle",
    "LoadState",
    "PrefabConfig",
    "WorldSnapshot",
    "configure_logging",
]
