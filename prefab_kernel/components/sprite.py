"""Sprite components and the sprite bundle prefab."""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from pydantic import BaseModel, Field

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.components.general import (
    Color,
    ColorPrefab,
    HandlePrefab,
    TransformPrefab,
    Visibility,
    VisibilityPrefab,
)
from prefab_kernel.models.assets import AssetKind, Handle
from prefab_kernel.prefab.data import IntoComponent, PrefabData

if TYPE_CHECKING:
    from prefab_kernel.world_model.store import EntityWorldMut, World

logger = logging.getLogger(__name__)


class Anchor(str, Enum):
    CENTER = "center"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_CENTER = "bottom_center"
    BOTTOM_RIGHT = "bottom_right"
    CENTER_LEFT = "center_left"
    CENTER_RIGHT = "center_right"
    TOP_LEFT = "top_left"
    TOP_CENTER = "top_center"
    TOP_RIGHT = "top_right"


class Sprite(BaseModel):
    color: Color = Field(default_factory=Color)
    flip_x: bool = False
    flip_y: bool = False
    custom_size: Optional[Tuple[float, float]] = None
    anchor: Anchor = Anchor.CENTER


class SpriteTexture(BaseModel):
    handle: Handle


class SpritePrefab(BaseModel, IntoComponent):
    color: ColorPrefab = Field(default_factory=ColorPrefab.white)
    flip_x: bool = False
    flip_y: bool = False
    # Overrides the image size when set.
    custom_size: Optional[Tuple[float, float]] = None
    anchor: Anchor = Anchor.CENTER

    def into_component(self) -> Sprite:
        return Sprite(
            color=self.color.into_color(),
            flip_x=self.flip_x,
            flip_y=self.flip_y,
            custom_size=self.custom_size,
            anchor=self.anchor,
        )


class SpriteBundlePrefab(BaseModel, PrefabData):
    texture: HandlePrefab
    sprite: SpritePrefab = Field(default_factory=SpritePrefab)
    transform: TransformPrefab = Field(default_factory=TransformPrefab)
    visibility: VisibilityPrefab = VisibilityPrefab.INHERITED

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        handle = self.texture.into_handle()
        if handle is None:
            return
        entity.insert(
            self.sprite.into_component(),
            SpriteTexture(handle=handle),
            self.transform.into_component(),
            Visibility(value=self.visibility),
        )

    def load_sub_assets(self, world: "World") -> bool:
        asset_server = world.get_resource(AssetServer)
        if asset_server is None:
            logger.error("AssetServer doesn't exist")
            return True
        return self.texture.load(asset_server, AssetKind.IMAGE)
