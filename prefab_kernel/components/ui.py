"""
UI components and the prefab bundles that produce them.

Bundles holding fonts or textures resolve them through the world's
``AssetServer``. A world without one cannot resolve anything: those bundles
log an error and report failure.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.components.general import (
    BackgroundColor,
    BorderColor,
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

# Length values: "auto", "<n>px", "<n>%", "<n>vw", "<n>vh".
VAL_PATTERN = r"^(auto|-?\d+(\.\d+)?(px|%|vw|vh))$"


def _asset_server(world: "World") -> Optional[AssetServer]:
    asset_server = world.get_resource(AssetServer)
    if asset_server is None:
        logger.error("AssetServer doesn't exist")
    return asset_server


# --- Live components ---

class Node(BaseModel):
    """Marks an entity as a UI node."""
    pass


class Button(BaseModel):
    pass


class Label(BaseModel):
    pass


class Style(BaseModel):
    display: str = "flex"
    position_type: str = "relative"
    flex_direction: str = "row"
    justify_content: str = "default"
    align_items: str = "default"
    width: str = "auto"
    height: str = "auto"
    margin: str = "0px"
    padding: str = "0px"


class ZIndex(BaseModel):
    local: bool = True
    value: int = 0


class TextStyle(BaseModel):
    font: Handle
    font_size: float
    color: Color


class TextSection(BaseModel):
    value: str
    style: TextStyle


class TextAlignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Text(BaseModel):
    sections: List[TextSection] = []
    alignment: TextAlignment = TextAlignment.LEFT


class UiImage(BaseModel):
    texture: Handle = Field(default_factory=lambda: Handle.default(AssetKind.IMAGE))
    flip_x: bool = False
    flip_y: bool = False


# --- Prefabs ---

class StylePrefab(BaseModel, IntoComponent):
    display: str = Field(default="flex", pattern="^(flex|grid|none)$")
    position_type: str = Field(default="relative", pattern="^(relative|absolute)$")
    flex_direction: str = Field(default="row", pattern="^(row|column|row_reverse|column_reverse)$")
    justify_content: str = "default"
    align_items: str = "default"
    width: str = Field(default="auto", pattern=VAL_PATTERN)
    height: str = Field(default="auto", pattern=VAL_PATTERN)
    margin: str = Field(default="0px", pattern=VAL_PATTERN)
    padding: str = Field(default="0px", pattern=VAL_PATTERN)

    def into_component(self) -> Style:
        return Style(**self.model_dump())


class ZIndexPrefab(BaseModel, IntoComponent):
    local: bool = True
    value: int = 0

    def into_component(self) -> ZIndex:
        return ZIndex(local=self.local, value=self.value)


class LabelPrefab(BaseModel, IntoComponent):
    def into_component(self) -> Label:
        return Label()


class NodeBundlePrefab(BaseModel, PrefabData):
    style: StylePrefab = Field(default_factory=StylePrefab)
    background_color: ColorPrefab = Field(default_factory=ColorPrefab.transparent)
    border_color: ColorPrefab = Field(default_factory=ColorPrefab.transparent)
    visibility: VisibilityPrefab = VisibilityPrefab.INHERITED
    z_index: ZIndexPrefab = Field(default_factory=ZIndexPrefab)

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        entity.insert(
            Node(),
            self.style.into_component(),
            BackgroundColor(color=self.background_color.into_color()),
            BorderColor(color=self.border_color.into_color()),
            Visibility(value=self.visibility),
            self.z_index.into_component(),
        )


class TextStylePrefab(BaseModel):
    # A font must be set here or as the text's default_font.
    font: Optional[HandlePrefab] = None
    font_size: float = 12.0
    color: ColorPrefab = Field(default_factory=ColorPrefab.white)

    def into_text_style(self, default_font: Optional[HandlePrefab]) -> Optional[TextStyle]:
        source = self.font if self.font is not None else default_font
        if source is None:
            return None
        handle = source.into_handle()
        if handle is None:
            return None
        return TextStyle(font=handle, font_size=self.font_size, color=self.color.into_color())

    def load_self(self, asset_server: AssetServer) -> bool:
        if self.font is None:
            return False
        return self.font.load(asset_server, AssetKind.FONT)


class TextSectionPrefab(BaseModel):
    text: str
    style: TextStylePrefab = Field(default_factory=TextStylePrefab)

    def into_section(self, default_font: Optional[HandlePrefab]) -> Optional[TextSection]:
        style = self.style.into_text_style(default_font)
        if style is None:
            logger.warning("No font given for text section %r", self.text)
            return None
        return TextSection(value=self.text, style=style)


class TextPrefab(BaseModel, PrefabData):
    sections: List[TextSectionPrefab] = []
    alignment: TextAlignment = TextAlignment.LEFT
    default_font: Optional[HandlePrefab] = None

    def into_text(self) -> Text:
        sections = []
        for section in self.sections:
            converted = section.into_section(self.default_font)
            if converted is not None:
                sections.append(converted)
        return Text(sections=sections, alignment=self.alignment)

    def load(self, asset_server: AssetServer) -> bool:
        failed = False
        if self.default_font is not None:
            failed |= self.default_font.load(asset_server, AssetKind.FONT)
        for section in self.sections:
            failed |= section.style.load_self(asset_server)
        return failed

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        entity.insert(self.into_text())

    def load_sub_assets(self, world: "World") -> bool:
        asset_server = _asset_server(world)
        if asset_server is None:
            return True
        return self.load(asset_server)


class TextBundlePrefab(BaseModel, PrefabData):
    text: TextPrefab
    style: StylePrefab = Field(default_factory=StylePrefab)
    visibility: VisibilityPrefab = VisibilityPrefab.INHERITED
    z_index: ZIndexPrefab = Field(default_factory=ZIndexPrefab)
    background_color: ColorPrefab = Field(default_factory=ColorPrefab.transparent)

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        entity.insert(
            Node(),
            self.text.into_text(),
            self.style.into_component(),
            BackgroundColor(color=self.background_color.into_color()),
            Visibility(value=self.visibility),
            self.z_index.into_component(),
        )

    def load_sub_assets(self, world: "World") -> bool:
        return self.text.load_sub_assets(world)


class UiImagePrefab(BaseModel, PrefabData):
    texture: HandlePrefab
    flip_x: bool = False
    flip_y: bool = False

    def into_image(self) -> Optional[UiImage]:
        handle = self.texture.into_handle()
        if handle is None:
            return None
        return UiImage(texture=handle, flip_x=self.flip_x, flip_y=self.flip_y)

    def load(self, asset_server: AssetServer) -> bool:
        return self.texture.load(asset_server, AssetKind.IMAGE)

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        image = self.into_image()
        if image is not None:
            entity.insert(image)

    def load_sub_assets(self, world: "World") -> bool:
        asset_server = _asset_server(world)
        if asset_server is None:
            return True
        return self.load(asset_server)


class ImageBundlePrefab(BaseModel, PrefabData):
    image: UiImagePrefab
    style: StylePrefab = Field(default_factory=StylePrefab)
    background_color: ColorPrefab = Field(default_factory=ColorPrefab.white)
    transform: TransformPrefab = Field(default_factory=TransformPrefab)
    visibility: VisibilityPrefab = VisibilityPrefab.INHERITED
    z_index: ZIndexPrefab = Field(default_factory=ZIndexPrefab)

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        image = self.image.into_image()
        if image is None:
            logger.warning("UiImage with no image found")
            return
        entity.insert(
            Node(),
            image,
            self.style.into_component(),
            BackgroundColor(color=self.background_color.into_color()),
            self.transform.into_component(),
            Visibility(value=self.visibility),
            self.z_index.into_component(),
        )

    def load_sub_assets(self, world: "World") -> bool:
        return self.image.load_sub_assets(world)


class ButtonBundlePrefab(BaseModel, PrefabData):
    style: StylePrefab = Field(default_factory=StylePrefab)
    background_color: ColorPrefab = Field(default_factory=ColorPrefab.white)
    border_color: ColorPrefab = Field(default_factory=ColorPrefab.transparent)
    image: Optional[UiImagePrefab] = None
    transform: TransformPrefab = Field(default_factory=TransformPrefab)
    visibility: VisibilityPrefab = VisibilityPrefab.INHERITED
    z_index: ZIndexPrefab = Field(default_factory=ZIndexPrefab)

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        ui_image = None
        if self.image is not None:
            ui_image = self.image.into_image()
            if ui_image is None:
                logger.warning("Tried to load UiImage, but failed")
        entity.insert(
            Node(),
            Button(),
            ui_image or UiImage(),
            self.style.into_component(),
            BackgroundColor(color=self.background_color.into_color()),
            BorderColor(color=self.border_color.into_color()),
            self.transform.into_component(),
            Visibility(value=self.visibility),
            self.z_index.into_component(),
        )

    def load_sub_assets(self, world: "World") -> bool:
        if self.image is None:
            return False
        return self.image.load_sub_assets(world)
