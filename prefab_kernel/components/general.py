"""General components shared by UI and sprite prefabs."""

import colorsys
import logging
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.models.assets import AssetKind, Handle
from prefab_kernel.prefab.data import IntoComponent

logger = logging.getLogger(__name__)


# --- Live components ---

class Color(BaseModel):
    """Linear RGBA color."""

    model_config = ConfigDict(frozen=True)

    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0


class Transform(BaseModel):
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)


class VisibilityPrefab(str, Enum):
    INHERITED = "inherited"
    HIDDEN = "hidden"
    VISIBLE = "visible"


class Visibility(BaseModel):
    value: VisibilityPrefab = VisibilityPrefab.INHERITED


class BackgroundColor(BaseModel):
    color: Color


class BorderColor(BaseModel):
    color: Color


# --- Prefabs ---

class ColorPrefab(BaseModel):
    """
    A color as written in a prefab.

    Accepts ``[r, g, b, a]``, ``{"rgba": [...]}`` or ``{"hsla": [h, s, l, a]}``
    with hue in degrees.
    """

    space: str = Field(default="rgba", pattern="^(rgba|hsla)$")
    values: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {"space": "rgba", "values": value}
        if isinstance(value, dict) and len(value) == 1:
            space, values = next(iter(value.items()))
            if space in ("rgba", "hsla"):
                return {"space": space, "values": values}
        return value

    @classmethod
    def transparent(cls) -> "ColorPrefab":
        return cls(values=(0.0, 0.0, 0.0, 0.0))

    @classmethod
    def white(cls) -> "ColorPrefab":
        return cls()

    def into_color(self) -> Color:
        if self.space == "hsla":
            h, s, l, a = self.values
            r, g, b = colorsys.hls_to_rgb((h % 360) / 360, l, s)
            return Color(r=r, g=g, b=b, a=a)
        r, g, b, a = self.values
        return Color(r=r, g=g, b=b, a=a)


class TransformPrefab(BaseModel, IntoComponent):
    """
    A transform as written in a prefab.

    Shorthands: ``{"xyz": [x, y, z]}``, ``{"quat": [x, y, z, w]}``,
    ``{"scale": [x, y, z]}``; otherwise the explicit fields.
    """

    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, value: Any) -> Any:
        if isinstance(value, dict) and len(value) == 1:
            if "xyz" in value:
                return {"translation": value["xyz"]}
            if "quat" in value:
                return {"rotation": value["quat"]}
        return value

    def into_component(self) -> Transform:
        return Transform(
            translation=self.translation,
            rotation=self.rotation,
            scale=self.scale,
        )


class HandlePrefab(BaseModel):
    """
    Reference to an external asset.

    Pending while it only holds a ``file`` path, resolved once ``loaded``
    holds a handle. With neither, it stands for the default handle.
    Written in a prefab as a path string, or null for the default handle.
    """

    file: Optional[str] = None
    loaded: Optional[Handle] = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _from_path(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"file": value}
        return value

    @property
    def is_loaded(self) -> bool:
        return self.loaded is not None

    def load_self(self, asset_server: AssetServer, kind: AssetKind = AssetKind.OTHER) -> Optional[Handle]:
        """Request the asset. None when this reference was already resolved."""
        if self.loaded is not None:
            logger.warning("Tried to load already loaded asset %s", self.loaded.path or "<default>")
            return None
        if self.file is not None:
            return asset_server.load(self.file, kind)
        return Handle.default(kind)

    def load(self, asset_server: AssetServer, kind: AssetKind = AssetKind.OTHER) -> bool:
        """Resolve in place. True means resolution failed."""
        handle = self.load_self(asset_server, kind)
        if handle is None:
            return True
        self.loaded = handle
        return False

    def into_handle(self) -> Optional[Handle]:
        if self.loaded is not None:
            return self.loaded
        if self.file is not None:
            logger.warning("Asset %s not yet loaded", self.file)
            return None
        return Handle.default()
