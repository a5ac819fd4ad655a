"""Asset handles — resolved references to externally loaded resources."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AssetKind(str, Enum):
    FONT = "font"
    IMAGE = "image"
    OTHER = "other"


class LoadState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class Handle(BaseModel):
    """A ready-to-use handle. The data behind it may still be loading."""

    model_config = ConfigDict(frozen=True)

    id: int
    kind: AssetKind = AssetKind.OTHER
    path: Optional[str] = None

    @classmethod
    def default(cls, kind: AssetKind = AssetKind.OTHER) -> "Handle":
        """The handle used when no file is expected."""
        return cls(id=0, kind=kind, path=None)

    @property
    def is_default(self) -> bool:
        return self.id == 0
