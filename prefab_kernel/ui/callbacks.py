"""
Button callbacks — named callables registered on the world and the prefab
references that resolve to them.

Dispatching interactions to these callbacks is left to the host.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from prefab_kernel.models.world import Entity
from prefab_kernel.prefab.data import PrefabData

if TYPE_CHECKING:
    from prefab_kernel.world_model.store import EntityWorldMut, World

logger = logging.getLogger(__name__)


class PressedButtonEvent(BaseModel):
    button_name: str
    entity: Entity
    interaction: str = "none"

    def is_name(self, name: str) -> bool:
        return self.button_name == name

    def is_entity(self, entity: Entity) -> bool:
        return self.entity == entity


class ButtonCallback(BaseModel):
    """
    Live callback of a button: either a registered callable to run, or an
    event the host is expected to send.
    """

    system: Optional[Callable[..., Any]] = None
    event: Optional[PressedButtonEvent] = None


class UiButtonCallbacks:
    """Resource mapping callback names to callables."""

    def __init__(self, callbacks: Optional[Dict[str, Callable[..., Any]]] = None):
        self.callbacks: Dict[str, Callable[..., Any]] = dict(callbacks or {})

    def push_callback(self, name: str, callback: Callable[..., Any]) -> Optional[Callable[..., Any]]:
        """Register a callback, returning the one it replaced."""
        previous = self.callbacks.get(name)
        self.callbacks[name] = callback
        return previous

    def remove_callback(self, name: str) -> Optional[Callable[..., Any]]:
        return self.callbacks.pop(name, None)

    def get_system(self, name: str) -> Optional[Callable[..., Any]]:
        return self.callbacks.get(name)


class CallbackPrefab(BaseModel, PrefabData):
    """
    Written as ``{"system": "<name>"}`` (resolved against
    ``UiButtonCallbacks``) or ``{"event": "<name>"}`` (nothing to resolve).
    """

    system: Optional[str] = None
    event: Optional[str] = None
    loaded: Optional[Callable[..., Any]] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _exactly_one(self) -> "CallbackPrefab":
        if (self.system is None) == (self.event is None):
            raise ValueError("callback needs exactly one of 'system' or 'event'")
        return self

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        if self.event is not None:
            event = PressedButtonEvent(button_name=self.event, entity=entity.id())
            entity.insert(ButtonCallback(event=event))
        elif self.loaded is not None:
            entity.insert(ButtonCallback(system=self.loaded))
        else:
            logger.warning("Tried to insert unloaded callback %r into entity", self.system)

    def load_sub_assets(self, world: "World") -> bool:
        if self.event is not None:
            return False
        if self.loaded is not None:
            logger.warning("Tried to load already loaded callback %r", self.system)
            return True

        callbacks = world.get_resource(UiButtonCallbacks)
        if callbacks is None:
            logger.error("The resource UiButtonCallbacks is not inserted")
            return True
        system = callbacks.get_system(self.system)
        if system is None:
            logger.warning("Tried to get system %s, but failed", self.system)
            return True
        self.loaded = system
        return False
