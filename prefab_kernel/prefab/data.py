"""
Prefab Data — the contract every payload carried by a prefab node satisfies.

A payload can:
- ``load_sub_assets(world)``: try to turn pending references (paths, names)
  into resolved handles. Returns True when resolution FAILED or is
  incomplete for this payload, False otherwise.
- ``insert_into_entity(entity)``: consume itself and attach its components
  to a live entity.

``None``, tuples and lists of payloads satisfy the contract by delegation:
``None`` does nothing and never fails, sequences delegate to every item and
OR the results. ``PrefabBundle`` does the same for the fields of a model.
"""

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from prefab_kernel.world_model.store import EntityWorldMut, World


class PrefabData:
    """Base for payloads that can be applied to a live entity."""

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        raise NotImplementedError

    def load_sub_assets(self, world: "World") -> bool:
        return False


class IntoComponent(PrefabData):
    """
    Simple data that maps to exactly one component.

    Must not be used for payloads that hold asset references: those need
    a real ``load_sub_assets``.
    """

    def into_component(self) -> Any:
        raise NotImplementedError

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        entity.insert(self.into_component())


def load_data(data: Any, world: "World") -> bool:
    """Resolve a payload or a composite of payloads. True means failure."""
    if data is None:
        return False
    if isinstance(data, (tuple, list)):
        failed = False
        for item in data:
            failed |= load_data(item, world)
        return failed
    if isinstance(data, PrefabData):
        return data.load_sub_assets(world)
    raise TypeError(f"{type(data).__name__} is not prefab data")


def insert_data(data: Any, entity: "EntityWorldMut") -> None:
    """Apply a payload or a composite of payloads to an entity."""
    if data is None:
        return
    if isinstance(data, (tuple, list)):
        for item in data:
            insert_data(item, entity)
        return
    if isinstance(data, PrefabData):
        data.insert_into_entity(entity)
        return
    raise TypeError(f"{type(data).__name__} is not prefab data")


class PrefabBundle(BaseModel, PrefabData):
    """
    A model whose fields are all prefab data.

    Fields are applied and resolved in declaration order; resolution is the
    OR of every field's result.
    """

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        for name in type(self).model_fields:
            insert_data(getattr(self, name), entity)

    def load_sub_assets(self, world: "World") -> bool:
        failed = False
        for name in type(self).model_fields:
            failed |= load_data(getattr(self, name), world)
        return failed
