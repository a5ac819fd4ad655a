"""
Prefab Spawner — materializes a prepared prefab into live entities.

Walks the derived adjacency depth-first from a start index. For each node it
creates (or reuses) a live entity, moves the node's payload onto it, tags it
with ``PrefabEntity`` and attaches every materialized child in declared order.

Behavioral Contract:
- Payloads are moved out of the prefab; a prefab spawns once.
- Children are spawned through the same world the parent lives in. That
  relocates rows, so the parent's cached location is refreshed after every
  child before the parent is touched again.
- A start index with no adjacency entry or no node is a structural error:
  it is logged and that subtree yields None. Nothing is raised.
- Orphans are never visited, and no index is visited twice: a parent
  cycle is logged and cut where it closes.
"""

import logging
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from prefab_kernel.models.world import Entity
from prefab_kernel.prefab.data import insert_data
from prefab_kernel.prefab.tree import Prefab, PrefabEntityBuilder
from prefab_kernel.world_model.store import EntityWorldMut, World

logger = logging.getLogger(__name__)


class PrefabEntity(BaseModel):
    """Marks an entity as produced by a prefab node."""

    model_config = ConfigDict(frozen=True)

    prefab_id: str
    index: int


def spawn(
    prefab: Prefab,
    processed_children: Dict[int, List[int]],
    init: int,
    world: World,
) -> Optional[Entity]:
    """Materialize the subtree at ``init`` into a new entity."""
    return _spawn(prefab, processed_children, init, world, set())


def spawn_with_root(
    prefab: Prefab,
    processed_children: Dict[int, List[int]],
    init: int,
    world: World,
    root: Entity,
) -> Optional[Entity]:
    """
    Materialize the subtree at ``init`` onto an existing entity.

    Raises ``EntityNotFoundError`` if ``root`` is not alive.
    """
    visited: Set[int] = set()
    node = _lookup(prefab, processed_children, init, visited)
    if node is None:
        return None
    return _populate(prefab, processed_children, init, node, world.entity_mut(root), visited)


def spawn_prefab_into(prefab: Prefab, world: World, root: Optional[Entity] = None) -> Optional[Entity]:
    """Derive the adjacency and materialize the whole prefab from index 0."""
    processed_children = prefab.all_parents_childs()
    if root is None:
        return spawn(prefab, processed_children, 0, world)
    return spawn_with_root(prefab, processed_children, 0, world, root)


def _spawn(
    prefab: Prefab,
    processed_children: Dict[int, List[int]],
    init: int,
    world: World,
    visited: Set[int],
) -> Optional[Entity]:
    node = _lookup(prefab, processed_children, init, visited)
    if node is None:
        return None
    root = world.spawn_empty()
    return _populate(prefab, processed_children, init, node, root, visited)


def _lookup(
    prefab: Prefab,
    processed_children: Dict[int, List[int]],
    init: int,
    visited: Set[int],
) -> Optional[PrefabEntityBuilder]:
    if init in visited:
        logger.warning("Cycle in the prefab at index %s", init)
        return None
    node = prefab.get_entity_mut(init)
    if init not in processed_children or node is None:
        # Probably children added with a wrong parent index.
        logger.warning("Entity not found in the prefab with index %s", init)
        return None
    visited.add(init)
    return node


def _populate(
    prefab: Prefab,
    processed_children: Dict[int, List[int]],
    init: int,
    node: PrefabEntityBuilder,
    root: EntityWorldMut,
    visited: Set[int],
) -> Entity:
    data = node.take_data()
    if data is not None:
        insert_data(data, root)
    root.insert(PrefabEntity(prefab_id=prefab.id, index=init))

    for child_index in processed_children[init]:
        child = _spawn(prefab, processed_children, child_index, root.world_mut(), visited)
        # The child spawn moved rows around; our cached location is stale.
        root.update_location()
        if child is not None:
            root.add_child(child)
    return root.id()
