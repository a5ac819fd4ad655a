"""
Prefab — a flat, append-only tree of optional payloads.

Nodes are addressed by dense indices; index 0 is the root. Each node knows
only its parent. The parent → children adjacency is derived on demand and
never cached, so it can never go stale.

Behavioral Contract:
- Nodes are only ever appended; nothing is removed or reordered.
- ``add`` does not validate ``parent``; callers that always add a child
  while positioned on an existing parent get ``parent < index`` for free.
- A node with no parent at an index other than 0 is an orphan. Orphans are
  allowed and treated as dead data: they get an (empty) adjacency entry but
  are never reached from the root, so they are never materialized.
"""

import copy
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar
from uuid import uuid4

from prefab_kernel.prefab.data import load_data

T = TypeVar("T")


class PrefabEntityBuilder(Generic[T]):
    """One node of a prefab: an optional parent index and an optional payload."""

    def __init__(self, parent: Optional[int] = None, data: Optional[T] = None):
        self.parent = parent
        self.data = data

    def __repr__(self) -> str:
        return f"PrefabEntityBuilder(parent={self.parent!r}, data={self.data!r})"

    def get_data_or_insert_with(self, factory: Callable[[], T]) -> T:
        if self.data is None:
            self.data = factory()
        return self.data

    def get_data(self) -> Optional[T]:
        return self.data

    def set_parent(self, parent: int) -> None:
        self.parent = parent

    def set_data(self, data: T) -> None:
        self.data = data

    def take_data(self) -> Optional[T]:
        """Move the payload out of the node, leaving it empty."""
        data, self.data = self.data, None
        return data

    def prepare_data(self, world) -> bool:
        """Resolve this node's payload. True means resolution failed."""
        return load_data(self.data, world)


class Prefab(Generic[T]):
    """An indexed tree of payloads waiting to be materialized."""

    def __init__(self):
        self.id = f"prefab_{uuid4().hex[:12]}"
        self._entities: List[PrefabEntityBuilder[T]] = [PrefabEntityBuilder()]

    @classmethod
    def from_data(cls, data: Optional[T]) -> "Prefab[T]":
        """A prefab with a single root node holding ``data``."""
        prefab = cls()
        prefab._entities[0].set_data(data)
        return prefab

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[PrefabEntityBuilder[T]]:
        return iter(self._entities)

    def __copy__(self) -> "Prefab[T]":
        return self.clone()

    def clone(self) -> "Prefab[T]":
        """Deep copy of the tree and all of its payloads."""
        prefab = Prefab.__new__(type(self))
        prefab.id = f"prefab_{uuid4().hex[:12]}"
        prefab._entities = copy.deepcopy(self._entities)
        return prefab

    def add(self, parent: Optional[int], data: Optional[T]) -> int:
        """Append a node and return its index."""
        index = len(self._entities)
        self._entities.append(PrefabEntityBuilder(parent, data))
        return index

    def get_entity(self, index: int) -> Optional[PrefabEntityBuilder[T]]:
        if 0 <= index < len(self._entities):
            return self._entities[index]
        return None

    def get_entity_mut(self, index: int) -> Optional[PrefabEntityBuilder[T]]:
        """Same node as ``get_entity``; nodes are mutable in place."""
        return self.get_entity(index)

    def all_parents_childs(self) -> Dict[int, List[int]]:
        """
        Map every index to its direct children, in index order.

        Every index in ``[0, len)`` gets an entry, orphans included.
        """
        children: Dict[int, List[int]] = {}
        for index, entity in enumerate(self._entities):
            children.setdefault(index, [])
            if entity.parent is not None:
                children.setdefault(entity.parent, []).append(index)
        return children

    def reachable(self, root: int = 0) -> List[int]:
        """Indices reachable from ``root`` through the adjacency, pre-order."""
        children = self.all_parents_childs()
        if root not in children:
            return []
        found = []
        seen = set()
        stack = [root]
        while stack:
            index = stack.pop()
            if index in seen:
                continue
            seen.add(index)
            found.append(index)
            stack.extend(reversed(children.get(index, [])))
        return found

    def orphans(self) -> List[int]:
        """Indices that will never be materialized from the root."""
        reachable = set(self.reachable())
        return [i for i in range(len(self._entities)) if i not in reachable]

    def prepare_entities(self, world) -> bool:
        """
        Run the resolution pass once over every node.

        Returns True if ANY node failed to resolve. Nodes are independent,
        so every node is attempted even after a failure.
        """
        failed = False
        for entity in self._entities:
            failed |= entity.prepare_data(world)
        return failed
