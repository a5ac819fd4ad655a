"""
World Store — the live entity/component store prefabs are materialized into.

Entities live in archetype tables keyed by the set of component types they
carry. Inserting or removing a component moves the entity's row to another
table, and the hole it leaves is filled by the table's last row. Spawning
appends rows. Any of these structural changes can therefore relocate an
entity other than the one being touched.

Behavioral Contract:
- ``Entity`` ids are stable: they stay valid until the entity is despawned,
  and a reused slot gets a new generation.
- ``EntityLocation`` values are perishable: every structural change bumps
  ``change_tick`` and invalidates locations read before it.
- An ``EntityWorldMut`` refuses to read or write through a location older
  than the current tick. Mutations made through it keep it fresh; anything
  done through ``world_mut()`` requires ``update_location()`` afterwards.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict

from prefab_kernel.models.world import (
    Entity,
    EntityLocation,
    EntitySnapshot,
    WorldSnapshot,
)


class EntityNotFoundError(KeyError):
    """Raised when an entity id does not refer to a live entity."""
    pass


class StaleLocationError(RuntimeError):
    """Raised when a cached entity location is used after the world changed."""
    pass


class Parent(BaseModel):
    """Live parent of an entity."""

    model_config = ConfigDict(frozen=True)

    entity: Entity


class Children(BaseModel):
    """Ordered live children of an entity."""

    entities: List[Entity] = []


class Archetype:
    """A table of entities that all carry the same component types."""

    def __init__(self, archetype_id: int, component_types: FrozenSet[type]):
        self.id = archetype_id
        self.component_types = component_types
        self.entities: List[Entity] = []
        self.columns: Dict[type, List[Any]] = {t: [] for t in component_types}

    def __len__(self) -> int:
        return len(self.entities)

    def push(self, entity: Entity, components: Dict[type, Any]) -> int:
        row = len(self.entities)
        self.entities.append(entity)
        for component_type, column in self.columns.items():
            column.append(components[component_type])
        return row

    def swap_remove(self, row: int) -> Tuple[Dict[type, Any], Optional[Entity]]:
        """
        Remove a row, filling the hole with the last row.

        Returns the removed components and the entity that was moved into
        ``row``, if any.
        """
        last = len(self.entities) - 1
        removed = {}
        for component_type, column in self.columns.items():
            removed[component_type] = column[row]
            column[row] = column[last]
            column.pop()
        moved = self.entities[last] if row != last else None
        self.entities[row] = self.entities[last]
        self.entities.pop()
        return removed, moved

    def get(self, component_type: type, row: int) -> Optional[Any]:
        column = self.columns.get(component_type)
        if column is None:
            return None
        return column[row]

    def set(self, component: Any, row: int) -> None:
        self.columns[type(component)][row] = component


def _flatten(components: Iterable[Any]) -> List[Any]:
    """Expand nested tuples/lists (bundles) into a flat component list."""
    flat = []
    for component in components:
        if isinstance(component, (tuple, list)):
            flat.extend(_flatten(component))
        elif component is not None:
            flat.append(component)
    return flat


class World:
    """
    In-memory archetype store with resources and an event queue.
    """

    def __init__(self):
        self._archetypes: List[Archetype] = []
        self._archetype_index: Dict[FrozenSet[type], int] = {}
        self._locations: List[Optional[EntityLocation]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._resources: Dict[type, Any] = {}
        self._events: List[Any] = []
        self.change_tick = 0
        self._archetype_for(frozenset())

    # === ENTITIES ===

    def spawn_empty(self) -> "EntityWorldMut":
        """Create an entity with no components."""
        return self.spawn()

    def spawn(self, *components: Any) -> "EntityWorldMut":
        """Create an entity carrying the given components (or bundles)."""
        entity = self._allocate()
        values = {type(c): c for c in _flatten(components)}
        archetype = self._archetype_for(frozenset(values))
        row = archetype.push(entity, values)
        location = EntityLocation(archetype=archetype.id, row=row)
        self._locations[entity.index] = location
        self.change_tick += 1
        return EntityWorldMut(self, entity, location)

    def contains(self, entity: Entity) -> bool:
        return self._location_of(entity) is not None

    def get_entity_mut(self, entity: Entity) -> Optional["EntityWorldMut"]:
        """Get a mutable view of an entity, or None if it does not exist."""
        location = self._location_of(entity)
        if location is None:
            return None
        return EntityWorldMut(self, entity, location)

    def entity_mut(self, entity: Entity) -> "EntityWorldMut":
        """Get a mutable view of an entity that must exist."""
        entity_mut = self.get_entity_mut(entity)
        if entity_mut is None:
            raise EntityNotFoundError(f"Entity {entity} does not exist")
        return entity_mut

    def get(self, entity: Entity, component_type: Type[Any]) -> Optional[Any]:
        """Get one component of an entity."""
        location = self._location_of(entity)
        if location is None:
            return None
        return self._archetypes[location.archetype].get(component_type, location.row)

    def components(self, entity: Entity) -> Dict[type, Any]:
        """All components of an entity, keyed by type."""
        location = self._location_of(entity)
        if location is None:
            raise EntityNotFoundError(f"Entity {entity} does not exist")
        archetype = self._archetypes[location.archetype]
        return {t: archetype.get(t, location.row) for t in archetype.component_types}

    def entities(self) -> List[Entity]:
        """All live entities, in slot order."""
        return [
            Entity(index=i, generation=self._generations[i])
            for i, location in enumerate(self._locations)
            if location is not None
        ]

    def entities_with(self, component_type: Type[Any]) -> List[Entity]:
        """All live entities carrying a component type."""
        found = []
        for archetype in self._archetypes:
            if component_type in archetype.component_types:
                found.extend(archetype.entities)
        return sorted(found, key=lambda e: e.index)

    def despawn(self, entity: Entity) -> bool:
        """Remove an entity, detaching it from its parent and children."""
        location = self._location_of(entity)
        if location is None:
            return False

        parent = self.get(entity, Parent)
        if parent is not None:
            siblings = self.get(parent.entity, Children)
            if siblings is not None and entity in siblings.entities:
                siblings.entities.remove(entity)
        children = self.get(entity, Children)
        if children is not None:
            for child in list(children.entities):
                child_mut = self.get_entity_mut(child)
                if child_mut is not None:
                    child_mut.remove(Parent)

        location = self._location_of(entity)
        archetype = self._archetypes[location.archetype]
        _, moved = archetype.swap_remove(location.row)
        if moved is not None:
            self._locations[moved.index] = EntityLocation(
                archetype=archetype.id, row=location.row
            )
        self._locations[entity.index] = None
        self._generations[entity.index] += 1
        self._free.append(entity.index)
        self.change_tick += 1
        return True

    def add_child(self, parent: Entity, child: Entity) -> None:
        """Make ``child`` the last child of ``parent``."""
        if parent == child:
            raise ValueError(f"Entity {parent} cannot be its own child")
        if not self.contains(parent):
            raise EntityNotFoundError(f"Entity {parent} does not exist")
        if not self.contains(child):
            raise EntityNotFoundError(f"Entity {child} does not exist")

        previous = self.get(child, Parent)
        if previous is not None and previous.entity != parent:
            old_children = self.get(previous.entity, Children)
            if old_children is not None and child in old_children.entities:
                old_children.entities.remove(child)

        self.entity_mut(child).insert(Parent(entity=parent))
        children = self.get(parent, Children)
        if children is None:
            self.entity_mut(parent).insert(Children(entities=[child]))
        elif child not in children.entities:
            children.entities.append(child)

    # === RESOURCES ===

    def insert_resource(self, resource: Any) -> None:
        """Register a resource, replacing any other of the same type."""
        self._resources[type(resource)] = resource

    def get_resource(self, resource_type: Type[Any]) -> Optional[Any]:
        """Look up a resource by type. None if not registered."""
        return self._resources.get(resource_type)

    def remove_resource(self, resource_type: Type[Any]) -> Optional[Any]:
        return self._resources.pop(resource_type, None)

    # === EVENTS ===

    def send_event(self, event: Any) -> None:
        self._events.append(event)

    def drain_events(self, event_type: Type[Any]) -> List[Any]:
        """Remove and return all queued events of a type, oldest first."""
        drained = [e for e in self._events if isinstance(e, event_type)]
        self._events = [e for e in self._events if not isinstance(e, event_type)]
        return drained

    # === SNAPSHOT ===

    def snapshot(self) -> WorldSnapshot:
        """Get a serializable snapshot of the current world state."""
        entities = {}
        for entity in self.entities():
            parent = self.get(entity, Parent)
            children = self.get(entity, Children)
            entities[str(entity)] = EntitySnapshot(
                entity=str(entity),
                components=sorted(t.__name__ for t in self.components(entity)),
                parent=str(parent.entity) if parent else None,
                children=[str(c) for c in children.entities] if children else [],
            )
        return WorldSnapshot(
            entities=entities,
            resources=sorted(t.__name__ for t in self._resources),
            archetypes=len(self._archetypes),
            change_tick=self.change_tick,
        )

    # === INTERNALS ===

    def _allocate(self) -> Entity:
        if self._free:
            index = self._free.pop()
        else:
            index = len(self._generations)
            self._generations.append(0)
            self._locations.append(None)
        return Entity(index=index, generation=self._generations[index])

    def _location_of(self, entity: Entity) -> Optional[EntityLocation]:
        if entity.index < 0 or entity.index >= len(self._generations):
            return None
        if self._generations[entity.index] != entity.generation:
            return None
        return self._locations[entity.index]

    def _archetype_for(self, component_types: FrozenSet[type]) -> Archetype:
        archetype_id = self._archetype_index.get(component_types)
        if archetype_id is None:
            archetype_id = len(self._archetypes)
            self._archetypes.append(Archetype(archetype_id, component_types))
            self._archetype_index[component_types] = archetype_id
        return self._archetypes[archetype_id]

    def _move(
        self,
        entity: Entity,
        location: EntityLocation,
        add: Dict[type, Any],
        remove: FrozenSet[type] = frozenset(),
    ) -> EntityLocation:
        """Move an entity to the archetype matching its new component set."""
        source = self._archetypes[location.archetype]
        values, moved = source.swap_remove(location.row)
        if moved is not None:
            self._locations[moved.index] = EntityLocation(
                archetype=source.id, row=location.row
            )
        values.update(add)
        for component_type in remove:
            values.pop(component_type, None)

        target = self._archetype_for(frozenset(values))
        row = target.push(entity, values)
        new_location = EntityLocation(archetype=target.id, row=row)
        self._locations[entity.index] = new_location
        self.change_tick += 1
        return new_location


class EntityWorldMut:
    """
    Mutable view of one entity: a stable id plus a cached location.

    The cached location is only trusted while ``change_tick`` has not moved
    since it was read. Call ``update_location()`` after mutating the world
    through anything other than this view.
    """

    def __init__(self, world: World, entity: Entity, location: EntityLocation):
        self._world = world
        self._entity = entity
        self._location = location
        self._tick = world.change_tick

    def id(self) -> Entity:
        return self._entity

    def location(self) -> EntityLocation:
        self._assert_fresh()
        return self._location

    def world_mut(self) -> World:
        """
        The underlying world. Mutating it invalidates this view's location
        until ``update_location()`` is called.
        """
        return self._world

    def update_location(self) -> "EntityWorldMut":
        """Re-derive the cached location from the stable id."""
        location = self._world._location_of(self._entity)
        if location is None:
            raise EntityNotFoundError(f"Entity {self._entity} does not exist")
        self._location = location
        self._tick = self._world.change_tick
        return self

    def insert(self, *components: Any) -> "EntityWorldMut":
        """Insert components (or bundles), replacing same-typed ones."""
        self._assert_fresh()
        values = {type(c): c for c in _flatten(components)}
        if not values:
            return self
        archetype = self._world._archetypes[self._location.archetype]
        if frozenset(values) <= archetype.component_types:
            for component in values.values():
                archetype.set(component, self._location.row)
            return self
        self._location = self._world._move(self._entity, self._location, values)
        self._tick = self._world.change_tick
        return self

    def remove(self, component_type: Type[Any]) -> Optional[Any]:
        """Remove one component, returning it if it was present."""
        self._assert_fresh()
        archetype = self._world._archetypes[self._location.archetype]
        if component_type not in archetype.component_types:
            return None
        removed = archetype.get(component_type, self._location.row)
        self._location = self._world._move(
            self._entity, self._location, {}, frozenset([component_type])
        )
        self._tick = self._world.change_tick
        return removed

    def get(self, component_type: Type[Any]) -> Optional[Any]:
        self._assert_fresh()
        archetype = self._world._archetypes[self._location.archetype]
        return archetype.get(component_type, self._location.row)

    def contains(self, component_type: Type[Any]) -> bool:
        self._assert_fresh()
        archetype = self._world._archetypes[self._location.archetype]
        return component_type in archetype.component_types

    def add_child(self, child: Entity) -> "EntityWorldMut":
        """Attach ``child`` as the last live child of this entity."""
        self._assert_fresh()
        self._world.add_child(self._entity, child)
        return self.update_location()

    def _assert_fresh(self) -> None:
        if self._tick != self._world.change_tick:
            raise StaleLocationError(
                f"Location of entity {self._entity} was read at tick {self._tick}, "
                f"world is at tick {self._world.change_tick}; call update_location()"
            )
