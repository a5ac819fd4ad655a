"""
Prefab Commands — deferred prefab spawning against a world.

Root entities are reserved immediately so callers get an id right away;
resolution and materialization run when the queue is applied.
"""

import logging
from pathlib import Path
from typing import Any, Generic, List, Optional, TypeVar, Union

from prefab_kernel.models.config import PrefabConfig
from prefab_kernel.models.world import Entity
from prefab_kernel.prefab.loader import Format, PrefabFormatError, PrefabLoader
from prefab_kernel.prefab.spawner import spawn_with_root
from prefab_kernel.prefab.tree import Prefab, PrefabEntityBuilder
from prefab_kernel.world_model.store import World

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoadedPrefab(Generic[T]):
    """Event sent once a prepared prefab has gone through resolution."""

    def __init__(self, prefab: Prefab[T], successfully_loaded: bool):
        self.prefab = prefab
        self.successfully_loaded = successfully_loaded


class SpawnPrefab:
    """Materialize a prefab onto an already reserved root entity."""

    def __init__(self, prefab: Prefab, root: Entity):
        self.prefab = prefab
        self.root = root

    def apply(self, world: World, config: PrefabConfig) -> None:
        spawn_with_root(
            self.prefab, self.prefab.all_parents_childs(), 0, world, self.root
        )


class PrepareAndSpawnPrefab:
    """Resolve a prefab, then materialize it onto a reserved root entity."""

    def __init__(self, prefab: Prefab, root: Entity):
        self.prefab = prefab
        self.root = root

    def apply(self, world: World, config: PrefabConfig) -> None:
        failed = self.prefab.prepare_entities(world)
        if failed:
            logger.warning("Not all the prefab assets were loaded (%s)", self.prefab.id)
            if config.abort_on_unresolved:
                return
        spawn_with_root(
            self.prefab, self.prefab.all_parents_childs(), 0, world, self.root
        )


class PreparePrefab:
    """Resolve a prefab and hand it back through a ``LoadedPrefab`` event."""

    def __init__(self, prefab: Prefab):
        self.prefab = prefab

    def apply(self, world: World, config: PrefabConfig) -> None:
        failed = self.prefab.prepare_entities(world)
        world.send_event(LoadedPrefab(self.prefab, successfully_loaded=not failed))


class Commands:
    """
    Queue of prefab commands for one world.

    Commands run in the order they were added, on ``apply()``.
    """

    def __init__(self, world: World, config: Optional[PrefabConfig] = None):
        self.world = world
        self.config = config or PrefabConfig()
        self._queue: List[Any] = []

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, command: Any) -> None:
        self._queue.append(command)

    def apply(self) -> int:
        """
        Run and clear the queue. Returns how many commands succeeded.

        A command that raises is logged and skipped; the rest of the queue
        still runs.
        """
        queue, self._queue = self._queue, []
        succeeded = 0
        for command in queue:
            try:
                command.apply(self.world, self.config)
            except Exception as e:
                logger.error("Prefab command %s failed: %s", type(command).__name__, e)
                continue
            succeeded += 1
        return succeeded

    def load_prefab(self, path: Union[str, Path], fmt: Format[T]) -> "PrefabCommands[T]":
        """Load a prefab file. On failure, logs and continues with an empty prefab."""
        try:
            prefab = PrefabLoader.create_prefab(path, fmt)
        except PrefabFormatError as e:
            logger.error("Prefab Error: %s", e)
            prefab = Prefab()
        return PrefabCommands(prefab, self)

    def prefab_into_commands(self, prefab: Prefab[T]) -> "PrefabCommands[T]":
        return PrefabCommands(prefab, self)

    def spawn_prefab(self, prefab: Prefab) -> Entity:
        return self.spawn_prefab_with(prefab)

    def spawn_prefab_with(self, prefab: Prefab, *components: Any) -> Entity:
        """Spawn a prefab whose root also carries ``components``."""
        entity = self.world.spawn(*components).id()
        self.add(SpawnPrefab(prefab, entity))
        return entity

    def prepare_and_spawn_prefab(self, prefab: Prefab) -> Entity:
        return self.prepare_and_spawn_prefab_with(prefab)

    def prepare_and_spawn_prefab_with(self, prefab: Prefab, *components: Any) -> Entity:
        """Resolve, then spawn. The reserved root stays empty if resolution aborts."""
        entity = self.world.spawn(*components).id()
        self.add(PrepareAndSpawnPrefab(prefab, entity))
        return entity

    def prepare_prefab(self, prefab: Prefab) -> None:
        self.add(PreparePrefab(prefab))


class PrefabCommands(Generic[T]):
    """A prefab bound to a command queue, ready to be edited and spawned."""

    def __init__(self, prefab: Prefab[T], commands: Commands):
        self._prefab = prefab
        self._commands = commands

    def get_entity(self, index: int) -> Optional[PrefabEntityBuilder[T]]:
        return self._prefab.get_entity(index)

    def get_entity_mut(self, index: int) -> Optional[PrefabEntityBuilder[T]]:
        return self._prefab.get_entity_mut(index)

    def add(self, parent: Optional[int], data: Optional[T]) -> int:
        return self._prefab.add(parent, data)

    def spawn(self, *components: Any) -> Entity:
        return self._commands.spawn_prefab_with(self._prefab, *components)

    def spawn_empty(self) -> Entity:
        return self._commands.spawn_prefab(self._prefab)

    def prepare_spawn(self, *components: Any) -> Entity:
        return self._commands.prepare_and_spawn_prefab_with(self._prefab, *components)

    def prepare_spawn_empty(self) -> Entity:
        return self._commands.prepare_and_spawn_prefab(self._prefab)

    def prepare(self) -> None:
        self._commands.prepare_prefab(self._prefab)

    def commands(self) -> Commands:
        return self._commands

    def prefab(self) -> Prefab[T]:
        return self._prefab
