"""World identities — stable entity ids and perishable storage locations."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """
    Stable identity of a live entity.

    Never invalidated by store growth. A despawned slot is reused with a
    bumped generation, so an old id resolves to absence instead of aliasing
    the new occupant.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    generation: int = Field(default=0, ge=0)

    def __str__(self) -> str:
        return f"{self.index}v{self.generation}"

    @classmethod
    def parse(cls, value: str) -> "Entity":
        """
        Parse the ``<index>v<generation>`` form produced by ``str()``.

        Raises ``ValueError`` on malformed or negative parts.
        """
        index, sep, generation = value.partition("v")
        if not sep:
            raise ValueError(f"Invalid entity id: {value!r}")
        return cls(index=int(index), generation=int(generation))


class EntityLocation(BaseModel):
    """
    Where an entity's row currently lives.

    Only valid until the next structural change of the world.
    """

    model_config = ConfigDict(frozen=True)

    archetype: int
    row: int


class EntitySnapshot(BaseModel):
    """Serializable view of one entity."""

    entity: str
    components: List[str]
    parent: Optional[str] = None
    children: List[str] = []


class WorldSnapshot(BaseModel):
    """Serializable view of the whole world."""

    entities: Dict[str, EntitySnapshot] = {}
    resources: List[str] = []
    archetypes: int = 0
    change_tick: int = 0
