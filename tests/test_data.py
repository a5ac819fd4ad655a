"""Tests for the prefab data contract and its composites."""

from typing import Optional

import pytest
from pydantic import BaseModel

from prefab_kernel.prefab.data import (
    IntoComponent,
    PrefabBundle,
    PrefabData,
    insert_data,
    load_data,
)
from prefab_kernel.world_model.store import World


class Marker(BaseModel):
    name: str


class MarkerPrefab(BaseModel, IntoComponent):
    name: str

    def into_component(self) -> Marker:
        return Marker(name=self.name)


class Score(BaseModel):
    points: int


class ScorePrefab(BaseModel, IntoComponent):
    points: int = 0

    def into_component(self) -> Score:
        return Score(points=self.points)


class Fixed(PrefabData):
    def __init__(self, fails: bool):
        self.fails = fails
        self.attempts = 0

    def load_sub_assets(self, world) -> bool:
        self.attempts += 1
        return self.fails


class PairBundle(PrefabBundle):
    marker: MarkerPrefab
    score: Optional[ScorePrefab] = None


class TestComposites:
    def test_none_never_fails_and_inserts_nothing(self):
        world = World()
        view = world.spawn_empty()
        assert load_data(None, world) is False
        insert_data(None, view)
        assert world.components(view.id()) == {}

    def test_sequence_reports_any_failure(self):
        world = World()
        items = [Fixed(False), Fixed(True), Fixed(False)]
        assert load_data(items, world) is True
        # Every item is attempted even after a failure.
        assert [i.attempts for i in items] == [1, 1, 1]

    def test_sequence_all_success(self):
        world = World()
        assert load_data((Fixed(False), Fixed(False), Fixed(False)), world) is False

    def test_nested_tuple_inserts_every_component(self):
        world = World()
        view = world.spawn_empty()
        insert_data((MarkerPrefab(name="a"), (ScorePrefab(points=3), None)), view)
        assert view.get(Marker).name == "a"
        assert view.get(Score).points == 3

    def test_non_prefab_data_is_rejected(self):
        world = World()
        with pytest.raises(TypeError):
            load_data(42, world)
        with pytest.raises(TypeError):
            insert_data("text", world.spawn_empty())


class TestPrefabBundle:
    def test_fields_are_inserted(self):
        world = World()
        view = world.spawn_empty()
        PairBundle(marker=MarkerPrefab(name="b"), score=ScorePrefab(points=7)).insert_into_entity(view)
        assert view.get(Marker).name == "b"
        assert view.get(Score).points == 7

    def test_missing_optional_field_is_skipped(self):
        world = World()
        view = world.spawn_empty()
        PairBundle(marker=MarkerPrefab(name="c")).insert_into_entity(view)
        assert view.contains(Marker)
        assert not view.contains(Score)

    def test_simple_data_never_fails(self):
        bundle = PairBundle(marker=MarkerPrefab(name="d"), score=ScorePrefab())
        assert bundle.load_sub_assets(World()) is False

    def test_validates_from_document(self):
        bundle = PairBundle.model_validate({"marker": {"name": "e"}, "score": {"points": 2}})
        assert bundle.marker.name == "e"
        assert bundle.score.points == 2
