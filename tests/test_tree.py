"""Tests for the indexed prefab tree."""

from pydantic import BaseModel

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.components.sprite import SpriteBundlePrefab
from prefab_kernel.prefab.data import IntoComponent, PrefabData
from prefab_kernel.prefab.tree import Prefab, PrefabEntityBuilder
from prefab_kernel.world_model.store import World


class Value(BaseModel):
    value: int


class ValuePrefab(BaseModel, IntoComponent):
    value: int

    def into_component(self) -> Value:
        return Value(value=self.value)


class Fixed(PrefabData):
    """Payload whose resolution result is fixed up front."""

    def __init__(self, fails: bool):
        self.fails = fails
        self.attempts = 0

    def load_sub_assets(self, world) -> bool:
        self.attempts += 1
        return self.fails


def _make_chain(length: int) -> Prefab:
    prefab = Prefab.from_data(ValuePrefab(value=0))
    parent = 0
    for i in range(1, length):
        parent = prefab.add(parent, ValuePrefab(value=i))
    return prefab


class TestConstruction:
    def test_new_has_single_empty_root(self):
        prefab = Prefab()
        assert len(prefab) == 1
        root = prefab.get_entity(0)
        assert root.parent is None
        assert root.get_data() is None

    def test_from_data_sets_root_payload(self):
        prefab = Prefab.from_data(ValuePrefab(value=7))
        assert len(prefab) == 1
        assert prefab.get_entity(0).get_data().value == 7

    def test_add_returns_dense_indices(self):
        prefab = Prefab()
        assert prefab.add(0, None) == 1
        assert prefab.add(0, None) == 2
        assert prefab.add(1, None) == 3
        assert len(prefab) == 4

    def test_out_of_range_access_is_absent(self):
        prefab = Prefab()
        assert prefab.get_entity(1) is None
        assert prefab.get_entity(-1) is None
        assert prefab.get_entity_mut(5) is None

    def test_parent_always_smaller_when_built_by_add(self):
        prefab = Prefab()
        a = prefab.add(0, None)
        b = prefab.add(a, None)
        prefab.add(b, None)
        prefab.add(0, None)
        prefab.add(a, None)
        for index, node in enumerate(prefab):
            if index == 0:
                continue
            assert node.parent < index

    def test_clone_is_deep(self):
        prefab = _make_chain(2)
        copy = prefab.clone()
        copy.get_entity(1).get_data().value = 99
        assert prefab.get_entity(1).get_data().value == 1
        assert copy.id != prefab.id


class TestBuilder:
    def test_take_data_moves_payload(self):
        node = PrefabEntityBuilder(None, ValuePrefab(value=1))
        taken = node.take_data()
        assert taken.value == 1
        assert node.get_data() is None
        assert node.take_data() is None

    def test_get_data_or_insert_with(self):
        node = PrefabEntityBuilder()
        data = node.get_data_or_insert_with(lambda: ValuePrefab(value=3))
        assert data.value == 3
        again = node.get_data_or_insert_with(lambda: ValuePrefab(value=4))
        assert again.value == 3


class TestChildrenMap:
    def test_every_index_has_an_entry(self):
        prefab = Prefab()
        prefab.add(0, None)
        prefab.add(None, None)  # orphan
        prefab.add(1, None)
        children = prefab.all_parents_childs()
        assert set(children) == {0, 1, 2, 3}
        assert children[0] == [1]
        assert children[1] == [3]
        assert children[2] == []
        assert children[3] == []

    def test_sibling_order_is_preserved(self):
        prefab = Prefab()
        first = prefab.add(0, None)
        prefab.add(first, None)
        second = prefab.add(0, None)
        third = prefab.add(0, None)
        assert prefab.all_parents_childs()[0] == [first, second, third]

    def test_reachable_plus_orphans_cover_all_indices(self):
        prefab = Prefab()
        a = prefab.add(0, None)
        prefab.add(None, None)
        prefab.add(a, None)
        orphan_parent = prefab.add(None, None)
        prefab.add(orphan_parent, None)

        reachable = prefab.reachable()
        orphans = prefab.orphans()
        children = prefab.all_parents_childs()
        from_map = {0} | {c for kids in children.values() for c in kids}

        assert reachable == [0, 1, 3]
        assert orphans == [2, 4, 5]
        assert set(reachable) | set(orphans) == set(range(len(prefab)))
        # Children of an orphan appear in the map but are still unreachable.
        assert 5 in from_map
        assert 5 not in reachable


class TestPrepareEntities:
    def test_all_success_reports_no_failure(self):
        prefab = Prefab.from_data(Fixed(False))
        prefab.add(0, Fixed(False))
        prefab.add(0, None)
        assert prefab.prepare_entities(World()) is False

    def test_any_failure_reports_failure_and_visits_every_node(self):
        payloads = [Fixed(False), Fixed(True), Fixed(False)]
        prefab = Prefab.from_data(payloads[0])
        prefab.add(0, payloads[1])
        prefab.add(0, payloads[2])

        assert prefab.prepare_entities(World()) is True
        assert [p.attempts for p in payloads] == [1, 1, 1]

    def test_empty_nodes_never_fail(self):
        prefab = Prefab()
        prefab.add(0, None)
        assert prefab.prepare_entities(World()) is False

    def test_second_pass_fails_for_every_reference(self):
        world = World()
        world.insert_resource(AssetServer())
        prefab = Prefab.from_data(SpriteBundlePrefab(texture="img/a.png"))
        plain = prefab.add(0, ValuePrefab(value=1))
        sprite = prefab.add(plain, SpriteBundlePrefab(texture="img/b.png"))

        assert prefab.prepare_entities(world) is False
        assert prefab.prepare_entities(world) is True
        assert prefab.get_entity(0).prepare_data(world) is True
        assert prefab.get_entity(sprite).prepare_data(world) is True
        assert prefab.get_entity(plain).prepare_data(world) is False
