"""Tests for button callback registration and resolution."""

import logging

import pytest
from pydantic import ValidationError

from prefab_kernel.ui.callbacks import (
    ButtonCallback,
    CallbackPrefab,
    PressedButtonEvent,
    UiButtonCallbacks,
)
from prefab_kernel.world_model.store import World


def _quit():
    return "quit"


def _make_world(**callbacks) -> World:
    world = World()
    world.insert_resource(UiButtonCallbacks(callbacks))
    return world


class TestRegistry:
    def test_push_returns_replaced_callback(self):
        registry = UiButtonCallbacks()
        assert registry.push_callback("quit", _quit) is None
        assert registry.push_callback("quit", print) is _quit
        assert registry.get_system("quit") is print
        assert registry.remove_callback("quit") is print
        assert registry.get_system("quit") is None


class TestCallbackPrefab:
    def test_needs_exactly_one_target(self):
        with pytest.raises(ValidationError):
            CallbackPrefab()
        with pytest.raises(ValidationError):
            CallbackPrefab(system="a", event="b")

    def test_system_resolves_and_inserts(self):
        world = _make_world(quit=_quit)
        callback = CallbackPrefab(system="quit")
        assert callback.load_sub_assets(world) is False

        view = world.spawn_empty()
        callback.insert_into_entity(view)
        assert view.get(ButtonCallback).system() == "quit"

    def test_second_resolution_fails(self, caplog):
        world = _make_world(quit=_quit)
        callback = CallbackPrefab(system="quit")
        callback.load_sub_assets(world)
        with caplog.at_level(logging.WARNING, logger="prefab_kernel"):
            assert callback.load_sub_assets(world) is True
        assert "already loaded" in caplog.text

    def test_unknown_name_fails(self):
        world = _make_world(quit=_quit)
        assert CallbackPrefab(system="open").load_sub_assets(world) is True

    def test_missing_registry_fails(self, caplog):
        with caplog.at_level(logging.ERROR, logger="prefab_kernel"):
            assert CallbackPrefab(system="quit").load_sub_assets(World()) is True
        assert "UiButtonCallbacks" in caplog.text

    def test_unresolved_system_inserts_nothing(self):
        world = _make_world(quit=_quit)
        view = world.spawn_empty()
        CallbackPrefab(system="quit").insert_into_entity(view)
        assert not view.contains(ButtonCallback)

    def test_event_needs_no_resolution(self):
        world = World()
        callback = CallbackPrefab(event="start")
        assert callback.load_sub_assets(world) is False

        view = world.spawn_empty()
        callback.insert_into_entity(view)
        event = view.get(ButtonCallback).event
        assert isinstance(event, PressedButtonEvent)
        assert event.is_name("start")
        assert event.is_entity(view.id())
