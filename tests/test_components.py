"""Tests for asset handles, the asset server and component prefabs."""

import logging

import pytest
from pydantic import ValidationError

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.components.general import (
    BackgroundColor,
    ColorPrefab,
    HandlePrefab,
    Transform,
    TransformPrefab,
    Visibility,
    VisibilityPrefab,
)
from prefab_kernel.components.sprite import Anchor, Sprite, SpriteBundlePrefab, SpriteTexture
from prefab_kernel.components.ui import (
    Button,
    ButtonBundlePrefab,
    ImageBundlePrefab,
    Node,
    Style,
    StylePrefab,
    Text,
    TextBundlePrefab,
    UiImage,
)
from prefab_kernel.models.assets import AssetKind, Handle, LoadState
from prefab_kernel.world_model.store import World


def _make_world() -> World:
    world = World()
    world.insert_resource(AssetServer())
    return world


def _make_text(font="fonts/main.ttf") -> TextBundlePrefab:
    return TextBundlePrefab.model_validate({
        "text": {
            "sections": [{"text": "Hello", "style": {"font": font, "font_size": 20}}],
        },
    })


class TestAssetServer:
    def test_same_path_returns_same_handle(self):
        server = AssetServer()
        first = server.load("a.png", AssetKind.IMAGE)
        second = server.load("a.png", AssetKind.IMAGE)
        other = server.load("b.png", AssetKind.IMAGE)
        assert first == second
        assert first.id != other.id
        assert server.handles() == [first, other]

    def test_load_states(self):
        server = AssetServer()
        handle = server.load("a.png")
        assert server.load_state(handle) == LoadState.LOADING
        server.mark_loaded(handle)
        assert server.load_state(handle) == LoadState.LOADED
        server.mark_failed(handle)
        assert server.load_state(handle) == LoadState.FAILED
        assert server.load_state(Handle(id=99)) == LoadState.NOT_LOADED
        assert server.load_state(Handle.default()) == LoadState.LOADED

    def test_resolve_path(self):
        server = AssetServer("assets")
        handle = server.load("fonts/a.ttf")
        assert server.resolve_path(handle).as_posix() == "assets/fonts/a.ttf"
        assert server.resolve_path(Handle.default()) is None


class TestHandlePrefab:
    def test_from_document(self):
        assert HandlePrefab.model_validate("a.png").file == "a.png"
        assert HandlePrefab.model_validate(None).file is None

    def test_pending_reference_resolves_once(self, caplog):
        server = AssetServer()
        handle = HandlePrefab(file="a.png")
        assert handle.into_handle() is None

        assert handle.load(server, AssetKind.IMAGE) is False
        assert handle.is_loaded
        assert handle.into_handle().path == "a.png"

        with caplog.at_level(logging.WARNING, logger="prefab_kernel"):
            assert handle.load(server, AssetKind.IMAGE) is True
        assert "already loaded" in caplog.text

    def test_no_file_resolves_to_default(self):
        handle = HandlePrefab()
        assert handle.load(AssetServer(), AssetKind.FONT) is False
        assert handle.loaded.is_default
        assert handle.loaded.kind == AssetKind.FONT

    def test_resolved_handle_is_not_serialized(self):
        handle = HandlePrefab(file="a.png")
        handle.load(AssetServer())
        assert handle.model_dump() == {"file": "a.png"}


class TestSimplePrefabs:
    def test_color_forms(self):
        assert ColorPrefab.model_validate([1, 0, 0, 1]).into_color().r == 1.0
        assert ColorPrefab.model_validate({"rgba": [0, 1, 0, 0.5]}).into_color().a == 0.5
        red = ColorPrefab.model_validate({"hsla": [0, 1.0, 0.5, 1.0]}).into_color()
        assert red.r == pytest.approx(1.0)
        assert red.g == pytest.approx(0.0)
        assert ColorPrefab.transparent().into_color().a == 0.0

    def test_transform_shorthands(self):
        assert TransformPrefab.model_validate({"xyz": [1, 2, 3]}).translation == (1, 2, 3)
        assert TransformPrefab.model_validate({"quat": [0, 0, 1, 0]}).rotation == (0, 0, 1, 0)
        assert isinstance(TransformPrefab().into_component(), Transform)

    def test_style_rejects_bad_length(self):
        assert StylePrefab(width="50%").into_component().width == "50%"
        with pytest.raises(ValidationError):
            StylePrefab(width="wide")


class TestTextBundle:
    def test_resolve_then_insert(self):
        world = _make_world()
        bundle = _make_text()
        assert bundle.load_sub_assets(world) is False

        view = world.spawn_empty()
        bundle.insert_into_entity(view)
        text = view.get(Text)
        assert text.sections[0].value == "Hello"
        assert text.sections[0].style.font.path == "fonts/main.ttf"
        assert text.sections[0].style.font_size == 20
        assert view.contains(Node)
        assert view.contains(Style)

    def test_second_resolution_fails(self):
        world = _make_world()
        bundle = _make_text()
        assert bundle.load_sub_assets(world) is False
        assert bundle.load_sub_assets(world) is True

    def test_missing_asset_server_fails(self, caplog):
        bundle = _make_text()
        with caplog.at_level(logging.ERROR, logger="prefab_kernel"):
            assert bundle.load_sub_assets(World()) is True
        assert "AssetServer doesn't exist" in caplog.text

    def test_default_font_is_used_for_sections(self):
        world = _make_world()
        bundle = TextBundlePrefab.model_validate({
            "text": {"sections": [{"text": "A"}, {"text": "B"}], "default_font": "fonts/d.ttf"},
        })
        assert bundle.load_sub_assets(world) is False
        view = world.spawn_empty()
        bundle.insert_into_entity(view)
        fonts = [s.style.font.path for s in view.get(Text).sections]
        assert fonts == ["fonts/d.ttf", "fonts/d.ttf"]

    def test_unresolved_sections_are_dropped(self, caplog):
        world = _make_world()
        view = world.spawn_empty()
        with caplog.at_level(logging.WARNING, logger="prefab_kernel"):
            _make_text().insert_into_entity(view)
        assert view.get(Text).sections == []
        assert "not yet loaded" in caplog.text


class TestImageAndButton:
    def test_image_bundle_needs_resolved_texture(self):
        world = _make_world()
        bundle = ImageBundlePrefab.model_validate({"image": {"texture": "img/a.png"}})
        view = world.spawn_empty()
        bundle.insert_into_entity(view)
        assert world.components(view.id()) == {}

        assert bundle.load_sub_assets(world) is False
        view = world.spawn_empty()
        bundle.insert_into_entity(view)
        assert view.get(UiImage).texture.path == "img/a.png"
        assert view.get(UiImage).texture.kind == AssetKind.IMAGE

    def test_button_without_image(self):
        world = _make_world()
        bundle = ButtonBundlePrefab()
        assert bundle.load_sub_assets(world) is False
        view = world.spawn_empty()
        bundle.insert_into_entity(view)
        assert view.contains(Button)
        assert view.get(UiImage).texture.is_default
        assert view.get(BackgroundColor).color.a == 1.0
        assert view.get(Visibility).value == VisibilityPrefab.INHERITED


class TestSpriteBundle:
    def test_resolve_then_insert(self):
        world = _make_world()
        bundle = SpriteBundlePrefab.model_validate({
            "texture": "img/hero.png",
            "sprite": {"anchor": "top_left", "custom_size": [16, 16]},
            "transform": {"xyz": [1, 2, 0]},
        })
        assert bundle.load_sub_assets(world) is False
        view = world.spawn_empty()
        bundle.insert_into_entity(view)

        assert view.get(SpriteTexture).handle.path == "img/hero.png"
        assert view.get(Sprite).anchor == Anchor.TOP_LEFT
        assert view.get(Transform).translation == (1, 2, 0)

    def test_unresolved_inserts_nothing(self):
        world = _make_world()
        view = world.spawn_empty()
        SpriteBundlePrefab(texture="img/hero.png").insert_into_entity(view)
        assert world.components(view.id()) == {}

    def test_missing_asset_server_fails(self):
        assert SpriteBundlePrefab(texture="img/hero.png").load_sub_assets(World()) is True
