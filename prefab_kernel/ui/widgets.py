"""
UI widget descriptions.

``Ui`` is the format-native recursive description of a UI prefab, tagged by
``kind``. ``custom`` nodes hold a still-unparsed widget that a
``CustomWidget`` type turns into one of the native kinds right before the
node is flattened.
"""

from typing import TYPE_CHECKING, Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from prefab_kernel.components.ui import (
    ButtonBundlePrefab,
    ImageBundlePrefab,
    NodeBundlePrefab,
    TextBundlePrefab,
)
from prefab_kernel.prefab.data import PrefabBundle, PrefabData, insert_data, load_data
from prefab_kernel.ui.callbacks import CallbackPrefab

if TYPE_CHECKING:
    from prefab_kernel.world_model.store import EntityWorldMut, World


class ContainerUi(BaseModel):
    """A box, used for layout and as the root."""

    kind: Literal["container"] = "container"
    node: NodeBundlePrefab = Field(default_factory=NodeBundlePrefab)
    children: List["Ui"] = []
    custom_data: Optional[Any] = None


class TextUi(BaseModel):
    kind: Literal["text"] = "text"
    text_data: TextBundlePrefab
    custom_data: Optional[Any] = None


class ImageUi(BaseModel):
    kind: Literal["image"] = "image"
    image_data: ImageBundlePrefab
    custom_data: Optional[Any] = None


class ButtonUi(BaseModel):
    """A button; its label becomes a separate child text node."""

    kind: Literal["button"] = "button"
    button: ButtonBundlePrefab = Field(default_factory=ButtonBundlePrefab)
    label: Optional[TextBundlePrefab] = None
    callback: Optional[CallbackPrefab] = None
    custom_data: Optional[Any] = None


class CustomUi(BaseModel):
    kind: Literal["custom"] = "custom"
    widget: Any


Ui = Annotated[
    Union[ContainerUi, TextUi, ImageUi, ButtonUi, CustomUi],
    Field(discriminator="kind"),
]

ContainerUi.model_rebuild()

UI_ADAPTER: TypeAdapter = TypeAdapter(Ui)


class UiData(PrefabBundle):
    """
    Payload of one flattened UI node.

    ``custom_data`` that is prefab data (or a sequence of it) is resolved and
    applied like the other fields; any other value is inserted as-is.
    """

    node: Optional[NodeBundlePrefab] = None
    text: Optional[TextBundlePrefab] = None
    image: Optional[ImageBundlePrefab] = None
    button: Optional[ButtonBundlePrefab] = None
    callback: Optional[CallbackPrefab] = None
    custom_data: Optional[Any] = None

    def insert_into_entity(self, entity: "EntityWorldMut") -> None:
        for name in ("node", "text", "image", "button", "callback"):
            insert_data(getattr(self, name), entity)
        if _is_prefab_data(self.custom_data):
            insert_data(self.custom_data, entity)
        elif self.custom_data is not None:
            entity.insert(self.custom_data)

    def load_sub_assets(self, world: "World") -> bool:
        failed = False
        for name in ("node", "text", "image", "button", "callback"):
            failed |= load_data(getattr(self, name), world)
        if _is_prefab_data(self.custom_data):
            failed |= load_data(self.custom_data, world)
        return failed


def _is_prefab_data(value: Any) -> bool:
    """Prefab data, or a non-empty sequence made only of prefab data."""
    if isinstance(value, (tuple, list)):
        return bool(value) and all(v is None or _is_prefab_data(v) for v in value)
    return isinstance(value, PrefabData)


class CustomWidget(BaseModel):
    """A widget that expands into native ``Ui``."""

    def into_native(self) -> Ui:
        raise NotImplementedError


def number_ui(ui: Ui, number: int) -> Ui:
    """
    Append ``" <number>"`` to the first section of every text and button
    label in ``ui``, in place.

    ``custom`` nodes are left untouched: they are still unexpanded here, and
    whatever they expand into carries its own numbering.
    """
    if isinstance(ui, TextUi):
        _number_text(ui.text_data, number)
    elif isinstance(ui, ButtonUi) and ui.label is not None:
        _number_text(ui.label, number)
    elif isinstance(ui, ContainerUi):
        for child in ui.children:
            number_ui(child, number)
    return ui


def _number_text(text_data: TextBundlePrefab, number: int) -> None:
    if text_data.text.sections:
        text_data.text.sections[0].text += f" {number}"


class RepeatWidget(CustomWidget):
    """
    Repeats ``ui_to_repeat`` ``times`` times inside a container.

    Copies are numbered from ``start``: a template text ``"Item"`` repeated
    three times gives ``"Item 1"``, ``"Item 2"``, ``"Item 3"``. Texts inside a
    nested ``custom`` template are not numbered by this widget.
    """

    kind: Literal["repeat"] = "repeat"
    node: NodeBundlePrefab = Field(default_factory=NodeBundlePrefab)
    custom_data: Optional[Any] = None
    ui_to_repeat: Ui
    times: int = Field(ge=0)
    start: int = 1

    def into_native(self) -> Ui:
        children = [
            number_ui(self.ui_to_repeat.model_copy(deep=True), i)
            for i in range(self.start, self.start + self.times)
        ]
        return ContainerUi(
            node=self.node.model_copy(deep=True),
            children=children,
            custom_data=self.custom_data,
        )
