"""
UI Format — flattens a ``Ui`` description into a ``Prefab[UiData]``.

Flattening is pre-order: a node's payload is set on its own index, then each
child gets a freshly added index under it and is flattened before the next
sibling. A parent's index is therefore smaller than everything in its
subtree, and every subtree occupies a contiguous index range.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from prefab_kernel.prefab.commands import Commands, PrefabCommands
from prefab_kernel.prefab.loader import Format, PrefabFormatError, PrefabLoader, parse_document
from prefab_kernel.prefab.tree import Prefab
from prefab_kernel.ui.widgets import (
    UI_ADAPTER,
    ButtonUi,
    ContainerUi,
    CustomUi,
    ImageUi,
    TextUi,
    Ui,
    UiData,
)

logger = logging.getLogger(__name__)


class UiFormat(Format[UiData]):
    """
    Format for UI prefabs.

    ``custom_widget`` is the type ``custom`` nodes are validated into (a
    ``CustomWidget`` subclass or a discriminated union of them);
    ``custom_data`` is the type every ``custom_data`` field is validated
    into. Without them, documents using those features are rejected.
    """

    def __init__(
        self,
        custom_widget: Optional[Any] = None,
        custom_data: Optional[Any] = None,
        syntax: str = "yaml",
    ):
        self.syntax = syntax
        self._widget_adapter = TypeAdapter(custom_widget) if custom_widget is not None else None
        self._data_adapter = TypeAdapter(custom_data) if custom_data is not None else None

    def load_from_bytes(self, data: bytes) -> Prefab[UiData]:
        document = parse_document(data, self.syntax)
        try:
            widget = UI_ADAPTER.validate_python(document)
            prefab: Prefab[UiData] = Prefab()
            ui_tree(widget, 0, prefab, self)
        except ValidationError as e:
            raise PrefabFormatError(f"Invalid ui prefab: {e}") from e
        return prefab

    def expand(self, custom: CustomUi) -> Ui:
        """Turn a custom node into native ``Ui``."""
        if self._widget_adapter is None:
            raise PrefabFormatError("Custom widget found, but no custom widget type is configured")
        widget = self._widget_adapter.validate_python(custom.widget)
        logger.debug("Expanding custom widget %s", type(widget).__name__)
        return widget.into_native()

    def custom_data(self, raw: Optional[Any]) -> Optional[Any]:
        if raw is None:
            return None
        if self._data_adapter is None:
            raise PrefabFormatError("custom_data found, but no custom data type is configured")
        return self._data_adapter.validate_python(raw)


def ui_tree(widget: Ui, index: int, prefab: Prefab[UiData], fmt: UiFormat) -> None:
    """Flatten ``widget`` into ``prefab`` at ``index``, which must already exist."""
    entity = prefab.get_entity_mut(index)
    if entity is None:
        raise IndexError(f"Prefab has no entity at index {index}")

    if isinstance(widget, CustomUi):
        ui_tree(fmt.expand(widget), index, prefab, fmt)
    elif isinstance(widget, TextUi):
        entity.set_data(UiData(
            text=widget.text_data,
            custom_data=fmt.custom_data(widget.custom_data),
        ))
    elif isinstance(widget, ImageUi):
        entity.set_data(UiData(
            image=widget.image_data,
            custom_data=fmt.custom_data(widget.custom_data),
        ))
    elif isinstance(widget, ButtonUi):
        entity.set_data(UiData(
            button=widget.button,
            callback=widget.callback,
            custom_data=fmt.custom_data(widget.custom_data),
        ))
        if widget.label is not None:
            prefab.add(index, UiData(text=widget.label))
    elif isinstance(widget, ContainerUi):
        entity.set_data(UiData(
            node=widget.node,
            custom_data=fmt.custom_data(widget.custom_data),
        ))
        for child in widget.children:
            child_index = prefab.add(index, None)
            ui_tree(child, child_index, prefab, fmt)
    else:
        raise TypeError(f"Unknown ui widget: {type(widget).__name__}")


def load_ui(
    commands: Commands,
    path: Union[str, Path],
    custom_widget: Optional[Any] = None,
    custom_data: Optional[Any] = None,
) -> PrefabCommands[UiData]:
    """Load a UI prefab file into prefab commands."""
    fmt = UiFormat(custom_widget, custom_data, syntax=PrefabLoader.syntax_for(path))
    return commands.load_prefab(path, fmt)
