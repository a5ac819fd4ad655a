"""
Prefab Loader — bytes → format-native description → Prefab.

A ``Format`` turns raw bytes into a fully flattened ``Prefab`` or raises
``PrefabFormatError``. No partial prefab ever escapes a failed load.

Supports JSON and YAML documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from prefab_kernel.prefab.tree import Prefab

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYNTAXES = ("json", "yaml")


class PrefabFormatError(Exception):
    """Raised when prefab bytes cannot be turned into a prefab."""
    pass


def parse_document(data: bytes, syntax: str = "yaml") -> Any:
    """Decode a JSON or YAML document."""
    try:
        if syntax == "json":
            return json.loads(data)
        if syntax == "yaml":
            return yaml.safe_load(data)
    except (ValueError, yaml.YAMLError) as e:
        raise PrefabFormatError(f"Invalid {syntax} document: {e}") from e
    raise PrefabFormatError(f"Unsupported syntax: {syntax}")


class Format(Generic[T]):
    """Deserializes prefab bytes."""

    def load_from_bytes(self, data: bytes) -> Prefab[T]:
        raise NotImplementedError


class ValueNode(BaseModel):
    """Generic recursive description: a value and its children."""

    value: Optional[Any] = None
    children: List["ValueNode"] = []


ValueNode.model_rebuild()


class ValueFormat(Format[T]):
    """
    Format for trees of one payload model.

    Document shape::

        value: {...}
        children:
          - value: {...}
          - value: {...}
            children: [...]
    """

    def __init__(self, data_type: Type[T], syntax: str = "yaml"):
        self.data_type = data_type
        self.syntax = syntax

    def load_from_bytes(self, data: bytes) -> Prefab[T]:
        document = parse_document(data, self.syntax)
        try:
            root = ValueNode.model_validate(document)
            prefab: Prefab[T] = Prefab()
            self._value_tree(root, 0, prefab)
        except ValidationError as e:
            raise PrefabFormatError(f"Invalid prefab: {e}") from e
        return prefab

    def _value_tree(self, node: ValueNode, index: int, prefab: Prefab[T]) -> None:
        if node.value is not None:
            value = self.data_type.model_validate(node.value)
            prefab.get_entity_mut(index).set_data(value)
        for child in node.children:
            child_index = prefab.add(index, None)
            self._value_tree(child, child_index, prefab)


class PrefabLoader:
    """Reads prefab files and runs them through a format."""

    SUFFIXES: Dict[str, str] = {
        ".json": "json",
        ".yaml": "yaml",
        ".yml": "yaml",
    }

    @classmethod
    def syntax_for(cls, path: Union[str, Path]) -> str:
        """Syntax implied by a file suffix; YAML when unknown."""
        return cls.SUFFIXES.get(Path(path).suffix.lower(), "yaml")

    @staticmethod
    def load_prefab(path: Union[str, Path]) -> bytes:
        """Read the raw bytes of a prefab file."""
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise PrefabFormatError(f"Cannot read prefab {path}: {e}") from e

    @classmethod
    def create_prefab(cls, path: Union[str, Path], fmt: Format[T]) -> Prefab[T]:
        """Load and flatten a prefab file."""
        prefab = fmt.load_from_bytes(cls.load_prefab(path))
        logger.info("Loaded prefab %s with %d nodes", Path(path).name, len(prefab))
        return prefab
