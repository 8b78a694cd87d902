"""Record shapes used by the flattening pipeline.

Records arrive from the store as plain dicts/lists/scalars. They are
converted once into a small tagged union so that flattening can dispatch on
the node type instead of probing arbitrary values.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Dict, Optional, Tuple, Union

FlatRecord = Dict[str, Any]


@dataclass(frozen=True)
class ScalarNode:
    value: Any


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["Node", ...]

    def first(self) -> Optional["Node"]:
        return self.items[0] if self.items else None


@dataclass(frozen=True)
class MappingNode:
    entries: Tuple[Tuple[str, "Node"], ...]

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.entries)


Node = Union[ScalarNode, SequenceNode, MappingNode]
NODE_TYPES = (ScalarNode, SequenceNode, MappingNode)


def to_node(value: Any) -> Node:
    """Convert a raw record value into a Node, preserving key order."""
    if isinstance(value, NODE_TYPES):
        return value
    if isinstance(value, SimpleNamespace):
        value = vars(value)
    if isinstance(value, Mapping):
        return MappingNode(tuple((str(key), to_node(sub)) for key, sub in value.items()))
    if isinstance(value, (list, tuple)):
        return SequenceNode(tuple(to_node(item) for item in value))
    return ScalarNode(value)


def to_python(node: Node) -> Any:
    """Inverse of to_node: rebuild plain dicts/lists/scalars."""
    if isinstance(node, MappingNode):
        return {key: to_python(child) for key, child in node.entries}
    if isinstance(node, SequenceNode):
        return [to_python(item) for item in node.items]
    return node.value
