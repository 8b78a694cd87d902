"""Flatten nested Stream records into dotted-path mappings."""

from typing import Any, Iterable, List, Sequence

from .models import FlatRecord, MappingNode, Node, SequenceNode, to_node, to_python

ARRAY_FIRST = "first"
ARRAY_INDEX = "index"


def _flatten_node(name: str, node: Node, array_policy: str) -> FlatRecord:
    flat: FlatRecord = {}

    if isinstance(node, MappingNode):
        for key, child in node.entries:
            # Later keys win on path collisions
            flat.update(_flatten_node(f"{name}.{key}", child, array_policy))
    elif isinstance(node, SequenceNode):
        if array_policy == ARRAY_INDEX:
            for index, child in enumerate(node.items):
                flat.update(_flatten_node(f"{name}.{index}", child, array_policy))
        else:
            # Only the first element is kept; the rest are dropped
            first = node.first()
            flat[name] = to_python(first) if first is not None else None
    else:
        flat[name] = node.value

    return flat


def flatten_field(name: str, value: Any, array_policy: str = ARRAY_FIRST) -> FlatRecord:
    """
    Convert any field to a flat mapping keyed by dotted paths.

    Args:
        name: Path of the field (top-level field name on first call)
        value: Any value; mappings recurse, sequences collapse, scalars pass through
        array_policy: "first" keeps element 0 under ``name``; "index" expands
            every element under ``name.<i>``

    Returns:
        Flat mapping of path -> value

    Example:
        >>> flatten_field("a", {"b": {"c": 1}})
        {'a.b.c': 1}
        >>> flatten_field("tags", ["x", "y"])
        {'tags': 'x'}
    """
    if array_policy not in (ARRAY_FIRST, ARRAY_INDEX):
        raise ValueError(f"Unknown array policy: {array_policy}")
    return _flatten_node(name, to_node(value), array_policy)


def flatten_record(record: Any, fields: Sequence[str], array_policy: str = ARRAY_FIRST) -> FlatRecord:
    """
    Flatten one record so every requested field is present.

    Every top-level field the record carries is flattened, not only the
    requested ones. Requested fields the record lacks are appended as None;
    a placeholder never replaces a value produced by a nested field.
    """
    node = to_node(record)
    if not isinstance(node, MappingNode):
        raise TypeError(f"Record must be a mapping, got {type(record).__name__}")
    if array_policy not in (ARRAY_FIRST, ARRAY_INDEX):
        raise ValueError(f"Unknown array policy: {array_policy}")

    flat: FlatRecord = {}
    for key, child in node.entries:
        flat.update(_flatten_node(key, child, array_policy))

    for field in fields:
        flat.setdefault(field, None)

    return flat


def flatten_records(
    records: Iterable[Any],
    fields: Sequence[str],
    array_policy: str = ARRAY_FIRST,
) -> List[FlatRecord]:
    return [flatten_record(record, fields, array_policy) for record in records or []]
