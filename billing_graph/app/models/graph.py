from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

from neo4j import Record
from neo4j.graph import Node, Relationship


@dataclass(frozen=True)
class NodeRef:
    """Endpoint of a relationship. Any part may be missing."""
    element_id: Optional[str] = None
    labels: FrozenSet[str] = frozenset()
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def business_id(self) -> Optional[Any]:
        return self.properties.get("id")


@dataclass
class NodeValue:
    labels: FrozenSet[str]
    properties: Dict[str, Any]
    element_id: Optional[str] = None

    @property
    def business_id(self) -> Optional[Any]:
        return self.properties.get("id")


@dataclass
class RelationshipValue:
    type: str
    properties: Dict[str, Any]
    element_id: Optional[str] = None
    # legacy integer identity, used only when no element id is available
    identity: Optional[int] = None
    start_node: Optional[NodeRef] = None
    end_node: Optional[NodeRef] = None

    @property
    def key(self) -> Optional[str]:
        if self.element_id:
            return self.element_id
        if self.identity is not None:
            return str(self.identity)
        return None


# -------------------------------------------------------------------------
# Conversion from driver and JSON values
# -------------------------------------------------------------------------

def _node_ref(node: Optional[Node]) -> Optional[NodeRef]:
    if node is None:
        return None
    return NodeRef(element_id=node.element_id, labels=frozenset(node.labels), properties=dict(node.items()))


def from_driver_value(value: Any) -> Any:
    """Converts neo4j driver graph objects (also inside lists and maps) into engine values."""
    if isinstance(value, Node):
        return NodeValue(labels=frozenset(value.labels), properties=dict(value.items()), element_id=value.element_id)
    if isinstance(value, Relationship):
        return RelationshipValue(
            type=value.type,
            properties=dict(value.items()),
            element_id=value.element_id,
            start_node=_node_ref(value.start_node),
            end_node=_node_ref(value.end_node),
        )
    if isinstance(value, list):
        return [from_driver_value(v) for v in value]
    if isinstance(value, dict):
        return {k: from_driver_value(v) for k, v in value.items()}
    return value


def _json_ref(raw: Any) -> Optional[NodeRef]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return NodeRef(element_id=raw)
    return NodeRef(
        element_id=raw.get("elementId"),
        labels=frozenset(raw.get("labels") or []),
        properties=dict(raw.get("properties") or {}),
    )


def from_json_value(value: Any) -> Any:
    """
    Converts the JSON row shape used by fixtures and the CLI:
      node:         {"labels": [...], "properties": {...}, "elementId"?: "..."}
      relationship: {"type": "...", "properties": {...}, "elementId"?, "identity"?, "startNode"?, "endNode"?}
    Anything else is kept as-is.
    """
    if isinstance(value, dict):
        if "labels" in value and "properties" in value:
            return NodeValue(
                labels=frozenset(value.get("labels") or []),
                properties=dict(value.get("properties") or {}),
                element_id=value.get("elementId"),
            )
        if "type" in value and "properties" in value:
            return RelationshipValue(
                type=value["type"],
                properties=dict(value.get("properties") or {}),
                element_id=value.get("elementId"),
                identity=value.get("identity"),
                start_node=_json_ref(value.get("startNode")),
                end_node=_json_ref(value.get("endNode")),
            )
        return value
    if isinstance(value, list):
        return [from_json_value(v) for v in value]
    return value


# -------------------------------------------------------------------------
# Result rows
# -------------------------------------------------------------------------

class ResultRow(Mapping[str, Any]):
    """
    One query result record: ordered columns -> engine values.
    Missing columns read as None.
    """

    __slots__ = ("_columns", "_values")

    def __init__(self, items: Iterable[Tuple[str, Any]]):
        self._values: Dict[str, Any] = {}
        for column, value in items:
            self._values[column] = value
        self._columns: Tuple[str, ...] = tuple(self._values)

    @classmethod
    def from_record(cls, record: Record) -> "ResultRow":
        return cls((k, from_driver_value(v)) for k, v in record.items())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResultRow":
        return cls((k, from_driver_value(v)) for k, v in data.items())

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ResultRow":
        return cls((k, from_json_value(v)) for k, v in data.items())

    def keys(self) -> Tuple[str, ...]:  # type: ignore[override]
        return self._columns

    def get(self, column: str, default: Any = None) -> Any:
        return self._values.get(column, default)

    def __getitem__(self, column: str) -> Any:
        return self._values[column]

    def __contains__(self, column: object) -> bool:
        return column in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"ResultRow({list(self._columns)!r})"


def to_row(item: Any) -> ResultRow:
    if isinstance(item, ResultRow):
        return item
    if isinstance(item, Record):
        return ResultRow.from_record(item)
    if isinstance(item, Mapping):
        return ResultRow.from_mapping(item)
    raise TypeError(f"unsupported result row type: {type(item).__name__}")


def to_rows(items: Iterable[Any]) -> List[ResultRow]:
    return [to_row(item) for item in items]
