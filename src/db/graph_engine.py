from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from src.config import Settings
from src.models.schema_descriptor import Cardinality, ElementKind, ScalarType
from src.utils.errors import SchemaViolation


class SchemaManagement(ABC):
    """Administrative handle: schema definitions stage until ``commit`` applies them together."""

    @abstractmethod
    def make_vertex_label(self, name: str) -> None: ...

    @abstractmethod
    def make_edge_label(self, name: str) -> None:
        """Edge labels are always multi-edge: parallel edges between two vertices are allowed."""

    @abstractmethod
    def make_property_key(self, name: str, data_type: ScalarType, cardinality: Cardinality) -> None: ...

    @abstractmethod
    def build_composite_index(
        self,
        name: str,
        element_kind: ElementKind,
        keys: Sequence[str],
        index_only: Optional[str] = None,
        unique: bool = False,
    ) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...


class GraphTransaction(ABC):
    """Write transaction. Leaving the ``with`` block without ``commit`` rolls back."""

    def __init__(self) -> None:
        self.closed = False

    @abstractmethod
    def add_vertex(self, label: str, properties: Mapping[str, Any]) -> str: ...

    @abstractmethod
    def add_edge(self, label: str, out_id: str, in_id: str, properties: Mapping[str, Any]) -> str: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...

    def commit(self) -> None:
        if self.closed:
            raise RuntimeError("transaction already closed")
        self._commit()
        self.closed = True

    def rollback(self) -> None:
        if not self.closed:
            self.closed = True
            self._rollback()

    def __enter__(self) -> "GraphTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()


class GraphEngine(ABC):
    @abstractmethod
    def open_management(self) -> SchemaManagement: ...

    @abstractmethod
    def new_transaction(self) -> GraphTransaction: ...

    @abstractmethod
    def count_vertices(self) -> int: ...

    @abstractmethod
    def count_edges(self) -> int: ...

    @abstractmethod
    def close(self) -> None: ...

    def __enter__(self) -> "GraphEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True)
class IndexSpec:
    name: str
    element_kind: ElementKind
    keys: Tuple[str, ...]
    index_only: Optional[str] = None
    unique: bool = False

    def covers(self, element_kind: ElementKind, label: str) -> bool:
        if element_kind is not self.element_kind:
            return False
        return self.index_only is None or self.index_only == label


def infer_key(key: str, value: Any) -> Tuple[ScalarType, Cardinality]:
    """Key definition for an undeclared property, inferred from its first value."""
    cardinality = Cardinality.SINGLE
    sample = value
    if isinstance(value, (list, tuple)):
        cardinality = Cardinality.LIST
    elif isinstance(value, (set, frozenset)):
        cardinality = Cardinality.SET
    if cardinality is not Cardinality.SINGLE:
        if not value:
            raise SchemaViolation(f"Cannot infer a type for {key!r} from an empty collection")
        sample = next(iter(value))

    for data_type in (ScalarType.TEXT, ScalarType.INT32, ScalarType.FLOAT64):
        if data_type.accepts(sample):
            return data_type, cardinality
    raise SchemaViolation(f"Cannot infer a type for {key!r} from {type(sample).__name__} {sample!r}")


@dataclass
class SchemaRegistry:
    """Committed schema as seen by write transactions."""

    vertex_labels: Set[str] = field(default_factory=set)
    edge_labels: Set[str] = field(default_factory=set)
    property_keys: Dict[str, Tuple[ScalarType, Cardinality]] = field(default_factory=dict)
    indexes: Dict[str, IndexSpec] = field(default_factory=dict)

    def check_label(self, label: str, element_kind: ElementKind) -> None:
        known = self.vertex_labels if element_kind is ElementKind.VERTEX else self.edge_labels
        if label not in known:
            raise SchemaViolation(f"Undeclared {element_kind.value} label {label!r}")

    def check_properties(self, properties: Mapping[str, Any]) -> None:
        """
        Type-check values against declared keys.

        An undeclared key is created on first write with a type inferred
        from the value; later writes are checked against that type.
        """
        for key, value in properties.items():
            if key not in self.property_keys:
                self.property_keys[key] = infer_key(key, value)
            data_type, cardinality = self.property_keys[key]
            if cardinality is not Cardinality.SINGLE and isinstance(value, (list, tuple, set, frozenset)):
                values = list(value)
            else:
                values = [value]
            for v in values:
                if not data_type.accepts(v):
                    raise SchemaViolation(
                        f"Property {key!r} expects {data_type.value}, got {type(v).__name__} {v!r}"
                    )

    def unique_indexes(self, element_kind: ElementKind, label: str) -> List[IndexSpec]:
        return [i for i in self.indexes.values() if i.unique and i.covers(element_kind, label)]


def open_graph(settings: Settings) -> GraphEngine:
    """Open the configured backend; in-memory and Neo4j are interchangeable."""
    if settings.backend == "neo4j":
        from src.db.neo4j_conn import Neo4jGraph

        return Neo4jGraph.open(settings)

    from src.db.inmemory_graph import InMemoryGraph

    return InMemoryGraph()
