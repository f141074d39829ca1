from __future__ import annotations

import copy
import itertools
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import networkx as nx

from src.db.graph_engine import GraphEngine, GraphTransaction, IndexSpec, SchemaManagement, SchemaRegistry
from src.models.schema_descriptor import Cardinality, ElementKind, ScalarType
from src.utils.errors import SchemaViolation, UniquenessViolation
from src.utils.logging_config import get_logger

logger = get_logger("inmemory")


def _index_values(index: IndexSpec, properties: Mapping[str, Any]) -> Optional[Tuple[Any, ...]]:
    # elements missing any indexed key are not part of the index
    if not all(k in properties for k in index.keys):
        return None
    return tuple(_hashable(properties[k]) for k in index.keys)


def _hashable(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    if isinstance(value, list):
        return tuple(value)
    return value


class InMemoryManagement(SchemaManagement):
    def __init__(self, graph: "InMemoryGraph") -> None:
        self._graph = graph
        self._staged = copy.deepcopy(graph.schema)
        self._open = True

    def _ensure_open(self) -> None:
        if not self._open:
            raise RuntimeError("management transaction already closed")

    def _check_new(self, kind: str, name: str, existing) -> None:
        self._ensure_open()
        if name in existing:
            raise SchemaViolation(f"{kind} {name!r} already exists")

    def make_vertex_label(self, name: str) -> None:
        self._check_new("Vertex label", name, self._staged.vertex_labels)
        self._staged.vertex_labels.add(name)

    def make_edge_label(self, name: str) -> None:
        self._check_new("Edge label", name, self._staged.edge_labels)
        self._staged.edge_labels.add(name)

    def make_property_key(self, name: str, data_type: ScalarType, cardinality: Cardinality) -> None:
        self._check_new("Property key", name, self._staged.property_keys)
        self._staged.property_keys[name] = (data_type, cardinality)

    def build_composite_index(
        self,
        name: str,
        element_kind: ElementKind,
        keys: Sequence[str],
        index_only: Optional[str] = None,
        unique: bool = False,
    ) -> None:
        self._check_new("Index", name, self._staged.indexes)
        missing = [k for k in keys if k not in self._staged.property_keys]
        if missing:
            raise SchemaViolation(f"Index {name!r} references unknown property keys {missing}")
        if index_only is not None:
            if element_kind is not ElementKind.VERTEX:
                raise SchemaViolation(f"Index {name!r}: only vertex indexes can be restricted to a label")
            if index_only not in self._staged.vertex_labels:
                raise SchemaViolation(f"Index {name!r} restricted to unknown vertex label {index_only!r}")
        self._staged.indexes[name] = IndexSpec(name, element_kind, tuple(keys), index_only, unique)

    def commit(self) -> None:
        self._ensure_open()
        self._graph._apply_schema(self._staged)
        self._open = False

    def rollback(self) -> None:
        self._open = False


class InMemoryTransaction(GraphTransaction):
    def __init__(self, graph: "InMemoryGraph") -> None:
        super().__init__()
        self._graph = graph
        self._vertices: Dict[str, Tuple[str, Dict[str, Any]]] = {}
        self._edges: List[Tuple[str, str, str, str, Dict[str, Any]]] = []
        self._unique: Dict[str, Set[Tuple[Any, ...]]] = {}

    def _claim_unique(self, element_kind: ElementKind, label: str, properties: Mapping[str, Any]) -> None:
        claims = []
        for index in self._graph.schema.unique_indexes(element_kind, label):
            values = _index_values(index, properties)
            if values is None:
                continue
            staged = self._unique.setdefault(index.name, set())
            if values in staged or values in self._graph._unique_values.get(index.name, set()):
                raise UniquenessViolation(index.name, values)
            claims.append((staged, values))
        for staged, values in claims:
            staged.add(values)

    def add_vertex(self, label: str, properties: Mapping[str, Any]) -> str:
        if self.closed:
            raise RuntimeError("transaction already closed")
        schema = self._graph.schema
        schema.check_label(label, ElementKind.VERTEX)
        schema.check_properties(properties)
        self._claim_unique(ElementKind.VERTEX, label, properties)

        vid = f"v{next(self._graph._ids)}"
        self._vertices[vid] = (label, dict(properties))
        return vid

    def add_edge(self, label: str, out_id: str, in_id: str, properties: Mapping[str, Any]) -> str:
        if self.closed:
            raise RuntimeError("transaction already closed")
        schema = self._graph.schema
        schema.check_label(label, ElementKind.EDGE)
        schema.check_properties(properties)
        for vid in (out_id, in_id):
            if vid not in self._vertices and not self._graph.store.has_node(vid):
                raise SchemaViolation(f"Unknown vertex id {vid!r}")
        self._claim_unique(ElementKind.EDGE, label, properties)

        eid = f"e{next(self._graph._ids)}"
        self._edges.append((eid, label, out_id, in_id, dict(properties)))
        return eid

    def _commit(self) -> None:
        self._graph._apply_writes(self._vertices, self._edges, self._unique)

    def _rollback(self) -> None:
        self._vertices.clear()
        self._edges.clear()
        self._unique.clear()


class InMemoryGraph(GraphEngine):
    """Graph held in a ``networkx.MultiDiGraph`` with the loader's schema rules enforced on write."""

    def __init__(self) -> None:
        self.store = nx.MultiDiGraph()
        self.schema = SchemaRegistry()
        self._unique_values: Dict[str, Set[Tuple[Any, ...]]] = {}
        self._ids = itertools.count(1)
        self._closed = False
        logger.debug("In-memory graph opened")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("graph is closed")

    def open_management(self) -> InMemoryManagement:
        self._ensure_open()
        return InMemoryManagement(self)

    def new_transaction(self) -> InMemoryTransaction:
        self._ensure_open()
        return InMemoryTransaction(self)

    def _apply_schema(self, staged: SchemaRegistry) -> None:
        self._ensure_open()
        self.schema = staged
        for name in staged.indexes:
            self._unique_values.setdefault(name, set())

    def _apply_writes(self, vertices, edges, unique) -> None:
        self._ensure_open()
        for name, values in unique.items():
            clash = values & self._unique_values.get(name, set())
            if clash:
                raise UniquenessViolation(name, next(iter(clash)))

        for vid, (label, props) in vertices.items():
            self.store.add_node(vid, label=label, properties=props)
        for eid, label, out_id, in_id, props in edges:
            self.store.add_edge(out_id, in_id, key=eid, label=label, properties=props)
        for name, values in unique.items():
            self._unique_values.setdefault(name, set()).update(values)

    def vertex(self, vid: str) -> Dict[str, Any]:
        data = self.store.nodes[vid]
        return {"label": data["label"], **data["properties"]}

    def edges(self, label: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            {"id": eid, "out": u, "in": v, "label": data["label"], **data["properties"]}
            for u, v, eid, data in self.store.edges(keys=True, data=True)
            if label is None or data["label"] == label
        ]

    def count_vertices(self) -> int:
        self._ensure_open()
        return self.store.number_of_nodes()

    def count_edges(self) -> int:
        self._ensure_open()
        return self.store.number_of_edges()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            logger.debug("In-memory graph closed")
