from __future__ import annotations

import copy
from typing import Any, List, Mapping, Optional, Sequence

from neo4j import Driver, GraphDatabase

from src.config import Settings
from src.db.graph_engine import GraphEngine, GraphTransaction, IndexSpec, SchemaManagement, SchemaRegistry
from src.models.schema_descriptor import Cardinality, ElementKind, ScalarType
from src.utils.errors import SchemaViolation
from src.utils.logging_config import get_logger

logger = get_logger("neo4j")


def get_driver(settings: Settings) -> Driver:
    return GraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password),
    )


def quote(name: str) -> str:
    """Backtick-quote a label, key or index name for Cypher."""
    return "`" + name.replace("`", "``") + "`"


def index_statements(index: IndexSpec, labels: Sequence[str]) -> List[str]:
    """
    Cypher DDL for one composite index.

    Neo4j indexes and constraints are always scoped to one label or
    relationship type, so an index without a label restriction is created
    once per label, suffixed with the label name.
    """
    if index.index_only is not None:
        targets = [(index.name, index.index_only)]
    else:
        targets = [(f"{index.name}_{label}", label) for label in labels]

    statements: List[str] = []
    for name, label in targets:
        if index.element_kind is ElementKind.VERTEX:
            pattern = f"(e:{quote(label)})"
        else:
            pattern = f"()-[e:{quote(label)}]-()"
        keys = ", ".join(f"e.{quote(k)}" for k in index.keys)

        if index.unique:
            statements.append(
                f"CREATE CONSTRAINT {quote(name)} IF NOT EXISTS FOR {pattern} REQUIRE ({keys}) IS UNIQUE"
            )
        else:
            statements.append(f"CREATE INDEX {quote(name)} IF NOT EXISTS FOR {pattern} ON ({keys})")
    return statements


class Neo4jManagement(SchemaManagement):
    """
    Stages schema changes and applies them in one explicit transaction.

    Neo4j has no DDL for labels or property keys; those are recorded in the
    graph's schema registry, which write transactions check values against.
    """

    def __init__(self, graph: "Neo4jGraph") -> None:
        self._graph = graph
        self._staged = copy.deepcopy(graph.schema)
        self._statements: List[str] = []
        self._open = True

    def _check_new(self, kind: str, name: str, existing) -> None:
        if not self._open:
            raise RuntimeError("management transaction already closed")
        if name in existing:
            raise SchemaViolation(f"{kind} {name!r} already exists")

    def make_vertex_label(self, name: str) -> None:
        self._check_new("Vertex label", name, self._staged.vertex_labels)
        self._staged.vertex_labels.add(name)

    def make_edge_label(self, name: str) -> None:
        # relationships are multi-edge in Neo4j; nothing to configure
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
        if index_only is not None and index_only not in self._staged.vertex_labels:
            raise SchemaViolation(f"Index {name!r} restricted to unknown vertex label {index_only!r}")

        index = IndexSpec(name, element_kind, tuple(keys), index_only, unique)
        if element_kind is ElementKind.VERTEX:
            labels = sorted(self._staged.vertex_labels)
        else:
            labels = sorted(self._staged.edge_labels)
        self._staged.indexes[name] = index
        self._statements.extend(index_statements(index, labels))

    def commit(self) -> None:
        if not self._open:
            raise RuntimeError("management transaction already closed")
        with self._graph.session() as session:
            tx = session.begin_transaction()
            try:
                for statement in self._statements:
                    logger.debug("Schema: %s", statement)
                    tx.run(statement).consume()
                tx.commit()
            except Exception:
                tx.rollback()
                raise
        self._graph.schema = self._staged
        self._open = False

    def rollback(self) -> None:
        self._statements.clear()
        self._open = False


class Neo4jTransaction(GraphTransaction):
    def __init__(self, graph: "Neo4jGraph") -> None:
        super().__init__()
        self._graph = graph
        self._session = graph.session()
        try:
            self._tx = self._session.begin_transaction()
        except Exception:
            self._session.close()
            raise

    def add_vertex(self, label: str, properties: Mapping[str, Any]) -> str:
        schema = self._graph.schema
        schema.check_label(label, ElementKind.VERTEX)
        schema.check_properties(properties)

        record = self._tx.run(
            f"CREATE (n:{quote(label)}) SET n = $props RETURN elementId(n) AS id",
            props=dict(properties),
        ).single()
        return record["id"]

    def add_edge(self, label: str, out_id: str, in_id: str, properties: Mapping[str, Any]) -> str:
        schema = self._graph.schema
        schema.check_label(label, ElementKind.EDGE)
        schema.check_properties(properties)

        record = self._tx.run(
            f"""
            MATCH (a) WHERE elementId(a) = $out_id
            MATCH (b) WHERE elementId(b) = $in_id
            CREATE (a)-[r:{quote(label)}]->(b)
            SET r = $props
            RETURN elementId(r) AS id
            """,
            out_id=out_id,
            in_id=in_id,
            props=dict(properties),
        ).single()
        if record is None:
            raise SchemaViolation(f"Unknown vertex id {out_id!r} or {in_id!r}")
        return record["id"]

    def _commit(self) -> None:
        self._tx.commit()
        self._session.close()

    def _rollback(self) -> None:
        try:
            if not self._tx.closed():
                self._tx.rollback()
        finally:
            self._session.close()


class Neo4jGraph(GraphEngine):
    def __init__(self, driver: Driver, database: str) -> None:
        self.driver = driver
        self.database = database
        self.schema = SchemaRegistry()

    @classmethod
    def open(cls, settings: Settings) -> "Neo4jGraph":
        driver = get_driver(settings)
        try:
            driver.verify_connectivity()
        except Exception:
            driver.close()
            raise
        logger.info("Neo4j connectivity OK (%s, database=%s)", settings.neo4j_uri, settings.neo4j_database)
        return cls(driver, settings.neo4j_database)

    def session(self):
        return self.driver.session(database=self.database)

    def open_management(self) -> Neo4jManagement:
        return Neo4jManagement(self)

    def new_transaction(self) -> Neo4jTransaction:
        return Neo4jTransaction(self)

    def _count(self, query: str) -> int:
        with self.session() as session:
            record = session.run(query).single()
        return int(record["n"]) if record else 0

    def count_vertices(self) -> int:
        return self._count("MATCH (n) RETURN count(n) AS n")

    def count_edges(self) -> int:
        return self._count("MATCH ()-[r]->() RETURN count(r) AS n")

    def close(self) -> None:
        self.driver.close()
        logger.info("Neo4j connection closed")
