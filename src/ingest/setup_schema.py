from __future__ import annotations

import sys
from dataclasses import dataclass, replace

from src.config import Settings
from src.db.graph_engine import GraphEngine, open_graph
from src.models.schema_descriptor import SchemaDescriptor, load_schema_descriptor
from src.utils.logging_config import get_logger, setup_logging

logger = get_logger("setup_schema")


@dataclass(frozen=True)
class SchemaReport:
    vertex_labels: int
    edge_labels: int
    property_keys: int
    indexes: int


def initialize_schema(graph: GraphEngine, descriptor: SchemaDescriptor) -> SchemaReport:
    """
    Apply a validated descriptor through one management transaction.

    Labels and keys are created before indexes so every index can resolve
    its keys and label restriction. Any engine error rolls the whole
    transaction back.
    """
    logger.info("Initializing schema...")
    mgmt = graph.open_management()
    try:
        logger.info("Creating vertex labels...")
        for v in descriptor.vertex_labels:
            mgmt.make_vertex_label(v.name)

        logger.info("Creating edge labels...")
        for e in descriptor.edge_labels:
            mgmt.make_edge_label(e.name)

        logger.info("Creating property keys...")
        for p in descriptor.property_keys:
            mgmt.make_property_key(p.name, p.data_type, p.cardinality)

        logger.info("Creating composite indexes...")
        for idx in descriptor.composite_indices:
            mgmt.build_composite_index(
                idx.name,
                idx.element_kind,
                idx.property_keys,
                index_only=idx.index_only,
                unique=idx.unique,
            )

        mgmt.commit()
    except Exception:
        mgmt.rollback()
        raise

    report = SchemaReport(
        vertex_labels=len(descriptor.vertex_labels),
        edge_labels=len(descriptor.edge_labels),
        property_keys=len(descriptor.property_keys),
        indexes=len(descriptor.composite_indices),
    )
    logger.info(
        "Schema initialization complete: %d vertex labels, %d edge labels, %d property keys, %d indexes",
        report.vertex_labels, report.edge_labels, report.property_keys, report.indexes,
    )
    return report


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    if len(sys.argv) > 1:
        settings = replace(settings, schema_path=sys.argv[1])

    descriptor = load_schema_descriptor(settings.schema_path)
    with open_graph(settings) as graph:
        initialize_schema(graph, descriptor)


if __name__ == "__main__":
    main()
