from __future__ import annotations

import argparse
import time
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from src.config import BACKENDS, Settings
from src.db.graph_engine import open_graph
from src.ingest.load_airports import load_airports
from src.ingest.load_routes import SkippedRoute, load_routes
from src.ingest.setup_schema import SchemaReport, initialize_schema
from src.models.schema_descriptor import load_schema_descriptor
from src.utils.errors import AirRoutesError
from src.utils.logging_config import get_logger, setup_logging

logger = get_logger("main")


@dataclass(frozen=True)
class LoadSummary:
    schema: SchemaReport
    vertices_inserted: int
    edges_inserted: int
    skipped_routes: List[SkippedRoute]
    airports_without_id: List[int]
    total_vertices: int
    total_edges: int
    elapsed_s: float


def run(settings: Settings) -> LoadSummary:
    """Schema, then airports, then routes, against one graph that is always closed."""
    # validate before opening anything so a bad descriptor leaves the store untouched
    descriptor = load_schema_descriptor(settings.schema_path)

    with open_graph(settings) as graph:
        schema_report = initialize_schema(graph, descriptor)

        logger.info("Loading data from CSV files...")
        start = time.perf_counter()
        vertices = load_airports(graph, settings.airports_csv, settings.chunk_size)
        edges = load_routes(graph, settings.routes_csv, vertices.vertex_index, settings.chunk_size)
        elapsed = time.perf_counter() - start

        summary = LoadSummary(
            schema=schema_report,
            vertices_inserted=vertices.inserted,
            edges_inserted=edges.inserted,
            skipped_routes=edges.skipped,
            airports_without_id=vertices.without_id,
            total_vertices=graph.count_vertices(),
            total_edges=graph.count_edges(),
            elapsed_s=elapsed,
        )

    logger.info(
        "Data loading complete: %d vertices, %d edges in graph (%d routes skipped) in %.2fs",
        summary.total_vertices, summary.total_edges, len(summary.skipped_routes), summary.elapsed_s,
    )
    return summary


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="airroutes-load",
        description="Create the air-routes graph schema and load airports and routes from CSV.",
    )
    p.add_argument("--schema", dest="schema_path", help="schema descriptor JSON")
    p.add_argument("--airports", dest="airports_csv", help="airport vertices CSV")
    p.add_argument("--routes", dest="routes_csv", help="route edges CSV")
    p.add_argument("--backend", choices=BACKENDS, help="graph backend (default: GRAPH_BACKEND or inmemory)")
    p.add_argument("--chunk-size", dest="chunk_size", type=int, help="CSV rows read per chunk")
    p.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ...")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if v is not None}

    try:
        settings = replace(Settings.from_env(), **overrides)
    except ValueError as e:
        raise SystemExit(f"Invalid configuration: {e}")
    setup_logging(settings.log_level)

    try:
        run(settings)
    except AirRoutesError as e:
        logger.error("%s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
