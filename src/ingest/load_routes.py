from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from src.db.graph_engine import GraphEngine
from src.ingest.csv_source import iter_rows
from src.ingest.load_airports import VertexIndex
from src.models.air_route import ROUTE_LABEL, RouteRecord
from src.utils.logging_config import get_logger

logger = get_logger("load_routes")

ROUTE_COLUMNS = ("id", ("from", "src"), ("to", "dst"), "dist")


@dataclass(frozen=True)
class SkippedRoute:
    row: int
    identity: Optional[str]
    source: Optional[str]
    destination: Optional[str]
    missing: List[str]


@dataclass
class EdgeLoadResult:
    inserted: int = 0
    skipped: List[SkippedRoute] = field(default_factory=list)


def load_routes(
    graph: GraphEngine,
    csv_path: Union[str, Path],
    vertex_index: VertexIndex,
    chunk_size: int = 10_000,
) -> EdgeLoadResult:
    """
    Create one ``route`` edge per CSV row whose endpoints were both loaded.

    Rows with an unknown endpoint are skipped and reported; they never fail
    the phase.
    """
    result = EdgeLoadResult()
    logger.info("Inserting route edges from %s ...", csv_path)

    with graph.new_transaction() as tx:
        for row_no, row in enumerate(iter_rows(csv_path, ROUTE_COLUMNS, chunk_size), start=1):
            try:
                record = RouteRecord.model_validate(row)
            except ValidationError as e:
                logger.warning("Row %d: route row rejected: %s", row_no, e.errors()[0]["msg"])
                result.skipped.append(SkippedRoute(row_no, row.get("id"), None, None, []))
                continue

            out_id = vertex_index.get(record.source)
            in_id = vertex_index.get(record.destination)
            if out_id is None or in_id is None:
                missing = [
                    ext for ext, vid in ((record.source, out_id), (record.destination, in_id)) if vid is None
                ]
                logger.warning("Row %d: route %s skipped, unknown airport id(s) %s",
                               row_no, record.identity, missing)
                result.skipped.append(SkippedRoute(row_no, record.identity, record.source, record.destination, missing))
                continue

            tx.add_edge(ROUTE_LABEL, out_id, in_id, record.to_properties())
            result.inserted += 1

        tx.commit()

    logger.info("Inserted %d route edges (%d skipped).", result.inserted, len(result.skipped))
    return result
