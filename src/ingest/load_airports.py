from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from src.db.graph_engine import GraphEngine
from src.ingest.csv_source import iter_rows
from src.models.air_route import AIRPORT_LABEL, AirportRecord
from src.utils.logging_config import get_logger

logger = get_logger("load_airports")

AIRPORT_COLUMNS = (
    "id", "code", "icao", "desc", "city", "country", "lat", "lon",
    "type", "region", "runways", "longest", "elev",
)

# external airport id from the CSV -> engine-assigned vertex id
VertexIndex = Dict[str, str]


@dataclass
class VertexLoadResult:
    vertex_index: VertexIndex = field(default_factory=dict)
    inserted: int = 0
    without_id: List[int] = field(default_factory=list)


def load_airports(graph: GraphEngine, csv_path: Union[str, Path], chunk_size: int = 10_000) -> VertexLoadResult:
    """
    Create one ``airport`` vertex per CSV row in a single transaction.

    Rows without an external id still get a vertex, but it carries no
    ``identity`` and stays out of the vertex index, so no route can reach
    it. Any read error rolls the whole phase back.
    """
    result = VertexLoadResult()
    logger.info("Inserting airport vertices from %s ...", csv_path)

    with graph.new_transaction() as tx:
        for row_no, row in enumerate(iter_rows(csv_path, AIRPORT_COLUMNS, chunk_size), start=1):
            record = AirportRecord.model_validate(row)
            vid = tx.add_vertex(AIRPORT_LABEL, record.to_properties())
            result.inserted += 1

            if record.identity is None:
                logger.warning("Row %d: airport %s has no id; routes cannot reference it", row_no, record.code)
                result.without_id.append(row_no)
                continue
            if record.identity in result.vertex_index:
                logger.warning("Row %d: duplicate airport id %r; routes will use the later vertex",
                               row_no, record.identity)
            result.vertex_index[record.identity] = vid

        tx.commit()

    logger.info("Inserted %d airport vertices.", result.inserted)
    return result
