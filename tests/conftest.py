import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List

import pytest

from src.db.inmemory_graph import InMemoryGraph
from src.ingest.setup_schema import initialize_schema
from src.models.schema_descriptor import load_schema_descriptor, parse_schema_descriptor

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

AIRPORT_HEADER = ["id", "code", "icao", "desc", "city", "country", "lat", "lon",
                  "type", "region", "runways", "longest", "elev"]


def minimal_schema(unique_identity: bool = True) -> Dict[str, Any]:
    return {
        "vertexLabels": [{"name": "airport"}],
        "edgeLabels": [{"name": "route"}],
        "propertyKeys": [
            {"name": "code", "dataType": "String", "cardinality": "SINGLE"},
            {"name": "lat", "dataType": "Double", "cardinality": "SINGLE"},
            {"name": "runways", "dataType": "Integer", "cardinality": "SINGLE"},
            {"name": "identity", "dataType": "String", "cardinality": "SINGLE"},
        ],
        "graphIndices": {
            "compositeIndices": [
                {
                    "indexName": "byIdentity",
                    "elementType": "vertex",
                    "unique": unique_identity,
                    "propertyKeys": ["identity"],
                }
            ]
        },
    }


def airport_row(ext_id: str, code: str, **overrides: str) -> List[str]:
    row = {
        "id": ext_id, "code": code, "icao": "K" + code, "desc": f"{code} airport", "city": "Somewhere",
        "country": "US", "lat": "33.5", "lon": "-84.25", "type": "airport", "region": "US-GA",
        "runways": "2", "longest": "12000", "elev": "1026",
    }
    row.update(overrides)
    return [row[c] for c in AIRPORT_HEADER]


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, List[str], Iterable[List[str]]], Path]:
    def _write(name: str, header: List[str], rows: Iterable[List[str]]) -> Path:
        path = tmp_path / name
        lines = [",".join(header)] + [",".join(r) for r in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def air_routes_schema_path() -> Path:
    return DATA_DIR / "air-routes-schema.json"


@pytest.fixture
def air_routes_graph(air_routes_schema_path: Path) -> Iterable[InMemoryGraph]:
    """In-memory graph with the shipped air-routes schema applied."""
    graph = InMemoryGraph()
    initialize_schema(graph, load_schema_descriptor(air_routes_schema_path))
    yield graph
    graph.close()


@pytest.fixture
def minimal_graph() -> Iterable[InMemoryGraph]:
    graph = InMemoryGraph()
    initialize_schema(graph, parse_schema_descriptor(minimal_schema()))
    yield graph
    graph.close()


@pytest.fixture
def make_schema() -> Callable[..., Dict[str, Any]]:
    return minimal_schema


@pytest.fixture
def make_airport_row() -> Callable[..., List[str]]:
    return airport_row


@pytest.fixture
def write_airports(write_csv) -> Callable[..., Path]:
    def _write(rows: Iterable[List[str]], name: str = "airports.csv") -> Path:
        return write_csv(name, AIRPORT_HEADER, rows)

    return _write


@pytest.fixture
def write_routes(write_csv) -> Callable[..., Path]:
    def _write(rows: Iterable[List[str]], header=("id", "from", "to", "dist"), name: str = "routes.csv") -> Path:
        return write_csv(name, list(header), rows)

    return _write
