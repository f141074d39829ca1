import pytest

from src.config import Settings
from src import main as main_mod
from src.main import main, run
from src.utils.errors import DataSourceError, SchemaDescriptorError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in ("GRAPH_BACKEND", "SCHEMA_PATH", "AIRPORTS_CSV", "ROUTES_CSV", "CSV_CHUNK", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def settings_for(schema, airports, routes) -> Settings:
    return Settings(schema_path=str(schema), airports_csv=str(airports), routes_csv=str(routes))


def test_run_end_to_end(air_routes_schema_path, write_airports, write_routes, make_airport_row) -> None:
    airports = write_airports([make_airport_row("A1", "AAA"), make_airport_row("A2", "BBB")])
    routes = write_routes([["R1", "A1", "A2", "500"], ["R2", "A9", "A1", "10"]])

    summary = run(settings_for(air_routes_schema_path, airports, routes))

    assert summary.total_vertices == 2
    assert summary.total_edges == 1
    assert summary.vertices_inserted == 2
    assert summary.edges_inserted == 1
    assert [s.identity for s in summary.skipped_routes] == ["R2"]
    assert summary.schema.indexes == 7
    assert summary.elapsed_s >= 0


def test_shipped_sample_data_loads(air_routes_schema_path) -> None:
    data = air_routes_schema_path.parent
    summary = run(settings_for(
        air_routes_schema_path,
        data / "clean_air-routes-latest-nodes.csv",
        data / "clean_air-routes-latest-edges.csv",
    ))
    assert summary.total_vertices == 4
    assert summary.total_edges == 5


def test_bad_descriptor_never_opens_graph(monkeypatch, write_json, tmp_path) -> None:
    schema = write_json("schema.json", {"propertyKeys": [{"name": "x", "dataType": "Blob", "cardinality": "SINGLE"}]})

    def fail_open(settings):
        raise AssertionError("graph must not be opened")

    monkeypatch.setattr(main_mod, "open_graph", fail_open)
    with pytest.raises(SchemaDescriptorError):
        run(settings_for(schema, tmp_path / "a.csv", tmp_path / "r.csv"))


def test_graph_closed_when_phase_fails(monkeypatch, air_routes_schema_path, tmp_path) -> None:
    opened = []
    real_open = main_mod.open_graph

    def tracking_open(settings):
        graph = real_open(settings)
        opened.append(graph)
        return graph

    monkeypatch.setattr(main_mod, "open_graph", tracking_open)
    with pytest.raises(DataSourceError):
        run(settings_for(air_routes_schema_path, tmp_path / "missing.csv", tmp_path / "r.csv"))

    (graph,) = opened
    with pytest.raises(RuntimeError, match="closed"):
        graph.count_vertices()


def test_cli_success(air_routes_schema_path, write_airports, write_routes, make_airport_row) -> None:
    airports = write_airports([make_airport_row("A1", "AAA"), make_airport_row("A2", "BBB")])
    routes = write_routes([["R1", "A1", "A2", "500"]])
    main([
        "--schema", str(air_routes_schema_path),
        "--airports", str(airports),
        "--routes", str(routes),
        "--backend", "inmemory",
        "--log-level", "WARNING",
    ])


def test_cli_exits_non_zero_on_loader_error(air_routes_schema_path, tmp_path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--schema", str(air_routes_schema_path), "--airports", str(tmp_path / "missing.csv")])
    assert exc.value.code == 1


def test_cli_rejects_bad_chunk_size(air_routes_schema_path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--schema", str(air_routes_schema_path), "--chunk-size", "0"])
    assert "chunk_size" in str(exc.value.code)
