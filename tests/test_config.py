import logging

import pytest

from src.config import Settings
from src.utils.logging_config import get_logger, setup_logging


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("GRAPH_BACKEND", " Neo4j ")
    monkeypatch.setenv("CSV_CHUNK", "500")
    monkeypatch.setenv("NEO4J_URI", "bolt://db:7687")
    monkeypatch.setenv("SCHEMA_PATH", "   ")
    s = Settings.from_env()
    assert s.backend == "neo4j"
    assert s.chunk_size == 500
    assert s.neo4j_uri == "bolt://db:7687"
    assert s.schema_path == "air-routes-schema.json"


def test_unknown_backend_rejected() -> None:
    with pytest.raises(ValueError):
        Settings(backend="sqlite")


def test_setup_logging_once() -> None:
    logger = setup_logging()
    setup_logging(logging.DEBUG)
    assert logger.name == "airroutes"
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert get_logger("main").parent is logger


def test_setup_logging_accepts_level_names() -> None:
    assert setup_logging("warning").level == logging.WARNING
