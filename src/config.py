from __future__ import annotations

import os
from dataclasses import dataclass

BACKENDS = ("inmemory", "neo4j")


def env(name: str, default: str) -> str:
    v = os.getenv(name)
    return v if v and v.strip() else default


@dataclass(frozen=True)
class Settings:
    backend: str = "inmemory"
    schema_path: str = "air-routes-schema.json"
    airports_csv: str = "clean_air-routes-latest-nodes.csv"
    routes_csv: str = "clean_air-routes-latest-edges.csv"
    chunk_size: int = 10_000
    log_level: str = "INFO"

    neo4j_uri: str = "bolt://127.0.0.1:7687"  # force IPv4 default
    neo4j_user: str = "neo4j"
    neo4j_password: str = "neo4jpassword"
    neo4j_database: str = "neo4j"

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown graph backend {self.backend!r}; expected one of {BACKENDS}")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            backend=env("GRAPH_BACKEND", cls.backend).strip().lower(),
            schema_path=env("SCHEMA_PATH", cls.schema_path),
            airports_csv=env("AIRPORTS_CSV", cls.airports_csv),
            routes_csv=env("ROUTES_CSV", cls.routes_csv),
            chunk_size=int(env("CSV_CHUNK", str(cls.chunk_size))),
            log_level=env("LOG_LEVEL", cls.log_level),
            neo4j_uri=env("NEO4J_URI", cls.neo4j_uri),
            neo4j_user=env("NEO4J_USER", cls.neo4j_user),
            neo4j_password=env("NEO4J_PASSWORD", cls.neo4j_password),
            neo4j_database=env("NEO4J_DATABASE", cls.neo4j_database),
        )
