from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from src.utils.errors import SchemaDescriptorError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class ScalarType(Enum):
    """Property value types a descriptor may declare, keyed by their descriptor name."""

    TEXT = "String"
    FLOAT64 = "Double"
    INT32 = "Integer"

    @property
    def python_type(self) -> Type[Any]:
        return {ScalarType.TEXT: str, ScalarType.FLOAT64: float, ScalarType.INT32: int}[self]

    def accepts(self, value: Any) -> bool:
        if self is ScalarType.TEXT:
            return isinstance(value, str)
        if isinstance(value, bool):
            return False
        if self is ScalarType.FLOAT64:
            return isinstance(value, (int, float))
        return isinstance(value, int) and INT32_MIN <= value <= INT32_MAX


class Cardinality(Enum):
    SINGLE = "SINGLE"
    LIST = "LIST"
    SET = "SET"


class ElementKind(Enum):
    VERTEX = "vertex"
    EDGE = "edge"


class VertexLabelDef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)


class EdgeLabelDef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)


class PropertyKeyDef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    data_type: ScalarType = Field(alias="dataType")
    cardinality: Cardinality = Cardinality.SINGLE

    @field_validator("cardinality", mode="before")
    @classmethod
    def upper_cardinality(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


class CompositeIndexDef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: str = Field(alias="indexName", min_length=1)
    element_kind: ElementKind = Field(alias="elementType")
    property_keys: Tuple[str, ...] = Field(alias="propertyKeys", min_length=1)
    index_only: Optional[str] = Field(default=None, alias="indexOnly")
    unique: bool = False

    @field_validator("element_kind", mode="before")
    @classmethod
    def lower_element_kind(cls, v: Any) -> Any:
        # "Vertex", "VERTEX" and "vertex" all name the same kind
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def index_only_on_vertices(self) -> "CompositeIndexDef":
        if self.index_only is not None and self.element_kind is not ElementKind.VERTEX:
            raise ValueError(f"index {self.name!r}: indexOnly is only allowed on vertex indexes")
        if len(set(self.property_keys)) != len(self.property_keys):
            raise ValueError(f"index {self.name!r}: property keys must not repeat")
        return self


class GraphIndices(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    composite_indices: Tuple[CompositeIndexDef, ...] = Field(default=(), alias="compositeIndices")


class SchemaDescriptor(BaseModel):
    """Parsed and cross-checked schema descriptor.

    A descriptor that survives validation can be applied without any lookup
    failing: index keys name declared property keys and ``indexOnly`` names a
    declared vertex label.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    vertex_labels: Tuple[VertexLabelDef, ...] = Field(default=(), alias="vertexLabels")
    edge_labels: Tuple[EdgeLabelDef, ...] = Field(default=(), alias="edgeLabels")
    property_keys: Tuple[PropertyKeyDef, ...] = Field(default=(), alias="propertyKeys")
    graph_indices: GraphIndices = Field(default_factory=GraphIndices, alias="graphIndices")

    @property
    def composite_indices(self) -> Tuple[CompositeIndexDef, ...]:
        return self.graph_indices.composite_indices

    @model_validator(mode="after")
    def check_references(self) -> "SchemaDescriptor":
        _no_duplicates("vertex label", [v.name for v in self.vertex_labels])
        _no_duplicates("edge label", [e.name for e in self.edge_labels])
        _no_duplicates("property key", [p.name for p in self.property_keys])
        _no_duplicates("index", [i.name for i in self.composite_indices])

        vertex_labels = {v.name for v in self.vertex_labels}
        keys = {p.name for p in self.property_keys}
        for index in self.composite_indices:
            unknown = [k for k in index.property_keys if k not in keys]
            if unknown:
                raise ValueError(f"index {index.name!r} uses undeclared property keys {unknown}")
            if index.index_only is not None and index.index_only not in vertex_labels:
                raise ValueError(
                    f"index {index.name!r} is restricted to undeclared vertex label {index.index_only!r}"
                )
        return self


def _no_duplicates(kind: str, names: List[str]) -> None:
    seen = set()
    for n in names:
        if n in seen:
            raise ValueError(f"duplicate {kind} {n!r}")
        seen.add(n)


def parse_schema_descriptor(data: Any) -> SchemaDescriptor:
    try:
        return SchemaDescriptor.model_validate(data)
    except ValidationError as e:
        raise SchemaDescriptorError(f"Invalid schema descriptor: {e}") from e


def load_schema_descriptor(path: Union[str, Path]) -> SchemaDescriptor:
    """Read and fully validate a JSON schema descriptor before anything touches the graph."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaDescriptorError(f"Cannot read schema descriptor {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SchemaDescriptorError(f"Schema descriptor {path} is not valid JSON: {e}") from e

    return parse_schema_descriptor(data)
