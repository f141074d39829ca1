from __future__ import annotations

import math
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.models.schema_descriptor import INT32_MAX, INT32_MIN

AIRPORT_LABEL = "airport"
ROUTE_LABEL = "route"


def blank_to_none(x: Any) -> Optional[str]:
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return None
    s = str(x).strip()
    return s if s else None


def to_float(x: Any) -> Optional[float]:
    s = blank_to_none(x)
    if s is None:
        return None
    try:
        v = float(s)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def to_int(x: Any) -> Optional[int]:
    """Parse a 32-bit integer; "12" and "12.0" are accepted, "12.5" and "abc" are not."""
    v = to_float(x)
    if v is None or not v.is_integer():
        return None
    i = int(v)
    return i if INT32_MIN <= i <= INT32_MAX else None


class AirportRecord(BaseModel):
    """One row of the airport CSV."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    identity: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "identity"))
    code: Optional[str] = None
    icao: Optional[str] = None
    desc: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    type: Optional[str] = None
    region: Optional[str] = None
    runways: Optional[int] = None
    longest: Optional[int] = None
    elev: Optional[int] = None

    @field_validator("identity", "code", "icao", "desc", "city", "country", "type", "region", mode="before")
    @classmethod
    def text_or_none(cls, v: Any) -> Optional[str]:
        return blank_to_none(v)

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def lenient_float(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @field_validator("runways", "longest", "elev", mode="before")
    @classmethod
    def lenient_int(cls, v: Any) -> Optional[int]:
        return to_int(v)

    def to_properties(self) -> Dict[str, Any]:
        # absent values are left off the vertex rather than stored as null
        return {k: v for k, v in self.model_dump().items() if v is not None}


class RouteRecord(BaseModel):
    """One row of the route CSV; endpoints are airport external ids."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    identity: str = Field(validation_alias=AliasChoices("id", "identity"), min_length=1)
    source: str = Field(validation_alias=AliasChoices("from", "src"))
    destination: str = Field(validation_alias=AliasChoices("to", "dst"))
    dist: Optional[str] = None

    @field_validator("identity", "source", "destination", mode="before")
    @classmethod
    def strip_ids(cls, v: Any) -> str:
        return blank_to_none(v) or ""

    @field_validator("dist", mode="before")
    @classmethod
    def dist_as_text(cls, v: Any) -> Optional[str]:
        return blank_to_none(v)

    def to_properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {"identity": self.identity}
        if self.dist is not None:
            props["dist"] = self.dist
        return props
