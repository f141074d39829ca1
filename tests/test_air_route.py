import pytest

from src.models.air_route import AirportRecord, RouteRecord, to_float, to_int


@pytest.mark.parametrize(
    "raw, expected",
    [("3", 3), (" 12 ", 12), ("12.0", 12), ("-7", -7), ("", None), ("abc", None),
     ("12.5", None), ("99999999999", None), (None, None)],
)
def test_to_int(raw, expected) -> None:
    assert to_int(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("33.64", 33.64), ("-84", -84.0), ("", None), ("n/a", None), ("nan", None), ("inf", None)],
)
def test_to_float(raw, expected) -> None:
    assert to_float(raw) == expected


def test_airport_properties_drop_absent_values() -> None:
    rec = AirportRecord.model_validate(
        {"id": "1", "code": "ATL", "icao": "", "desc": "Atlanta", "city": "Atlanta", "country": "US",
         "lat": "33.6", "lon": "bad", "type": "airport", "region": "US-GA",
         "runways": "5", "longest": "", "elev": "1026"}
    )
    props = rec.to_properties()
    assert props["identity"] == "1"
    assert props["lat"] == 33.6
    assert props["runways"] == 5
    assert props["elev"] == 1026
    for absent in ("icao", "lon", "longest"):
        assert absent not in props


def test_airport_blank_id_leaves_identity_absent() -> None:
    rec = AirportRecord.model_validate({"id": "  ", "code": "ATL"})
    assert rec.identity is None
    assert rec.to_properties() == {"code": "ATL"}


def test_route_accepts_both_endpoint_spellings() -> None:
    a = RouteRecord.model_validate({"id": "r1", "from": "A1", "to": "A2", "dist": "500"})
    b = RouteRecord.model_validate({"id": "r1", "src": "A1", "dst": "A2", "dist": "500"})
    assert a == b
    assert a.to_properties() == {"identity": "r1", "dist": "500"}


def test_route_distance_stays_text() -> None:
    r = RouteRecord.model_validate({"id": "r1", "src": "A1", "dst": "A2", "dist": "0500"})
    assert r.dist == "0500"
