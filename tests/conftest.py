"""Shared fixtures: a small JFK-DEL feed, flight builders and pricing tables."""

import pytest

from award_finder.config import reset_config
from award_finder.itinerary import flatten_itineraries
from award_finder.pricing import InMemoryPricingData
from award_finder.schema import AwardResults, Flight, Itinerary
from award_finder.utils import parse_local_time


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts from default settings."""
    monkeypatch.delenv("AWARD_FINDER_PAGE_SIZE", raising=False)
    monkeypatch.delenv("AWARD_FINDER_DEFAULT_PROGRAM", raising=False)
    monkeypatch.delenv("AWARD_FINDER_DEFAULT_MIN_COUNT", raising=False)
    reset_config()
    yield
    reset_config()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _flight(
    number="UA1",
    departs="2025-06-01T08:00:00",
    arrives="2025-06-01T10:00:00",
    duration=120,
    y=0,
    w=0,
    j=0,
    f=0,
    origin=None,
    destination=None,
):
    return Flight(
        flight_numbers=number,
        departs_at=parse_local_time(departs),
        arrives_at=parse_local_time(arrives),
        total_duration=duration,
        y_count=y,
        w_count=w,
        j_count=j,
        f_count=f,
        origin=origin,
        destination=destination,
    )


@pytest.fixture
def make_flight():
    return _flight


@pytest.fixture
def make_itinerary():
    def _itinerary(flights, route="AAA-BBB", date="2025-06-01", ordinal=0):
        return Itinerary(route=route, date=date, flights=tuple(flights), ordinal=ordinal)
    return _itinerary


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_feed():
    """
    Three JFK-DEL itineraries.

    JFK-LHR-DEL  AA100 + AI162   1140 min, J 100%
    JFK-DEL      AI102            840 min, Y 100%
    JFK-FRA-DEL  LH400 + LH760   1140 min, J 50%
    """
    return {
        "flights": {
            "f1": {
                "FlightNumbers": "AA100",
                "DepartsAt": "2025-06-01T18:00:00Z",
                "ArrivesAt": "2025-06-02T06:00:00Z",
                "TotalDuration": 420,
                "YCount": 5,
                "JCount": 2,
                "OriginAirport": "JFK",
                "DestinationAirport": "LHR",
            },
            "f2": {
                "FlightNumbers": "AI162",
                "DepartsAt": "2025-06-02T09:00:00Z",
                "ArrivesAt": "2025-06-02T22:00:00Z",
                "TotalDuration": 540,
                "YCount": 0,
                "JCount": 3,
                "OriginAirport": "LHR",
                "DestinationAirport": "DEL",
            },
            "f3": {
                "FlightNumbers": "AI102",
                "DepartsAt": "2025-06-01T20:00:00Z",
                "ArrivesAt": "2025-06-02T20:30:00Z",
                "TotalDuration": 840,
                "YCount": 3,
                "OriginAirport": "JFK",
                "DestinationAirport": "DEL",
            },
            "f5": {
                "FlightNumbers": "LH400",
                "DepartsAt": "2025-06-01T17:00:00Z",
                "ArrivesAt": "2025-06-02T07:00:00Z",
                "TotalDuration": 480,
                "YCount": 1,
                "OriginAirport": "JFK",
                "DestinationAirport": "FRA",
            },
            "f6": {
                "FlightNumbers": "LH760",
                "DepartsAt": "2025-06-02T10:00:00Z",
                "ArrivesAt": "2025-06-02T22:30:00Z",
                "TotalDuration": 480,
                "JCount": 4,
                "OriginAirport": "FRA",
                "DestinationAirport": "DEL",
            },
        },
        "itineraries": {
            "JFK-LHR-DEL": {"2025-06-01": [["f1", "f2"]]},
            "JFK-DEL": {"2025-06-01": [["f3"]]},
            "JFK-FRA-DEL": {"2025-06-01": [["f5", "f6"]]},
        },
    }


@pytest.fixture
def sample_results(sample_feed):
    return AwardResults.from_dict(sample_feed)


@pytest.fixture
def sample_cards(sample_results):
    return flatten_itineraries(sample_results)


# ---------------------------------------------------------------------------
# Pricing tables
# ---------------------------------------------------------------------------


@pytest.fixture
def pricing_data():
    """
    AC prices LH on North America-Europe by region; UA has no region table
    and prices LH and LX by distance only.
    """
    return InMemoryPricingData(
        airports=[
            {"iata": "YYZ", "name": "Toronto Pearson", "country_code": "CA", "latitude": 43.6777, "longitude": -79.6248},
            {"iata": "FRA", "name": "Frankfurt", "country_code": "DE", "latitude": 50.0379, "longitude": 8.5622},
            {"iata": "JFK", "name": "New York JFK", "country_code": "US", "latitude": 40.6413, "longitude": -73.7781},
            {"iata": "LHR", "name": "London Heathrow", "country_code": "GB", "latitude": 51.4700, "longitude": -0.4543},
            {"iata": "XNC", "name": "No Coordinates", "country_code": "US"},
            {"iata": "XNO", "name": "No Country", "latitude": 10.0, "longitude": 10.0},
        ],
        regions={
            "AC": {"CA": "North America", "US": "North America", "DE": "Europe", "GB": "Europe"},
        },
        rules={
            "AC": [
                {
                    "id": 1,
                    "priority": 1,
                    "type_single": "dist-region",
                    "dep_region": "North America",
                    "arr_region": "Europe",
                    "min_dist": 0,
                    "max_dist": 4000,
                    "airlines": ["LH", "AC"],
                    "economy": 35000,
                    "business": 70000,
                    "dynamic_out": False,
                },
                {
                    "id": 2,
                    "priority": 2,
                    "type_single": "region",
                    "dep_region": " North America ",
                    "arr_region": "Europe",
                    "airlines": ["LH", "AC"],
                    "economy": 40000,
                    "dynamic_out": {"F": True},
                },
            ],
            "UA": [
                {
                    "id": 10,
                    "priority": 1,
                    "type_single": "dist",
                    "min_dist": 0,
                    "max_dist": 10000,
                    "airlines": ["LH"],
                    "economy": 30000,
                    "business": 60000,
                },
                {
                    "id": 11,
                    "priority": 1,
                    "type_single": "dist",
                    "min_dist": 0,
                    "max_dist": 10000,
                    "airlines": ["LX"],
                    "economy": 25000,
                },
            ],
        },
        programs=[
            {"code": "AC", "name": "Air Canada", "ffp": "Aeroplan", "alliance": "SA"},
            {"code": "UA", "name": "United", "ffp": "MileagePlus", "alliance": "SA"},
            {"code": "BA", "name": "British Airways", "ffp": "Avios", "alliance": "OW"},
        ],
    )
