"""Filter facet metadata."""

from datetime import datetime

from award_finder.filter_metadata import (
    convert_to_airline_meta,
    convert_to_airport_meta,
    default_filter_metadata,
    extract_filter_metadata,
)
from award_finder.utils import to_epoch_ms


class TestExtract:
    def test_values(self, sample_cards):
        metadata = extract_filter_metadata(sample_cards)
        assert metadata.stops == [0, 1]
        assert metadata.airlines == ["AA", "AI", "LH"]
        assert metadata.origins == ["JFK"]
        assert metadata.destinations == ["DEL"]
        assert metadata.connections == ["FRA", "LHR"]
        assert metadata.duration.to_dict() == {"min": 840, "max": 1140}
        assert metadata.departure.min == to_epoch_ms(datetime(2025, 6, 1, 17, 0))
        assert metadata.arrival.max == to_epoch_ms(datetime(2025, 6, 2, 22, 30))
        assert metadata.cabin_classes["j"].to_dict() == {"min": 0, "max": 100}
        assert metadata.cabin_classes["f"].to_dict() == {"min": 0, "max": 0}

    def test_visibility(self, sample_cards):
        visible = extract_filter_metadata(sample_cards).visible_facets()
        assert visible["stops"]
        assert visible["airlines"]
        assert visible["connection"]
        assert not visible["origin"]
        assert not visible["destination"]
        assert visible["duration"]
        assert visible["j"]
        assert not visible["f"]

    def test_single_itinerary_hides_everything_but_cabins(self, sample_cards):
        visible = extract_filter_metadata(sample_cards[1:2]).visible_facets()
        assert not any(visible[name] for name in ("stops", "airlines", "duration", "departure", "arrival"))

    def test_empty(self):
        metadata = extract_filter_metadata([])
        assert metadata.stops == []
        assert metadata.departure is None
        assert metadata.duration.to_dict() == {"min": 0, "max": 0}
        assert metadata.to_dict()["airports"] == {"origins": [], "destinations": [], "connections": []}

    def test_to_dict_shape(self, sample_cards):
        data = extract_filter_metadata(sample_cards).to_dict()
        assert set(data) == {"stops", "airlines", "airports", "duration", "departure", "arrival", "cabinClasses"}


def test_default_metadata():
    metadata = default_filter_metadata()
    assert metadata.stops == [0, 1, 2, 3, 4]
    assert metadata.duration.max == 1440


def test_airport_meta(sample_cards):
    metadata = extract_filter_metadata(sample_cards)
    meta = convert_to_airport_meta(metadata, names={"LHR": "London Heathrow"})
    assert [(m.code, m.role) for m in meta] == [
        ("JFK", "origin"),
        ("DEL", "destination"),
        ("FRA", "connection"),
        ("LHR", "connection"),
    ]
    assert meta[3].name == "London Heathrow"
    assert meta[0].name == "JFK"


def test_airline_meta(sample_cards):
    meta = convert_to_airline_meta(extract_filter_metadata(sample_cards))
    assert [m.to_dict() for m in meta][0] == {"code": "AA", "name": "AA"}
