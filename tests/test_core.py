"""End-to-end evaluation pipeline."""

import pytest

from award_finder import FilterState, evaluate_results
from award_finder.errors import AwardFinderException, ErrorCode
from award_finder.models import ReliabilityEntry


def routes(evaluated):
    return [item.itinerary.route for item in evaluated.itineraries]


def test_default_pipeline(sample_feed):
    evaluated = evaluate_results(sample_feed)
    assert evaluated.sort_by == "duration"
    assert evaluated.total_itineraries == 3
    assert evaluated.reliable_itineraries == 3
    assert evaluated.filtered_itineraries == 3
    assert routes(evaluated) == ["JFK-DEL", "JFK-LHR-DEL", "JFK-FRA-DEL"]


def test_metrics_attached(sample_feed):
    evaluated = evaluate_results(sample_feed, sort_by="j")
    first = evaluated.itineraries[0]
    assert first.itinerary.route == "JFK-LHR-DEL"
    assert first.total_duration == 1140
    assert first.layovers == [180]
    assert first.percentages.to_dict() == {"y": 0, "w": 0, "j": 100, "f": 0}


def test_reliability_then_filters(sample_feed):
    evaluated = evaluate_results(
        sample_feed,
        reliability=[{"code": "LH", "min_count": 5}],
        filters=FilterState.build(stops=[1]),
    )
    assert evaluated.reliable_itineraries == 2
    assert routes(evaluated) == ["JFK-LHR-DEL"]
    assert evaluated.filters_applied == ["Stops: 1"]


def test_metadata_ignores_facet_filters(sample_feed):
    evaluated = evaluate_results(sample_feed, filters=FilterState.build(stops=[0]))
    assert evaluated.metadata.stops == [0, 1]


def test_paging(sample_feed):
    evaluated = evaluate_results(sample_feed, page=2, page_size=2)
    assert routes(evaluated) == ["JFK-FRA-DEL"]
    assert evaluated.page.total_pages == 2


def test_to_dict(sample_feed):
    data = evaluate_results(sample_feed, page_size=1).to_dict()
    item = data["page"]["items"][0]
    assert item["route"] == "JFK-DEL"
    assert item["total_duration"] == 840
    assert item["class_percentages"]["y"] == 100
    assert data["filter_metadata"]["airlines"] == ["AA", "AI", "LH"]


def test_invalid_sort_key(sample_feed):
    with pytest.raises(AwardFinderException) as exc_info:
        evaluate_results(sample_feed, sort_by="cheapest")
    assert exc_info.value.code == ErrorCode.INVALID_SORT_KEY


def test_malformed_feed():
    with pytest.raises(AwardFinderException) as exc_info:
        evaluate_results({"flights": {"x": {"FlightNumbers": "AA1"}}, "itineraries": []})
    assert exc_info.value.code == ErrorCode.INVALID_FEED


def test_display_strings(sample_feed):
    item = evaluate_results(sample_feed, sort_by="j").to_dict()["page"]["items"][0]
    assert item["duration_display"] == "19h 0m"
    assert item["layovers_display"] == ["3h"]


def test_reliability_by_airline_code(sample_feed):
    evaluated = evaluate_results(sample_feed, reliability={"lh": {"min_count": 5}})
    assert evaluated.reliable_itineraries == 2
    assert "JFK-FRA-DEL" not in routes(evaluated)


def test_reliability_map_accepts_entries(sample_feed):
    rows = {"LH": ReliabilityEntry(code="LH", min_count=5), "AI": {"min_count": 1, "exemption": "J"}}
    assert evaluate_results(sample_feed, reliability=rows).reliable_itineraries == 2


def test_card_key_independent_of_reliability(sample_feed):
    sample_feed["itineraries"]["JFK-DEL"]["2025-06-01"] = [["f5"], ["f3"]]
    lenient = evaluate_results(sample_feed, filters=FilterState.build(stops=[0]))
    strict = evaluate_results(sample_feed, reliability={"LH": {"min_count": 5}}, filters=FilterState.build(stops=[0]))
    lenient_keys = {item.itinerary.flight_ids: item.itinerary.key for item in lenient.itineraries}
    strict_keys = {item.itinerary.flight_ids: item.itinerary.key for item in strict.itineraries}
    assert strict_keys == {("f3",): ("JFK-DEL", "2025-06-01", 1)}
    assert lenient_keys[("f3",)] == strict_keys[("f3",)]
