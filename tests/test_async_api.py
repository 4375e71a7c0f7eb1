"""Concurrent source fetching and merging."""

import asyncio
import time

from award_finder.async_api import fetch_sources, fetch_sources_sync, merge_results
from award_finder.errors import ErrorCode
from award_finder.schema import AwardResults


def _feed(flight_id, number, route="JFK-LHR"):
    return {
        "flights": {
            flight_id: {
                "FlightNumbers": number,
                "DepartsAt": "2025-06-01T18:00:00",
                "ArrivesAt": "2025-06-02T06:00:00",
                "TotalDuration": 420,
                "YCount": 2,
            },
        },
        "itineraries": [{"route": route, "date": "2025-06-01", "itinerary": [flight_id]}],
    }


def _fails():
    raise ConnectionError("connection refused")


def _slow():
    time.sleep(0.5)
    return _feed("s1", "UA1")


class TestFetchSources:
    def test_failure_is_isolated(self):
        results = asyncio.run(fetch_sources({
            "AC": lambda: _feed("a1", "AC850"),
            "UA": _fails,
        }, timeout=5))

        assert [r.source for r in results] == ["AC", "UA"]
        assert results[0].success
        assert isinstance(results[0].data, AwardResults)
        assert not results[1].success
        assert results[1].error.code == ErrorCode.SOURCE_FAILED
        assert results[1].error.details["source"] == "UA"

    def test_timeout(self):
        results = asyncio.run(fetch_sources({
            "slow": _slow,
            "fast": lambda: _feed("f1", "AC1"),
        }, timeout=0.05))

        by_source = {r.source: r for r in results}
        assert by_source["slow"].error.code == ErrorCode.SOURCE_TIMEOUT
        assert by_source["fast"].success

    def test_malformed_feed(self):
        results = asyncio.run(fetch_sources({
            "bad": lambda: {"flights": {"x": {"FlightNumbers": "AA1"}}},
        }, timeout=5))
        assert results[0].error.code == ErrorCode.INVALID_FEED

    def test_non_dict_payload(self):
        results = asyncio.run(fetch_sources({"bad": lambda: "nope"}, timeout=5))
        assert results[0].error.code == ErrorCode.INVALID_FEED

    def test_concurrency_limit_keeps_order(self):
        sources = {name: (lambda n=name: _feed(n, "AC1")) for name in ("a", "b", "c")}
        results = asyncio.run(fetch_sources(sources, timeout=5, max_concurrent=1))
        assert [r.source for r in results] == ["a", "b", "c"]
        assert all(r.success for r in results)

    def test_sync_wrapper(self):
        results = fetch_sources_sync({"AC": lambda: _feed("a1", "AC850")}, timeout=5)
        assert results[0].success
        assert results[0].to_dict()["error"] is None


class TestMerge:
    def test_union_and_failures(self):
        results = fetch_sources_sync({
            "AC": lambda: _feed("a1", "AC850"),
            "UA": lambda: _feed("u1", "UA900", route="EWR-LHR"),
            "LH": _fails,
        }, timeout=5)
        merged = merge_results(results)

        assert merged.succeeded == ["AC", "UA"]
        assert list(merged.failed) == ["LH"]
        assert merged.partial
        assert set(merged.results.flights) == {"a1", "u1"}
        assert [card["route"] for card in merged.results.itineraries] == ["JFK-LHR", "EWR-LHR"]

    def test_duplicate_cards_collapsed(self):
        results = fetch_sources_sync({
            "AC": lambda: _feed("a1", "AC850"),
            "AC-mirror": lambda: _feed("a1", "AC850"),
        }, timeout=5)
        merged = merge_results(results)
        assert len(merged.results.itineraries) == 1
        assert not merged.partial

    def test_ordinal_clash_renumbered(self):
        results = fetch_sources_sync({
            "AC": lambda: _feed("a1", "AC850"),
            "UA": lambda: _feed("u1", "UA900"),
        }, timeout=5)
        cards = merge_results(results).results.itineraries
        assert [(card["itinerary"], card["ordinal"]) for card in cards] == [(["a1"], 0), (["u1"], 1)]
        # Source feeds are left as parsed
        assert results[1].data.itineraries[0]["ordinal"] == 0
