"""Duration, layover and cabin percentage calculations."""

import pytest

from award_finder.itinerary import (
    ClassPercentages,
    class_percentages,
    flatten_itineraries,
    layovers,
    total_duration,
)
from award_finder.schema import AwardResults, Itinerary


class TestDuration:
    def test_single_segment_is_its_own_duration(self, make_flight):
        assert total_duration([make_flight(duration=95)]) == 95

    def test_layover_added_between_segments(self, make_flight):
        flights = [
            make_flight("AA1", "2025-06-01T08:00:00", "2025-06-01T10:00:00", 120),
            make_flight("AA2", "2025-06-01T11:30:00", "2025-06-01T13:00:00", 90),
        ]
        assert layovers(flights) == [90]
        assert total_duration(flights) == 120 + 90 + 90

    def test_layover_rounds_half_up(self, make_flight):
        flights = [
            make_flight("AA1", "2025-06-01T08:00:00", "2025-06-01T10:00:00", 120),
            make_flight("AA2", "2025-06-01T10:45:30", "2025-06-01T12:00:00", 75),
        ]
        assert layovers(flights) == [46]

    def test_negative_layover_clamped_to_zero(self, make_flight):
        # Departures are ordered but the second leaves before the first lands
        flights = [
            make_flight("AA1", "2025-06-01T08:00:00", "2025-06-01T12:00:00", 240),
            make_flight("AA2", "2025-06-01T11:00:00", "2025-06-01T13:00:00", 120),
        ]
        assert layovers(flights) == [0]
        assert total_duration(flights) == 360

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            total_duration([])

    def test_sample_itinerary(self, sample_cards):
        by_route = {card.route: card for card in sample_cards}
        assert total_duration(by_route["JFK-LHR-DEL"].flights) == 420 + 180 + 540
        assert total_duration(by_route["JFK-DEL"].flights) == 840


class TestClassPercentages:
    def test_business_over_two_segments(self, make_flight):
        flights = [
            make_flight("AA100", "2025-06-01T18:00:00", "2025-06-02T06:00:00", 420, y=5, j=2),
            make_flight("AI162", "2025-06-02T09:00:00", "2025-06-02T22:00:00", 540, y=0, j=3),
        ]
        assert class_percentages(flights) == ClassPercentages(y=0, w=0, j=100, f=0)

    def test_economy_is_all_or_nothing(self, make_flight):
        flights = [
            make_flight("AA1", duration=100, y=1),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 60, y=2),
        ]
        assert class_percentages(flights).y == 100
        flights[1] = flights[1].with_counts({"Y": 0})
        assert class_percentages(flights).y == 0

    def test_premium_suppressed_by_business_anywhere(self, make_flight):
        flights = [
            make_flight("AA1", duration=100, w=2),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 100, j=1),
        ]
        pct = class_percentages(flights)
        assert pct.w == 0
        assert pct.j == 50

    def test_business_suppressed_by_first(self, make_flight):
        flights = [
            make_flight("AA1", duration=100, j=2),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 100, f=1),
        ]
        pct = class_percentages(flights)
        assert pct.j == 0
        assert pct.f == 50

    def test_premium_weighted_by_duration(self, make_flight):
        flights = [
            make_flight("AA1", duration=300, w=2),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 100),
        ]
        assert class_percentages(flights).w == 75

    def test_half_rounds_up(self, make_flight):
        flights = [
            make_flight("AA1", duration=100, f=1),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 700),
        ]
        # 12.5% rounds to 13, not to the even 12
        assert class_percentages(flights).f == 13

    def test_zero_flight_time_gives_zero(self, make_flight):
        flights = [make_flight("AA1", duration=0, j=1, f=1)]
        pct = class_percentages(flights)
        assert pct.j == 0
        assert pct.f == 0

    def test_bounds(self, sample_cards):
        for card in sample_cards:
            for value in class_percentages(card.flights).to_dict().values():
                assert 0 <= value <= 100


class TestFlatten:
    def test_cards_in_feed_order(self, sample_cards):
        assert [card.route for card in sample_cards] == ["JFK-LHR-DEL", "JFK-DEL", "JFK-FRA-DEL"]
        assert sample_cards[0].flight_ids == ("f1", "f2")

    def test_unknown_flight_skipped(self, sample_feed):
        sample_feed["itineraries"]["JFK-DEL"]["2025-06-01"].insert(0, ["missing"])
        cards = flatten_itineraries(AwardResults.from_dict(sample_feed))
        nonstop = [card for card in cards if card.route == "JFK-DEL"]
        assert len(nonstop) == 1
        # Ordinal still counts the skipped card
        assert nonstop[0].ordinal == 1

    def test_out_of_order_segments_skipped(self, sample_feed):
        sample_feed["itineraries"]["JFK-LHR-DEL"]["2025-06-01"] = [["f2", "f1"]]
        cards = flatten_itineraries(AwardResults.from_dict(sample_feed))
        assert "JFK-LHR-DEL" not in [card.route for card in cards]


class TestItineraryInvariants:
    def test_empty_itinerary_rejected(self):
        with pytest.raises(ValueError):
            Itinerary(route="JFK-LHR", date="2025-06-01", flights=())

    def test_disconnected_segments_rejected(self, make_flight):
        flights = (
            make_flight("AA1", origin="JFK", destination="LHR"),
            make_flight("AA2", "2025-06-01T12:00:00", "2025-06-01T13:00:00", 60, origin="CDG", destination="DEL"),
        )
        with pytest.raises(ValueError, match="Disconnected"):
            Itinerary(route="JFK-LHR-DEL", date="2025-06-01", flights=flights)

    def test_derived_fields(self, sample_cards):
        card = sample_cards[0]
        assert card.key == ("JFK-LHR-DEL", "2025-06-01", 0)
        assert card.stops == 1
        assert card.origin == "JFK"
        assert card.destination == "DEL"
        assert card.connections == ["LHR"]
        assert card.airline_codes == ["AA", "AI"]
