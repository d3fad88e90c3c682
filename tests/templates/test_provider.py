"""Tests for day-template providers."""

import pytest

from trip_progress.errors import TemplateError
from trip_progress.state.models import StopStatus, TransportMode, TripStop
from trip_progress.templates.provider import (
    ItineraryTemplateProvider,
    StaticTemplateProvider,
    fresh_day,
)


class TestFreshDay:
    """Test fresh_day seeding."""

    def test_first_stop_current_rest_upcoming(self):
        stops = [
            TripStop(id="1", name="One", status=StopStatus.COMPLETED),
            TripStop(id="2", name="Two", status=StopStatus.CURRENT),
            TripStop(id="3", name="Three", status=StopStatus.SKIPPED),
        ]

        seeded = fresh_day(stops)

        assert [s.status for s in seeded] == [
            StopStatus.CURRENT, StopStatus.UPCOMING, StopStatus.UPCOMING,
        ]

    def test_empty_day(self):
        assert fresh_day([]) == []


class TestStaticTemplateProvider:
    """Test the bundled catalog and YAML loading."""

    def test_bundled_catalog(self, provider):
        stops = provider.stops_for_day("Foodie Paradise Trail", 2)

        assert provider.total_days("Foodie Paradise Trail") == 3
        assert provider.theme_for("Foodie Paradise Trail") == "Food & Culture"
        assert [s.id for s in stops] == ["2-1", "2-2", "2-3", "2-4", "2-5"]
        assert stops[1].transport.mode == TransportMode.GRAB_BIKE
        assert stops[1].transport.cost == 25000

    def test_themes_without_templates(self, provider):
        assert provider.theme_for("Adventure Seeker's Dream") == "Adventure"
        assert provider.total_days("Adventure Seeker's Dream") == 3
        assert provider.stops_for_day("Adventure Seeker's Dream", 1)[0].id == "1-1"

    def test_unknown_trip_fallback(self, provider):
        day_three = provider.stops_for_day("Somewhere New", 3)

        assert provider.theme_for("Somewhere New") == "Explorer"
        assert [s.id for s in day_three] == ["3-1", "3-2", "3-3", "3-4"]
        assert day_three[0].status == StopStatus.CURRENT

    def test_missing_day_of_known_trip_falls_back(self, provider):
        stops = provider.stops_for_day("Beach & Culture Explorer", 4)
        assert [s.id for s in stops] == ["4-1", "4-2", "4-3", "4-4"]

    def test_each_call_returns_fresh_statuses(self, provider):
        first = provider.stops_for_day("Beach & Culture Explorer", 1)
        second = provider.stops_for_day("Beach & Culture Explorer", 1)

        assert first == second
        assert first is not second

    def test_resolve(self, provider):
        stops, total_days = provider.resolve("Beach & Culture Explorer", 1)
        assert len(stops) == 5
        assert total_days == 3

    def test_fallback_parameters(self):
        provider = StaticTemplateProvider.default(fallback_total_days=5, fallback_theme="Wanderer")

        assert provider.total_days("Unknown") == 5
        assert provider.theme_for("Unknown") == "Wanderer"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "fallback:\n"
            "  - {id: '1', name: Wander}\n"
            "trips:\n"
            "  City Break:\n"
            "    1:\n"
            "      - {id: c1, name: Museum, time: '9:00'}\n"
            "    2:\n"
            "      - {id: c2, name: Park}\n",
            encoding="utf-8",
        )

        provider = StaticTemplateProvider.from_yaml(path)

        assert provider.total_days("City Break") == 2
        assert provider.stops_for_day("City Break", 1)[0].scheduled_time == "9:00"

    def test_missing_file(self, tmp_path):
        with pytest.raises(TemplateError) as exc_info:
            StaticTemplateProvider.from_yaml(tmp_path / "absent.yaml")
        assert exc_info.value.source.endswith("absent.yaml")

    def test_empty_fallback_rejected(self):
        with pytest.raises(TemplateError):
            StaticTemplateProvider.from_dict({"trips": {}})

    def test_invalid_day_number(self):
        with pytest.raises(TemplateError) as exc_info:
            StaticTemplateProvider.from_dict({
                "fallback": [{"id": "1", "name": "X"}],
                "trips": {"Trip": {0: [{"id": "a", "name": "A"}]}},
            })
        assert exc_info.value.trip_name == "Trip"

    def test_malformed_stop(self):
        with pytest.raises(TemplateError):
            StaticTemplateProvider.from_dict({
                "fallback": [{"id": "1", "name": "X"}],
                "trips": {"Trip": {1: [{"id": "a", "name": "A", "status": "paused"}]}},
            })


class TestItineraryTemplateProvider:
    """Test templates built from itinerary items."""

    def _items(self):
        return [
            {"id": "i3", "dayNumber": 1, "orderIndex": 2, "startTime": "13:00",
             "location": {"name": "Han Market", "category": "shopping",
                          "address": "119 Tran Phu", "images": ["han.jpg"]}},
            {"id": "i1", "dayNumber": 1, "orderIndex": 0, "startTime": "08:00",
             "transportMode": "grab_bike", "transportDuration": 12, "transportCost": 30000,
             "location": {"name": "My Khe Beach", "category": "beach"}},
            {"id": "i2", "dayNumber": 1, "orderIndex": 1, "name": "Lunch",
             "transportMode": "walk", "transportDuration": 5},
            {"id": "i4", "dayNumber": 2, "orderIndex": 0,
             "location": {"name": "Marble Mountains"}},
        ]

    def test_items_grouped_and_ordered(self):
        provider = ItineraryTemplateProvider({"Da Nang": self._items()})

        stops = provider.stops_for_day("Da Nang", 1)

        assert [s.id for s in stops] == ["i1", "i2", "i3"]
        assert [s.name for s in stops] == ["My Khe Beach", "Lunch", "Han Market"]
        assert stops[0].status == StopStatus.CURRENT
        assert stops[2].image_ref == "han.jpg"
        assert stops[2].category == "shopping"

    def test_transport_comes_from_previous_item(self):
        provider = ItineraryTemplateProvider({"Da Nang": self._items()})

        stops = provider.stops_for_day("Da Nang", 1)

        assert stops[0].transport is None
        assert stops[1].transport.mode == TransportMode.GRAB_BIKE
        assert stops[1].transport.duration_label == "12 min"
        assert stops[1].transport.cost == 30000
        assert stops[2].transport.mode == TransportMode.WALK

    def test_total_days_and_fallback(self):
        provider = ItineraryTemplateProvider({"Da Nang": self._items()}, themes={"Da Nang": "Coast"})

        assert provider.total_days("Da Nang") == 2
        assert provider.theme_for("Da Nang") == "Coast"
        assert provider.total_days("Other") == 3
        assert provider.theme_for("Other") == "Explorer"
        assert [s.id for s in provider.stops_for_day("Da Nang", 3)] == ["3-1", "3-2", "3-3", "3-4"]

    def test_item_without_day_number(self):
        with pytest.raises(TemplateError):
            ItineraryTemplateProvider({"Broken": [{"id": "x"}]})

    def test_unknown_transport_mode(self):
        items = [
            {"id": "a", "dayNumber": 1, "orderIndex": 0, "transportMode": "teleport"},
            {"id": "b", "dayNumber": 1, "orderIndex": 1},
        ]

        with pytest.raises(TemplateError) as exc_info:
            ItineraryTemplateProvider({"Broken": items})

        assert "teleport" in str(exc_info.value)

    def test_item_without_id(self):
        with pytest.raises(TemplateError):
            ItineraryTemplateProvider({"Broken": [{"dayNumber": 1, "name": "Nameless"}]})
