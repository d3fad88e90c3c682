"""
Day-template resolution.

A template provider turns a trip display name and a day number into the
ordered stop list that seeds that day, and reports how many days the trip
has and which theme it belongs to. The store only talks to the
``TemplateProvider`` interface, so the static catalog can be swapped for the
traveler's real itinerary without touching the transition logic.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import structlog
import yaml

from ..errors import TemplateError
from ..state.models import StopStatus, Transport, TransportMode, TripStop

logger = structlog.get_logger(__name__)

CATALOG_PATH = Path(__file__).parent / "catalog.yaml"

DEFAULT_TOTAL_DAYS = 3
DEFAULT_THEME = "Explorer"


def fresh_day(stops: Iterable[TripStop]) -> list[TripStop]:
    """
    Copy a stop list as a day that has not been started.

    Any status carried by the source is discarded: the first stop becomes
    current and every other stop upcoming.
    """
    return [
        stop.with_status(StopStatus.CURRENT if idx == 0 else StopStatus.UPCOMING)
        for idx, stop in enumerate(stops)
    ]


class TemplateProvider(ABC):
    """Source of per-day stop lists, day counts and themes for named trips."""

    @abstractmethod
    def stops_for_day(self, trip_name: str, day: int) -> list[TripStop]:
        """Fresh stop list for ``day`` of ``trip_name``."""

    @abstractmethod
    def total_days(self, trip_name: str) -> int:
        """Number of days the trip spans."""

    @abstractmethod
    def theme_for(self, trip_name: str) -> str:
        """Display theme of the trip."""

    def resolve(self, trip_name: str, day: int) -> tuple[list[TripStop], int]:
        """Stops for the day together with the trip's total day count."""
        return self.stops_for_day(trip_name, day), self.total_days(trip_name)


class StaticTemplateProvider(TemplateProvider):
    """
    Name-keyed template table.

    Unknown trip names, and days a known template does not define, fall back
    to a generic day whose stop ids are prefixed with the day number so ids
    stay unique across materialized days.
    """

    def __init__(
        self,
        templates: dict[str, dict[int, list[TripStop]]],
        fallback_stops: list[TripStop],
        themes: Optional[dict[str, str]] = None,
        fallback_total_days: int = DEFAULT_TOTAL_DAYS,
        fallback_theme: str = DEFAULT_THEME,
    ):
        if not fallback_stops:
            raise TemplateError("Fallback day template must define at least one stop")

        self.templates = templates
        self.fallback_stops = fallback_stops
        self.themes = themes or {}
        self.fallback_total_days = fallback_total_days
        self.fallback_theme = fallback_theme

    @classmethod
    def default(cls, **kwargs) -> "StaticTemplateProvider":
        """Provider backed by the catalog shipped with the package."""
        return cls.from_yaml(CATALOG_PATH, **kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **kwargs) -> "StaticTemplateProvider":
        """Load a template catalog document from a YAML file."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise TemplateError(f"Cannot read template catalog: {e}", source=str(path)) from e

        provider = cls.from_dict(document or {}, source=str(path), **kwargs)
        logger.info(
            "Loaded template catalog",
            source=str(path),
            trips=len(provider.templates),
        )
        return provider

    @classmethod
    def from_dict(
        cls,
        document: dict[str, Any],
        source: str = "<dict>",
        **kwargs
    ) -> "StaticTemplateProvider":
        """
        Build a provider from a catalog document.

        Expected layout::

            themes: {<trip name>: <theme>}
            fallback: [<stop>, ...]
            trips:
              <trip name>:
                <day number>: [<stop>, ...]
        """
        if not isinstance(document, dict):
            raise TemplateError("Template catalog must be a mapping", source=source)

        fallback = _parse_stops(document.get("fallback") or [], source, trip_name=None)

        templates: dict[str, dict[int, list[TripStop]]] = {}
        for trip_name, days in (document.get("trips") or {}).items():
            if not isinstance(days, dict):
                raise TemplateError(
                    "Trip template must map day numbers to stop lists",
                    source=source,
                    trip_name=trip_name,
                )
            parsed_days = {}
            for day, stops in days.items():
                try:
                    day_number = int(day)
                except (TypeError, ValueError) as e:
                    raise TemplateError(
                        f"Invalid day number: {day!r}", source=source, trip_name=trip_name
                    ) from e
                if day_number < 1:
                    raise TemplateError(
                        f"Day numbers start at 1, got {day_number}",
                        source=source,
                        trip_name=trip_name,
                    )
                parsed_days[day_number] = _parse_stops(stops or [], source, trip_name)
            templates[str(trip_name)] = parsed_days

        themes = {str(k): str(v) for k, v in (document.get("themes") or {}).items()}
        return cls(templates=templates, fallback_stops=fallback, themes=themes, **kwargs)

    def stops_for_day(self, trip_name: str, day: int) -> list[TripStop]:
        template = self.templates.get(trip_name)
        if template and template.get(day):
            return fresh_day(template[day])

        return fresh_day(
            replace(stop, id=f"{day}-{stop.id}")
            for stop in self.fallback_stops
        )

    def total_days(self, trip_name: str) -> int:
        template = self.templates.get(trip_name)
        if template:
            return len(template)
        return self.fallback_total_days

    def theme_for(self, trip_name: str) -> str:
        return self.themes.get(trip_name, self.fallback_theme)


class ItineraryTemplateProvider(TemplateProvider):
    """
    Templates derived from itinerary items of the authoring subsystem.

    Items carry ``dayNumber`` and ``orderIndex`` plus optional location data.
    The transport fields of an itinerary item describe the leg to the *next*
    item, so they are attached to the following stop. Days the itinerary does
    not cover are delegated to the fallback provider.
    """

    def __init__(
        self,
        itineraries: dict[str, list[dict[str, Any]]],
        fallback: Optional[TemplateProvider] = None,
        themes: Optional[dict[str, str]] = None,
    ):
        self.fallback = fallback or StaticTemplateProvider.default()
        self.themes = themes or {}
        self.days: dict[str, dict[int, list[TripStop]]] = {
            name: self._group_items(name, items) for name, items in itineraries.items()
        }

    def _group_items(self, trip_name: str, items: list[dict[str, Any]]) -> dict[int, list[TripStop]]:
        by_day: dict[int, list[dict[str, Any]]] = {}
        for item in items:
            try:
                day_number = int(item["dayNumber"])
            except (KeyError, TypeError, ValueError) as e:
                raise TemplateError(
                    "Itinerary item is missing a valid dayNumber",
                    source="itinerary",
                    trip_name=trip_name,
                ) from e
            by_day.setdefault(day_number, []).append(item)

        days = {}
        for day_number, day_items in by_day.items():
            day_items.sort(key=lambda i: i.get("orderIndex", 0))
            stops = []
            previous = None
            for item in day_items:
                try:
                    stops.append(self._item_to_stop(item, previous))
                except (KeyError, TypeError, ValueError) as e:
                    raise TemplateError(
                        f"Malformed itinerary item on day {day_number}: {e}",
                        source="itinerary",
                        trip_name=trip_name,
                    ) from e
                previous = item
            days[day_number] = stops
        return days

    @staticmethod
    def _item_to_stop(item: dict[str, Any], previous: Optional[dict[str, Any]]) -> TripStop:
        location = item.get("location") or {}

        transport = None
        if previous and previous.get("transportMode"):
            minutes = previous.get("transportDuration")
            transport = Transport(
                mode=TransportMode(previous["transportMode"]),
                duration_label=f"{minutes} min" if minutes is not None else "",
                cost=previous.get("transportCost"),
            )

        images = location.get("images") or []
        return TripStop(
            id=str(item["id"]),
            name=item.get("name") or location.get("name", "Unnamed stop"),
            category=location.get("category") or item.get("type", "activity"),
            scheduled_time=item.get("startTime") or "",
            duration_label=item.get("duration") or "",
            address=location.get("address", ""),
            image_ref=images[0] if images else "",
            transport=transport,
        )

    def stops_for_day(self, trip_name: str, day: int) -> list[TripStop]:
        days = self.days.get(trip_name)
        if days and days.get(day):
            return fresh_day(days[day])
        return self.fallback.stops_for_day(trip_name, day)

    def total_days(self, trip_name: str) -> int:
        days = self.days.get(trip_name)
        if days:
            return max(days)
        return self.fallback.total_days(trip_name)

    def theme_for(self, trip_name: str) -> str:
        if trip_name in self.themes:
            return self.themes[trip_name]
        return self.fallback.theme_for(trip_name)


def _parse_stops(raw_stops: Any, source: str, trip_name: Optional[str]) -> list[TripStop]:
    if not isinstance(raw_stops, list):
        raise TemplateError("Stop list must be a sequence", source=source, trip_name=trip_name)

    stops = []
    for raw in raw_stops:
        try:
            stops.append(TripStop.from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise TemplateError(
                f"Malformed stop entry {raw!r}: {e}",
                source=source,
                trip_name=trip_name,
            ) from e
    return stops
