"""
Canned place suggestions used to fill days the user's saved places do not cover.

The catalog is a static, read-only mapping keyed by destination name, loaded
once from JSON. Suggested places are synthetic: they are never persisted and
are always flagged as suggested/tentative on the days they produce.
"""
import json
import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from src.models.place_models import SavedPlace, OptimizedPlace, Priority
from src.models.request_models import RouteType, TripCoordinate
from src.models.response_models import DayItinerary
from src.utils.config import get_settings
from src.utils.formatters import ResponseFormatter, DurationFormatter

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "suggestion_catalog.json"


class SuggestionCatalog:
    """Immutable destination name -> suggested places lookup"""

    def __init__(self, entries: Mapping[str, Iterable[SavedPlace]]):
        self._entries: Mapping[str, Tuple[SavedPlace, ...]] = MappingProxyType({
            name: tuple(place.model_copy(update={"destination_name": name}) for place in places)
            for name, places in entries.items()
        })
        self._folded = {name.casefold(): name for name in self._entries}

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "SuggestionCatalog":
        catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
        with open(catalog_path, encoding="utf-8") as fh:
            raw: Dict[str, List[dict]] = json.load(fh)
        catalog = cls({name: [SavedPlace(**item) for item in items] for name, items in raw.items()})
        logger.info("Loaded suggestion catalog", extra={"path": str(catalog_path), "destinations": len(catalog)})
        return catalog

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, destination_name: str) -> bool:
        return self.get(destination_name) is not None

    @property
    def destinations(self) -> List[str]:
        return list(self._entries)

    def get(self, destination_name: str) -> Optional[Tuple[SavedPlace, ...]]:
        if destination_name in self._entries:
            return self._entries[destination_name]
        key = self._folded.get((destination_name or "").strip().casefold())
        return self._entries[key] if key else None


def generic_destination_activities(destination_name: str) -> List[SavedPlace]:
    """Six generic activities for destinations the catalog does not know"""
    base_id = "generic-" + re.sub(r"\s+", "-", destination_name.strip().lower())
    templates = [
        (f"Historic Center of {destination_name}", "Historic District", 4.3, "🏛️",
         f"Explore the historic heart of {destination_name} with its architecture and cultural sites", "2-3 hours", Priority.HIGH),
        ("Local Market Tour", "Market", 4.1, "🛒",
         f"Experience local culture and cuisine at {destination_name}'s traditional markets", "1-2 hours", Priority.MEDIUM),
        ("City Walking Tour", "Walking Tour", 4.4, "🚶",
         f"Guided walking tour to discover the main attractions of {destination_name}", "2-3 hours", Priority.MEDIUM),
        ("Local Restaurant Experience", "Dining", 4.2, "🍽️",
         f"Taste authentic local cuisine at recommended restaurants in {destination_name}", "1-2 hours", Priority.LOW),
        ("Cultural Museum Visit", "Museum", 4.0, "🎨",
         f"Learn about the history and culture of {destination_name} at local museums", "2 hours", Priority.MEDIUM),
        ("Scenic Viewpoint", "Viewpoint", 4.5, "🌄",
         f"Visit the best viewpoints for panoramic views of {destination_name}", "1 hour", Priority.LOW),
    ]
    return [
        SavedPlace(
            id=f"{base_id}-{index + 1}",
            name=name,
            category=category,
            rating=rating,
            image=image,
            description=description,
            estimated_time=estimated_time,
            priority=priority,
            destination_name=destination_name
        )
        for index, (name, category, rating, image, description, estimated_time, priority) in enumerate(templates)
    ]


class PlaceSuggestionFiller:
    def __init__(self, catalog: Optional[SuggestionCatalog] = None, generic_fallback: Optional[bool] = None):
        settings = get_settings()
        self.catalog = catalog or SuggestionCatalog.from_file(settings.SUGGESTION_CATALOG_PATH)
        self.generic_fallback = settings.SUGGESTIONS_GENERIC_FALLBACK if generic_fallback is None else generic_fallback
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def suggestion_count(route_type: RouteType) -> int:
        return 1 if RouteType.parse(route_type) == RouteType.LEISURE else 2

    def get_suggested_places(self, destination_name: str, existing_place_ids: Iterable[str],
                             count: Optional[int] = None) -> List[SavedPlace]:
        """Catalog places for the destination that are not already in use.

        Unknown destinations yield an empty list unless the generic fallback is enabled.
        """
        available = self.catalog.get(destination_name)
        if available is None:
            if not self.generic_fallback:
                self.logger.debug("No suggestions for destination", extra={"destination": destination_name})
                return []
            available = generic_destination_activities(destination_name)

        used = set(existing_place_ids or [])
        suggestions = [place for place in available if place.id not in used]
        return suggestions if count is None else suggestions[:max(count, 0)]

    def _to_suggested_places(self, places: List[SavedPlace], destination: TripCoordinate,
                             durations: List[str], times: List[str]) -> List[OptimizedPlace]:
        optimized = []
        for index, place in enumerate(places):
            data = place.model_dump()
            data.update({
                "lat": place.lat if place.lat is not None else destination.lat,
                "lng": place.lng if place.lng is not None else destination.lng,
                "destination_name": destination.name,
                "ai_recommended_duration": durations[index],
                "best_time_to_visit": times[index],
                "order_in_route": index + 1,
                "is_suggested": True,
            })
            optimized.append(OptimizedPlace(**data))
        return optimized

    def create_suggested_day(self, day_number: int, date_label: str, destination: TripCoordinate,
                             existing_place_ids: Iterable[str], route_type: RouteType) -> DayItinerary:
        """A day for an allocated date the saved places did not reach"""
        route_type = RouteType.parse(route_type)
        places = self.get_suggested_places(destination.name, existing_place_ids, self.suggestion_count(route_type))

        if route_type == RouteType.SPEED:
            durations = ["1 hour" for _ in places]
            times = [ResponseFormatter.format_clock(10 + i * 3) for i in range(len(places))]
        elif route_type == RouteType.LEISURE:
            durations = [DurationFormatter.upper_bound(p.estimated_time) for p in places]
            times = ["11:00 AM" for _ in places]
        else:
            durations = [DurationFormatter.lower_bound(p.estimated_time) for p in places]
            times = ["10:00 AM" if i == 0 else "2:00 PM" for i in range(len(places))]

        n = len(places)
        return DayItinerary(
            day=day_number,
            date=date_label,
            destination_name=destination.name,
            places=self._to_suggested_places(places, destination, durations, times),
            total_time=ResponseFormatter.format_hours(n * 1.5),
            walking_time="20 minutes",
            transport_time="15 minutes",
            free_time=ResponseFormatter.format_hours(max(4, 8 - n * 1.5)),
            allocated_days=1,
            is_suggested=True,
            is_tentative=True
        )

    def create_tentative_destination_day(self, day_number: int, date_label: str, destination: TripCoordinate,
                                         route_type: RouteType, day_index: int, total_days: int) -> DayItinerary:
        """A full suggested day for a destination with no saved places at all"""
        route_type = RouteType.parse(route_type)
        activities = self.get_suggested_places(destination.name, [])

        if route_type == RouteType.SPEED:
            high = [p for p in activities if p.priority == Priority.HIGH]
            medium = [p for p in activities if p.priority == Priority.MEDIUM]
            selected = (high[day_index * 2:day_index * 2 + 2] + medium[day_index:day_index + 2])[:4]
            durations = ["1-2 hours" for _ in selected]
            times = [ResponseFormatter.format_clock(9 + i * 2) for i in range(len(selected))]
        elif route_type == RouteType.LEISURE:
            selected = activities[day_index * 2:day_index * 2 + 2]
            durations = ["2-3 hours" for _ in selected]
            times = [ResponseFormatter.format_clock(10 + i * 3) for i in range(len(selected))]
        else:
            selected = activities[day_index * 3:day_index * 3 + 3]
            durations = [p.estimated_time for p in selected]
            times = [ResponseFormatter.format_clock(9 + i * 2) for i in range(len(selected))]

        n = len(selected)
        hours_per_place = {RouteType.SPEED: 1.5, RouteType.LEISURE: 2.5}.get(route_type, 2)
        free_hours = {RouteType.SPEED: 2, RouteType.LEISURE: 5}.get(route_type, 3)
        return DayItinerary(
            day=day_number,
            date=date_label,
            destination_name=destination.name,
            places=self._to_suggested_places(selected, destination, durations, times),
            total_time=ResponseFormatter.format_hours(n * hours_per_place),
            walking_time="45 minutes" if route_type == RouteType.SPEED else "30 minutes",
            transport_time="30 minutes" if route_type == RouteType.SPEED else "20 minutes",
            free_time=ResponseFormatter.format_hours(free_hours),
            allocated_days=total_days,
            is_suggested=True,
            is_tentative=True
        )
