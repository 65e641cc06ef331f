import logging
import math
from typing import Dict, List, Optional

from src.models.place_models import SavedPlace, OptimizedPlace
from src.models.request_models import RouteType, TripCoordinate
from src.utils.config import get_settings
from src.utils.formatters import ResponseFormatter, DurationFormatter

# Best time to visit, by position in the day, for balanced and leisure days
_CURRENT_VISIT_HOURS = [9, 13, 16, 18]
_LEISURE_VISIT_HOURS = [10, 15, 18]


class ItineraryDistributor:
    """
    Bucket a destination's saved places into per-day groups.

    current  - ceil(n / days) places per day, nothing dropped
    speed    - at most ``speed_max_places_per_day`` per day; the tail beyond
               cap * days is dropped
    leisure  - max(1, n // days) per day; the tail beyond that is dropped

    Time estimates are fixed per-place multipliers, not a travel-time model.
    """

    def __init__(self, speed_max_places_per_day: Optional[int] = None):
        if speed_max_places_per_day is None:
            speed_max_places_per_day = get_settings().SPEED_MAX_PLACES_PER_DAY
        self.speed_max_places_per_day = speed_max_places_per_day
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def sort_by_priority(places: List[SavedPlace]) -> List[SavedPlace]:
        """Stable sort, high priority first"""
        return sorted(places, key=lambda place: place.priority.rank, reverse=True)

    def places_per_day(self, place_count: int, days: int, route_type: RouteType) -> int:
        if days <= 0 or place_count <= 0:
            return 0
        even_split = math.ceil(place_count / days)
        if route_type == RouteType.SPEED:
            return min(self.speed_max_places_per_day, even_split)
        if route_type == RouteType.LEISURE:
            return max(1, place_count // days)
        return even_split

    def distribute(self, places: List[SavedPlace], days: int, route_type: RouteType) -> List[List[SavedPlace]]:
        """Split ``places`` (already priority-sorted) into at most ``days`` non-empty buckets"""
        route_type = RouteType.parse(route_type)
        if days <= 0 or not places:
            return []

        if route_type == RouteType.CURRENT:
            selected = list(places)
        else:
            cap = self.places_per_day(len(places), days, route_type)
            selected = list(places[:cap * days])
            if len(selected) < len(places):
                self.logger.debug(
                    "Trimmed places to fit route pace",
                    extra={"route_type": route_type.value, "kept": len(selected), "dropped": len(places) - len(selected)}
                )

        if not selected:
            return []
        if days == 1:
            return [selected]

        per_day = math.ceil(len(selected) / days)
        groups: List[List[SavedPlace]] = []
        for day in range(days):
            day_places = selected[day * per_day:(day + 1) * per_day]
            if day_places:
                groups.append(day_places)
        return groups

    @staticmethod
    def recommended_duration(place: SavedPlace, route_type: RouteType) -> str:
        if route_type == RouteType.SPEED:
            return "1 hour"
        if route_type == RouteType.LEISURE:
            return DurationFormatter.upper_bound(place.estimated_time)
        return DurationFormatter.lower_bound(place.estimated_time)

    @staticmethod
    def best_time_to_visit(index: int, route_type: RouteType) -> str:
        if route_type == RouteType.SPEED:
            return ResponseFormatter.format_clock(9 + index * 2)
        hours = _LEISURE_VISIT_HOURS if route_type == RouteType.LEISURE else _CURRENT_VISIT_HOURS
        return ResponseFormatter.format_clock(hours[min(index, len(hours) - 1)])

    def to_optimized_places(self, places: List[SavedPlace], route_type: RouteType,
                            destination: TripCoordinate) -> List[OptimizedPlace]:
        route_type = RouteType.parse(route_type)
        optimized: List[OptimizedPlace] = []
        for index, place in enumerate(places):
            data = place.model_dump()
            data.update({
                "lat": place.lat if place.lat is not None else destination.lat,
                "lng": place.lng if place.lng is not None else destination.lng,
                "destination_name": destination.name,
                "ai_recommended_duration": self.recommended_duration(place, route_type),
                "best_time_to_visit": self.best_time_to_visit(index, route_type),
                "order_in_route": index + 1,
                "visited": False,
            })
            optimized.append(OptimizedPlace(**data))
        return optimized

    @staticmethod
    def day_metrics(place_count: int, route_type: RouteType) -> Dict[str, str]:
        """Heuristic time budget for a day holding ``place_count`` places"""
        n = place_count
        route_type = RouteType.parse(route_type)
        if route_type == RouteType.SPEED:
            return {
                "total_time": ResponseFormatter.format_hours(n * 1.5),
                "walking_time": ResponseFormatter.format_minutes(math.ceil(n * 0.7)),
                "transport_time": ResponseFormatter.format_minutes(math.ceil(n * 0.5)),
                "free_time": ResponseFormatter.format_hours(max(1, 6 - n * 1.5)),
            }
        if route_type == RouteType.LEISURE:
            return {
                "total_time": ResponseFormatter.format_hours(n * 3),
                "walking_time": "30 minutes",
                "transport_time": "20 minutes",
                "free_time": ResponseFormatter.format_hours(max(4, 10 - n * 3)),
            }
        return {
            "total_time": ResponseFormatter.format_hours(math.ceil(n * 2.5)),
            "walking_time": ResponseFormatter.format_minutes(math.ceil(n * 0.5)),
            "transport_time": ResponseFormatter.format_minutes(math.ceil(n * 0.3)),
            "free_time": ResponseFormatter.format_hours(max(2, 8 - n * 2)),
        }
