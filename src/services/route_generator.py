import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from src.models.place_models import SavedPlace
from src.models.request_models import RouteType, Trip, TripCoordinate
from src.models.response_models import DayItinerary, DestinationDateRange, RouteConfiguration, RouteSet
from src.services.date_allocator import DestinationDateAllocator
from src.services.itinerary_distributor import ItineraryDistributor
from src.services.place_suggestions import PlaceSuggestionFiller
from src.utils.config import get_settings
from src.utils.formatters import ResponseFormatter

ROUTE_PRESENTATION = {
    RouteType.CURRENT: ("Current Route", "Balanced itinerary using the trip's exact dates", "92%"),
    RouteType.SPEED: ("Speed Route", "Maximum places within your allocated timeframe", "98%"),
    RouteType.LEISURE: ("Leisure Route", "Relaxed pace with your exact trip dates", "78%"),
}


class SmartRouteGenerator:
    """Build the current/speed/leisure day-by-day itineraries for a trip"""

    def __init__(self, allocator: Optional[DestinationDateAllocator] = None,
                 distributor: Optional[ItineraryDistributor] = None,
                 suggestions: Optional[PlaceSuggestionFiller] = None,
                 tentative_empty_destinations: Optional[bool] = None):
        self.allocator = allocator or DestinationDateAllocator()
        self.distributor = distributor or ItineraryDistributor()
        self.suggestions = suggestions or PlaceSuggestionFiller()
        if tentative_empty_destinations is None:
            tentative_empty_destinations = get_settings().TENTATIVE_EMPTY_DESTINATIONS
        self.tentative_empty_destinations = tentative_empty_destinations
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def saved_places_by_destination(trip: Trip) -> Dict[str, List[SavedPlace]]:
        """Merge the explicit per-destination mapping with the flat saved place list"""
        grouped: Dict[str, List[SavedPlace]] = {}
        for destination_name, places in (trip.saved_places_by_destination or {}).items():
            grouped[destination_name] = list(places)
        for place in trip.saved_places:
            destination_name = place.destination_name or trip.destination
            grouped.setdefault(destination_name, []).append(place)
        return grouped

    def destination_ranges(self, trip: Trip, strict: Optional[bool] = None) -> List[DestinationDateRange]:
        return self.allocator.get_destination_date_ranges(trip.dates, len(trip.coordinates), strict=strict)

    def _build_route_days(self, places: List[SavedPlace], destination: TripCoordinate,
                          destination_range: DestinationDateRange, day_labels: List[str],
                          first_day: int, route_type: RouteType) -> List[DayItinerary]:
        groups = self.distributor.distribute(places, destination_range.days, route_type)
        existing_ids = [place.id for place in places]
        days: List[DayItinerary] = []

        day_number = first_day
        for index, day_places in enumerate(groups):
            metrics = self.distributor.day_metrics(len(day_places), route_type)
            days.append(DayItinerary(
                day=day_number,
                date=day_labels[index] if index < len(day_labels) else f"Day {day_number}",
                destination_name=destination.name,
                places=self.distributor.to_optimized_places(day_places, route_type, destination),
                allocated_days=destination_range.days,
                **metrics
            ))
            day_number += 1

        # Allocated days the saved places did not reach
        for index in range(len(groups), destination_range.days):
            days.append(self.suggestions.create_suggested_day(
                day_number,
                day_labels[index] if index < len(day_labels) else f"Day {day_number}",
                destination,
                existing_ids,
                route_type
            ))
            day_number += 1

        return days

    def generate_optimized_routes(self, trip: Optional[Trip], strict: Optional[bool] = None,
                                  ranges: Optional[List[DestinationDateRange]] = None) -> RouteSet:
        routes = RouteSet()
        if trip is None or not trip.coordinates:
            return routes

        if ranges is None:
            ranges = self.destination_ranges(trip, strict=strict)
        places_by_destination = self.saved_places_by_destination(trip)

        day_counter = 1
        for destination, destination_range in zip(trip.coordinates, ranges):
            if destination_range.days <= 0:
                self.logger.info("Destination received no days", extra={"destination": destination.name})
                continue

            day_labels = self.allocator.individual_day_dates(destination_range)
            saved_places = places_by_destination.get(destination.name) or []

            if saved_places:
                sorted_places = self.distributor.sort_by_priority(saved_places)
                for route_type in RouteType:
                    getattr(routes, route_type.value).extend(self._build_route_days(
                        sorted_places, destination, destination_range, day_labels, day_counter, route_type
                    ))
            elif self.tentative_empty_destinations:
                for day_index in range(destination_range.days):
                    for route_type in RouteType:
                        getattr(routes, route_type.value).append(self.suggestions.create_tentative_destination_day(
                            day_counter + day_index,
                            day_labels[day_index],
                            destination,
                            route_type,
                            day_index,
                            destination_range.days
                        ))
            else:
                self.logger.debug("Skipping destination without saved places", extra={"destination": destination.name})

            # Day numbers stay aligned with the calendar even for skipped destinations
            day_counter += destination_range.days

        self.logger.info(
            "Generated smart routes",
            extra={
                "trip_id": trip.id,
                "destinations": len(trip.coordinates),
                "current_days": len(routes.current),
                "speed_days": len(routes.speed),
                "leisure_days": len(routes.leisure)
            }
        )
        return routes

    def get_route_configurations(self, trip: Optional[Trip], strict: Optional[bool] = None,
                                 ranges: Optional[List[DestinationDateRange]] = None) -> Dict[str, RouteConfiguration]:
        if ranges is None:
            ranges = self.destination_ranges(trip, strict=strict) if trip else []
        routes = self.generate_optimized_routes(trip, ranges=ranges)
        duration = ResponseFormatter.format_trip_duration(DestinationDateAllocator.total_days(ranges))

        configurations: Dict[str, RouteConfiguration] = {}
        for route_type in RouteType:
            name, description, efficiency = ROUTE_PRESENTATION[route_type]
            configurations[route_type.value] = RouteConfiguration(
                name=name,
                description=description,
                duration=duration,
                efficiency=efficiency,
                itinerary=getattr(routes, route_type.value)
            )
        return configurations

    def fill_missing_days(self, itinerary: List[DayItinerary], start_date: date, end_date: date,
                          destination: TripCoordinate, existing_place_ids: Iterable[str],
                          route_type: RouteType = RouteType.CURRENT) -> List[DayItinerary]:
        """Return one day per ISO date in [start_date, end_date].

        Days present in ``itinerary`` (matched on their ISO ``date``) are kept and
        renumbered; missing dates become suggested, tentative days.
        """
        if end_date < start_date:
            self.logger.warning(
                "End date before start date; returning itinerary unchanged",
                extra={"start_date": str(start_date), "end_date": str(end_date)}
            )
            return list(itinerary)

        existing_ids = list(existing_place_ids)
        by_date = {day.date: day for day in itinerary}
        total_days = (end_date - start_date).days + 1

        filled: List[DayItinerary] = []
        for offset in range(total_days):
            iso_date = (start_date + timedelta(days=offset)).isoformat()
            if iso_date in by_date:
                filled.append(by_date[iso_date].model_copy(update={"day": offset + 1}))
            else:
                filled.append(self.suggestions.create_suggested_day(
                    offset + 1, iso_date, destination, existing_ids, route_type
                ))
        return filled

    def fill_missing_days_for_trip(self, itinerary: List[DayItinerary], trip: Trip,
                                   route_type: RouteType = RouteType.CURRENT) -> List[DayItinerary]:
        """Gap-fill a multi-destination trip using its ISO start and end dates"""
        if trip.start_date is None or trip.end_date is None or trip.end_date < trip.start_date:
            return list(itinerary)

        if not trip.coordinates and not trip.destination:
            return list(itinerary)
        destinations = trip.coordinates or [TripCoordinate(name=trip.destination)]
        existing_ids = [place.id for place in trip.saved_places]

        if len(destinations) == 1:
            return self.fill_missing_days(itinerary, trip.start_date, trip.end_date, destinations[0], existing_ids, route_type)

        by_date = {day.date: day for day in itinerary}
        ranges = self.allocator.allocate(trip.start_date, trip.end_date, len(destinations))

        filled: List[DayItinerary] = []
        day_number = 1
        for destination, destination_range in zip(destinations, ranges):
            for day_index in range(destination_range.days):
                iso_date = (destination_range.start_date + timedelta(days=day_index)).isoformat()
                existing = by_date.get(iso_date)
                if existing is not None:
                    filled.append(existing.model_copy(update={"day": day_number, "destination_name": destination.name}))
                else:
                    filled.append(self.suggestions.create_tentative_destination_day(
                        day_number, iso_date, destination, route_type, day_index, destination_range.days
                    ))
                day_number += 1
        return filled
