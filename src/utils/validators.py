import re
from collections import Counter
from typing import List, Dict, Any
from src.models.request_models import Trip, TripCoordinate
from src.models.place_models import SavedPlace
from src.services.date_allocator import DestinationDateAllocator, DateRangeParseError

class TripRouteValidator:
    """Validator for trips submitted for smart route generation"""

    @staticmethod
    def validate_destination_name(name: str) -> bool:
        """Validate destination string (allow common punctuation like commas)."""
        if not name or len(name.strip()) < 2:
            return False
        # Letters in any script, digits, spaces and punctuation seen in place names
        # e.g., "St. John's", "São Paulo", "Queens (NY)", "L'Île-d'Orléans"
        return re.match(r"^[\w\s\-\'\.,&()/]+$", name.strip()) is not None

    @staticmethod
    def validate_dates(dates: str, destination_count: int) -> Dict[str, Any]:
        """Validate the trip's "Mon D - Mon D, YYYY" date string"""
        errors = []
        warnings = []
        total_days = 0

        try:
            start_date, end_date = DestinationDateAllocator().parse_trip_dates(dates)
            total_days = (end_date - start_date).days + 1
        except DateRangeParseError as e:
            errors.append(f"Trip dates must look like 'Jun 1 - Jun 10, 2024' ({e})")

        if total_days > 90:
            warnings.append("Trip spans more than 90 days")

        if total_days and destination_count > total_days:
            warnings.append(
                f"{destination_count} destinations but only {total_days} days; some destinations will get no days"
            )

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'total_days': total_days
        }

    @staticmethod
    def validate_destinations(coordinates: List[TripCoordinate]) -> Dict[str, Any]:
        """Validate the trip's ordered destinations"""
        errors = []
        warnings = []

        if not coordinates:
            errors.append("Trip must have at least one destination")

        for coordinate in coordinates:
            if not TripRouteValidator.validate_destination_name(coordinate.name):
                warnings.append(f"Unusual destination name: {coordinate.name!r}")
            if not (-90 <= coordinate.lat <= 90) or not (-180 <= coordinate.lng <= 180):
                errors.append(f"Coordinates out of range for {coordinate.name}")
            elif coordinate.lat == 0 and coordinate.lng == 0:
                warnings.append(f"{coordinate.name} has no coordinates; places will default to (0, 0)")

        duplicates = [name for name, count in Counter(c.name for c in coordinates).items() if count > 1]
        for name in duplicates:
            warnings.append(f"Destination {name} appears more than once; its saved places are reused")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'destination_count': len(coordinates)
        }

    @staticmethod
    def validate_saved_places(trip: Trip) -> Dict[str, Any]:
        """Validate saved places against the trip's destinations"""
        errors = []
        warnings = []

        places: List[SavedPlace] = list(trip.saved_places)
        for group in (trip.saved_places_by_destination or {}).values():
            places.extend(group)

        duplicate_ids = [pid for pid, count in Counter(p.id for p in places).items() if count > 1]
        if duplicate_ids:
            errors.append(f"Duplicate saved place ids: {', '.join(sorted(duplicate_ids))}")

        destination_names = {c.name for c in trip.coordinates}
        unknown = set()
        for place in trip.saved_places:
            target = place.destination_name or trip.destination
            if target not in destination_names:
                unknown.add(target or "<none>")
        for group_name in (trip.saved_places_by_destination or {}):
            if group_name not in destination_names:
                unknown.add(group_name)
        for name in sorted(unknown):
            warnings.append(f"Saved places for {name} do not match any trip destination and will be ignored")

        for place in places:
            if place.rating and not (0 <= place.rating <= 5):
                warnings.append(f"Rating for {place.name} should be between 0 and 5")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'place_count': len(places)
        }

    @staticmethod
    def validate_complete_trip(trip: Trip) -> Dict[str, Any]:
        """Validate a complete trip"""
        all_errors = []
        all_warnings = []
        validation_results = {}

        destinations_validation = TripRouteValidator.validate_destinations(trip.coordinates)
        all_errors.extend(destinations_validation['errors'])
        all_warnings.extend(destinations_validation['warnings'])
        validation_results['destinations'] = destinations_validation

        dates_validation = TripRouteValidator.validate_dates(trip.dates, len(trip.coordinates))
        all_errors.extend(dates_validation['errors'])
        all_warnings.extend(dates_validation['warnings'])
        validation_results['dates'] = dates_validation

        places_validation = TripRouteValidator.validate_saved_places(trip)
        all_errors.extend(places_validation['errors'])
        all_warnings.extend(places_validation['warnings'])
        validation_results['saved_places'] = places_validation

        if trip.start_date and trip.end_date and trip.end_date < trip.start_date:
            all_errors.append("End date must not be before start date")

        return {
            'valid': len(all_errors) == 0,
            'errors': all_errors,
            'warnings': all_warnings,
            'details': validation_results
        }

    @staticmethod
    def suggest_improvements(trip: Trip) -> List[str]:
        """Suggest improvements to the trip before generating routes"""
        suggestions = []

        grouped = {c.name: 0 for c in trip.coordinates}
        for place in trip.saved_places:
            name = place.destination_name or trip.destination
            if name in grouped:
                grouped[name] += 1
        for name, places in (trip.saved_places_by_destination or {}).items():
            if name in grouped:
                grouped[name] += len(places)

        empty = [name for name, count in grouped.items() if count == 0]
        if empty:
            suggestions.append(f"Save a few places for {', '.join(empty)} so those days can be planned")

        try:
            start_date, end_date = DestinationDateAllocator().parse_trip_dates(trip.dates)
            total_days = (end_date - start_date).days + 1
        except DateRangeParseError:
            total_days = 0

        if total_days and trip.coordinates:
            if len(trip.coordinates) > total_days:
                suggestions.append("Consider fewer destinations or a longer trip so every destination gets a day")
            elif total_days > 14 and len(trip.coordinates) == 1:
                suggestions.append("Consider splitting long single-destination trips into day trips from a base")

            saved_total = sum(grouped.values())
            if saved_total and saved_total < total_days:
                suggestions.append("Some days will be filled with suggested places; save more places for a fuller plan")
            if saved_total > total_days * 4:
                suggestions.append("The speed route caps days at 4 places; lower-priority places may be left out")

        return suggestions
