import googlemaps
from typing import List, Dict, Optional
import logging
from urllib.parse import urlencode

from src.models.place_models import OptimizedPlace
from src.models.response_models import DayItinerary
from src.utils.geo import haversine_meters

# Straight-line fallback assumes 5 km/h walking
WALKING_MINUTES_PER_KM = 12


class MapsService:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key
        self._client: Optional[googlemaps.Client] = None
        self.logger = logging.getLogger(__name__)

    @property
    def client(self) -> Optional[googlemaps.Client]:
        """Distance Matrix client, created on first use"""
        if self._client is None and self.api_key:
            try:
                self._client = googlemaps.Client(key=self.api_key)
            except ValueError as e:
                self.logger.warning(f"Google Maps client unavailable: {str(e)}")
                self.api_key = None
        return self._client

    def generate_static_map_url(self, places: List[OptimizedPlace],
                                size: str = "800x600",
                                map_type: str = "roadmap") -> str:
        """Static map with one numbered marker per place, in visiting order"""
        if not places or not self.api_key:
            return ""

        markers = [
            f"color:red|label:{place.order_in_route}|{place.lat},{place.lng}"
            for place in places
        ]
        center_lat = sum(place.lat for place in places) / len(places)
        center_lng = sum(place.lng for place in places) / len(places)
        params = {
            'size': size,
            'maptype': map_type,
            'markers': markers,
            'center': f"{center_lat},{center_lng}",
            'zoom': self._calculate_optimal_zoom(places),
            'key': self.api_key
        }
        return f"https://maps.googleapis.com/maps/api/staticmap?{urlencode(params, doseq=True)}"

    def generate_day_route_url(self, day: DayItinerary, mode: str = "walking") -> str:
        """Embed URL with directions through a day's places in order"""
        places = sorted(day.places, key=lambda place: place.order_in_route)
        if len(places) < 2 or not self.api_key:
            return ""

        coords = [f"{place.lat},{place.lng}" for place in places]
        params = {
            'origin': coords[0],
            'destination': coords[-1],
            'mode': mode,
            'key': self.api_key
        }
        if len(coords) > 2:
            params['waypoints'] = "|".join(coords[1:-1])

        return f"https://www.google.com/maps/embed/v1/directions?{urlencode(params)}"

    def generate_daily_route_maps(self, itinerary: List[DayItinerary]) -> Dict[str, str]:
        """day number -> route embed URL, for days with at least two places"""
        maps: Dict[str, str] = {}
        for day in itinerary:
            url = self.generate_day_route_url(day)
            if url:
                maps[str(day.day)] = url
        return maps

    def generate_daily_static_maps(self, itinerary: List[DayItinerary]) -> Dict[str, str]:
        """day number -> static map URL, for days with places"""
        maps: Dict[str, str] = {}
        for day in itinerary:
            url = self.generate_static_map_url(sorted(day.places, key=lambda place: place.order_in_route))
            if url:
                maps[str(day.day)] = url
        return maps

    def calculate_walking_distances(self, places: List[OptimizedPlace]) -> Dict[str, Dict[str, Dict[str, float]]]:
        """Walking distance and duration between every ordered pair of places"""
        distances: Dict[str, Dict[str, Dict[str, float]]] = {}

        for i, origin in enumerate(places):
            distances[origin.id] = {}
            for j, target in enumerate(places):
                if i == j:
                    continue
                distances[origin.id][target.id] = self._walking_leg(origin, target)

        return distances

    def _walking_leg(self, origin: OptimizedPlace, target: OptimizedPlace) -> Dict[str, float]:
        client = self.client
        if client is not None:
            try:
                result = client.distance_matrix(
                    origins=[(origin.lat, origin.lng)],
                    destinations=[(target.lat, target.lng)],
                    mode="walking",
                    units="metric"
                )
                element = result['rows'][0]['elements'][0]
                if element['status'] == 'OK':
                    return {
                        'distance_km': round(element['distance']['value'] / 1000, 2),
                        'duration_minutes': round(element['duration']['value'] / 60, 1)
                    }
            except Exception as e:
                self.logger.warning(f"Error calculating distance between {origin.id} and {target.id}: {str(e)}")

        straight_km = haversine_meters(origin.lat, origin.lng, target.lat, target.lng) / 1000
        return {
            'distance_km': round(straight_km, 2),
            'duration_minutes': round(straight_km * WALKING_MINUTES_PER_KM, 1)
        }

    def _calculate_optimal_zoom(self, places: List[OptimizedPlace]) -> int:
        """Zoom level for the map based on how spread out the places are"""
        lats = [place.lat for place in places]
        lngs = [place.lng for place in places]
        max_span = max(max(lats) - min(lats), max(lngs) - min(lngs))

        for span, zoom in ((10, 5), (5, 6), (2, 7), (1, 8), (0.5, 9), (0.2, 10), (0.1, 11), (0.05, 12), (0.02, 13)):
            if max_span > span:
                return zoom
        return 14
