"""
Venue size heuristics: arrival radius estimation and nearby-venue clustering.

The arrival radius is the distance at which a traveller counts as "arrived" at a
venue. It is estimated from lookup tables (category, name keywords, Google place
types) and popularity, then clamped to [15, 500] meters. The confidence score is
a best-effort blend of how strong the matching signal was, not a calibrated
probability.
"""
import logging
import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from src.models.place_models import ClusterPlace, ClusterSuggestion, Location, VenueData, VenueSize, VenueType
from src.services.venue_cache import VenueSizeCache
from src.utils.config import get_settings
from src.utils.formatters import ResponseFormatter
from src.utils.geo import centroid, haversine_meters

DEFAULT_BASE_RADIUS_BY_CATEGORY: Dict[str, int] = {
    # Large venues
    "airport": 500,
    "shopping_mall": 200,
    "stadium": 300,
    "university": 200,
    "hospital": 150,
    "amusement_park": 300,
    "zoo": 200,
    "park": 150,

    # Medium venues
    "museum": 100,
    "school": 100,
    "church": 80,
    "hotel": 80,
    "department_store": 100,
    "supermarket": 80,
    "train_station": 100,
    "subway_station": 50,
    "bus_station": 50,

    # Small venues
    "restaurant": 30,
    "cafe": 25,
    "bar": 30,
    "store": 25,
    "pharmacy": 25,
    "bank": 30,
    "gas_station": 40,
    "atm": 20,

    # Tiny venues
    "food": 20,
    "bakery": 20,
    "convenience_store": 20,
    "beauty_salon": 15,
    "laundry": 15,
}

# Venue names are matched in English and Spanish
LARGE_VENUE_KEYWORDS = (
    "mall", "centro comercial", "shopping", "aeropuerto", "airport",
    "estadio", "stadium", "universidad", "university", "hospital",
    "parque", "park", "museo", "museum", "plaza", "centro",
    "mercado", "market", "terminal", "station",
)

SMALL_VENUE_KEYWORDS = (
    "tienda", "store", "shop", "cafe", "restaurant", "bar",
    "farmacia", "pharmacy", "banco", "bank", "atm", "cajero",
)

CHAIN_KEYWORDS = ("mcdonalds", "starbucks", "walmart", "costco", "ikea")


class VenueHeuristicsConfig(BaseModel):
    """Lookup tables and bounds for arrival radius estimation"""
    base_radius_by_category: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_BASE_RADIUS_BY_CATEGORY))
    large_venue_keywords: Tuple[str, ...] = LARGE_VENUE_KEYWORDS
    small_venue_keywords: Tuple[str, ...] = SMALL_VENUE_KEYWORDS
    chain_keywords: Tuple[str, ...] = CHAIN_KEYWORDS
    default_radius: int = 50
    min_radius: int = 15
    max_radius: int = 500
    visit_minutes_per_venue: int = 30

    model_config = {"frozen": True}


def _coordinate_key(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


class VenueSizeHeuristics:
    def __init__(self, cache: Optional[VenueSizeCache] = None, config: Optional[VenueHeuristicsConfig] = None):
        settings = get_settings()
        self.cache: VenueSizeCache = cache if cache is not None else VenueSizeCache(
            ttl_seconds=settings.VENUE_CACHE_TTL_SECONDS,
            max_entries=settings.VENUE_CACHE_MAX_ENTRIES
        )
        self.config = config or VenueHeuristicsConfig()
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def cache_key(venue: VenueData) -> str:
        if venue.place_id:
            return venue.place_id
        return f"{venue.name}_{_coordinate_key(venue.location.lat)}_{_coordinate_key(venue.location.lng)}"

    def calculate_arrival_radius(self, venue: VenueData) -> VenueSize:
        """Estimate how close a traveller must get to count as arrived"""
        cache_key = self.cache_key(venue)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        radius = float(self._base_radius(venue))
        confidence = 0.5

        # Name and category signals can only widen the radius
        name_radius, name_confidence = self._analyze_venue_name(venue.name)
        radius = max(radius, name_radius)
        confidence = max(confidence, name_confidence)

        category_radius, category_confidence = self._analyze_category_types(venue)
        radius = max(radius, category_radius)
        confidence = max(confidence, category_confidence)

        # More popular venues tend to be larger
        reviews = venue.user_ratings_total or 0
        if reviews > 1000:
            radius *= 1.3
            confidence += 0.1
        elif reviews > 100:
            radius *= 1.1
            confidence += 0.05

        if radius >= 200:
            venue_type = VenueType.EXTRA_LARGE
        elif radius >= 100:
            venue_type = VenueType.LARGE
        elif radius >= 50:
            venue_type = VenueType.MEDIUM
        else:
            venue_type = VenueType.SMALL

        final_radius = max(self.config.min_radius, min(self.config.max_radius, int(round(radius))))
        final_confidence = max(0.1, min(1.0, confidence))

        venue_size = VenueSize(
            place_id=venue.place_id or cache_key,
            category=venue.category,
            arrival_radius=final_radius,
            venue_type=venue_type,
            confidence=final_confidence
        )
        self.cache.set(cache_key, venue_size)

        self.logger.debug(
            "Venue size calculated",
            extra={
                "venue": venue.name,
                "category": venue.category,
                "radius": ResponseFormatter.format_distance(final_radius),
                "venue_type": venue_type.value,
                "confidence": ResponseFormatter.format_confidence(final_confidence)
            }
        )
        return venue_size

    def _base_radius(self, venue: VenueData) -> int:
        table = self.config.base_radius_by_category
        if venue.category in table:
            return table[venue.category]
        for place_type in venue.types:
            if place_type in table:
                return table[place_type]
        return self.config.default_radius

    def _analyze_venue_name(self, name: str) -> Tuple[float, float]:
        lower_name = (name or "").lower()

        if any(keyword in lower_name for keyword in self.config.large_venue_keywords):
            return 150, 0.8
        if any(keyword in lower_name for keyword in self.config.small_venue_keywords):
            return 25, 0.7
        # Chain stores are usually bigger than the average small venue
        if any(chain in lower_name for chain in self.config.chain_keywords):
            return 80, 0.9

        return self.config.default_radius, 0.3

    def _analyze_category_types(self, venue: VenueData) -> Tuple[float, float]:
        table = self.config.base_radius_by_category
        for place_type in [venue.category, *venue.types]:
            if place_type in table:
                return table[place_type], 0.8
        return self.config.default_radius, 0.2

    def detect_venue_clusters(self, venues: List[VenueData], max_cluster_radius: Optional[float] = None,
                              min_venues_in_cluster: Optional[int] = None) -> List[ClusterSuggestion]:
        """
        Greedy single-pass clustering.

        Each unprocessed venue seeds a cluster and absorbs every later unprocessed
        venue within ``max_cluster_radius`` meters of it. The result depends on
        input order when clusters overlap. O(n^2); meant for a few hundred venues.
        """
        settings = get_settings()
        if max_cluster_radius is None:
            max_cluster_radius = settings.VENUE_CLUSTER_RADIUS_METERS
        if min_venues_in_cluster is None:
            min_venues_in_cluster = settings.VENUE_MIN_CLUSTER_SIZE

        clusters: List[ClusterSuggestion] = []
        processed = set()

        for i, center in enumerate(venues):
            center_key = center.place_id or f"{center.name}_{i}"
            if center_key in processed:
                continue

            members = [center]
            processed.add(center_key)

            for j in range(i + 1, len(venues)):
                other = venues[j]
                other_key = other.place_id or f"{other.name}_{j}"
                if other_key in processed:
                    continue

                distance = haversine_meters(
                    center.location.lat, center.location.lng,
                    other.location.lat, other.location.lng
                )
                if distance <= max_cluster_radius:
                    members.append(other)
                    processed.add(other_key)

            if len(members) >= min_venues_in_cluster:
                clusters.append(self._create_cluster_suggestion(members))

        self.logger.info(f"Detected {len(clusters)} venue clusters", extra={"venues": len(venues)})
        return clusters

    def _create_cluster_suggestion(self, venues: List[VenueData]) -> ClusterSuggestion:
        center_lat, center_lng = centroid((v.location.lat, v.location.lng) for v in venues)

        def distance_from_center(venue: VenueData) -> float:
            return haversine_meters(center_lat, center_lng, venue.location.lat, venue.location.lng)

        radius = max(distance_from_center(v) for v in venues)
        minutes = self.config.visit_minutes_per_venue

        # Nearest to the center first
        ordered = sorted(venues, key=distance_from_center)

        return ClusterSuggestion(
            cluster_id=f"cluster_{uuid.uuid4().hex[:12]}",
            places=[
                ClusterPlace(
                    id=venue.place_id or venue.name,
                    name=venue.name,
                    location=venue.location,
                    category=venue.category,
                    estimated_visit_duration=minutes
                )
                for venue in ordered
            ],
            center_location=Location(lat=center_lat, lng=center_lng),
            radius=int(round(radius)),
            estimated_total_time=len(venues) * minutes,
            recommended_order=[venue.place_id or venue.name for venue in ordered],
            reason=self._cluster_reason(venues)
        )

    @staticmethod
    def _cluster_reason(venues: List[VenueData]) -> str:
        categories = list(dict.fromkeys(v.category for v in venues))

        if len(categories) == 1:
            return f"Group of {len(venues)} nearby {categories[0]}s - visit the whole area in one go"
        if "restaurant" in categories and "shopping" in categories:
            return "Dining and shopping area - ideal for combining a meal with some shopping"
        return f"Cluster of {len(venues)} nearby places of interest - save time by visiting the area together"

    def get_venue_size(self, place_id: str) -> Optional[VenueSize]:
        return self.cache.get(place_id)

    def clear_cache(self):
        self.cache.clear()
