from pydantic import BaseModel, Field, field_validator
from datetime import date
from typing import List, Optional, Dict
from enum import Enum

from src.models.place_models import SavedPlace, VenueData
from src.models.response_models import DayItinerary

class RouteType(str, Enum):
    CURRENT = "current"
    SPEED = "speed"
    LEISURE = "leisure"

    @classmethod
    def parse(cls, value) -> "RouteType":
        """Accept enum members, their values, and the "balanced" alias for current."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        if normalized == "balanced":
            return cls.CURRENT
        return cls(normalized)

class TripCoordinate(BaseModel):
    name: str = Field(..., min_length=1)
    lat: float = 0.0
    lng: float = 0.0

class Trip(BaseModel):
    id: Optional[str] = None
    name: str = ""
    destination: str = ""
    dates: str = ""  # "Jun 1 - Jun 10, 2024"
    coordinates: List[TripCoordinate] = Field(default_factory=list)
    saved_places: List[SavedPlace] = Field(default_factory=list)
    saved_places_by_destination: Optional[Dict[str, List[SavedPlace]]] = None

    # ISO dates, used when filling gaps in an externally generated itinerary
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "id": "trip-42",
                    "name": "Europe in June",
                    "destination": "Paris",
                    "dates": "Jun 1 - Jun 10, 2024",
                    "coordinates": [
                        {"name": "Paris", "lat": 48.8566, "lng": 2.3522},
                        {"name": "Rome", "lat": 41.9028, "lng": 12.4964}
                    ],
                    "saved_places": [
                        {
                            "id": "p1",
                            "name": "Louvre Museum",
                            "category": "Museum",
                            "estimated_time": "2-3 hours",
                            "priority": "high",
                            "destination_name": "Paris"
                        }
                    ]
                }
            ]
        }

class DestinationDatesRequest(BaseModel):
    dates: str
    destination_count: int = Field(..., ge=0, le=100)
    strict: Optional[bool] = None

class FillMissingDaysRequest(BaseModel):
    """Fill the gaps of an externally generated itinerary.

    With ``trip`` set (and more than one destination), days are split across the
    trip's destinations; otherwise the single ``destination`` is used.
    """
    itinerary: List[DayItinerary] = Field(default_factory=list)
    start_date: date
    end_date: date
    destination: Optional[TripCoordinate] = None
    existing_place_ids: List[str] = Field(default_factory=list)
    route_type: RouteType = RouteType.CURRENT
    trip: Optional[Trip] = None

    @field_validator("route_type", mode="before")
    @classmethod
    def normalize_route_type(cls, v):
        return RouteType.parse(v)

class ArrivalRadiusRequest(BaseModel):
    venues: List[VenueData] = Field(..., min_length=1)

class ClusterRequest(BaseModel):
    venues: List[VenueData] = Field(default_factory=list)
    max_cluster_radius: Optional[float] = Field(None, gt=0)
    min_venues_in_cluster: Optional[int] = Field(None, ge=1)
