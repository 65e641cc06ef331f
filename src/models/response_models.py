from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional, Dict, Any

from src.models.place_models import OptimizedPlace

class DestinationDateRange(BaseModel):
    start_date: date
    end_date: date
    days: int
    label: str  # "Jun 1 - Jun 4"

class DayItinerary(BaseModel):
    day: int
    date: str  # "Jun 1", ISO date when filling gaps, or "Day N"
    destination_name: str
    places: List[OptimizedPlace] = Field(default_factory=list)
    total_time: str
    walking_time: str
    transport_time: str
    free_time: str
    allocated_days: int
    is_suggested: bool = False
    is_tentative: bool = False

class RouteSet(BaseModel):
    current: List[DayItinerary] = Field(default_factory=list)
    speed: List[DayItinerary] = Field(default_factory=list)
    leisure: List[DayItinerary] = Field(default_factory=list)

class RouteConfiguration(BaseModel):
    name: str
    description: str
    duration: str  # "3 days"
    efficiency: str  # "92%"
    itinerary: List[DayItinerary] = Field(default_factory=list)

class SmartRouteResponse(BaseModel):
    trip_id: Optional[str] = None
    total_days: int
    destination_ranges: List[DestinationDateRange] = Field(default_factory=list)
    routes: Dict[str, RouteConfiguration]
    daily_route_maps: Dict[str, Dict[str, str]] = Field(default_factory=dict)  # route -> day -> map_url
    daily_static_maps: Dict[str, Dict[str, str]] = Field(default_factory=dict)  # route -> day -> static map
    warnings: List[str] = Field(default_factory=list)

class ValidationResponse(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    validation_details: Dict[str, Any] = Field(default_factory=dict)
