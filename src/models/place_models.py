from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]

class VenueType(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra_large"

class Location(BaseModel):
    lat: float
    lng: float

class SavedPlace(BaseModel):
    id: str
    name: str
    category: str = ""
    rating: float = 0.0
    image: str = ""
    description: str = ""
    estimated_time: str = "1 hour"  # free text, e.g. "2-3 hours"
    priority: Priority = Priority.MEDIUM
    destination_name: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

class OptimizedPlace(SavedPlace):
    lat: float
    lng: float
    destination_name: str
    ai_recommended_duration: str
    best_time_to_visit: str
    order_in_route: int
    visited: bool = False
    is_suggested: bool = False

class VenueData(BaseModel):
    place_id: Optional[str] = None
    name: str
    category: str = ""
    types: List[str] = Field(default_factory=list)
    location: Location
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    vicinity: Optional[str] = None

class VenueSize(BaseModel):
    place_id: str
    category: str
    arrival_radius: int  # meters
    venue_type: VenueType
    confidence: float

class ClusterPlace(BaseModel):
    id: str
    name: str
    location: Location
    category: str
    estimated_visit_duration: int = 30  # minutes

class ClusterSuggestion(BaseModel):
    cluster_id: str
    places: List[ClusterPlace]
    center_location: Location
    radius: int  # meters, max distance from center
    estimated_total_time: int  # minutes
    recommended_order: List[str] = Field(default_factory=list)
    reason: str
