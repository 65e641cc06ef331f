import logging
from pydantic_settings import BaseSettings
from typing import Optional

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # Google Cloud Configuration
    GOOGLE_CLOUD_PROJECT: str = "your-project-id"
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    FIRESTORE_PROJECT_ID: Optional[str] = None
    FIRESTORE_CREDENTIALS: Optional[str] = None  # path to Firestore service account json
    FIRESTORE_DATABASE_ID: Optional[str] = None  # defaults to '(default)'
    USE_FIRESTORE: bool = False
    FIRESTORE_TRIPS_COLLECTION: str = "trips"
    FIRESTORE_SAVED_PLACES_COLLECTION: str = "saved_places"
    FIRESTORE_COORDINATES_COLLECTION: str = "trip_coordinates"

    # API Configuration
    API_VERSION: str = "1.0.0"
    DEBUG_MODE: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Smart Route
    SMART_ROUTE_STRICT_DATES: bool = False  # raise on unparseable trip dates instead of falling back
    SPEED_MAX_PLACES_PER_DAY: int = 4
    TENTATIVE_EMPTY_DESTINATIONS: bool = False
    SUGGESTIONS_GENERIC_FALLBACK: bool = False
    SUGGESTION_CATALOG_PATH: Optional[str] = None  # defaults to src/data/suggestion_catalog.json

    # Venue heuristics
    VENUE_CLUSTER_RADIUS_METERS: float = 200.0
    VENUE_MIN_CLUSTER_SIZE: int = 2
    VENUE_CACHE_TTL_SECONDS: Optional[int] = None  # None keeps entries until cleared
    VENUE_CACHE_MAX_ENTRIES: int = 5000

    # Trip data store
    TRIP_STORE_MAX_ATTEMPTS: int = 3

    model_config = {"env_file": ".env", "case_sensitive": True}

# Global settings instance
settings = Settings()

def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings

def validate_settings() -> bool:
    """Validate that the settings required by enabled features are configured"""
    errors = []

    if settings.USE_FIRESTORE and settings.GOOGLE_CLOUD_PROJECT in ("", "your-project-id"):
        if not settings.FIRESTORE_PROJECT_ID:
            errors.append("GOOGLE_CLOUD_PROJECT or FIRESTORE_PROJECT_ID is required when USE_FIRESTORE is enabled")

    if settings.SPEED_MAX_PLACES_PER_DAY < 1:
        errors.append("SPEED_MAX_PLACES_PER_DAY must be at least 1")

    if settings.VENUE_CLUSTER_RADIUS_METERS <= 0:
        errors.append("VENUE_CLUSTER_RADIUS_METERS must be positive")

    if settings.VENUE_MIN_CLUSTER_SIZE < 1:
        errors.append("VENUE_MIN_CLUSTER_SIZE must be at least 1")

    if errors:
        for error in errors:
            logger.error(f"Invalid setting: {error}")
        return False

    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY not set; walking distances fall back to straight-line estimates")

    # If FIRESTORE_PROJECT_ID not set, fallback to GOOGLE_CLOUD_PROJECT (but allow split-projects)
    if not settings.FIRESTORE_PROJECT_ID:
        settings.FIRESTORE_PROJECT_ID = settings.GOOGLE_CLOUD_PROJECT

    return True
