import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as gexc
from google.cloud import firestore
from google.oauth2 import service_account
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from src.models.place_models import SavedPlace
from src.models.request_models import Trip, TripCoordinate
from src.utils.config import get_settings

_PRIORITIES = ("high", "medium", "low")

# Retried reads; any other error is raised on the first attempt
TRANSIENT_ERRORS = (
    gexc.ServiceUnavailable,
    gexc.DeadlineExceeded,
    gexc.InternalServerError,
    ConnectionError,
    TimeoutError,
)


def _as_date(value: Any) -> Optional[date]:
    """Firestore timestamps come back as datetimes; ISO strings are also accepted"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class FirestoreManager:
    """Read-only access to trips, their saved places and their ordered destinations.

    Collections mirror the application's tables: ``trips`` documents keyed by
    trip id, plus ``saved_places`` and ``trip_coordinates`` documents carrying a
    ``trip_id`` field.
    """

    def __init__(self, client: Optional[firestore.Client] = None):
        self.settings = get_settings()
        self.logger = logging.getLogger(__name__)
        self.collection_name = self.settings.FIRESTORE_TRIPS_COLLECTION or "trips"
        self.saved_places_collection = self.settings.FIRESTORE_SAVED_PLACES_COLLECTION or "saved_places"
        self.coordinates_collection = self.settings.FIRESTORE_COORDINATES_COLLECTION or "trip_coordinates"

        if client is not None:
            self.client = client
            return

        project_id = self.settings.FIRESTORE_PROJECT_ID or self.settings.GOOGLE_CLOUD_PROJECT
        try:
            # Prefer explicit Firestore credentials if provided (split-project support)
            credentials = None
            if self.settings.FIRESTORE_CREDENTIALS:
                credentials = service_account.Credentials.from_service_account_file(
                    self.settings.FIRESTORE_CREDENTIALS
                )
            database = self.settings.FIRESTORE_DATABASE_ID or None  # default DB if None
            self.client = firestore.Client(project=project_id, credentials=credentials, database=database)
            self.logger.info("Initialized Firestore client", extra={"project": project_id, "collection": self.collection_name, "database": database or "(default)"})
        except Exception:
            self.logger.exception("Failed to initialize Firestore client")
            raise

    @retry(
        stop=stop_after_attempt(get_settings().TRIP_STORE_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True
    )
    def _fetch_trip_documents(self, trip_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.client.collection(self.collection_name).document(trip_id).get()
        if not snapshot.exists:
            return None

        places_query = self.client.collection(self.saved_places_collection).where("trip_id", "==", trip_id)
        coordinates_query = self.client.collection(self.coordinates_collection).where("trip_id", "==", trip_id)

        return {
            "trip": snapshot.to_dict() or {},
            "saved_places": [doc.to_dict() | {"id": doc.id} for doc in places_query.stream()],
            "coordinates": [doc.to_dict() for doc in coordinates_query.stream()],
        }

    @staticmethod
    def _build_trip(trip_id: str, documents: Dict[str, Any]) -> Trip:
        trip_data = documents["trip"]
        coordinates = sorted(documents["coordinates"], key=lambda c: c.get("order_index", 0))

        saved_places: List[SavedPlace] = []
        for place in documents["saved_places"]:
            saved_places.append(SavedPlace(
                id=str(place.get("place_id") or place["id"]),
                name=place.get("name", ""),
                category=place.get("category") or "",
                rating=place.get("rating") or 0.0,
                image=place.get("image") or "",
                description=place.get("description") or "",
                estimated_time=place.get("estimated_time") or "1 hour",
                priority=place.get("priority") if place.get("priority") in _PRIORITIES else "medium",
                destination_name=place.get("destination_name"),
                lat=place.get("lat"),
                lng=place.get("lng")
            ))

        return Trip(
            id=trip_id,
            name=trip_data.get("name", ""),
            destination=trip_data.get("destination", ""),
            dates=trip_data.get("dates", ""),
            coordinates=[
                TripCoordinate(name=c["name"], lat=c.get("lat") or 0.0, lng=c.get("lng") or 0.0)
                for c in coordinates if c.get("name")
            ],
            saved_places=saved_places,
            start_date=_as_date(trip_data.get("start_date")),
            end_date=_as_date(trip_data.get("end_date"))
        )

    async def get_trip(self, trip_id: str) -> Optional[Trip]:
        try:
            documents = self._fetch_trip_documents(trip_id)
        except Exception as e:
            self.logger.error(f"Firestore get failed for {trip_id}: {e}")
            raise
        if documents is None:
            return None
        trip = self._build_trip(trip_id, documents)
        self.logger.info(
            f"Loaded trip {trip_id} from Firestore",
            extra={"destinations": len(trip.coordinates), "saved_places": len(trip.saved_places)}
        )
        return trip
