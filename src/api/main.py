from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import logging
from datetime import datetime
from typing import Dict, List, Optional

from src.models.place_models import ClusterSuggestion, VenueSize
from src.models.request_models import (
    ArrivalRadiusRequest,
    ClusterRequest,
    DestinationDatesRequest,
    FillMissingDaysRequest,
    Trip,
)
from src.models.response_models import DayItinerary, DestinationDateRange, SmartRouteResponse, ValidationResponse
from src.services.date_allocator import DestinationDateAllocator, DateRangeParseError
from src.services.itinerary_distributor import ItineraryDistributor
from src.services.maps_service import MapsService
from src.services.place_suggestions import PlaceSuggestionFiller
from src.services.route_generator import SmartRouteGenerator
from src.services.venue_heuristics import VenueSizeHeuristics
from src.utils.config import get_settings, validate_settings
from src.utils.validators import TripRouteValidator
from src.utils.firestore_manager import FirestoreManager

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Smart Route API",
    description="Split trips across destinations, build current/speed/leisure day plans and estimate venue arrival radii",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["*"]  # Configure appropriately for production
)

# Pure services need no external resources and are ready at import time
date_allocator = DestinationDateAllocator()
place_suggestions = PlaceSuggestionFiller()
route_generator = SmartRouteGenerator(
    allocator=date_allocator,
    distributor=ItineraryDistributor(),
    suggestions=place_suggestions
)
venue_heuristics = VenueSizeHeuristics()
maps_service: MapsService = MapsService(api_key=settings.GOOGLE_MAPS_API_KEY)

# Initialized on startup
fs_manager: Optional[FirestoreManager] = None

@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global fs_manager, maps_service

    try:
        # Validate settings
        if not validate_settings():
            logger.error("Invalid settings configuration")
            raise Exception("Invalid settings configuration")

        logger.info("Initializing services...")
        maps_service = MapsService(api_key=settings.GOOGLE_MAPS_API_KEY)

        # Initialize Firestore if enabled
        if settings.USE_FIRESTORE:
            try:
                fs_manager = FirestoreManager()
                logger.info("Firestore trip store initialized successfully")
            except Exception as fe:
                logger.warning("Firestore initialization failed; continuing without Firestore", extra={"error": str(fe)})

        logger.info("All services initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize services: {str(e)}")
        raise

def _build_smart_route_response(trip: Trip, strict: Optional[bool]) -> SmartRouteResponse:
    warnings: List[str] = []
    if strict is None:
        strict = settings.SMART_ROUTE_STRICT_DATES

    if trip.coordinates:
        warnings.extend(TripRouteValidator.validate_destinations(trip.coordinates).get('warnings', []))

    try:
        date_allocator.parse_trip_dates(trip.dates)
    except DateRangeParseError as e:
        if strict:
            raise HTTPException(status_code=400, detail={"message": "Invalid trip dates", "errors": [str(e)]})
        warnings.append(f"Trip dates could not be parsed ({e}); using one day per destination")

    ranges = route_generator.destination_ranges(trip, strict=strict)
    routes = route_generator.get_route_configurations(trip, ranges=ranges)

    for destination, destination_range in zip(trip.coordinates, ranges):
        if destination_range.days == 0:
            warnings.append(f"{destination.name} received no days; add days or remove the destination")

    daily_route_maps: Dict[str, Dict[str, str]] = {}
    daily_static_maps: Dict[str, Dict[str, str]] = {}
    for route_name, configuration in routes.items():
        route_maps = maps_service.generate_daily_route_maps(configuration.itinerary)
        if route_maps:
            daily_route_maps[route_name] = route_maps
        static_maps = maps_service.generate_daily_static_maps(configuration.itinerary)
        if static_maps:
            daily_static_maps[route_name] = static_maps

    return SmartRouteResponse(
        trip_id=trip.id,
        total_days=DestinationDateAllocator.total_days(ranges),
        destination_ranges=ranges,
        routes=routes,
        daily_route_maps=daily_route_maps,
        daily_static_maps=daily_static_maps,
        warnings=warnings
    )

@app.post("/api/v1/validate-trip", response_model=ValidationResponse)
async def validate_trip(trip: Trip):
    """Validate a trip without generating routes"""
    try:
        validation_result = TripRouteValidator.validate_complete_trip(trip)
        suggestions = TripRouteValidator.suggest_improvements(trip)
        logger.debug(
            "[validate-trip] Validation completed",
            extra={
                "valid": validation_result.get("valid"),
                "errors_count": len(validation_result.get("errors", [])),
                "warnings_count": len(validation_result.get("warnings", []))
            }
        )
        return ValidationResponse(
            valid=validation_result['valid'],
            errors=validation_result['errors'],
            warnings=validation_result.get('warnings', []),
            suggestions=suggestions,
            validation_details=validation_result['details']
        )

    except Exception as e:
        logger.error(f"Error validating trip: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/api/v1/destination-dates", response_model=List[DestinationDateRange])
async def get_destination_dates(request: DestinationDatesRequest):
    """Split a "Jun 1 - Jun 10, 2024" date string across destinations"""
    try:
        return date_allocator.get_destination_date_ranges(
            request.dates, request.destination_count, strict=request.strict
        )
    except DateRangeParseError as e:
        raise HTTPException(status_code=400, detail={"message": "Invalid trip dates", "errors": [str(e)]})
    except Exception as e:
        logger.error(f"Error allocating destination dates: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/api/v1/smart-route", response_model=SmartRouteResponse)
async def generate_smart_route(trip: Trip, strict: Optional[bool] = None):
    """
    Generate the current, speed and leisure itineraries for a trip.

    The trip's days are split across its destinations in order; saved places are
    spread over each destination's days and unused days are filled with
    suggestions.
    """
    try:
        logger.info(
            "[smart-route] Request received",
            extra={
                "trip_id": trip.id,
                "dates": trip.dates,
                "destinations": len(trip.coordinates),
                "saved_places": len(trip.saved_places)
            }
        )

        # A trip without destinations yields empty routes rather than an error;
        # only out-of-range coordinates are rejected, name issues become warnings
        validation_result = TripRouteValidator.validate_destinations(trip.coordinates)
        if trip.coordinates and not validation_result['valid']:
            raise HTTPException(status_code=400, detail={
                "message": "Invalid trip destinations",
                "errors": validation_result['errors'],
                "warnings": validation_result.get('warnings', [])
            })

        return _build_smart_route_response(trip, strict)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating smart route: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error generating smart route: {str(e)}")

@app.get("/api/v1/trips/{trip_id}/smart-route", response_model=SmartRouteResponse)
async def get_trip_smart_route(trip_id: str, strict: Optional[bool] = None):
    """Generate smart routes for a trip stored in Firestore"""
    try:
        if not (settings.USE_FIRESTORE and fs_manager is not None):
            raise HTTPException(status_code=503, detail="Trip store not available (Firestore disabled)")

        logger.info(f"Loading trip {trip_id} for smart route generation")
        trip = await fs_manager.get_trip(trip_id)
        if trip is None:
            raise HTTPException(status_code=404, detail="Trip not found")

        return _build_smart_route_response(trip, strict)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating smart route for trip {trip_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/api/v1/itinerary/fill-missing-days", response_model=List[DayItinerary])
async def fill_missing_days(request: FillMissingDaysRequest):
    """Complete an itinerary so it has one day per date in the trip"""
    try:
        if request.end_date < request.start_date:
            raise HTTPException(status_code=400, detail="end_date must not be before start_date")

        if request.trip is not None:
            trip = request.trip.model_copy(update={
                "start_date": request.start_date,
                "end_date": request.end_date
            })
            if trip.coordinates or trip.destination:
                return route_generator.fill_missing_days_for_trip(request.itinerary, trip, request.route_type)

        if request.destination is None:
            raise HTTPException(status_code=400, detail="Either destination or trip with destinations is required")

        return route_generator.fill_missing_days(
            request.itinerary,
            request.start_date,
            request.end_date,
            request.destination,
            request.existing_place_ids,
            request.route_type
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error filling missing days: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/api/v1/itinerary/walking-distances")
async def get_walking_distances(day: DayItinerary):
    """Walking distance and time between every pair of a day's places"""
    try:
        places = sorted(day.places, key=lambda place: place.order_in_route)
        return {
            "day": day.day,
            "distances": maps_service.calculate_walking_distances(places),
            "static_map_url": maps_service.generate_static_map_url(places)
        }
    except Exception as e:
        logger.error(f"Error calculating walking distances for day {day.day}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/api/v1/suggestions")
async def get_suggestions(
    destination: str,
    exclude: Optional[List[str]] = Query(None),
    count: Optional[int] = Query(None, ge=0)
):
    """Catalog places for a destination, excluding ids already in the trip"""
    try:
        places = place_suggestions.get_suggested_places(destination, exclude or [], count)
        return {
            "destination": destination,
            "places": [place.model_dump(mode="json") for place in places],
            "total_results": len(places)
        }
    except Exception as e:
        logger.error(f"Error fetching suggestions for {destination}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/api/v1/venues/arrival-radius", response_model=List[VenueSize])
async def calculate_arrival_radius(request: ArrivalRadiusRequest):
    """Estimate how close a traveller must be to count as arrived at each venue"""
    try:
        return [venue_heuristics.calculate_arrival_radius(venue) for venue in request.venues]
    except Exception as e:
        logger.error(f"Error calculating arrival radius: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/api/v1/venues/{place_id}/size", response_model=VenueSize)
async def get_venue_size(place_id: str):
    """Previously calculated venue size"""
    venue_size = venue_heuristics.get_venue_size(place_id)
    if venue_size is None:
        raise HTTPException(status_code=404, detail="Venue size not calculated")
    return venue_size

@app.post("/api/v1/venues/clusters", response_model=List[ClusterSuggestion])
async def detect_venue_clusters(request: ClusterRequest):
    """Group nearby venues that can be visited together"""
    try:
        return venue_heuristics.detect_venue_clusters(
            request.venues,
            max_cluster_radius=request.max_cluster_radius,
            min_venues_in_cluster=request.min_venues_in_cluster
        )
    except Exception as e:
        logger.error(f"Error detecting venue clusters: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.delete("/api/v1/venues/cache")
async def clear_venue_cache():
    """Drop every cached venue size"""
    stats = venue_heuristics.cache.stats()
    venue_heuristics.clear_cache()
    logger.info("Venue size cache cleared", extra=stats)
    return {"message": "Venue size cache cleared", "cleared_entries": stats.get("entries", 0)}

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        services_healthy = all([
            route_generator is not None,
            venue_heuristics is not None,
            maps_service is not None
        ])

        return {
            "status": "healthy" if services_healthy else "degraded",
            "timestamp": datetime.utcnow().isoformat(),
            "services": {
                "route_generator": route_generator is not None,
                "venue_heuristics": venue_heuristics is not None,
                "maps": maps_service is not None,
                "firestore": fs_manager is not None,
                "suggestion_catalog": len(place_suggestions.catalog)
            },
            "venue_cache": venue_heuristics.cache.stats(),
            "version": settings.API_VERSION
        }

    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "error": str(e)
            }
        )

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Smart Route API",
        "version": settings.API_VERSION,
        "description": "Day-by-day trip routes across multiple destinations",
        "docs": "/docs",
        "health": "/health"
    }

# ============================================================================
# Error Handlers
# ============================================================================
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )
