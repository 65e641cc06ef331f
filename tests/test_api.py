import pytest
from fastapi.testclient import TestClient
from src.api import main as api_main
from src.api.main import app
from src.models.place_models import SavedPlace, Priority
from src.models.request_models import Trip, TripCoordinate

client = TestClient(app)

@pytest.fixture
def sample_trip():
    """Sample two-city trip for testing"""
    return Trip(
        id="trip-42",
        name="Europe in June",
        destination="Paris",
        dates="Jun 1 - Jun 6, 2024",
        coordinates=[
            TripCoordinate(name="Paris", lat=48.8566, lng=2.3522),
            TripCoordinate(name="Rome", lat=41.9028, lng=12.4964)
        ],
        saved_places=[
            SavedPlace(id="louvre", name="Louvre Museum", category="Museum", estimated_time="2-3 hours",
                       priority=Priority.HIGH, destination_name="Paris", lat=48.8606, lng=2.3376),
            SavedPlace(id="eiffel", name="Eiffel Tower", category="Landmark", estimated_time="1-2 hours",
                       priority=Priority.HIGH, destination_name="Paris", lat=48.8584, lng=2.2945),
            SavedPlace(id="orsay", name="Musee d'Orsay", category="Museum", estimated_time="2 hours",
                       destination_name="Paris", lat=48.8600, lng=2.3266),
        ]
    )

def test_health_check():
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert "status" in data
    assert "timestamp" in data
    assert data["services"]["suggestion_catalog"] >= 5

def test_root_endpoint():
    """Test root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "message" in data
    assert data["message"] == "Smart Route API"

def test_validate_trip(sample_trip):
    """Test trip validation endpoint"""
    response = client.post("/api/v1/validate-trip", json=sample_trip.model_dump(mode="json"))
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["errors"] == []
    assert any("Rome" in s for s in data["suggestions"])

def test_validate_trip_with_bad_dates(sample_trip):
    """Test validation with unparseable dates"""
    payload = sample_trip.model_dump(mode="json")
    payload["dates"] = "next summer"
    response = client.post("/api/v1/validate-trip", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert len(data["errors"]) > 0

def test_destination_dates():
    response = client.post("/api/v1/destination-dates", json={"dates": "Jun 1 - Jun 10, 2024", "destination_count": 3})
    assert response.status_code == 200
    data = response.json()
    assert [r["days"] for r in data] == [4, 3, 3]
    assert data[0]["label"] == "Jun 1 - Jun 4"
    assert data[0]["start_date"] == "2024-06-01"

def test_destination_dates_strict_rejects_bad_dates():
    response = client.post("/api/v1/destination-dates", json={"dates": "soon", "destination_count": 2, "strict": True})
    assert response.status_code == 400
    data = response.json()
    assert data["error"]["message"] == "Invalid trip dates"
    assert "path" in data

def test_destination_dates_lenient_fallback():
    response = client.post("/api/v1/destination-dates", json={"dates": "soon", "destination_count": 2, "strict": False})
    assert response.status_code == 200
    assert [r["label"] for r in response.json()] == ["Day 1", "Day 2"]

def test_destination_dates_invalid_count():
    response = client.post("/api/v1/destination-dates", json={"dates": "Jun 1 - Jun 10, 2024", "destination_count": -1})
    assert response.status_code == 422

def test_smart_route(sample_trip):
    response = client.post("/api/v1/smart-route", json=sample_trip.model_dump(mode="json"))
    assert response.status_code == 200
    data = response.json()
    assert data["trip_id"] == "trip-42"
    assert data["total_days"] == 6
    assert [r["label"] for r in data["destination_ranges"]] == ["Jun 1 - Jun 3", "Jun 4 - Jun 6"]
    assert set(data["routes"]) == {"current", "speed", "leisure"}

    current = data["routes"]["current"]
    assert current["name"] == "Current Route"
    assert current["duration"] == "6 days"
    # Rome has no saved places and is skipped
    assert [d["day"] for d in current["itinerary"]] == [1, 2, 3]
    assert current["itinerary"][0]["places"][0]["id"] == "louvre"
    assert data["warnings"] == []

def test_smart_route_lenient_dates_warns(sample_trip):
    payload = sample_trip.model_dump(mode="json")
    payload["dates"] = "TBD"
    response = client.post("/api/v1/smart-route", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["total_days"] == 2
    assert len(data["warnings"]) == 1

def test_smart_route_strict_dates(sample_trip):
    payload = sample_trip.model_dump(mode="json")
    payload["dates"] = "TBD"
    response = client.post("/api/v1/smart-route?strict=true", json=payload)
    assert response.status_code == 400

def test_smart_route_without_destinations():
    response = client.post("/api/v1/smart-route", json={"dates": "Jun 1 - Jun 3, 2024"})
    assert response.status_code == 200
    data = response.json()
    assert data["routes"]["current"]["itinerary"] == []

def test_smart_route_zero_day_destination_warning(sample_trip):
    payload = sample_trip.model_dump(mode="json")
    payload["dates"] = "Jun 1 - Jun 1, 2024"
    response = client.post("/api/v1/smart-route", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert any("Rome" in w for w in data["warnings"])

def test_stored_trip_requires_firestore():
    response = client.get("/api/v1/trips/trip-42/smart-route")
    assert response.status_code == 503

def test_fill_missing_days():
    existing_day = {
        "day": 7,
        "date": "2024-06-02",
        "destination_name": "Paris",
        "places": [],
        "total_time": "2 hours",
        "walking_time": "10 minutes",
        "transport_time": "5 minutes",
        "free_time": "6 hours",
        "allocated_days": 1
    }
    response = client.post("/api/v1/itinerary/fill-missing-days", json={
        "itinerary": [existing_day],
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "destination": {"name": "Paris", "lat": 48.8566, "lng": 2.3522},
        "route_type": "balanced"
    })
    assert response.status_code == 200
    days = response.json()
    assert [d["date"] for d in days] == ["2024-06-01", "2024-06-02", "2024-06-03"]
    assert [d["is_suggested"] for d in days] == [True, False, True]
    assert days[1]["day"] == 2

def test_fill_missing_days_with_trip():
    response = client.post("/api/v1/itinerary/fill-missing-days", json={
        "start_date": "2024-06-01",
        "end_date": "2024-06-04",
        "trip": {
            "destination": "Paris",
            "coordinates": [{"name": "Paris"}, {"name": "Rome"}]
        }
    })
    assert response.status_code == 200
    days = response.json()
    assert [d["destination_name"] for d in days] == ["Paris", "Paris", "Rome", "Rome"]

def test_fill_missing_days_rejects_reversed_dates():
    response = client.post("/api/v1/itinerary/fill-missing-days", json={
        "start_date": "2024-06-03",
        "end_date": "2024-06-01",
        "destination": {"name": "Paris"}
    })
    assert response.status_code == 400

def test_fill_missing_days_needs_a_destination():
    response = client.post("/api/v1/itinerary/fill-missing-days", json={
        "start_date": "2024-06-01",
        "end_date": "2024-06-03"
    })
    assert response.status_code == 400

def test_fill_missing_days_invalid_route_type():
    response = client.post("/api/v1/itinerary/fill-missing-days", json={
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "destination": {"name": "Paris"},
        "route_type": "sprint"
    })
    assert response.status_code == 422

def test_suggestions():
    response = client.get("/api/v1/suggestions", params={"destination": "Paris", "exclude": ["suggest-paris-1"]})
    assert response.status_code == 200
    data = response.json()
    assert [p["id"] for p in data["places"]] == ["suggest-paris-2", "suggest-paris-3"]
    assert data["total_results"] == 2

def test_suggestions_unknown_destination():
    response = client.get("/api/v1/suggestions", params={"destination": "Atlantis"})
    assert response.status_code == 200
    assert response.json()["places"] == []

def test_arrival_radius_and_lookup():
    response = client.post("/api/v1/venues/arrival-radius", json={"venues": [{
        "place_id": "api-airport",
        "name": "Madrid-Barajas Airport",
        "category": "airport",
        "location": {"lat": 40.4983, "lng": -3.5676},
        "user_ratings_total": 50000
    }]})
    assert response.status_code == 200
    size = response.json()[0]
    assert size["arrival_radius"] == 500
    assert size["venue_type"] == "extra_large"

    response = client.get("/api/v1/venues/api-airport/size")
    assert response.status_code == 200
    assert response.json()["arrival_radius"] == 500

def test_arrival_radius_requires_venues():
    response = client.post("/api/v1/venues/arrival-radius", json={"venues": []})
    assert response.status_code == 422

def test_unknown_venue_size():
    response = client.get("/api/v1/venues/never-seen/size")
    assert response.status_code == 404

def test_venue_clusters():
    venues = [
        {"place_id": "r1", "name": "Casa Labra", "category": "restaurant", "location": {"lat": 40.4168, "lng": -3.7038}},
        {"place_id": "r2", "name": "Lhardy", "category": "restaurant", "location": {"lat": 40.4172, "lng": -3.7038}},
        {"place_id": "r3", "name": "Far away", "category": "restaurant", "location": {"lat": 40.4350, "lng": -3.7038}},
    ]
    response = client.post("/api/v1/venues/clusters", json={"venues": venues, "max_cluster_radius": 200})
    assert response.status_code == 200
    clusters = response.json()
    assert len(clusters) == 1
    assert sorted(clusters[0]["recommended_order"]) == ["r1", "r2"]

def test_clear_venue_cache():
    client.post("/api/v1/venues/arrival-radius", json={"venues": [{
        "place_id": "cache-cafe",
        "name": "Cafe de Oriente",
        "category": "cafe",
        "location": {"lat": 40.418, "lng": -3.712}
    }]})
    response = client.delete("/api/v1/venues/cache")
    assert response.status_code == 200
    assert response.json()["cleared_entries"] >= 1
    assert client.get("/api/v1/venues/cache-cafe/size").status_code == 404

@pytest.mark.parametrize("name", ["Rome!", "Tokyo 🗼", "X"])
def test_smart_route_unusual_destination_name_warns(name):
    payload = {
        "dates": "Jun 1 - Jun 2, 2024",
        "coordinates": [{"name": name, "lat": 41.9028, "lng": 12.4964}],
        "saved_places": [{"id": "spot", "name": "Spot", "destination_name": name}]
    }
    response = client.post("/api/v1/smart-route", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["routes"]["current"]["itinerary"][0]["destination_name"] == name
    assert any(name in w for w in data["warnings"])

def test_smart_route_rejects_out_of_range_coordinates(sample_trip):
    payload = sample_trip.model_dump(mode="json")
    payload["coordinates"][1]["lat"] = 95
    response = client.post("/api/v1/smart-route", json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid trip destinations"

def test_smart_route_allocates_dates_once(sample_trip, monkeypatch):
    allocator = api_main.date_allocator
    original = allocator.get_destination_date_ranges
    calls = []

    def counting(*args, **kwargs):
        calls.append(args)
        return original(*args, **kwargs)

    monkeypatch.setattr(allocator, "get_destination_date_ranges", counting)
    payload = sample_trip.model_dump(mode="json")
    payload["dates"] = "TBD"
    response = client.post("/api/v1/smart-route", json=payload)
    assert response.status_code == 200
    assert len(calls) == 1

def test_smart_route_static_maps(sample_trip, monkeypatch):
    monkeypatch.setattr(api_main.maps_service, "api_key", "test-key")
    response = client.post("/api/v1/smart-route", json=sample_trip.model_dump(mode="json"))
    assert response.status_code == 200
    static_maps = response.json()["daily_static_maps"]
    assert sorted(static_maps["current"]) == ["1", "2", "3"]
    assert static_maps["current"]["1"].startswith("https://maps.googleapis.com/maps/api/staticmap?")

def test_walking_distances():
    def place(place_id, order, lat, lng):
        return {
            "id": place_id, "name": place_id, "lat": lat, "lng": lng, "destination_name": "Paris",
            "ai_recommended_duration": "1 hour", "best_time_to_visit": "9:00 AM", "order_in_route": order
        }

    day = {
        "day": 2,
        "date": "Jun 2",
        "destination_name": "Paris",
        "places": [place("orsay", 2, 48.8600, 2.3266), place("louvre", 1, 48.8606, 2.3376)],
        "total_time": "5 hours",
        "walking_time": "1 minute",
        "transport_time": "1 minute",
        "free_time": "3 hours",
        "allocated_days": 3
    }
    response = client.post("/api/v1/itinerary/walking-distances", json=day)
    assert response.status_code == 200
    data = response.json()
    assert data["day"] == 2
    leg = data["distances"]["louvre"]["orsay"]
    assert 0.7 < leg["distance_km"] < 0.9
    assert leg["duration_minutes"] == pytest.approx(leg["distance_km"] * 12, abs=0.1)
    assert data["distances"]["orsay"]["louvre"]["distance_km"] == leg["distance_km"]
