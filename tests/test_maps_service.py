import pytest
from urllib.parse import urlparse, parse_qs

from src.models.place_models import OptimizedPlace
from src.models.response_models import DayItinerary
from src.services.maps_service import MapsService

def make_place(index, lat, lng):
    return OptimizedPlace(
        id=f"p{index}",
        name=f"Place {index}",
        lat=lat,
        lng=lng,
        destination_name="Paris",
        ai_recommended_duration="1 hour",
        best_time_to_visit="9:00 AM",
        order_in_route=index
    )

def make_day(places, day=1):
    return DayItinerary(
        day=day,
        date="Jun 1",
        destination_name="Paris",
        places=places,
        total_time="3 hours",
        walking_time="2 minutes",
        transport_time="1 minute",
        free_time="2 hours",
        allocated_days=1
    )

@pytest.fixture
def places():
    return [
        make_place(1, 48.8606, 2.3376),
        make_place(2, 48.8530, 2.3499),
        make_place(3, 48.8584, 2.2945),
    ]

class FakeMapsClient:
    def __init__(self, status="OK"):
        self.status = status
        self.calls = 0

    def distance_matrix(self, origins, destinations, mode, units):
        self.calls += 1
        return {"rows": [{"elements": [{
            "status": self.status,
            "distance": {"value": 1500},
            "duration": {"value": 1200}
        }]}]}

def test_no_api_key_means_no_urls(places):
    service = MapsService(api_key=None)

    assert service.generate_static_map_url(places) == ""
    assert service.generate_day_route_url(make_day(places)) == ""
    assert service.client is None

def test_day_route_url(places):
    service = MapsService(api_key="test-key")

    url = service.generate_day_route_url(make_day(list(reversed(places))))
    query = parse_qs(urlparse(url).query)

    assert url.startswith("https://www.google.com/maps/embed/v1/directions?")
    assert query["origin"] == ["48.8606,2.3376"]
    assert query["destination"] == ["48.8584,2.2945"]
    assert query["waypoints"] == ["48.853,2.3499"]
    assert query["mode"] == ["walking"]
    assert query["key"] == ["test-key"]

def test_day_route_needs_two_places(places):
    service = MapsService(api_key="test-key")

    assert service.generate_day_route_url(make_day(places[:1])) == ""

def test_daily_route_maps(places):
    service = MapsService(api_key="test-key")
    itinerary = [make_day(places, day=1), make_day(places[:1], day=2), make_day(places[:2], day=3)]

    maps = service.generate_daily_route_maps(itinerary)

    assert list(maps) == ["1", "3"]
    assert "waypoints" not in maps["3"]

def test_daily_static_maps(places):
    service = MapsService(api_key="test-key")
    itinerary = [make_day(list(reversed(places)), day=1), make_day([], day=2), make_day(places[:1], day=3)]

    maps = service.generate_daily_static_maps(itinerary)

    assert list(maps) == ["1", "3"]
    markers = parse_qs(urlparse(maps["1"]).query)["markers"]
    assert markers[0] == "color:red|label:1|48.8606,2.3376"

def test_static_map_url(places):
    service = MapsService(api_key="test-key")

    url = service.generate_static_map_url(places)
    query = parse_qs(urlparse(url).query)

    assert url.startswith("https://maps.googleapis.com/maps/api/staticmap?")
    assert len(query["markers"]) == 3
    assert query["markers"][0] == "color:red|label:1|48.8606,2.3376"
    assert query["zoom"] == ["12"]

def test_walking_distances_fall_back_to_straight_line(places):
    service = MapsService(api_key=None)

    distances = service.calculate_walking_distances(places[:2])

    leg = distances["p1"]["p2"]
    assert 1.0 < leg["distance_km"] < 1.5
    assert leg["duration_minutes"] == pytest.approx(leg["distance_km"] * 12, abs=0.2)
    assert "p1" not in distances["p1"]

def test_walking_distances_use_distance_matrix(places):
    service = MapsService(api_key="test-key")
    fake = FakeMapsClient()
    service._client = fake

    distances = service.calculate_walking_distances(places[:2])

    assert distances["p1"]["p2"] == {"distance_km": 1.5, "duration_minutes": 20.0}
    assert fake.calls == 2

def test_distance_matrix_failure_falls_back(places):
    service = MapsService(api_key="test-key")
    service._client = FakeMapsClient(status="ZERO_RESULTS")

    leg = service.calculate_walking_distances(places[:2])["p1"]["p2"]

    assert leg["distance_km"] != 1.5
