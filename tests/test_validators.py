import pytest
from datetime import date

from src.models.place_models import SavedPlace
from src.models.request_models import Trip, TripCoordinate
from src.utils.validators import TripRouteValidator

@pytest.fixture
def trip():
    return Trip(
        destination="Paris",
        dates="Jun 1 - Jun 4, 2024",
        coordinates=[
            TripCoordinate(name="Paris", lat=48.8566, lng=2.3522),
            TripCoordinate(name="Rome", lat=41.9028, lng=12.4964)
        ],
        saved_places=[
            SavedPlace(id="louvre", name="Louvre", destination_name="Paris"),
            SavedPlace(id="colosseum", name="Colosseum", destination_name="Rome"),
        ]
    )

@pytest.mark.parametrize("name,valid", [
    ("Paris", True),
    ("St. John's", True),
    ("São Paulo", True),
    ("Queens (NY)", True),
    ("P", False),
    ("", False),
    ("Paris<script>", False),
])
def test_destination_name(name, valid):
    assert TripRouteValidator.validate_destination_name(name) is valid

def test_complete_trip_is_valid(trip):
    result = TripRouteValidator.validate_complete_trip(trip)

    assert result["valid"] is True
    assert result["errors"] == []
    assert result["details"]["dates"]["total_days"] == 4
    assert result["details"]["saved_places"]["place_count"] == 2

def test_unparseable_dates(trip):
    result = TripRouteValidator.validate_dates("whenever", 2)

    assert result["valid"] is False
    assert result["total_days"] == 0

def test_more_destinations_than_days_warns():
    result = TripRouteValidator.validate_dates("Jun 1 - Jun 2, 2024", 3)

    assert result["valid"] is True
    assert len(result["warnings"]) == 1

def test_no_destinations():
    result = TripRouteValidator.validate_destinations([])

    assert result["valid"] is False

def test_out_of_range_coordinates():
    result = TripRouteValidator.validate_destinations([TripCoordinate(name="Nowhere", lat=95, lng=0)])

    assert result["valid"] is False

def test_missing_coordinates_warn():
    result = TripRouteValidator.validate_destinations([TripCoordinate(name="Paris")])

    assert result["valid"] is True
    assert "no coordinates" in result["warnings"][0]

def test_duplicate_place_ids(trip):
    trip.saved_places.append(SavedPlace(id="louvre", name="Louvre again", destination_name="Paris"))

    result = TripRouteValidator.validate_saved_places(trip)

    assert result["valid"] is False
    assert "louvre" in result["errors"][0]

def test_places_for_unknown_destination_warn(trip):
    trip.saved_places.append(SavedPlace(id="sagrada", name="Sagrada Familia", destination_name="Barcelona"))

    result = TripRouteValidator.validate_saved_places(trip)

    assert result["valid"] is True
    assert any("Barcelona" in w for w in result["warnings"])

def test_reversed_iso_dates(trip):
    trip.start_date = date(2024, 6, 4)
    trip.end_date = date(2024, 6, 1)

    assert TripRouteValidator.validate_complete_trip(trip)["valid"] is False

def test_suggest_improvements(trip):
    trip.saved_places = [SavedPlace(id="louvre", name="Louvre", destination_name="Paris")]

    suggestions = TripRouteValidator.suggest_improvements(trip)

    assert any("Rome" in s for s in suggestions)
    assert any("suggested places" in s for s in suggestions)

def test_suggest_fewer_destinations():
    trip = Trip(
        dates="Jun 1 - Jun 2, 2024",
        coordinates=[TripCoordinate(name=name) for name in ("Paris", "Rome", "Berlin")],
        saved_places=[SavedPlace(id=name, name=name, destination_name=name) for name in ("Paris", "Rome", "Berlin")]
    )

    suggestions = TripRouteValidator.suggest_improvements(trip)

    assert any("fewer destinations" in s for s in suggestions)
