import math
from typing import Dict, Iterable, Tuple, Optional
from geopy.geocoders import Nominatim
from geopy.exc import GeocoderTimedOut, GeocoderServiceError
from .logger import get_logger

logger = get_logger(__name__)

# Initialize geocoder
geolocator = Nominatim(user_agent="quickcourt-api")


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points using Haversine formula
    Returns distance in kilometers
    """
    R = 6371.0

    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(a))

    return round(R * c, 2)


def get_coordinates_from_address(address: str) -> Optional[Tuple[float, float]]:
    """
    Get latitude and longitude for a free-form facility address
    Returns (latitude, longitude) or None if not found
    """
    if not address:
        return None

    try:
        location = geolocator.geocode(address, timeout=10)
        if location:
            return location.latitude, location.longitude
    except (GeocoderTimedOut, GeocoderServiceError) as e:
        logger.error(f"Geocoding error for {address}: {str(e)}")

    return None


def within_radius(lat: float, lng: float, places: Iterable, radius_km: float) -> Dict[int, float]:
    """
    Distances from (lat, lng) to every place inside the radius, keyed by id.
    Places need id, latitude and longitude; ones without coordinates are skipped.
    """
    distances = {}
    for place in places:
        if place.latitude is None or place.longitude is None:
            continue
        distance = calculate_distance(lat, lng, place.latitude, place.longitude)
        if distance <= radius_km:
            distances[place.id] = distance
    return distances
