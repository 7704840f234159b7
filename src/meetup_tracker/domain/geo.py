"""Great-circle distance and the proximity check."""

import math

from meetup_tracker.domain.meetups import GeoPoint

EARTH_RADIUS_METERS = 6_371_000.0
FEET_PER_METER = 3.28084
PROXIMITY_THRESHOLD_FEET = 10.0


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Return the haversine distance between two points on a spherical earth."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) * math.sin(d_lon / 2)
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def haversine_feet(a: GeoPoint, b: GeoPoint) -> float:
    """Return the haversine distance in feet."""
    return haversine_meters(a, b) * FEET_PER_METER


def is_within_proximity(distance_feet: float) -> bool:
    """Return true when the distance passes the inclusive proximity threshold."""
    return distance_feet <= PROXIMITY_THRESHOLD_FEET
