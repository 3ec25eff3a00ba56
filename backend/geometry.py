"""
Distance helper and street spot interpolation
"""
from typing import List

from geopy.distance import great_circle

from models import Coordinates, ParkingLocation

# Keep markers off the intersection vertices at either end of a segment
SEGMENT_CLAMP_MIN = 0.2
SEGMENT_CLAMP_MAX = 0.8


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters between two points"""
    return great_circle(
        (a.latitude, a.longitude),
        (b.latitude, b.longitude)
    ).meters


def _interpolate(a: Coordinates, b: Coordinates, fraction: float) -> Coordinates:
    return Coordinates(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def spot_positions(location: ParkingLocation) -> List[Coordinates]:
    """
    Place one marker per spot along a street's path.

    Spot i sits at arc-length fraction (i + 0.5) / total_spots of the whole
    path. Inside its segment the local fraction is clamped to [0.2, 0.8].
    Always returns total_spots points for a usable path and an empty list
    for degenerate input (missing path, fewer than two points, zero length,
    no spots). Index order is stable for a given path and capacity.
    """
    path = location.path or []
    count = location.total_spots
    if len(path) < 2 or count <= 0:
        return []

    segments = []  # (start, end, cumulative length at start, length)
    total_length = 0.0
    for start, end in zip(path, path[1:]):
        length = haversine_distance(start, end)
        if length <= 0:
            continue
        segments.append((start, end, total_length, length))
        total_length += length

    if total_length <= 0:
        return []

    positions = []
    seg_index = 0
    for i in range(count):
        target = (i + 0.5) / count * total_length

        # Targets increase with i, so the containing segment only moves forward
        while seg_index < len(segments) - 1 and target > segments[seg_index][2] + segments[seg_index][3]:
            seg_index += 1

        start, end, offset, length = segments[seg_index]
        local = (target - offset) / length
        local = min(max(local, SEGMENT_CLAMP_MIN), SEGMENT_CLAMP_MAX)
        positions.append(_interpolate(start, end, local))

    return positions


def displayed_spot_positions(location: ParkingLocation, displayed_available: int) -> List[Coordinates]:
    """First displayed_available spot markers, by index"""
    if displayed_available <= 0:
        return []
    return spot_positions(location)[:displayed_available]
