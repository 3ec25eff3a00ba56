"""
Occupancy status classification and the per-location view rendered by the UI
"""
from datetime import datetime
from typing import Iterable, List, Optional

from models import (
    LocationFilters, LocationView, ParkingLocation, ParkingStatus
)
from rules import current_price, hours_display, is_free_now, is_open

LIMITED_THRESHOLD = 0.20

STATUS_LABELS = {
    ParkingStatus.AVAILABLE: "Available",
    ParkingStatus.LIMITED: "Limited",
    ParkingStatus.FULL: "Full",
}

CLOSED_LABEL = "Closed"


def status_of(available: int, total: int) -> ParkingStatus:
    """Classify occupancy: full at zero, limited at or below 20% free"""
    if available <= 0 or total <= 0:
        return ParkingStatus.FULL
    if available / total <= LIMITED_THRESHOLD:
        return ParkingStatus.LIMITED
    return ParkingStatus.AVAILABLE


def status_label(status: ParkingStatus) -> str:
    return STATUS_LABELS[status]


def display_price_label(location: ParkingLocation, instant: datetime) -> Optional[str]:
    if location.pricing is None:
        return "Free"
    if location.pricing.permit_only:
        return "Permit only"
    price = current_price(location, instant)
    return price.label if price else None


def location_view(location: ParkingLocation, instant: datetime) -> LocationView:
    """
    Build the marker/card view for a location at an instant.

    A closed location displays zero available spots and a "Closed" label;
    the stored available_spots is left untouched.
    """
    open_now = is_open(location, instant)

    if open_now:
        displayed = location.available_spots
        status = status_of(displayed, location.total_spots)
        label = status_label(status)
    else:
        displayed = 0
        status = ParkingStatus.FULL
        label = CLOSED_LABEL

    return LocationView(
        id=location.id,
        name=location.name,
        address=location.address,
        kind=location.kind,
        coordinates=location.coordinates,
        is_open=open_now,
        displayed_available=displayed,
        total_spots=location.total_spots,
        status=status,
        status_label=label,
        price_label=display_price_label(location, instant),
        hours_label=hours_display(location),
        max_stay_hours=location.max_stay_hours,
    )


def sort_most_open_first(locations: Iterable[ParkingLocation], instant: datetime) -> List[ParkingLocation]:
    """Open locations first, then by available spots descending (stable)"""
    return sorted(
        locations,
        key=lambda loc: (not is_open(loc, instant), -loc.available_spots),
    )


def matches_filters(location: ParkingLocation, filters: LocationFilters, instant: datetime) -> bool:
    if filters.kind is not None and location.kind != filters.kind:
        return False

    if filters.free_parking and location.pricing is not None and not is_free_now(location, instant):
        return False

    features = location.accessibility
    if filters.ev_charging and not (features and features.ev_charging):
        return False
    if filters.accessible_parking and not (features and features.accessible_parking):
        return False

    if filters.min_height_clearance_m > 0 and location.is_lot:
        # Lots without a recorded clearance can't be vouched for
        if features is None or features.height_clearance_m is None:
            return False
        if features.height_clearance_m < filters.min_height_clearance_m:
            return False

    return True


def filter_locations(
    locations: Iterable[ParkingLocation],
    filters: LocationFilters,
    instant: datetime
) -> List[ParkingLocation]:
    """Apply the filter panel to a location list, keeping catalog order"""
    return [loc for loc in locations if matches_filters(loc, filters, instant)]
