"""
Parking data model shared by the evaluator, the chat engine and the API
"""
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

CLOCK_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$|^24:00$')


def _check_clock(value: str) -> str:
    if not CLOCK_PATTERN.match(value):
        raise ValueError(f"expected HH:MM, got {value!r}")
    return value


def _check_days(days: List[int]) -> List[int]:
    for day in days:
        if not 0 <= day <= 6:
            raise ValueError(f"day of week must be 0 (Mon) to 6 (Sun), got {day}")
    return days


class LocationKind(str, Enum):
    STREET = "street"
    LOT = "lot"


class PriceUnit(str, Enum):
    HOUR = "hour"
    HALF_HOUR = "halfHour"
    FLAT = "flat"


class ParkingStatus(str, Enum):
    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"


class Coordinates(BaseModel):
    """Geographic point"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class HoursWindow(BaseModel):
    """Operating window; end before start wraps past midnight on the same listed day"""
    days_of_week: List[int] = Field(..., min_length=1)
    start: str
    end: str

    @field_validator('start', 'end')
    @classmethod
    def validate_clock(cls, v):
        return _check_clock(v)

    @field_validator('days_of_week')
    @classmethod
    def validate_days(cls, v):
        return _check_days(v)


class PriceTier(BaseModel):
    """Time-and-day scoped rate. Tier order within a location is significant."""
    days_of_week: Optional[List[int]] = None  # None means every day
    start: str = "00:00"
    end: str = "24:00"
    rate: float = Field(..., ge=0)
    unit: PriceUnit = PriceUnit.HOUR
    daily_max: Optional[float] = Field(default=None, ge=0)

    @field_validator('start', 'end')
    @classmethod
    def validate_clock(cls, v):
        return _check_clock(v)

    @field_validator('days_of_week')
    @classmethod
    def validate_days(cls, v):
        return v if v is None else _check_days(v)


class Pricing(BaseModel):
    permit_only: bool = False
    tiers: List[PriceTier] = []


class Accessibility(BaseModel):
    ev_charging: bool = False
    accessible_parking: bool = False
    height_clearance_m: Optional[float] = Field(default=None, gt=0)


class ParkingLocation(BaseModel):
    """One parking facility: a metered street stretch or an off-street lot"""
    id: str = Field(..., min_length=1)
    name: str
    address: Optional[str] = None
    kind: LocationKind
    total_spots: int = Field(..., gt=0)
    available_spots: int = Field(..., ge=0)
    coordinates: Coordinates
    operating_hours: List[HoursWindow] = []
    pricing: Optional[Pricing] = None
    max_stay_hours: Optional[float] = None
    path: Optional[List[Coordinates]] = None
    accessibility: Optional[Accessibility] = None

    @model_validator(mode='after')
    def check_capacity(self):
        if self.available_spots > self.total_spots:
            raise ValueError(
                f"available_spots ({self.available_spots}) exceeds total_spots ({self.total_spots})"
            )
        return self

    @property
    def is_street(self) -> bool:
        return self.kind == LocationKind.STREET

    @property
    def is_lot(self) -> bool:
        return self.kind == LocationKind.LOT


class CurrentPrice(BaseModel):
    """Active tier at a given instant, with its display label"""
    rate: float
    unit: PriceUnit
    daily_max: Optional[float] = None
    label: str


class LocationView(BaseModel):
    """What map markers and list cards render for one location"""
    id: str
    name: str
    address: Optional[str] = None
    kind: LocationKind
    coordinates: Coordinates
    is_open: bool
    displayed_available: int
    total_spots: int
    status: ParkingStatus
    status_label: str
    price_label: Optional[str] = None
    hours_label: str
    max_stay_hours: Optional[float] = None


class LocationFilters(BaseModel):
    """Filter panel state: free parking, EV, accessible spots, vehicle height"""
    kind: Optional[LocationKind] = None
    free_parking: bool = False
    ev_charging: bool = False
    accessible_parking: bool = False
    min_height_clearance_m: float = Field(default=0, ge=0)
