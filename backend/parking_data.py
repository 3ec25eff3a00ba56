"""
Downtown Kingston, Ontario seed data.

Days of week: 0 = Monday ... 6 = Sunday. Tier order matters (first match wins),
so the Sunday-free tiers sit ahead of the paid weekday tiers.
"""
from typing import Any, Dict, List

from models import ParkingLocation

KINGSTON_CENTER = {"latitude": 44.2312, "longitude": -76.4860}

WEEKDAYS = [0, 1, 2, 3, 4]
MON_TO_SAT = [0, 1, 2, 3, 4, 5]
WEEKEND = [5, 6]
EVERY_DAY = [0, 1, 2, 3, 4, 5, 6]

# Metered downtown streets: free on Sundays, paid Mon-Sat daytime
DOWNTOWN_STREET_PRICING = {
    "tiers": [
        {"days_of_week": [6], "rate": 0},
        {"days_of_week": MON_TO_SAT, "start": "08:00", "end": "17:30", "rate": 2.50},
    ]
}


def _point(lat: float, lng: float) -> Dict[str, float]:
    return {"latitude": lat, "longitude": lng}


SEED_LOCATIONS: List[Dict[str, Any]] = [
    # Streets
    {
        "id": "princess-st",
        "name": "Princess Street",
        "kind": "street",
        "total_spots": 12,
        "available_spots": 3,
        "coordinates": _point(44.2312, -76.4820),
        "address": "Princess St, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 2,
        "path": [_point(44.2300, -76.4795), _point(44.2312, -76.4820), _point(44.2326, -76.4852)],
    },
    {
        "id": "king-st-e",
        "name": "King Street East",
        "kind": "street",
        "total_spots": 8,
        "available_spots": 0,
        "coordinates": _point(44.2295, -76.4785),
        "address": "King St E, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 2,
        "path": [_point(44.2286, -76.4772), _point(44.2304, -76.4798)],
    },
    {
        "id": "division-st",
        "name": "Division Street",
        "kind": "street",
        "total_spots": 10,
        "available_spots": 2,
        "coordinates": _point(44.2335, -76.4870),
        "address": "Division St, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 3,
        "path": [_point(44.2322, -76.4878), _point(44.2348, -76.4862)],
    },
    {
        "id": "brock-st",
        "name": "Brock Street",
        "kind": "street",
        "total_spots": 6,
        "available_spots": 4,
        "coordinates": _point(44.2298, -76.4840),
        "address": "Brock St, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 2,
        "path": [_point(44.2293, -76.4828), _point(44.2303, -76.4852)],
    },
    {
        "id": "ontario-st",
        "name": "Ontario Street",
        "kind": "street",
        "total_spots": 15,
        "available_spots": 7,
        "coordinates": _point(44.2280, -76.4780),
        "address": "Ontario St, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 3,
        "path": [_point(44.2268, -76.4800), _point(44.2280, -76.4780), _point(44.2294, -76.4766)],
    },
    {
        "id": "wellington-st",
        "name": "Wellington Street",
        "kind": "street",
        "total_spots": 8,
        "available_spots": 1,
        "coordinates": _point(44.2320, -76.4900),
        "address": "Wellington St, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 2,
        "path": [_point(44.2310, -76.4892), _point(44.2330, -76.4908)],
    },
    {
        "id": "clergy-st-w",
        "name": "Clergy Street West",
        "kind": "street",
        "total_spots": 4,
        "available_spots": 2,
        "coordinates": _point(44.2331, -76.4884),
        "address": "Clergy St W, Downtown Kingston",
        "pricing": DOWNTOWN_STREET_PRICING,
        "max_stay_hours": 2,
        "path": [_point(44.2327, -76.4879), _point(44.2335, -76.4889)],
    },
    {
        "id": "barrack-st",
        "name": "Barrack Street",
        "kind": "street",
        "total_spots": 6,
        "available_spots": 3,
        "coordinates": _point(44.2343, -76.4818),
        "address": "Barrack St, Downtown Kingston",
        "pricing": {"permit_only": True},
        "path": [_point(44.2338, -76.4810), _point(44.2348, -76.4826)],
    },
    {
        "id": "stuart-st",
        "name": "Stuart Street",
        "kind": "street",
        "total_spots": 10,
        "available_spots": 5,
        "coordinates": _point(44.2270, -76.4942),
        "address": "Stuart St, near Queen's University",
        "pricing": {
            "tiers": [
                {"days_of_week": WEEKDAYS, "start": "08:00", "end": "18:00", "rate": 1.25, "unit": "halfHour"},
            ]
        },
        "max_stay_hours": 3,
        "path": [_point(44.2264, -76.4930), _point(44.2276, -76.4954)],
    },
    # Lots and garages
    {
        "id": "beamish-munro-hall",
        "name": "Beamish Munro Hall Lot",
        "kind": "lot",
        "total_spots": 4,
        "available_spots": 2,
        "coordinates": _point(44.2281, -76.4920),
        "address": "45 Union St",
        "operating_hours": [
            {"days_of_week": WEEKDAYS, "start": "07:00", "end": "22:00"},
            {"days_of_week": WEEKEND, "start": "09:00", "end": "17:00"},
        ],
        "pricing": {"permit_only": True},
        "accessibility": {"ev_charging": False, "accessible_parking": True},
    },
    {
        "id": "chown-garage",
        "name": "Chown Memorial Garage",
        "kind": "lot",
        "total_spots": 420,
        "available_spots": 140,
        "coordinates": _point(44.2328, -76.4812),
        "address": "Queen St & Bagot St",
        "operating_hours": [
            {"days_of_week": MON_TO_SAT, "start": "06:00", "end": "02:00"},
            {"days_of_week": [6], "start": "08:00", "end": "24:00"},
        ],
        "pricing": {
            "tiers": [
                {"days_of_week": WEEKDAYS, "start": "07:00", "end": "18:00", "rate": 2.25, "daily_max": 18},
                {"start": "18:00", "end": "02:00", "rate": 5, "unit": "flat"},
                {"rate": 1.50, "daily_max": 9},
            ]
        },
        "accessibility": {"ev_charging": True, "accessible_parking": True, "height_clearance_m": 2.1},
    },
    {
        "id": "hanson-garage",
        "name": "Hanson Memorial Garage",
        "kind": "lot",
        "total_spots": 250,
        "available_spots": 0,
        "coordinates": _point(44.2336, -76.4842),
        "address": "Queen St & Montreal St",
        "operating_hours": [
            {"days_of_week": WEEKDAYS, "start": "06:00", "end": "23:00"},
            {"days_of_week": WEEKEND, "start": "08:00", "end": "23:00"},
        ],
        "pricing": {"tiers": [{"rate": 2.00, "daily_max": 14}]},
        "accessibility": {"ev_charging": False, "accessible_parking": True, "height_clearance_m": 2.0},
    },
    {
        "id": "waterfront-lot",
        "name": "Waterfront Lot",
        "kind": "lot",
        "total_spots": 80,
        "available_spots": 22,
        "coordinates": _point(44.2262, -76.4838),
        "address": "Ontario St at Confederation Basin",
        "operating_hours": [
            {"days_of_week": EVERY_DAY, "start": "06:00", "end": "23:00"},
        ],
        "pricing": {"tiers": [{"start": "06:00", "end": "23:00", "rate": 3.00, "daily_max": 15}]},
        "accessibility": {"ev_charging": True, "accessible_parking": True},
    },
    {
        "id": "market-square-lot",
        "name": "Market Square Lot",
        "kind": "lot",
        "total_spots": 50,
        "available_spots": 12,
        "coordinates": _point(44.2305, -76.4810),
        "address": "Behind City Hall",
        "operating_hours": [
            {"days_of_week": EVERY_DAY, "start": "07:00", "end": "21:00"},
        ],
        "pricing": {
            "tiers": [
                {"days_of_week": [6], "rate": 0},
                {"days_of_week": MON_TO_SAT, "start": "07:00", "end": "21:00", "rate": 2.00},
            ]
        },
        "max_stay_hours": 4,
        "accessibility": {"ev_charging": False, "accessible_parking": True},
    },
    {
        "id": "library-lot",
        "name": "Central Library Lot",
        "kind": "lot",
        "total_spots": 30,
        "available_spots": 9,
        "coordinates": _point(44.2318, -76.4872),
        "address": "130 Johnson St",
        "operating_hours": [
            {"days_of_week": MON_TO_SAT, "start": "09:00", "end": "20:00"},
        ],
        "pricing": {"tiers": [{"days_of_week": MON_TO_SAT, "start": "09:00", "end": "20:00", "rate": 6, "unit": "flat"}]},
    },
    {
        "id": "kgh-garage",
        "name": "KGH Visitor Garage",
        "kind": "lot",
        "total_spots": 300,
        "available_spots": 60,
        "coordinates": _point(44.2291, -76.4952),
        "address": "76 Stuart St",
        "pricing": {"tiers": [{"rate": 3.50, "daily_max": 20}]},
        "accessibility": {"ev_charging": True, "accessible_parking": True, "height_clearance_m": 2.0},
    },
]


def build_seed_locations() -> List[ParkingLocation]:
    """Validate the seed records into fresh ParkingLocation objects"""
    return [ParkingLocation.model_validate(record) for record in SEED_LOCATIONS]
