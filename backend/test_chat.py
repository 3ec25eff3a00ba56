"""
Unit tests for the parking question answerer
"""
import pytest
from datetime import datetime

from chat import answer_question, classify_question, resolve_locations
from models import Coordinates

MONDAY_NOON = datetime(2024, 1, 8, 12, 0)
SUNDAY_NOON = datetime(2024, 1, 14, 12, 0)


@pytest.fixture
def locations(seeded_catalog):
    return seeded_catalog.locations


class TestResolveLocations:
    """Keyword lookup of the street or lot a question names"""

    def test_parking_does_not_match_king(self, locations):
        resolved, matched = resolve_locations(locations, "any parking?")
        assert resolved == []
        assert matched is None

    def test_specific_name_beats_generic(self, locations):
        resolved, matched = resolve_locations(locations, "is the beamish munro lot open")
        assert matched == "beamish munro"
        assert [loc.id for loc in resolved] == ["beamish-munro-hall"]

    def test_plural_keyword(self, locations):
        resolved, matched = resolve_locations(locations, "any garages open?")
        assert matched == "garage"
        assert {loc.id for loc in resolved} == {"chown-garage", "hanson-garage", "kgh-garage"}


class TestIntents:
    """Decision-list routing and answer text"""

    def test_free_parking_on_princess_sunday(self, locations):
        intent, answer = classify_question(locations, "Is there free parking on Princess?", SUNDAY_NOON)
        assert intent == "free"
        assert "free" in answer
        assert "Princess Street" in answer

    def test_free_parking_on_princess_monday(self, locations):
        answer = answer_question(locations, "is there free parking on princess?", MONDAY_NOON)
        assert answer.startswith("Princess Street isn't free right now (Monday).")

    def test_free_parking_anywhere(self, locations):
        sunday = answer_question(locations, "any free parking?", SUNDAY_NOON)
        assert sunday.startswith("Yes. Right now these have free parking:")
        assert "Market Square Lot" in sunday
        assert "Barrack Street" not in sunday

        monday = answer_question(locations, "any free parking?", MONDAY_NOON)
        assert monday.startswith("No free street parking right now.")

    def test_free_parking_unmatched_name_searches_whole_catalog(self, make_location):
        elm = make_location(id="elm-st", name="Elm Street", kind="street", pricing={"tiers": [
            {"days_of_week": [6], "rate": 0},
        ]})
        intent, answer = classify_question([elm], "any free parking at the garage?", SUNDAY_NOON)
        assert intent == "free"
        assert answer == "Yes. Right now these have free parking: Elm Street."

    def test_availability_unmatched_name_not_found(self, make_location):
        intent, answer = classify_question([make_location()], "any spots on princess?", MONDAY_NOON)
        assert intent == "availability"
        assert answer.startswith("I couldn't find that street or lot.")

    def test_closest_without_user_location(self, locations):
        intent, answer = classify_question(locations, "Where is the closest parking?", MONDAY_NOON)
        assert intent == "closest"
        assert answer == (
            "Search for an address on the map first. Then I can tell you the closest available "
            "parking to that spot."
        )

    def test_closest_with_user_location(self, locations):
        brock = Coordinates(latitude=44.2298, longitude=-76.4840)
        answer = answer_question(locations, "closest parking to me", MONDAY_NOON, user_location=brock)
        assert answer.startswith("Closest available: Brock Street (4 spots), about 0 m away.")

    def test_closest_skips_full_locations(self, locations):
        king = Coordinates(latitude=44.2295, longitude=-76.4785)
        answer = answer_question(locations, "nearest spot?", MONDAY_NOON, user_location=king)
        assert "King Street East" not in answer

    def test_most_available_street(self, locations):
        intent, answer = classify_question(locations, "Which street has the most available?", MONDAY_NOON)
        assert intent == "most_available"
        assert answer == "Ontario Street has the most right now: 7 spots available."

    def test_most_available_tie_goes_to_catalog_order(self, make_location):
        tied = [
            make_location(id="first", name="First Street", kind="street", available_spots=4),
            make_location(id="second", name="Second Street", kind="street", available_spots=4),
        ]
        answer = answer_question(tied, "which street has the most", MONDAY_NOON)
        assert answer.startswith("First Street")

    def test_near_landmark(self, locations):
        intent, answer = classify_question(locations, "Parking near Queen’s?", MONDAY_NOON)
        assert intent == "landmark"
        assert answer.startswith("Near Queen's University:")
        assert "Beamish Munro Hall Lot (2 available)" in answer
        assert "Princess Street" not in answer

    def test_landmark_with_nothing_nearby(self, make_location):
        # Default test lot sits about 500 m from Queen's
        intent, answer = classify_question([make_location()], "parking near queen's", MONDAY_NOON)
        assert intent == "landmark"
        assert answer.startswith("We don't have parking data right at Queen's University.")

    def test_if_full_lists_alternatives_in_catalog_order(self, locations):
        intent, answer = classify_question(
            locations, "What streets should I check if King Street is full?", MONDAY_NOON
        )
        assert intent == "if_full"
        assert answer == (
            "If King Street East is full, try: Princess Street, Division Street, Brock Street, "
            "Ontario Street, Wellington Street, Clergy Street West. See the map for distances."
        )

    def test_if_full_when_named_location_has_spots(self, locations):
        intent, answer = classify_question(
            locations, "what streets should i check if brock is full", MONDAY_NOON
        )
        assert intent == "if_full"
        assert answer == (
            "Places with spots right now: Princess Street, Division Street, Brock Street, "
            "Ontario Street, Wellington Street, Clergy Street West."
        )

    def test_if_full_with_no_alternatives(self, make_location):
        full_streets = [
            make_location(id="elm-st", name="Elm Street", kind="street", available_spots=0),
            make_location(id="oak-st", name="Oak Street", kind="street", available_spots=0),
        ]
        answer = answer_question(full_streets, "what streets should i check if elm street is full", MONDAY_NOON)
        assert answer == "Elm Street is full and no other spots are open right now. Check the map for updates."

    def test_if_full_with_nothing_open(self, make_location):
        sunday_lot = make_location(operating_hours=[{"days_of_week": [6], "start": "08:00", "end": "20:00"}])
        answer = answer_question([sunday_lot], "what streets should i check", MONDAY_NOON)
        assert answer == "No spots are open right now. Check the map for updates."

    def test_is_full(self, locations):
        intent, answer = classify_question(locations, "Is King Street full?", MONDAY_NOON)
        assert intent == "is_full"
        assert answer == "Yes, King Street East is full right now (8 spots, 0 available)."

    def test_is_not_full(self, locations):
        answer = answer_question(locations, "is brock full", MONDAY_NOON)
        assert answer == "No. Brock Street has 4 spots available."

    def test_how_many(self, locations):
        intent, answer = classify_question(locations, "How many spots on Princess Street?", MONDAY_NOON)
        assert intent == "how_many"
        assert answer == "Right now there are 3 spots available on Princess Street (12 total)."

    def test_how_many_single_spot(self, locations):
        answer = answer_question(locations, "how many spots on wellington?", MONDAY_NOON)
        assert answer == "Right now there is 1 spot available on Wellington Street (8 total)."

    def test_closed_lot(self, locations):
        answer = answer_question(locations, "how many spots in the library lot?", SUNDAY_NOON)
        assert answer == "Central Library Lot is currently closed. Hours: Mon–Sat 9:00 a.m.–8:00 p.m."

    def test_lot_car_count(self, locations):
        intent, answer = classify_question(locations, "How many cars are currently in Chown Garage?", MONDAY_NOON)
        assert intent == "lot_details"
        assert answer == "There are 280 cars currently in Chown Memorial Garage (140 spots left)."

    def test_lot_percentage(self, locations):
        answer = answer_question(locations, "what percentage of the chown garage is taken", MONDAY_NOON)
        assert answer == "Chown Memorial Garage is 67% full (280 of 420 spots taken)."

    def test_price(self, locations):
        intent, answer = classify_question(locations, "What is the rate at Chown Garage?", MONDAY_NOON)
        assert intent == "price"
        assert answer.startswith("Chown Memorial Garage: $2.25/hr (max $18.00/day).")

    def test_permit_only_price(self, locations):
        answer = answer_question(locations, "how much is barrack?", MONDAY_NOON)
        assert answer.startswith("Barrack Street: no casual rate right now")

    def test_summary_for_bare_name(self, locations):
        intent, answer = classify_question(locations, "stuart", MONDAY_NOON)
        assert intent == "summary"
        assert answer.startswith("Stuart Street: 5 of 10 spots available. $1.25/30 min.")

    def test_unknown_name(self, make_location):
        intent, answer = classify_question([make_location()], "how many spots on princess?", MONDAY_NOON)
        assert intent == "unknown_name"
        assert answer.startswith("I don't have that street or lot.")

    def test_lettered_lot(self, locations):
        intent, answer = classify_question(locations, "where is parking lot b?", MONDAY_NOON)
        assert intent == "lettered_lot"
        assert "We use actual names, not letters." in answer

    def test_map_lag(self, locations):
        intent, _answer = classify_question(
            locations, "Why does the map say full but I see an empty spot?", MONDAY_NOON
        )
        assert intent == "map_lag"

    def test_availability_listing(self, locations):
        intent, answer = classify_question(locations, "any spots on ontario?", MONDAY_NOON)
        assert intent == "availability"
        assert answer == "Yes. Ontario Street: 7 available"

    @pytest.mark.parametrize("question", ["help", "?", "Hi there", "what can you do"])
    def test_help(self, locations, question):
        intent, answer = classify_question(locations, question, MONDAY_NOON)
        assert intent == "help"
        assert answer.startswith("I can answer:")

    @pytest.mark.parametrize("question", ["", "   "])
    def test_empty(self, locations, question):
        intent, answer = classify_question(locations, question, MONDAY_NOON)
        assert intent == "empty"
        assert answer.startswith("Ask me about parking in downtown Kingston!")

    def test_fallback(self, locations):
        intent, answer = classify_question(locations, "what's the weather like", MONDAY_NOON)
        assert intent == "fallback"
        assert answer.startswith("Ask something like:")


class TestRobustness:
    """Odd input always produces an answer"""

    @pytest.mark.parametrize("question", [
        "?!?", "lot", "lot a", "garage full?", "is it full?", "a" * 500,
        "restaurants on princess", "if the lot is full what streets should i check",
        "parking near the hospital", "which lot has the most", "💥",
    ])
    def test_seeded_catalog(self, locations, question):
        answer = answer_question(locations, question, MONDAY_NOON)
        assert isinstance(answer, str) and answer

    @pytest.mark.parametrize("question", [
        "is king full?", "closest parking to me", "restaurants on princess",
        "parking near downtown", "which street has the most available", "any free parking?",
        "what streets should i check if king is full",
    ])
    def test_empty_catalog(self, question):
        user = Coordinates(latitude=44.2312, longitude=-76.4860)
        answer = answer_question([], question, MONDAY_NOON, user_location=user)
        assert isinstance(answer, str) and answer
