"""
Rule-based parking Q&A over the live catalog.

A question is normalized once and run through an ordered decision list of
intents. The first intent whose trigger matches and whose handler returns an
answer wins; handlers return None to let later intents try. Every path ends
in a designed answer string, so nothing here raises for odd input.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from geometry import haversine_distance
from logging_config import get_logger
from models import Coordinates, ParkingLocation
from parking_data import KINGSTON_CENTER
from rules import current_price, hours_display, is_free_now, is_open

logger = get_logger(__name__)

NEAR_RADIUS_M = 400
MAX_LISTED = 6

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


@dataclass(frozen=True)
class Landmark:
    label: str
    point: Coordinates


_QUEENS = Landmark("Queen's University", Coordinates(latitude=44.2287, longitude=-76.4915))
_KGH = Landmark("Kingston General Hospital (KGH)", Coordinates(latitude=44.2295, longitude=-76.4960))

# Checked in order; first landmark named in the question wins
LANDMARKS: List[Tuple[str, Landmark]] = [
    ("queen's", _QUEENS),
    ("queens", _QUEENS),
    ("university", _QUEENS),
    ("waterfront", Landmark("Kingston Waterfront", Coordinates(latitude=44.2260, longitude=-76.4850))),
    ("hospital", _KGH),
    ("kgh", _KGH),
    ("downtown", Landmark("downtown Kingston", Coordinates(**KINGSTON_CENTER))),
]

PROXIMITY_TRIGGERS = ("near", "close", "parking", "show")


def _name_has(fragment: str) -> Callable[[ParkingLocation], bool]:
    return lambda loc: fragment in loc.name.lower()


# Longer, more specific names first: "beamish munro" must beat the generic "lot"
NAME_KEYWORDS: List[Tuple[str, Callable[[ParkingLocation], bool]]] = [
    ("beamish munro", lambda loc: loc.id == "beamish-munro-hall" or "beamish" in loc.name.lower()),
    ("chown garage", lambda loc: loc.id == "chown-garage" or ("chown" in loc.name.lower() and loc.is_lot)),
    ("hanson garage", lambda loc: loc.id == "hanson-garage" or "hanson" in loc.name.lower()),
    ("kgh garage", lambda loc: loc.id == "kgh-garage" or "kgh" in loc.name.lower()),
    ("market square", _name_has("market square")),
    ("waterfront", lambda loc: loc.id == "waterfront-lot" or "waterfront" in loc.name.lower()),
    ("library", _name_has("library")),
    ("princess", lambda loc: loc.id == "princess-st" or "princess" in loc.name.lower()),
    ("king street", _name_has("king")),
    ("king", _name_has("king")),
    ("brock", _name_has("brock")),
    ("ontario", _name_has("ontario")),
    ("division", _name_has("division")),
    ("wellington", _name_has("wellington")),
    ("clergy", _name_has("clergy")),
    ("barrack", _name_has("barrack")),
    ("stuart", _name_has("stuart")),
    ("beamish", _name_has("beamish")),
    ("chown", _name_has("chown")),
    ("hanson", _name_has("hanson")),
    ("kgh", _name_has("kgh")),
    ("garage", _name_has("garage")),
    ("lot", lambda loc: loc.is_lot),
    ("street", lambda loc: loc.is_street),
]

GENERIC_KEYWORDS = {"garage", "lot", "street"}

EMPTY_PROMPT = (
    "Ask me about parking in downtown Kingston! Try: \"How many spots on Princess Street?\" "
    "or \"Is there parking near Queen's University?\""
)

HELP_TEXT = "\n".join([
    "I can answer:",
    "• \"How many spots on Princess Street?\" / \"Is King Street full?\"",
    "• \"Any free street parking?\" / \"Which street has the most available?\"",
    "• \"Where is the closest available parking to me?\" (search an address first)",
    "• \"How many spots in the Chown garage?\" / \"What % of Beamish Munro is full?\"",
    "• \"Parking near Queen's University?\" / \"Near the Waterfront?\"",
    "• \"What streets if the lot is full?\"",
    "• \"Why does the map say full but I see an empty spot?\"",
])

FALLBACK_TEXT = (
    "Ask something like: \"How many spots on Princess?\" or \"Is there parking near Queen's?\" "
    "I use live data from the map."
)

SUNDAY_STREETS = "Many downtown streets (Princess, King, Brock, Division, Ontario, Wellington, Clergy) are free on Sundays."


def _word_pattern(keyword: str, plural: bool = True) -> re.Pattern:
    suffix = "s?" if plural else ""
    return re.compile(rf"\b{re.escape(keyword)}{suffix}\b")


_KEYWORD_PATTERNS = [(keyword, _word_pattern(keyword), match) for keyword, match in NAME_KEYWORDS]
_LANDMARK_PATTERNS = [(key, _word_pattern(key, plural=False), landmark) for key, landmark in LANDMARKS]


def normalize_question(question: str) -> str:
    return question.strip().lower().replace("’", "'")


def resolve_locations(
    locations: List[ParkingLocation],
    question: str
) -> Tuple[List[ParkingLocation], Optional[str]]:
    """
    Pick the locations a question is about.

    Walks the keyword table in order and stops at the first keyword whose
    predicate selects something. Returns (subset, matched keyword); the
    keyword is kept even when nothing matched it so callers can say the name
    is unknown.
    """
    resolved: List[ParkingLocation] = []
    matched_name = None
    for keyword, pattern, match in _KEYWORD_PATTERNS:
        if pattern.search(question):
            matched_name = keyword
            resolved = [loc for loc in locations if match(loc)]
            if resolved:
                break
    return resolved, matched_name


@dataclass
class ChatContext:
    locations: List[ParkingLocation]
    question: str
    instant: datetime
    user_location: Optional[Coordinates] = None
    resolved: List[ParkingLocation] = field(default_factory=list)
    matched_name: Optional[str] = None

    @property
    def named(self) -> bool:
        """A specific street or lot was resolved"""
        return self.matched_name is not None and bool(self.resolved)

    @property
    def scope(self) -> List[ParkingLocation]:
        """Resolved subset, or the whole catalog when no name was mentioned"""
        return self.resolved if self.matched_name is not None else self.locations

    @property
    def target(self) -> ParkingLocation:
        return self.resolved[0]

    def open_with_spots(self, locations: Iterable[ParkingLocation]) -> List[ParkingLocation]:
        return [loc for loc in locations if is_open(loc, self.instant) and loc.available_spots > 0]

    def open_and_full(self, locations: Iterable[ParkingLocation]) -> List[ParkingLocation]:
        return [loc for loc in locations if is_open(loc, self.instant) and loc.available_spots == 0]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _closed_answer(loc: ParkingLocation) -> str:
    return f"{loc.name} is currently closed. Hours: {hours_display(loc)}"


def _matches(pattern: str) -> Callable[[ChatContext], bool]:
    compiled = re.compile(pattern)
    return lambda ctx: bool(compiled.search(ctx.question))


# --- Handlers ---------------------------------------------------------------

def answer_empty(ctx: ChatContext) -> str:
    return EMPTY_PROMPT


def answer_help(ctx: ChatContext) -> str:
    return HELP_TEXT


def answer_just_opened(ctx: ChatContext) -> str:
    return (
        "We update every few seconds from sensors. If a spot just opened, the map will show it "
        "shortly. Try refreshing or wait a few seconds."
    )


def answer_map_lag(ctx: ChatContext) -> str:
    return (
        "Sensors can lag by a few seconds, or someone may have just left. The map updates every "
        "5-10 seconds. If you see an empty spot, it may have opened after the last update. "
        "Check the map again for the latest."
    )


def answer_prediction(ctx: ChatContext) -> str:
    return (
        "We don't have historical patterns or predictions, only live availability. Mornings and "
        "weekends are often easier downtown. Use the map for current spots."
    )


def answer_trend(ctx: ChatContext) -> str:
    return (
        "We don't track whether a lot is filling up or emptying, only how many spots are "
        "available right now. Check the map for current counts."
    )


def _named_landmark(ctx: ChatContext) -> Optional[Landmark]:
    for _key, pattern, landmark in _LANDMARK_PATTERNS:
        if pattern.search(ctx.question):
            return landmark
    return None


def wants_landmark(ctx: ChatContext) -> bool:
    if not any(trigger in ctx.question for trigger in PROXIMITY_TRIGGERS):
        return False
    return _named_landmark(ctx) is not None


def answer_landmark(ctx: ChatContext) -> str:
    landmark = _named_landmark(ctx)
    near = [
        loc for loc in ctx.locations
        if haversine_distance(loc.coordinates, landmark.point) <= NEAR_RADIUS_M
    ]
    with_spots = ctx.open_with_spots(near)

    if with_spots:
        listing = "; ".join(
            f"{loc.name} ({loc.available_spots} available)" for loc in with_spots[:MAX_LISTED]
        )
        return f"Near {landmark.label}: {listing}. See the map for directions."
    if near:
        names = ", ".join(loc.name for loc in near[:5])
        return (
            f"Near {landmark.label} we have: {names}. Right now none show available spots. "
            "Check the map for live updates."
        )
    return (
        f"We don't have parking data right at {landmark.label}. "
        "Try searching an address on the map to see nearby options."
    )


def answer_restaurants(ctx: ChatContext) -> Optional[str]:
    princess = [loc for loc in ctx.locations if "princess" in loc.name.lower()]
    if not princess:
        return None
    loc = princess[0]
    if is_open(loc, ctx.instant):
        status = f"{loc.available_spots} of {loc.total_spots} spots available on {loc.name}."
    else:
        status = f"{loc.name} parking is currently outside its hours."
    return f"{status} Street parking runs along Princess. Check the map for the exact stretch."


def answer_closest(ctx: ChatContext) -> str:
    if ctx.user_location is None:
        return (
            "Search for an address on the map first. Then I can tell you the closest available "
            "parking to that spot."
        )

    candidates = ctx.open_with_spots(ctx.locations)
    if not candidates:
        return "No spots are available right now near you. Try expanding your search on the map or another time."

    user = ctx.user_location
    nearest = min(candidates, key=lambda loc: haversine_distance(user, loc.coordinates))
    distance = round(haversine_distance(user, nearest.coordinates))
    return (
        f"Closest available: {nearest.name} ({_plural(nearest.available_spots, 'spot')}), "
        f"about {distance} m away. Check the map for the exact location."
    )


def answer_most_available(ctx: ChatContext) -> str:
    # max() keeps the first maximum, so ties go to catalog order
    streets = ctx.open_with_spots(loc for loc in ctx.locations if loc.is_street)
    if streets:
        top = max(streets, key=lambda loc: loc.available_spots)
        return f"{top.name} has the most right now: {_plural(top.available_spots, 'spot')} available."

    lots = ctx.open_with_spots(loc for loc in ctx.locations if loc.is_lot)
    if lots:
        top = max(lots, key=lambda loc: loc.available_spots)
        return f"{top.name} has the most available: {_plural(top.available_spots, 'spot')}."

    return "No streets or lots with available spots right now. Check the map for updates."


def answer_if_full(ctx: ChatContext) -> str:
    full = ctx.open_and_full(ctx.scope)
    if full:
        blocked = full[0]
        alternatives = ctx.open_with_spots(loc for loc in ctx.locations if loc.id != blocked.id)
        if not alternatives:
            return f"{blocked.name} is full and no other spots are open right now. Check the map for updates."
        names = ", ".join(loc.name for loc in alternatives[:MAX_LISTED])
        return f"If {blocked.name} is full, try: {names}. See the map for distances."

    open_now = ctx.open_with_spots(ctx.locations)
    if not open_now:
        return "No spots are open right now. Check the map for updates."
    names = ", ".join(loc.name for loc in open_now[:MAX_LISTED])
    return f"Places with spots right now: {names}."


def wants_lettered_lot(ctx: ChatContext) -> bool:
    if not re.search(r"\bparking lot [a-d]\b|\blot [a-d](\s|\?|$)", ctx.question):
        return False
    return ctx.matched_name is None or ctx.matched_name in GENERIC_KEYWORDS


def answer_lettered_lot(ctx: ChatContext) -> str:
    return (
        "We use actual names, not letters. Try: \"Beamish Munro Hall\", \"Chown Memorial Garage\", "
        "\"Waterfront Lot\", or \"Hanson Garage.\""
    )


def answer_how_many(ctx: ChatContext) -> str:
    loc = ctx.target
    if not is_open(loc, ctx.instant):
        return _closed_answer(loc)
    return (
        f"Right now there {'is' if loc.available_spots == 1 else 'are'} "
        f"{_plural(loc.available_spots, 'spot')} available on {loc.name} ({loc.total_spots} total)."
    )


def answer_is_full(ctx: ChatContext) -> str:
    loc = ctx.target
    if not is_open(loc, ctx.instant):
        return _closed_answer(loc)
    if loc.available_spots == 0:
        return f"Yes, {loc.name} is full right now ({loc.total_spots} spots, 0 available)."
    return f"No. {loc.name} has {_plural(loc.available_spots, 'spot')} available."


def wants_lot_details(ctx: ChatContext) -> bool:
    return ctx.named and (ctx.target.is_lot or bool(re.search(r"\blot|garage", ctx.question)))


def answer_lot_details(ctx: ChatContext) -> Optional[str]:
    loc = ctx.target
    q = ctx.question
    total = loc.total_spots
    available = loc.available_spots
    occupied = total - available
    open_now = is_open(loc, ctx.instant)

    if re.search(r"how many total spots|total spots (are )?(in|at)", q):
        return f"{loc.name} has {total} total spots."
    if re.search(r"how many cars|cars (are )?currently|currently (in|parked)", q):
        if not open_now:
            return f"{loc.name} is closed. We don't track car count when closed."
        return f"There are {occupied} cars currently in {loc.name} ({available} spots left)."
    if re.search(r"spots (left|remaining)|how many (spots )?left", q):
        if not open_now:
            return _closed_answer(loc)
        return f"There are {available} spots left in {loc.name} (out of {total})."
    if re.search(r"what percentage|percent(age)? (is )?full|% full", q):
        if not open_now:
            return f"{loc.name} is closed. Hours: {hours_display(loc)}"
        pct = round(occupied / total * 100) if total > 0 else 0
        return f"{loc.name} is {pct}% full ({occupied} of {total} spots taken)."
    return None


def answer_free(ctx: ChatContext) -> str:
    # A name that matched nothing widens the search to the whole catalog
    candidates = ctx.resolved if ctx.resolved else ctx.locations
    free_now = [loc for loc in candidates if is_free_now(loc, ctx.instant)]
    if free_now:
        names = ", ".join(loc.name for loc in free_now[:8])
        return f"Yes. Right now these have free parking: {names}."

    today = DAY_NAMES[ctx.instant.weekday()]
    if ctx.named:
        return f"{ctx.target.name} isn't free right now ({today}). {SUNDAY_STREETS}"
    return "No free street parking right now. Many downtown streets are free on Sundays."


_ASK_AVAILABLE = re.compile(r"available|any spots?|open spots?|vacant|\bany\b|spots? (left|open)|space")
_ASK_FULL = re.compile(r"full|no space|no spots?|any room")


def wants_availability(ctx: ChatContext) -> bool:
    return bool(_ASK_AVAILABLE.search(ctx.question) or _ASK_FULL.search(ctx.question))


def answer_availability(ctx: ChatContext) -> str:
    scope = ctx.scope
    if _ASK_FULL.search(ctx.question):
        full = ctx.open_and_full(scope)
        if full:
            listing = ", ".join(f"{loc.name} ({loc.available_spots}/{loc.total_spots})" for loc in full)
            return f"These are full: {listing}."

    with_spots = ctx.open_with_spots(scope)
    if with_spots:
        listing = ". ".join(f"{loc.name}: {loc.available_spots} available" for loc in with_spots)
        return f"Yes. {listing}"
    if scope:
        names = ", ".join(loc.name for loc in scope)
        return f"Right now there are no spots available at {names}. Try the map for other options."
    return "I couldn't find that street or lot. Try Princess, King, Brock, Ontario, or Beamish Munro."


def answer_price(ctx: ChatContext) -> str:
    loc = ctx.target
    price = current_price(loc, ctx.instant)
    hours = hours_display(loc)
    if price:
        return f"{loc.name}: {price.label}. Hours: {hours}"
    if loc.pricing is None:
        return f"{loc.name}: free, no rate applies. Hours: {hours}"
    return f"{loc.name}: no casual rate right now (permit or outside paid hours). Hours: {hours}"


def answer_summary(ctx: ChatContext) -> str:
    loc = ctx.target
    price = current_price(loc, ctx.instant)
    if is_open(loc, ctx.instant):
        status = f"{loc.available_spots} of {loc.total_spots} spots available"
    else:
        status = "currently closed"
    rate = f" {price.label}." if price else ""
    return f"{loc.name}: {status}.{rate} Hours: {hours_display(loc)}"


def answer_unknown_name(ctx: ChatContext) -> str:
    return (
        "I don't have that street or lot. We cover downtown Kingston. Try Princess, King, Brock, "
        "Ontario, Beamish Munro, or Chown Garage."
    )


def answer_fallback(ctx: ChatContext) -> str:
    return FALLBACK_TEXT


@dataclass(frozen=True)
class Intent:
    name: str
    applies: Callable[[ChatContext], bool]
    handle: Callable[[ChatContext], Optional[str]]


# Order is precedence: earlier intents shadow later ones
INTENTS: List[Intent] = [
    Intent("empty", lambda ctx: not ctx.question, answer_empty),
    Intent("help", lambda ctx: ctx.question == "?" or bool(re.match(r"(help|what can you do|hi|hello)\b", ctx.question)), answer_help),
    Intent("just_opened", _matches(r"just opened|spot (just )?opened|opened up"), answer_just_opened),
    Intent("map_lag", _matches(r"why does the map say full|map says? full but|say full but.*empty|empty spot"), answer_map_lag),
    Intent("prediction", _matches(r"usually busy|best time to find|get worse or better|next hour|prediction|predict"), answer_prediction),
    Intent("trend", _matches(r"filling up|emptying|trend"), answer_trend),
    Intent("landmark", wants_landmark, answer_landmark),
    Intent("restaurants", _matches(r"restaurants? on princess|princess street.*restaurant|eating on princess"), answer_restaurants),
    Intent("closest", _matches(r"closest (available )?parking|closest (to )?me|nearest|parking (closest )?to me"), answer_closest),
    Intent("most_available", _matches(r"which (street|lot) has the most|most available|highest availability"), answer_most_available),
    Intent("if_full", _matches(r"what streets (should i )?check|\bif .* (is )?full|lot (is )?full.*(where|what|check)"), answer_if_full),
    Intent("lettered_lot", wants_lettered_lot, answer_lettered_lot),
    Intent(
        "how_many",
        lambda ctx: ctx.named and bool(re.search(r"how many (parking )?spots (are )?available|how many (spots )?(are )?(there )?(on|in)", ctx.question)),
        answer_how_many,
    ),
    Intent("is_full", lambda ctx: ctx.named and bool(re.search(r"is .* full\??\s*$|full\??\s*$", ctx.question)), answer_is_full),
    Intent("lot_details", wants_lot_details, answer_lot_details),
    Intent("free", _matches(r"free|no cost|don't pay|no pay|complimentary"), answer_free),
    Intent("availability", wants_availability, answer_availability),
    Intent("price", lambda ctx: ctx.named and bool(re.search(r"rate|price|cost|how much|\bpay\b|fee", ctx.question)), answer_price),
    Intent("summary", lambda ctx: ctx.named, answer_summary),
    Intent("unknown_name", lambda ctx: ctx.matched_name is not None and not ctx.resolved, answer_unknown_name),
    Intent("fallback", lambda ctx: True, answer_fallback),
]


def classify_question(
    locations: Iterable[ParkingLocation],
    question: str,
    instant: datetime,
    user_location: Optional[Coordinates] = None
) -> Tuple[str, str]:
    """Run the decision list and return (intent name, answer)"""
    location_list = list(locations)
    q = normalize_question(question or "")
    resolved, matched_name = resolve_locations(location_list, q)
    ctx = ChatContext(
        locations=location_list,
        question=q,
        instant=instant,
        user_location=user_location,
        resolved=resolved,
        matched_name=matched_name,
    )

    for intent in INTENTS:
        if not intent.applies(ctx):
            continue
        answer = intent.handle(ctx)
        if answer is not None:
            logger.debug(f"Chat intent '{intent.name}' answered", extra={"matched_name": matched_name})
            return intent.name, answer

    # The fallback intent always answers; kept for type completeness
    return "fallback", FALLBACK_TEXT


def answer_question(
    locations: Iterable[ParkingLocation],
    question: str,
    instant: datetime,
    user_location: Optional[Coordinates] = None
) -> str:
    """
    Answer a free-text parking question against the current catalog.

    Pass user_location (from geolocation or an address search) to enable
    "closest to me" answers; without it that intent asks the user to search
    first.
    """
    _intent, answer = classify_question(locations, question, instant, user_location)
    return answer
