"""
Temporal rule evaluator: operating hours, active price tier and hours text.

Every function takes the instant explicitly; nothing here reads the clock.
Days of week use datetime.weekday() numbering (0 = Monday).
"""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from models import CurrentPrice, ParkingLocation, PriceTier, PriceUnit

MINUTES_PER_DAY = 24 * 60
ALL_DAYS = frozenset(range(7))
DAY_ABBREVIATIONS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

UNIT_SUFFIXES = {
    PriceUnit.HOUR: '/hr',
    PriceUnit.HALF_HOUR: '/30 min',
    PriceUnit.FLAT: ' flat',
}


def clock_minutes(value: str) -> int:
    """Convert 'HH:MM' to minutes after midnight ('24:00' is 1440)"""
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def window_contains(start: str, end: str, instant: datetime) -> bool:
    """
    Check whether the instant's clock time falls in [start, end).

    When end is before start the window is stretched past midnight, so the
    early-morning tail matches on the same calendar day as the evening part.
    """
    start_min = clock_minutes(start)
    end_min = clock_minutes(end)
    current = minute_of_day(instant)

    if end_min < start_min:
        end_min += MINUTES_PER_DAY
        return start_min <= current < end_min or start_min <= current + MINUTES_PER_DAY < end_min

    return start_min <= current < end_min


def is_open(location: ParkingLocation, instant: datetime) -> bool:
    """Streets are always open; lots follow their operating-hour windows"""
    if location.is_street:
        return True
    if not location.operating_hours:
        return True

    weekday = instant.weekday()
    for window in location.operating_hours:
        if weekday not in window.days_of_week:
            continue
        if window_contains(window.start, window.end, instant):
            return True
    return False


def tier_matches(tier: PriceTier, instant: datetime) -> bool:
    days = ALL_DAYS if tier.days_of_week is None else tier.days_of_week
    if instant.weekday() not in days:
        return False
    return window_contains(tier.start, tier.end, instant)


def format_money(amount: float) -> str:
    return f"${amount:.2f}"


def price_label(tier: PriceTier) -> str:
    if tier.rate == 0:
        return "Free"
    label = f"{format_money(tier.rate)}{UNIT_SUFFIXES[tier.unit]}"
    if tier.daily_max is not None:
        label += f" (max {format_money(tier.daily_max)}/day)"
    return label


def active_tier(location: ParkingLocation, instant: datetime) -> Optional[PriceTier]:
    """First tier in list order that covers the instant"""
    pricing = location.pricing
    if pricing is None or pricing.permit_only:
        return None

    for tier in pricing.tiers:
        if tier_matches(tier, instant):
            return tier
    return None


def current_price(location: ParkingLocation, instant: datetime) -> Optional[CurrentPrice]:
    """
    Resolve the casual rate in effect at the instant.

    Returns None for locations without pricing (free by convention), for
    permit-only locations and when no tier is active. Overlapping tiers are
    resolved by list order: the first matching tier wins.
    """
    tier = active_tier(location, instant)
    if tier is None:
        return None

    return CurrentPrice(
        rate=tier.rate,
        unit=tier.unit,
        daily_max=tier.daily_max,
        label=price_label(tier),
    )


def is_free_now(location: ParkingLocation, instant: datetime) -> bool:
    """Open and charging a rate of exactly zero right now"""
    if not is_open(location, instant):
        return False
    price = current_price(location, instant)
    return price is not None and price.rate == 0


def format_clock_12h(value: str) -> str:
    """'13:05' -> '1:05 p.m.', '00:00' and '24:00' -> '12:00 a.m.'"""
    total = clock_minutes(value) % MINUTES_PER_DAY
    hour, minute = divmod(total, 60)
    suffix = 'a.m.' if hour < 12 else 'p.m.'
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {suffix}"


def format_days(days: Iterable[int]) -> str:
    """Render a day set Monday-first, collapsing runs of three or more days"""
    ordered = sorted(set(days))
    if set(ordered) == ALL_DAYS:
        return "Daily"

    runs: List[List[int]] = []
    for day in ordered:
        if runs and day == runs[-1][-1] + 1:
            runs[-1].append(day)
        else:
            runs.append([day])

    parts = []
    for run in runs:
        if len(run) >= 3:
            parts.append(f"{DAY_ABBREVIATIONS[run[0]]}–{DAY_ABBREVIATIONS[run[-1]]}")
        else:
            parts.extend(DAY_ABBREVIATIONS[day] for day in run)
    return ", ".join(parts)


def hours_display(location: ParkingLocation) -> str:
    """Human-readable operating hours, e.g. 'Mon–Fri 7:00 a.m.–6:00 p.m.; Sat, Sun 9:00 a.m.–5:00 p.m.'"""
    if not location.operating_hours:
        return "24 hours"

    # Group windows by identical (start, end), keeping first-seen order
    groups: List[Tuple[Tuple[str, str], set]] = []
    for window in location.operating_hours:
        key = (window.start, window.end)
        for group_key, days in groups:
            if group_key == key:
                days.update(window.days_of_week)
                break
        else:
            groups.append((key, set(window.days_of_week)))

    return "; ".join(
        f"{format_days(days)} {format_clock_12h(start)}–{format_clock_12h(end)}"
        for (start, end), days in groups
    )
