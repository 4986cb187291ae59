"""Synthetic shipment timeline generation.

The commerce backend only provides two trustworthy timestamps: when the
order was created and, once it arrives, when it was delivered. Everything
in between is filled in with a plausible logistics narrative spaced in
business days, anchored on those timestamps (and on the fulfillment or
operator-supplied pickup date when there is one), and cut off at "now" so
events only show up once they would have happened.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Protocol, Sequence, TypeVar

from .business_days import add_business_days, subtract_business_days
from .facilities import FacilityTables
from .models import Fulfillment, TrackingEvent
from .utils import (
    format_display_date,
    format_display_time,
    parse_optional_timestamp,
    parse_timestamp,
    utc_now,
)

T = TypeVar("T")

ORDER_CONFIRMED = "Order Confirmed"
ORDER_PROCESSED = "Order Processed"
LABEL_CREATED = "Label Created"
PACKAGE_PICKED_UP = "Package Picked Up"
DEPARTED_ORIGIN = "Departed Origin Facility"
IN_TRANSIT = "In Transit"
ARRIVED_SORTING = "Arrived at Sorting Facility"
DEPARTED_SORTING = "Departed Sorting Facility"
ARRIVED_DESTINATION = "Arrived at Destination Facility"
OUT_FOR_DELIVERY = "Out for Delivery"
DELIVERED = "Delivered"

EVENT_SEQUENCE: tuple[str, ...] = (
    ORDER_CONFIRMED,
    ORDER_PROCESSED,
    LABEL_CREATED,
    PACKAGE_PICKED_UP,
    DEPARTED_ORIGIN,
    IN_TRANSIT,
    ARRIVED_SORTING,
    DEPARTED_SORTING,
    ARRIVED_DESTINATION,
    OUT_FOR_DELIVERY,
    DELIVERED,
)

FIXED_LOCATIONS: dict[str, str] = {
    ORDER_CONFIRMED: "Order Processing Center",
    ORDER_PROCESSED: "Fulfillment Center",
    LABEL_CREATED: "Origin Facility",
    PACKAGE_PICKED_UP: "Local Pickup Facility",
    DEPARTED_ORIGIN: "Origin Facility",
}

# Inclusive hour ranges for the randomized time of day
HOUR_WINDOWS: dict[str, tuple[int, int]] = {
    ORDER_CONFIRMED: (9, 16),
    ORDER_PROCESSED: (9, 16),
    LABEL_CREATED: (6, 9),
    PACKAGE_PICKED_UP: (6, 9),
    OUT_FOR_DELIVERY: (8, 10),
    DELIVERED: (10, 17),
}
ANY_HOUR: tuple[int, int] = (0, 23)

PROCESSING_DAYS = (1, 2)
LABEL_DAYS = (1, 3)
PICKUP_DAYS = (1, 2)
TRANSIT_LEG_DAYS = (3, 5)
TRANSIT_LEGS = (IN_TRANSIT, ARRIVED_SORTING, DEPARTED_SORTING, ARRIVED_DESTINATION, OUT_FOR_DELIVERY)

DEFAULT_FULFILLMENT_WINDOW: tuple[float, float] = (0, 30)


class RandomSource(Protocol):
    """Source of the cosmetic randomness; random.Random satisfies it."""

    def randint(self, a: int, b: int) -> int:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...


@dataclass
class PlannedEvent:
    """An event's status, location and underlying date before rendering."""

    status: str
    location: str
    when: datetime


def random_time(status: str, rng: RandomSource) -> str:
    """Draw a display time of day from the status's hour window."""
    low, high = HOUR_WINDOWS.get(status, ANY_HOUR)
    return format_display_time(rng.randint(low, high), rng.randint(0, 59))


def _fulfillment_anchor(
    fulfillments: Iterable[Fulfillment],
    order_date: datetime,
    window: tuple[float, float],
) -> datetime | None:
    """Creation time of the first shipped fulfillment inside the window, if any."""
    low, high = window
    for fulfillment in fulfillments:
        if not fulfillment.primary_tracking_number or not fulfillment.created_at:
            continue
        created = parse_timestamp(fulfillment.created_at, "fulfillment.created_at")
        gap_days = (created - order_date) / timedelta(days=1)
        if low < gap_days < high:
            return created
    return None


def _not_before_order(value: datetime, order_date: datetime) -> datetime:
    if value <= order_date:
        return add_business_days(order_date, 1)
    return value


def plan_dates(
    order_date: datetime,
    fulfillments: Iterable[Fulfillment],
    pickup_date: datetime | None,
    rng: RandomSource,
    fulfillment_window: tuple[float, float] = DEFAULT_FULFILLMENT_WINDOW,
) -> list[tuple[str, datetime]]:
    """
    Compute the underlying date of every pre-delivery event.

    Label Created (and, when re-anchored on a fulfillment, Package Picked
    Up) are anchors. Order Processed is capped at the label date, and every
    later event is raised to its predecessor's date when needed, so the
    returned dates never decrease.
    """
    processed = add_business_days(order_date, rng.randint(*PROCESSING_DAYS))

    picked_up: datetime | None = None
    if pickup_date is not None:
        label = _not_before_order(pickup_date, order_date)
    else:
        label = add_business_days(order_date, rng.randint(*LABEL_DAYS))
        shipped = _fulfillment_anchor(fulfillments, order_date, fulfillment_window)
        if shipped is not None:
            picked_up = subtract_business_days(shipped, 1)
            label = _not_before_order(
                subtract_business_days(picked_up, rng.randint(*PICKUP_DAYS)), order_date
            )

    if picked_up is None:
        picked_up = add_business_days(label, rng.randint(*PICKUP_DAYS))
    picked_up = max(picked_up, label)

    dates = [
        (ORDER_CONFIRMED, order_date),
        (ORDER_PROCESSED, min(processed, label)),
        (LABEL_CREATED, label),
        (PACKAGE_PICKED_UP, picked_up),
        (DEPARTED_ORIGIN, add_business_days(picked_up, 1)),
    ]
    previous = dates[-1][1]
    for status in TRANSIT_LEGS:
        previous = add_business_days(previous, rng.randint(*TRANSIT_LEG_DAYS))
        dates.append((status, previous))
    return dates


def synthesize(
    order_created_at: str | datetime,
    destination_city: str,
    province_code: str,
    is_delivered: bool,
    delivery_date: str | datetime | None = None,
    fulfillments: Iterable[Fulfillment | dict] = (),
    custom_pickup_date: str | date | datetime | None = None,
    *,
    now: datetime | None = None,
    rng: RandomSource | None = None,
    facilities: FacilityTables | None = None,
    fulfillment_window: tuple[float, float] = DEFAULT_FULFILLMENT_WINDOW,
) -> list[TrackingEvent]:
    """
    Build the ordered tracking events for an order.

    Args:
        order_created_at: Order creation timestamp (ISO 8601 or datetime).
        destination_city: Shipping city, used for the final-mile locations.
        province_code: Two-letter state code, selects the facility list.
        is_delivered: Whether the backend reports the order delivered.
        delivery_date: Authoritative delivery timestamp, if delivered.
        fulfillments: Fulfillment records (models or raw backend dicts).
        custom_pickup_date: Operator or replacement-shipment label date.
        now: Moment of synthesis (defaults to the current UTC time).
        rng: Random source for offsets, locations and times.
        facilities: Facility tables (defaults to the built-in tables).
        fulfillment_window: Open (min, max) day gap between order and
            fulfillment creation within which the label date is re-anchored.

    Returns:
        Events in chronological order, truncated at the first future event,
        followed by a Delivered event when the order was delivered.

    Raises:
        InvalidTimestampError: If any timestamp input is malformed.
    """
    order_date = parse_timestamp(order_created_at, "order_created_at")
    pickup_date = parse_optional_timestamp(custom_pickup_date, "custom_pickup_date")
    delivered_at = (
        parse_optional_timestamp(delivery_date, "delivery_date") if is_delivered else None
    )
    moment = parse_timestamp(now, "now") if now is not None else utc_now()
    rng = rng or random.Random()
    tables = facilities or FacilityTables()
    records = [f if isinstance(f, Fulfillment) else Fulfillment.from_dict(f) for f in fulfillments]

    state_facilities = tables.for_state(province_code)
    destination_facility = rng.choice(state_facilities)
    city_state = f"{destination_city}, {province_code}"

    locations = {
        **FIXED_LOCATIONS,
        ARRIVED_DESTINATION: destination_facility,
        OUT_FOR_DELIVERY: city_state,
    }

    planned: list[PlannedEvent] = []
    for index, (status, when) in enumerate(
        plan_dates(order_date, records, pickup_date, rng, fulfillment_window)
    ):
        # Order Confirmed is always shown, even under clock skew
        if index > 0 and when > moment:
            break
        location = locations.get(status)
        if location is None:
            if status == IN_TRANSIT:
                location = rng.choice(tables.transit_hubs)
            else:
                location = rng.choice(state_facilities)
        planned.append(PlannedEvent(status=status, location=location, when=when))

    events = [
        TrackingEvent(
            status=p.status,
            location=p.location,
            date=format_display_date(p.when),
            time=random_time(p.status, rng),
        )
        for p in planned
    ]

    if events and not is_delivered:
        events[-1].completed = False
        events[-1].current = True

    if is_delivered and delivered_at is not None:
        events.append(
            TrackingEvent(
                status=DELIVERED,
                location=city_state,
                date=format_display_date(delivered_at),
                time=random_time(DELIVERED, rng),
                completed=True,
                current=False,
                is_delivered=True,
            )
        )

    return events
