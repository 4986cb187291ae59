"""Tracking-number matching and pickup-date anchors.

Decides whether an operator-supplied tracking number is the order's main
shipment or its replacement shipment, and which label/pickup date (if
any) the timeline should be anchored on.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from .errors import InvalidPickupDateError, TrackingNumberMismatchError
from .models import Fulfillment, ReplacementTrackingMetafield
from .utils import parse_timestamp

MAX_PICKUP_DAYS_AHEAD = 365
MAX_PICKUP_DAYS_BEHIND = 2 * 365


class TrackingMatch(Enum):
    MAIN = "main"
    REPLACEMENT = "replacement"


def _normalize(tracking_number: str | None) -> str:
    return (tracking_number or "").strip().upper()


def main_tracking_number(fulfillments: Iterable[Fulfillment]) -> str | None:
    """The first tracking number exposed by any fulfillment, in order."""
    for fulfillment in fulfillments:
        number = fulfillment.primary_tracking_number
        if number:
            return number
    return None


def match_tracking_number(
    tracking_number: str,
    fulfillments: Iterable[Fulfillment],
    replacement: ReplacementTrackingMetafield | None = None,
    order_number: str | None = None,
) -> TrackingMatch:
    """
    Classify a tracking number against an order's shipments.

    Returns:
        MAIN if it equals the first fulfillment tracking number,
        REPLACEMENT if it equals the replacement metafield's value.

    Raises:
        TrackingNumberMismatchError: If it matches neither, including when
            the order exposes no tracking number at all.
    """
    supplied = _normalize(tracking_number)
    main = main_tracking_number(fulfillments)
    replacement_value = _normalize(replacement.value) if replacement else ""

    if main and supplied == _normalize(main):
        return TrackingMatch.MAIN
    if replacement_value and supplied == replacement_value:
        return TrackingMatch.REPLACEMENT
    raise TrackingNumberMismatchError(tracking_number, order_number)


def resolve_pickup_anchor(
    match: TrackingMatch,
    replacement: ReplacementTrackingMetafield | None,
    custom_pickup_date: str | None,
) -> str | None:
    """
    Pick the label/pickup date the timeline is anchored on.

    An explicit custom pickup date wins; a replacement shipment otherwise
    anchors on the metafield's last-updated timestamp.
    """
    if custom_pickup_date:
        return custom_pickup_date
    if match is TrackingMatch.REPLACEMENT and replacement is not None:
        return replacement.updated_at or None
    return None


def validate_pickup_date(
    pickup_date: str,
    order_created_at: str | datetime,
    now: datetime,
) -> datetime:
    """
    Reject pickup dates that cannot belong to this order.

    The pickup calendar date may equal the order date (the timeline clamps
    it forward) but not precede it, and must lie within one year ahead and
    two years behind now.

    Returns:
        The parsed pickup date.

    Raises:
        InvalidTimestampError: If either timestamp is malformed.
        InvalidPickupDateError: If the date is out of bounds.
    """
    pickup = parse_timestamp(pickup_date, "custom_pickup_date")
    order_date = parse_timestamp(order_created_at, "order_created_at")

    if pickup.date() < order_date.date():
        raise InvalidPickupDateError(
            pickup_date, f"precedes the order date {order_date.date().isoformat()}"
        )
    if pickup > now + timedelta(days=MAX_PICKUP_DAYS_AHEAD):
        raise InvalidPickupDateError(pickup_date, "more than one year in the future")
    if pickup < now - timedelta(days=MAX_PICKUP_DAYS_BEHIND):
        raise InvalidPickupDateError(pickup_date, "more than two years in the past")
    return pickup
