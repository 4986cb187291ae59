"""Status page lifecycle: create, save, read with refresh, and cleanup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from .anchors import (
    TrackingMatch,
    match_tracking_number,
    resolve_pickup_anchor,
    validate_pickup_date,
)
from .carriers import classify
from .config import Settings
from .errors import (
    InvalidTimestampError,
    MissingFieldError,
    PageStoreError,
    StatusPageNotFoundError,
    TrackpageError,
)
from .facilities import FacilityTables
from .models import (
    Order,
    ReplacementTrackingMetafield,
    StatusPage,
    TrackingEvent,
    _generate_page_id,
)
from .page_cache import PageCache
from .page_store import PageStore
from .shopify import OrderGateway
from .timeline import RandomSource, synthesize
from .utils import parse_timestamp, to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of promoting a page to durable storage."""

    page: StatusPage
    durable: bool

    @property
    def message(self) -> str:
        if self.durable:
            return "Status page saved successfully"
        return "Status page marked as saved (durable storage unavailable)"


class StatusPageService:
    """Builds status pages from order data and manages where they live."""

    def __init__(
        self,
        settings: Settings,
        gateway: OrderGateway,
        cache: PageCache,
        store: PageStore | None = None,
        facilities: FacilityTables | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize StatusPageService.

        Args:
            settings: Process settings.
            gateway: Commerce backend gateway.
            cache: Volatile page cache.
            store: Durable page store, or None when durable storage is off.
            facilities: Facility tables for event locations.
            rng: Random source for the timeline (override for testing).
            clock: Current-time source (override for testing).
        """
        self.settings = settings
        self.gateway = gateway
        self.cache = cache
        self.store = store
        self.facilities = facilities or FacilityTables()
        self.rng = rng
        self.clock = clock

    def _events_for(self, order: Order, pickup_anchor: str | None, now: datetime) -> list[TrackingEvent]:
        addr = order.shipping_address
        return synthesize(
            order.created_at,
            addr.city,
            addr.province_code,
            order.is_delivered,
            order.delivery_date,
            order.fulfillments,
            pickup_anchor,
            now=now,
            rng=self.rng,
            facilities=self.facilities,
            fulfillment_window=self.settings.fulfillment_window,
        )

    def create_page(
        self,
        order_number: str,
        tracking_number: str,
        custom_pickup_date: str | None = None,
    ) -> StatusPage:
        """
        Generate a new, unsaved status page.

        Raises:
            MissingFieldError: If the order or tracking number is empty.
            OrderNotFoundError: If the backend has no such order.
            TrackingNumberMismatchError: If the tracking number is foreign.
            InvalidPickupDateError: If the custom pickup date is out of bounds.
            UpstreamError: If the backend request fails.
        """
        order_number = (order_number or "").strip()
        tracking_number = (tracking_number or "").strip()
        missing = [
            name
            for name, value in (("order_number", order_number), ("tracking_number", tracking_number))
            if not value
        ]
        if missing:
            raise MissingFieldError(*missing)

        now = self.clock()
        order = self.gateway.fetch_order(order_number)
        replacement = self.gateway.fetch_replacement_tracking(order.id)
        match = match_tracking_number(
            tracking_number, order.fulfillments, replacement, order.order_number
        )

        custom = (custom_pickup_date or "").strip() or None
        if custom:
            validate_pickup_date(custom, order.created_at, now)

        anchor = resolve_pickup_anchor(match, replacement, custom)
        events = self._events_for(order, anchor, now)

        is_replacement = match is TrackingMatch.REPLACEMENT
        page = StatusPage(
            id=_generate_page_id(),
            customer_name=order.customer_name,
            order_number=order.order_number,
            tracking_number=tracking_number,
            carrier=classify(tracking_number),
            destination=order.destination,
            shipping_address=order.shipping_address,
            fulfillment_status=order.fulfillment_status,
            is_delivered=order.is_delivered,
            delivery_date=order.delivery_date,
            events=events,
            custom_pickup_date=custom,
            is_replacement_tracking=is_replacement,
            replacement_tracking_date=replacement.updated_at if is_replacement and replacement else None,
            saved=False,
            created_at=to_iso(now),
            last_updated=to_iso(now),
        )
        self.cache.put(page)
        logger.info(
            f"Created status page {page.id} for order {page.order_number} "
            f"({page.carrier.carrier_code}, {len(events)} events)"
        )
        return page

    def save_page(self, page_id: str) -> SaveResult:
        """
        Promote a page to durable storage.

        A durable-store failure is logged, not raised: the page stays in the
        cache flagged as saved.

        Raises:
            StatusPageNotFoundError: If the page is unknown or expired.
        """
        page = self.cache.mark_saved(page_id)
        if page is None:
            stored = self._load_durable(page_id)
            if stored is not None:
                return SaveResult(page=stored, durable=True)
            raise StatusPageNotFoundError(page_id)

        page.saved_at = to_iso(self.clock())

        durable = False
        if self.store is not None:
            try:
                self.store.save(page)
                durable = True
                logger.info(f"Status page saved: {page_id}")
            except PageStoreError as e:
                logger.error(f"Error saving page {page_id} to durable storage: {e}")
        else:
            logger.warning(f"Durable storage not available - page {page_id} remains temporary")

        self.cache.put(page)
        return SaveResult(page=page, durable=durable)

    def _load_durable(self, page_id: str) -> StatusPage | None:
        if self.store is None:
            return None
        try:
            return self.store.get(page_id)
        except PageStoreError as e:
            logger.error(f"Error reading page {page_id} from durable storage: {e}")
            return None

    def get_page(self, page_id: str) -> StatusPage:
        """
        Fetch a page for display, regenerating its events once stale.

        Raises:
            StatusPageNotFoundError: If the page is unknown or expired.
        """
        page = self._load_durable(page_id) or self.cache.get(page_id)
        if page is None:
            raise StatusPageNotFoundError(page_id)

        now = self.clock()
        if self._is_stale(page, now):
            page = self.refresh_page(page, now)
        return page

    def _is_stale(self, page: StatusPage, now: datetime) -> bool:
        try:
            last_updated = parse_timestamp(page.last_updated, "lastUpdated")
        except InvalidTimestampError:
            return True
        return now - last_updated >= timedelta(seconds=self.settings.refresh_after)

    def refresh_page(self, page: StatusPage, now: datetime | None = None) -> StatusPage:
        """
        Regenerate a page from current order data.

        The page keeps its tracking number and pickup anchor. If the backend
        cannot be reached the stale page is returned unchanged.
        """
        now = now or self.clock()
        try:
            order = self.gateway.fetch_order(page.order_number)
            replacement: ReplacementTrackingMetafield | None = None
            if page.is_replacement_tracking and not page.custom_pickup_date:
                replacement = self.gateway.fetch_replacement_tracking(order.id)
            anchor = page.custom_pickup_date or (replacement.updated_at if replacement else None)
            events = self._events_for(order, anchor, now)
        except TrackpageError as e:
            logger.warning(f"Could not refresh page {page.id}, serving stale data: {e}")
            return page

        page.carrier = classify(page.tracking_number)
        page.fulfillment_status = order.fulfillment_status
        page.is_delivered = order.is_delivered
        page.delivery_date = order.delivery_date
        page.events = events
        if replacement is not None:
            page.replacement_tracking_date = replacement.updated_at
        page.last_updated = to_iso(now)

        if page.saved and self.store is not None:
            try:
                self.store.update(page)
            except PageStoreError as e:
                logger.error(f"Error updating page {page.id} in durable storage: {e}")
        else:
            self.cache.put(page)

        logger.info(f"Refreshed status page {page.id}")
        return page

    def sweep_cache(self) -> int:
        """Drop unsaved pages past their time-to-live."""
        return len(self.cache.sweep())

    def prune_store(self) -> int:
        """Delete saved pages older than the retention period."""
        if self.store is None:
            logger.info("Skipping cleanup - durable storage not available")
            return 0

        cutoff = self.clock() - timedelta(days=self.settings.retention_days)
        try:
            count = self.store.prune(cutoff)
        except PageStoreError as e:
            logger.error(f"Error cleaning up expired pages: {e}")
            return 0
        if count:
            logger.info(f"Cleaned up {count} expired status pages")
        else:
            logger.info("No expired pages to clean up")
        return count
