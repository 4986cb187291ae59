"""Process-wide application context: settings plus the shared services."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .config import Settings
from .facilities import load_facility_tables
from .page_cache import PageCache
from .page_store import PageStore
from .pages import StatusPageService
from .shopify import OrderGateway, ShopifyGateway
from .timeline import RandomSource
from .utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    gateway: OrderGateway
    cache: PageCache
    store: PageStore | None
    service: StatusPageService

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        gateway: OrderGateway | None = None,
        rng: RandomSource | None = None,
        clock: Callable[[], datetime] = utc_now,
        cache_clock: Callable[[], float] = time.monotonic,
    ) -> "AppContext":
        """
        Wire up the services for one process.

        Args:
            settings: Settings (defaults to Settings.from_env()).
            gateway: Commerce backend gateway (defaults to ShopifyGateway).
            rng: Timeline random source (override for testing).
            clock: Current-time source (override for testing).
            cache_clock: Monotonic time source for cache expiry.

        Raises:
            ConfigurationError: If settings or the facilities file are invalid.
        """
        settings = settings or Settings.from_env()
        gateway = gateway or ShopifyGateway.from_settings(settings)
        facilities = load_facility_tables(settings.facilities_file)
        cache = PageCache(ttl=settings.unsaved_ttl, clock=cache_clock)
        store = PageStore(settings.data_dir) if settings.durable_storage else None

        if not settings.shopify_configured:
            logger.warning("Shopify integration not configured; page creation will fail")
        if store is None:
            logger.warning("Durable storage disabled; pages will only be temporary")

        service = StatusPageService(
            settings=settings,
            gateway=gateway,
            cache=cache,
            store=store,
            facilities=facilities,
            rng=rng,
            clock=clock,
        )
        return cls(settings=settings, gateway=gateway, cache=cache, store=store, service=service)

    def close(self) -> None:
        close = getattr(self.gateway, "close", None)
        if callable(close):
            close()
