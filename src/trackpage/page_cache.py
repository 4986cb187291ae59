"""Volatile storage for freshly generated status pages."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from .models import StatusPage

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    page: StatusPage
    stored_at: float


class PageCache:
    """
    In-memory page table with expiry for pages that were never saved.

    Unsaved pages expire `ttl` seconds after they were first stored; saved
    pages stay for the life of the process. Expired pages are invisible to
    get() and are removed by sweep(). Safe to share between request handler
    threads and the maintenance thread.
    """

    def __init__(self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        """
        Initialize PageCache.

        Args:
            ttl: Seconds an unsaved page is kept.
            clock: Monotonic time source (override for testing).
        """
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def _expired(self, entry: _Entry, now: float) -> bool:
        return not entry.page.saved and now - entry.stored_at >= self.ttl

    def put(self, page: StatusPage) -> None:
        """Store a page, keeping the original expiry clock on overwrite."""
        now = self._clock()
        with self._lock:
            existing = self._entries.get(page.id)
            stored_at = existing.stored_at if existing else now
            self._entries[page.id] = _Entry(page=page, stored_at=stored_at)

    def get(self, page_id: str) -> StatusPage | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(page_id)
        if entry is None or self._expired(entry, now):
            return None
        return entry.page

    def mark_saved(self, page_id: str) -> StatusPage | None:
        """Flag a cached page as saved so it no longer expires."""
        page = self.get(page_id)
        if page is not None:
            page.saved = True
        return page

    def sweep(self) -> list[str]:
        """
        Remove expired unsaved pages.

        Returns:
            IDs of the removed pages.
        """
        now = self._clock()
        with self._lock:
            expired = [
                page_id for page_id, entry in self._entries.items() if self._expired(entry, now)
            ]
            for page_id in expired:
                del self._entries[page_id]
        for page_id in expired:
            logger.info(f"Cleaned up unsaved temp page: {page_id}")
        return expired

    def __contains__(self, page_id: object) -> bool:
        return isinstance(page_id, str) and self.get(page_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
