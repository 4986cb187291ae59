"""Durable storage for saved status pages."""

import json
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import InvalidTimestampError, PageStoreError
from .models import StatusPage
from .utils import parse_timestamp

logger = logging.getLogger(__name__)

PAGES_DIR = "status_pages"

_PAGE_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


class PageStore:
    """One JSON file per saved page under <data_dir>/status_pages/."""

    def __init__(self, data_dir: Path):
        """
        Initialize PageStore.

        Args:
            data_dir: Base data directory.
        """
        self.data_dir = Path(data_dir)
        self.pages_dir = self.data_dir / PAGES_DIR

    def _page_path(self, page_id: str) -> Path:
        if not _PAGE_ID_RE.fullmatch(page_id):
            raise PageStoreError(page_id, "invalid page ID")
        return self.pages_dir / f"{page_id}.json"

    def _write(self, page_id: str, data: dict[str, Any]) -> None:
        """Write page data atomically (temp file then rename)."""
        path = self._page_path(page_id)
        try:
            self.pages_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.pages_dir, prefix=".page_", suffix=".tmp")
        except OSError as e:
            raise PageStoreError(page_id, str(e))

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PageStoreError(page_id, str(e))

    def save(self, page: StatusPage) -> None:
        """
        Persist a page, replacing any previous copy.

        Raises:
            PageStoreError: If the page cannot be written.
        """
        self._write(page.id, page.to_dict())

    def update(self, page: StatusPage) -> None:
        """Overwrite an already saved page; see save()."""
        self.save(page)

    def get(self, page_id: str) -> StatusPage | None:
        """
        Load a page, or None if it was never saved.

        Raises:
            PageStoreError: If the file exists but cannot be read.
        """
        path = self._page_path(page_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return StatusPage.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PageStoreError(page_id, str(e))

    def delete(self, page_id: str) -> bool:
        path = self._page_path(page_id)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PageStoreError(page_id, str(e))

    def list_pages(self) -> list[StatusPage]:
        """List saved pages, newest first. Corrupted files are skipped."""
        if not self.pages_dir.exists():
            return []

        pages: list[StatusPage] = []
        for path in self.pages_dir.glob("*.json"):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    pages.append(StatusPage.from_dict(json.load(f)))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable page file {path.name}: {e}")
                continue

        pages.sort(key=lambda p: p.created_at, reverse=True)
        return pages

    def prune(self, older_than: datetime) -> int:
        """
        Delete pages created before a cutoff.

        Args:
            older_than: Aware datetime; pages with an earlier createdAt go.

        Returns:
            Number of pages deleted.
        """
        count = 0
        for page in self.list_pages():
            try:
                created = parse_timestamp(page.created_at, "createdAt")
            except InvalidTimestampError:
                logger.warning(f"Page {page.id} has no valid createdAt; keeping it")
                continue
            if created < older_than and self.delete(page.id):
                count += 1
        return count
