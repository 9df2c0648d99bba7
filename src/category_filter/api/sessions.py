"""Registry of open filter sessions for the API.

Sessions are kept in a TTLCache so that sessions abandoned by a client are
dropped after ``session_ttl`` seconds without access.
"""

from __future__ import annotations

import threading

from cachetools import TTLCache

from category_filter.catalog import CategoryCatalog
from category_filter.logging import get_logger
from category_filter.session import FilterSession

logger = get_logger(__name__)


class SessionRegistry:
    """Thread-safe store of open FilterSession objects keyed by session id."""

    def __init__(self, catalog: CategoryCatalog, maxsize: int = 256, ttl: float = 3600) -> None:
        """Initialize the registry.

        Args:
            catalog: Catalog every session is opened against.
            maxsize: Maximum number of concurrently open sessions. The least
                recently used session is evicted when full.
            ttl: Seconds before an untouched session expires.
        """
        self._catalog = catalog
        self._sessions: TTLCache[str, FilterSession] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def open(self, host_expression: str) -> FilterSession:
        """Open a new session and register it."""
        session = FilterSession.open(self._catalog, host_expression)
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> FilterSession | None:
        """Return an open session and refresh its expiry, or None."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                # Re-insert to restart the TTL clock.
                self._sessions[session_id] = session
            return session

    def close(self, session_id: str) -> bool:
        """Discard a session. Returns False if it was not open."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Closed filter session", extra={"session_id": session_id})
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["SessionRegistry"]
