# mfgops/services/view_cache.py

import logging
import threading
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

# View names that list/dashboard endpoints cache under
CUSTOMER_ORDERS = "customer_orders"
PRODUCTION_ORDERS = "production_orders"
DASHBOARD = "dashboard"


def _view_of(key: str) -> str:
    return key.split(":", 1)[0]


class ViewCache:
    """
    Cache of computed read-side payloads (order lists, dashboard widgets).

    One instance lives for the lifetime of the FastAPI app and is passed
    explicitly to whatever needs it. Writers call ``revalidate`` with the
    views they made stale; keys are ``"<view>"`` or ``"<view>:<suffix>"``
    and revalidating a view drops every key under it.

    Each view carries a generation number that ``revalidate`` bumps. A value
    computed while its view was revalidated is returned to that caller but
    not stored, so a snapshot read before a write never outlives the write.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        view = _view_of(key)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            generation = self._generations.get(view, 0)

        value = compute()

        with self._lock:
            if self._generations.get(view, 0) == generation:
                self._entries[key] = value
            else:
                logger.debug("Not caching %s: view revalidated during compute", key)
        return value

    def revalidate(self, *views: str) -> None:
        with self._lock:
            for v in views:
                self._generations[v] = self._generations.get(v, 0) + 1
            stale = [k for k in self._entries if _view_of(k) in views]
            for k in stale:
                del self._entries[k]
        logger.debug("Revalidated views %s (%d entries dropped)", views, len(stale))

    def clear(self) -> None:
        with self._lock:
            for v in {_view_of(k) for k in self._entries}:
                self._generations[v] = self._generations.get(v, 0) + 1
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
