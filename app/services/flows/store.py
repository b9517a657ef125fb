# app/services/flows/store.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from cachetools import TTLCache

from app.core.config import settings
from app.core.errors import SessionNotFound
from app.services.flows.controller import FlowController
from app.services.flows.events import FlowKind

log = logging.getLogger("flows")


class _FlowCache(TTLCache):
    """TTLCache that shuts a controller down when it falls out (expiry or size)."""

    def expire(self, time=None):
        expired = super().expire(time) or []
        for sid, ctl in expired:
            log.info("[%s] session expired", sid)
            ctl.close()
        return expired

    def popitem(self):
        sid, ctl = super().popitem()
        log.info("[%s] session evicted", sid)
        ctl.close()
        return sid, ctl


class FlowStore:
    """
    In-memory flow sessions keyed by id.
    NOTE: lost on restart and not shared between workers.

    ``ttl`` counts from the last lookup, so a session in use never expires.
    """

    def __init__(self, assistant: Any, maxsize: int = 1024, ttl: float = 3600,
                 timer: Callable[[], float] = time.monotonic):
        self.assistant = assistant
        self._cache = _FlowCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def __len__(self) -> int:
        return len(self._cache)

    def create(self, kind: FlowKind) -> FlowController:
        ctl = FlowController(kind, self.assistant)
        self._cache[ctl.id] = ctl
        log.info("[%s] %s flow created", ctl.id, ctl.kind.value)
        return ctl

    def get(self, sid: str) -> FlowController:
        ctl = self._cache.get(sid)
        if ctl is None:
            raise SessionNotFound(f"No assessment session '{sid}'. It may have expired; please start again.")
        # TTLCache dates entries from insertion; re-inserting restarts the clock
        self._cache[sid] = ctl
        return ctl

    def drop(self, sid: str) -> None:
        ctl = self._cache.pop(sid, None)
        if ctl is None:
            raise SessionNotFound(f"No assessment session '{sid}'.")
        ctl.close()
        log.info("[%s] session discarded", sid)

    def close(self) -> None:
        for sid in list(self._cache.keys()):
            ctl = self._cache.pop(sid, None)
            if ctl is not None:
                ctl.close()


# Singleton accessor
_store: Optional[FlowStore] = None
def get_store() -> FlowStore:
    global _store
    if _store is None:
        from app.services.assessment.assistant import AssessmentAssistant
        _store = FlowStore(AssessmentAssistant(), maxsize=settings.SESSION_MAX, ttl=settings.SESSION_TTL_SECONDS)
    return _store

def reset_store(store: Optional[FlowStore] = None) -> None:
    global _store
    if _store is not None:
        _store.close()
    _store = store
