"""Thread-safe registry of visitor_id -> Visitor (client handle + session observer)."""
import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from app.modules.auth.observer import SessionObserver
from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)


@dataclass
class Visitor:
    id: str
    client: Any
    observer: SessionObserver
    last_seen: float = field(default=0.0)

    @property
    def current_user(self) -> Optional[CurrentUser]:
        return self.observer.current_user

    @property
    def is_authenticated(self) -> bool:
        return self.observer.is_authenticated


def new_visitor_id() -> str:
    return secrets.token_urlsafe(24)


class VisitorRegistry:
    def __init__(self, client_factory: Callable[[], Any], clock: Callable[[], float] = time.monotonic):
        self._client_factory = client_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._visitors: Dict[str, Visitor] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._visitors)

    def __contains__(self, visitor_id: str) -> bool:
        with self._lock:
            return visitor_id in self._visitors

    def visitors(self) -> List[Visitor]:
        with self._lock:
            return list(self._visitors.values())

    def get(self, visitor_id: str) -> Optional[Visitor]:
        with self._lock:
            visitor = self._visitors.get(visitor_id)
            if visitor is not None:
                visitor.last_seen = self._clock()
            return visitor

    def get_or_create(self, visitor_id: str) -> Visitor:
        visitor = self.get(visitor_id)
        if visitor is not None:
            return visitor
        client = self._client_factory()
        observer = SessionObserver(client.auth, name=visitor_id[:8]).start()
        candidate = Visitor(id=visitor_id, client=client, observer=observer, last_seen=self._clock())
        with self._lock:
            existing = self._visitors.get(visitor_id)
            if existing is None:
                self._visitors[visitor_id] = candidate
        if existing is not None:
            # Lost a race with another request for the same visitor
            observer.stop()
            return existing
        logger.info(f"Created visitor context {visitor_id[:8]}")
        return candidate

    def discard(self, visitor_id: str) -> bool:
        with self._lock:
            visitor = self._visitors.pop(visitor_id, None)
        if visitor is None:
            return False
        visitor.observer.stop()
        # Ends the local session and cancels the client's refresh timer
        try:
            visitor.client.auth.sign_out({"scope": "local"})
        except Exception as e:
            logger.warning(f"Could not end session of visitor {visitor_id[:8]}: {e}")
        logger.info(f"Released visitor context {visitor_id[:8]}")
        return True

    def sweep_idle(self, max_idle: float) -> List[str]:
        """Tear down visitors not seen for max_idle seconds. Returns the released ids."""
        cutoff = self._clock() - max_idle
        with self._lock:
            expired = [vid for vid, v in self._visitors.items() if v.last_seen < cutoff]
        released = [vid for vid in expired if self.discard(vid)]
        if released:
            logger.info(f"Released {len(released)} idle visitor context(s)")
        return released

    def clear(self) -> None:
        with self._lock:
            visitor_ids = list(self._visitors)
        for visitor_id in visitor_ids:
            self.discard(visitor_id)
