"""
Session observer: keeps one visitor's current user in step with the
auth state of that visitor's Supabase client.

The observer is the only writer of the current-user value. It reads the
existing session once on start, then folds every auth-state notification
(sign-in, sign-out, token refresh, user update) into the value, last
notification winning. Stopping it unsubscribes from the client; any
notification delivered afterwards is dropped.
"""
import logging
import threading
from typing import Any, Optional

from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)


class SessionObserver:
    def __init__(self, auth: Any, name: str = ""):
        # auth is the client's auth namespace (client.auth)
        self._auth = auth
        self._name = name
        self._lock = threading.Lock()
        self._user: Optional[CurrentUser] = None
        self._last_event: Optional[str] = None
        self._subscription = None
        self._stopped = False

    @property
    def current_user(self) -> Optional[CurrentUser]:
        with self._lock:
            return self._user

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    @property
    def last_event(self) -> Optional[str]:
        with self._lock:
            return self._last_event

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._stopped

    def start(self) -> "SessionObserver":
        if self._subscription is not None or self._stopped:
            return self
        try:
            session = self._auth.get_session()
        except Exception as e:
            logger.warning(f"Observer {self._name}: could not read current session, treating as signed out: {e}")
            session = None
        with self._lock:
            self._user = CurrentUser.from_session(session)
        self._subscription = self._auth.on_auth_state_change(self._on_auth_state_change)
        logger.debug(f"Observer {self._name} started (authenticated={self.is_authenticated})")
        return self

    def stop(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            try:
                subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Observer {self._name}: unsubscribe failed: {e}")
        logger.debug(f"Observer {self._name} stopped")

    def _on_auth_state_change(self, event: Any, session: Any) -> None:
        user = CurrentUser.from_session(session)
        event_name = getattr(event, "value", event)
        with self._lock:
            if self._stopped:
                return
            self._user = user
            self._last_event = event_name
        logger.info(f"Observer {self._name}: {event_name} (user={user.id if user else None})")

    def __enter__(self) -> "SessionObserver":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
