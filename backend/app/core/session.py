"""Per-request session context and the auth-change event bus.

Handlers receive an explicit ``SessionContext`` (database session plus the
signed-in user) instead of reading ambient auth state. A context subscribes
to ``auth_events`` when it opens and unsubscribes when it closes.

Events carry only the user id and whether the user is still signed in. They
can arrive from another request's thread, so a context only records that its
user changed; the next read of ``user`` reloads the row through the context's
own database session, or drops it after a sign-out.
"""
import threading
from typing import Callable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.logging import auth_logger
from app.models.user import User

AuthListener = Callable[[str, bool], None]

_REFRESH = "refresh"
_SIGNED_OUT = "signed_out"


class AuthEventBus:
    """Fan-out of (user id, still signed in) notifications"""

    def __init__(self):
        self._listeners: List[AuthListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, user_id: str, signed_in: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(user_id, signed_in)
            except Exception as e:
                auth_logger.error("Auth listener failed", user_id=user_id, error=str(e))

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)


auth_events = AuthEventBus()


class SessionContext:
    def __init__(self, db: Session, user: Optional[User] = None, bus: AuthEventBus = auth_events):
        self.db = db
        self.bus = bus
        self._user = user
        self._user_id = user.id if user is not None else None
        self._pending: Optional[str] = None
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def open(self) -> "SessionContext":
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self._on_auth_change)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_change(self, user_id: str, signed_in: bool) -> None:
        if self._user_id != user_id:
            return
        with self._lock:
            # A sign-out sticks even if a later profile event arrives
            if self._pending != _SIGNED_OUT:
                self._pending = _REFRESH if signed_in else _SIGNED_OUT

    def _apply_pending(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, None
        if pending == _SIGNED_OUT:
            self._user = None
        elif pending == _REFRESH and self._user is not None:
            self.db.refresh(self._user)

    @property
    def user(self) -> Optional[User]:
        self._apply_pending()
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str:
        if self.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Signed out",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return self._user.id

    def __enter__(self) -> "SessionContext":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def signed_in(user: User) -> None:
    """Announce a sign-in or profile change for ``user``"""
    auth_events.publish(user.id, True)


def signed_out(user_id: str) -> None:
    auth_events.publish(user_id, False)
