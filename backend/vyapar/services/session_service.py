# FILE: backend/vyapar/services/session_service.py
# LOCALVYAPAR - SESSION CONTEXT
# 1. One SessionContext per authenticated connection; nothing is held in module globals.
# 2. Profile listeners get an unsubscribe handle back from on_profile_change().
# 3. close() drops the identity, the profile and every listener.

from typing import Callable, List, Optional
from pymongo.database import Database
import structlog

from ..core.change_feed import ChangeEvent
from ..models.user import ProfileUpdate, UserInDB
from . import user_service

logger = structlog.get_logger(__name__)

ProfileListener = Callable[[Optional[UserInDB]], None]

class SessionContext:
    def __init__(self, db: Database, user_id: str):
        self.db = db
        self._user_id: Optional[str] = user_id
        self._profile: Optional[UserInDB] = None
        self._listeners: List[ProfileListener] = []
        self.loading = True

    def current_user(self) -> Optional[str]:
        """Id of the signed-in identity, None once the session is closed."""
        return self._user_id

    @property
    def profile(self) -> Optional[UserInDB]:
        return self._profile

    @property
    def closed(self) -> bool:
        return self._user_id is None

    def on_profile_change(self, callback: ProfileListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self._profile)

    def refresh(self) -> Optional[UserInDB]:
        """Re-reads the profile and notifies listeners when it differs from the cached copy."""
        if self.closed:
            return None
        latest = user_service.get_user_by_id(self.db, self._user_id)
        was_loading = self.loading
        self.loading = False
        if was_loading or latest != self._profile:
            self._profile = latest
            self._notify()
        return self._profile

    def handle_event(self, event: ChangeEvent) -> bool:
        """Refreshes when the event is about this session's own user document."""
        if self.closed or event.collection != "users" or event.doc_id != self._user_id:
            return False
        before = self._profile
        return self.refresh() != before

    def apply_profile_update(self, data: ProfileUpdate) -> UserInDB:
        if self.closed:
            raise RuntimeError("Session is closed")
        user_service.update_profile(self.db, self._user_id, data)
        profile = self.refresh()
        logger.info("session.profile_updated", user_id=self._user_id)
        return profile

    def close(self):
        if self.closed:
            return
        logger.info("session.closed", user_id=self._user_id)
        self._listeners.clear()
        self._user_id = None
        self._profile = None
        self.loading = False

    def __enter__(self) -> "SessionContext":
        self.refresh()
        return self

    def __exit__(self, *exc_info):
        self.close()
