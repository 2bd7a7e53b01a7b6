# dashboard_ui/state.py
import logging
import secrets
import threading
import time

import requests

from dashboard_ui import config
from dashboard_ui.admin_store import AdminStore
from dashboard_ui.api import ApiClient
from dashboard_ui.auth_store import AuthStore
from dashboard_ui.dashboard_store import DashboardStore
from dashboard_ui.tool_detail_store import ToolDetailStore

logger = logging.getLogger(__name__)

# Builds the upstream HTTP session for each browser; tests swap in a stub
SESSION_FACTORY = requests.Session


class AppState:
    """Everything one browser session sees, wired to one upstream session."""

    def __init__(self, api_url: str = None, http_session=None):
        self.api = ApiClient(api_url, session=http_session if http_session is not None else SESSION_FACTORY())
        self.auth = AuthStore(self.api)
        self.dashboard = DashboardStore(self.api)
        self.tool_detail = ToolDetailStore(self.api)
        self.admin = AdminStore(self.api)
        # Held for the whole of each request, so tabs sharing a cookie take turns
        self.lock = threading.Lock()

        # A 401 anywhere drops the session once and the cached data with it
        self.api.on_unauthorized = self.auth.clear_auth
        self.auth.on_clear(self.dashboard.clear_data)
        self.auth.on_clear(self.tool_detail.clear_data)
        self.auth.on_clear(self.admin.clear_data)

    def close(self):
        self.api.session.close()


class SessionRegistry:
    def __init__(self, ttl_minutes: int = None):
        self.ttl = (ttl_minutes if ttl_minutes is not None else config.SESSION_TTL_MINUTES) * 60
        self._sessions = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def create(self):
        """Returns ``(session_id, state)`` for a new anonymous session."""
        sid = secrets.token_urlsafe(24)
        state = AppState()
        with self._lock:
            self._sessions[sid] = [state, time.monotonic()]
        logger.debug("Created UI session %s", sid[:8])
        return sid, state

    def get(self, sid):
        if not sid:
            return None
        self.expire()
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            entry[1] = time.monotonic()
            return entry[0]

    def drop(self, sid):
        with self._lock:
            entry = self._sessions.pop(sid, None)
        if entry is not None:
            entry[0].close()

    def expire(self):
        cutoff = time.monotonic() - self.ttl
        with self._lock:
            stale = [sid for sid, (_, seen) in self._sessions.items() if seen < cutoff]
            entries = [self._sessions.pop(sid) for sid in stale]
        for state, _ in entries:
            state.close()
        if stale:
            logger.info("Expired %d idle UI sessions", len(stale))


registry = SessionRegistry()
