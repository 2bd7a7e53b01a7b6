# dashboard_ui/auth_store.py
import logging
from typing import Callable, List, Optional

from dashboard_ui.api import ApiClient, UNEXPECTED_RESPONSE
from dashboard_ui.models import User, parse_item

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed. Please try again."


class AuthStore:
    """Mirror of the upstream login session for one browser."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.loading = False
        self.error: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "admin"

    @property
    def user_name(self) -> str:
        if self.user is None:
            return ""
        return self.user.name or self.user.username or ""

    def on_clear(self, listener: Callable[[], None]):
        """Register a callback run when the session goes away."""
        self._listeners.append(listener)

    def _set_user(self, data):
        self.user = parse_item(User, data, "user")
        self.is_authenticated = True

    def check_auth(self):
        """Restore the session from ``/api/auth/me``. Failures just mean anonymous."""
        self.loading = True
        self.error = None
        try:
            data, error, status = self.api.get("/api/auth/me", auth_errors=False)
            if error is None:
                self._set_user(data)
            else:
                self.is_authenticated = False
                self.user = None
        except ValueError as exc:
            logger.warning("Bad session check answer from API: %s", exc)
            self.is_authenticated = False
            self.user = None
        finally:
            self.loading = False

    def login(self, username: str, password: str):
        """Returns ``(success, error)``."""
        self.loading = True
        self.error = None
        try:
            data, error, status = self.api.post(
                "/api/auth/login",
                {"username": username, "password": password},
                auth_errors=False,
                fallback_error=LOGIN_FAILED,
            )
            if error is None:
                self._set_user(data)
                logger.info("User %s logged in", username)
                return True, None
            self.error = error
            return False, self.error
        except ValueError as exc:
            logger.warning("Bad login answer from API: %s", exc)
            self.error = UNEXPECTED_RESPONSE
            return False, self.error
        finally:
            self.loading = False

    def logout(self):
        self.loading = True
        try:
            _, error, _ = self.api.post("/api/auth/logout", auth_errors=False)
            if error:
                logger.warning("Logout request failed: %s", error)
        finally:
            # Local state goes regardless of what the server said
            self.clear_auth()
            self.loading = False

    def clear_auth(self):
        was_authenticated = self.is_authenticated
        self.is_authenticated = False
        self.user = None
        if was_authenticated:
            for listener in self._listeners:
                listener()
