import pytest

from fakes import FakeResponse, FakeSession

from dashboard_ui.api import ApiClient
from dashboard_ui.state import AppState

ADMIN = {"id": 1, "username": "admin", "name": "Ada Admin", "role": "admin", "is_active": True}
OPERATOR = {"id": 2, "username": "op", "name": "Otto Operator", "role": "operator", "is_active": True}


@pytest.fixture()
def upstream():
    return FakeSession()


@pytest.fixture()
def api(upstream):
    return ApiClient("http://api.test", session=upstream, timeout=1)


@pytest.fixture()
def app_state(upstream):
    return AppState("http://api.test", http_session=upstream)


@pytest.fixture()
def logged_in(app_state, upstream):
    """App state with an operator session already established."""
    upstream.add("POST", "/api/auth/login", FakeResponse(200, {"user": OPERATOR}))
    assert app_state.auth.login("op", "secret") == (True, None)
    return app_state
