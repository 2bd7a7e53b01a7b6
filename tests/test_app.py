import threading
import time

import pytest
from fastapi.testclient import TestClient

from fakes import FakeResponse, FakeSession

from conftest import ADMIN, OPERATOR
from dashboard_ui import config, dependencies, state
from dashboard_ui.dashboard_store import ADMIN_REQUIRED
from dashboard_ui.main import app

TOOLS = {
    "tools": [{"id": 1, "name": "Etcher", "area": "Fab", "state": "DOWN", "criticality": "high"}],
    "meta": {"total": 1, "filtered": 1, "areas": ["Fab"], "states": ["DOWN"]},
}


@pytest.fixture()
def upstream(monkeypatch):
    session = FakeSession()
    monkeypatch.setattr(state, "SESSION_FACTORY", lambda: session)
    monkeypatch.setattr(dependencies, "registry", state.SessionRegistry(ttl_minutes=5))
    return session


@pytest.fixture()
def client(upstream):
    with TestClient(app) as client:
        yield client


def login(client, upstream, user):
    upstream.add("POST", "/api/auth/login", FakeResponse(200, {"user": user}))
    response = client.post("/login", json={"username": user["username"], "password": "pw"})
    assert response.status_code == 200
    return response


def test_anonymous_dashboard_shows_login(client, upstream):
    response = client.get("/vue")

    assert response.status_code == 401
    assert response.json()["view"] == "login"
    assert upstream.calls == []
    assert config.SESSION_COOKIE_NAME in response.cookies


def test_login_then_dashboard(client, upstream):
    upstream.add("GET", "/api/tools", FakeResponse(200, TOOLS))

    body = login(client, upstream, OPERATOR).json()
    assert body["authenticated"] is True
    assert body["redirect"] == "/vue"

    response = client.get("/vue?state=DOWN&sort=name")
    view = response.json()

    assert response.status_code == 200
    assert view["view"] == "dashboard"
    assert view["tools"][0]["name"] == "Etcher"
    assert view["url"] == "/vue?state=DOWN&sort=name"
    assert view["sort_classes"]["name"] == "sorted-asc"
    assert upstream.calls_to("GET", "/api/tools")[0].query == {"state": "DOWN", "sort": "name"}


def test_bad_login(client, upstream):
    upstream.add("POST", "/api/auth/login", FakeResponse(401, {"error": "Invalid username or password"}))

    response = client.post("/login", json={"username": "op", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password"


def test_operator_is_redirected_from_admin(client, upstream):
    upstream.add("GET", "/api/tools", FakeResponse(200, TOOLS))
    login(client, upstream, OPERATOR)

    response = client.get("/admin/users", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/vue?error=forbidden"

    view = client.get("/vue?error=forbidden").json()
    assert view["error"] == ADMIN_REQUIRED
    assert view["url"] == "/vue"


def test_admin_lists_users(client, upstream):
    upstream.add("GET", "/api/admin/users", FakeResponse(200, {"users": [ADMIN, OPERATOR], "meta": {}}))
    login(client, upstream, ADMIN)

    view = client.get("/admin/users?search=otto").json()

    assert view["view"] == "admin-users"
    assert [u["username"] for u in view["users"]] == ["op"]


def test_toggle_asks_for_confirmation_first(client, upstream):
    upstream.add("GET", "/api/admin/tools", FakeResponse(200, {"tools": [dict(TOOLS["tools"][0], is_active=True)]}))
    upstream.add("POST", "/api/admin/tools/1/toggle-active", FakeResponse(200, {}))
    login(client, upstream, ADMIN)

    first = client.post("/admin/tools/1/toggle-active").json()
    assert first["confirm"] == 'Are you sure you want to deactivate "Etcher"?'
    assert upstream.calls_to("POST", "/api/admin/tools/1/toggle-active") == []

    second = client.post("/admin/tools/1/toggle-active?confirm=true").json()
    assert second["success"] is True
    assert len(upstream.calls_to("POST", "/api/admin/tools/1/toggle-active")) == 1


def test_missing_admin_record_is_404(client, upstream):
    upstream.add("GET", "/api/admin/tools", FakeResponse(200, {"tools": []}))
    login(client, upstream, ADMIN)

    assert client.post("/admin/tools/99/edit").status_code == 404


def test_status_update(client, upstream):
    tool = TOOLS["tools"][0]
    upstream.add("POST", "/api/tools/1/status", FakeResponse(200, {"tool": dict(tool, state="UP")}))
    login(client, upstream, OPERATOR)

    response = client.post("/vue/tools/1/status", json={"state": "UP", "eta_to_up": "2024-05-01T10:00"})
    view = response.json()

    assert view["success"] is True
    assert view["tool"]["state"] == "UP"
    assert upstream.calls_to("POST", "/api/tools/1/status")[0].json == {"state": "UP"}


def test_history_view_links_local_export(client, upstream):
    upstream.add("GET", "/api/tools/1/history", FakeResponse(200, {"events": [], "tool_name": "Etcher"}))
    login(client, upstream, OPERATOR)

    view = client.get("/vue/tools/1/history?from=2024-04-01&to=2024-04-30").json()

    assert view["tool_name"] == "Etcher"
    assert view["export_url"] == "/vue/tools/1/history.csv?from=2024-04-01&to=2024-04-30"
    assert upstream.calls_to("GET", "/api/tools/1/history")[0].params == {"from": "2024-04-01", "to": "2024-04-30"}


def test_history_csv_is_streamed(client, upstream):
    csv = "id,state\n1,DOWN\n"
    upstream.add("GET", "/api/tools/1/history.csv", FakeResponse(200, text=csv, headers={"content-type": "text/csv"}))
    login(client, upstream, OPERATOR)

    response = client.get("/vue/tools/1/history.csv")

    assert response.status_code == 200
    assert response.text == csv
    assert "attachment" in response.headers["content-disposition"]


def test_expired_upstream_session_logs_out(client, upstream):
    upstream.add("GET", "/api/tools", FakeResponse(401, {"error": "expired"}))
    login(client, upstream, OPERATOR)

    view = client.get("/vue").json()
    assert view["error"] == "Session expired. Please log in again."

    again = client.get("/vue")
    assert again.status_code == 401
    assert again.json()["view"] == "login"
    assert len(upstream.calls_to("GET", "/api/tools")) == 1


def test_root_and_unknown_paths_redirect(client):
    root = client.get("/", follow_redirects=False)
    unknown = client.get("/somewhere/else", follow_redirects=False)

    assert root.headers["location"] == "/vue"
    assert unknown.headers["location"] == "/vue"


def test_logout(client, upstream):
    upstream.add("POST", "/api/auth/logout", FakeResponse(200, {"message": "bye"}))
    login(client, upstream, OPERATOR)

    body = client.post("/logout").json()

    assert body["authenticated"] is False
    assert client.get("/vue").status_code == 401


def test_forged_cookie_starts_new_session(client, upstream):
    login(client, upstream, OPERATOR)
    client.cookies.clear()
    client.cookies.set(config.SESSION_COOKIE_NAME, "not-a-token")

    assert client.get("/vue").status_code == 401


def test_requests_from_one_browser_take_turns(client, upstream):
    def tools(call):
        if call.query.get("state") == "UP":
            time.sleep(0.3)
        return FakeResponse(200, TOOLS)

    upstream.add("GET", "/api/tools", tools)
    login(client, upstream, OPERATOR)

    urls = {}

    def open_dashboard(state_filter):
        urls[state_filter] = client.get(f"/vue?state={state_filter}").json()["url"]

    slow = threading.Thread(target=open_dashboard, args=("UP",))
    slow.start()
    time.sleep(0.1)
    open_dashboard("DOWN")
    slow.join()

    assert urls == {"UP": "/vue?state=UP", "DOWN": "/vue?state=DOWN"}


def test_redirects_do_not_open_sessions(client):
    response = client.get("/", follow_redirects=False)

    assert response.status_code == 303
    assert config.SESSION_COOKIE_NAME not in response.cookies
    assert len(dependencies.registry) == 0


def test_me_without_session(client, upstream):
    body = client.get("/me").json()

    assert body["authenticated"] is False
    assert upstream.calls == []
    assert len(dependencies.registry) == 0


def test_user_without_display_name_logs_in(client, upstream):
    body = login(client, upstream, {"id": 3, "username": "kiosk", "name": None, "role": "operator"}).json()

    assert body["user_name"] == "kiosk"


def test_tool_detail_with_proxy_page(client, upstream):
    page = FakeResponse(200, text="<html>proxy</html>", headers={"content-type": "text/html"})
    upstream.add("GET", "/api/tools/1", page)
    login(client, upstream, OPERATOR)

    response = client.get("/vue/tools/1")

    assert response.status_code == 200
    assert response.json()["error"] == "Unexpected response from server."
