# dashboard_ui/router.py
"""Page routes of the dashboard UI and the auth/admin guard decisions."""
import re
from typing import NamedTuple, Optional

LOGIN_VIEW = "login"
FALLBACK_PATH = "/vue"
FORBIDDEN_REDIRECT = "/vue?error=forbidden"


class Route(NamedTuple):
    path: str
    name: Optional[str] = None
    requires_auth: bool = False
    requires_admin: bool = False
    redirect: Optional[str] = None


class Navigation(NamedTuple):
    view: Optional[str]
    params: dict
    redirect: Optional[str] = None


ROUTES = [
    Route("/", redirect="/vue"),
    Route("/vue", "dashboard", requires_auth=True),
    Route("/vue/tools/{id}", "tool-detail", requires_auth=True),
    Route("/vue/tools/{id}/history", "tool-history", requires_auth=True),
    Route("/admin/tools", "admin-tools", requires_auth=True, requires_admin=True),
    Route("/admin/users", "admin-users", requires_auth=True, requires_admin=True),
    Route("/admin", redirect="/admin/tools"),
]

ROUTES_BY_NAME = {r.name: r for r in ROUTES if r.name}


def _compile(path: str):
    pattern = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", path)
    return re.compile(f"^{pattern}$")


_COMPILED = [(route, _compile(route.path)) for route in ROUTES]


def match(path: str):
    """Returns ``(route, params)`` or ``(None, {})``."""
    path = path.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    for route, regex in _COMPILED:
        m = regex.match(path or "/")
        if m:
            return route, m.groupdict()
    return None, {}


def check_access(route: Route, is_authenticated: bool, is_admin: bool, params: dict = None) -> Navigation:
    params = params or {}
    # Anonymous visitors get the login form in place, the URL stays put
    if route.requires_auth and not is_authenticated:
        return Navigation(LOGIN_VIEW, params)
    if route.requires_admin and not is_admin:
        return Navigation(None, params, FORBIDDEN_REDIRECT)
    return Navigation(route.name, params)


def resolve(path: str, is_authenticated: bool, is_admin: bool) -> Navigation:
    route, params = match(path)
    if route is None:
        return Navigation(None, {}, FALLBACK_PATH)
    if route.redirect:
        return Navigation(None, params, route.redirect)
    return check_access(route, is_authenticated, is_admin, params)
