# dashboard_ui/dependencies.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt

from dashboard_ui import config
from dashboard_ui.router import LOGIN_VIEW, ROUTES_BY_NAME, check_access
from dashboard_ui.state import AppState, registry


class LoginRequired(Exception):
    pass


class AdminRequired(Exception):
    def __init__(self, redirect: str):
        super().__init__(redirect)
        self.redirect = redirect


def create_session_token(session_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.SESSION_TTL_MINUTES)
    return jwt.encode({"sub": session_id, "exp": expire}, config.SECRET_KEY, algorithm=config.ALGORITHM)


def read_session_id(token: str):
    if not token:
        return None
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def find_app_state(request: Request) -> Optional[AppState]:
    """State of the calling browser, or None when its cookie maps to no live session."""
    session_id = read_session_id(request.cookies.get(config.SESSION_COOKIE_NAME))
    return registry.get(session_id)


def open_app_state(request: Request) -> AppState:
    """
    Like ``find_app_state``, but a missing, forged or expired cookie starts a
    new anonymous session; the middleware in main sends the new cookie.
    """
    state = find_app_state(request)
    if state is None:
        session_id, state = registry.create()
        request.state.new_session_token = create_session_token(session_id)
    return state


def get_app_state(request: Request):
    state = open_app_state(request)
    with state.lock:
        yield state


def get_existing_app_state(request: Request):
    """Yields None for browsers without a session instead of creating one."""
    state = find_app_state(request)
    if state is None:
        yield None
        return
    with state.lock:
        yield state


def require_page(route_name: str):
    route = ROUTES_BY_NAME[route_name]

    def page_checker(state: AppState = Depends(get_app_state)):
        nav = check_access(route, state.auth.is_authenticated, state.auth.is_admin)
        if nav.view == LOGIN_VIEW:
            raise LoginRequired()
        if nav.redirect:
            raise AdminRequired(nav.redirect)
        return state

    return page_checker
