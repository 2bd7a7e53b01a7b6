# dashboard_ui/auth.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from dashboard_ui.dependencies import get_app_state, get_existing_app_state
from dashboard_ui.router import FALLBACK_PATH

router = APIRouter()

ANONYMOUS = {"authenticated": False, "user": None, "user_name": "", "is_admin": False}


class LoginIn(BaseModel):
    username: str
    password: str


def session_payload(state):
    if state is None:
        return dict(ANONYMOUS)
    auth = state.auth
    return {
        "authenticated": auth.is_authenticated,
        "user": auth.user.model_dump() if auth.user else None,
        "user_name": auth.user_name,
        "is_admin": auth.is_admin,
    }


@router.post("/login")
def login(form: LoginIn, state=Depends(get_app_state)):
    success, error = state.auth.login(form.username, form.password)
    if not success:
        raise HTTPException(status_code=401, detail=error)
    return {**session_payload(state), "redirect": FALLBACK_PATH}


@router.post("/logout")
def logout(state=Depends(get_existing_app_state)):
    if state is not None:
        state.auth.logout()
    return {"message": "Logged out", **session_payload(state)}


# Restores the upstream session on page load; no upstream cookie means nobody to restore
@router.get("/me")
def who_am_i(state=Depends(get_existing_app_state)):
    if state is not None:
        state.auth.check_auth()
    return session_payload(state)
