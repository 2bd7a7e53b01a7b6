# dashboard_ui/main.py
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from dashboard_ui import config
from dashboard_ui.admin import router as admin_router
from dashboard_ui.auth import router as auth_router
from dashboard_ui.dependencies import AdminRequired, LoginRequired, find_app_state
from dashboard_ui.router import LOGIN_VIEW, resolve
from dashboard_ui.tools import router as tools_router

config.configure_logging()
logger = logging.getLogger("dashboard_ui")

app = FastAPI(title="Equipment Status Dashboard")

# Enable CORS for the frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    response = await call_next(request)
    token = getattr(request.state, "new_session_token", None)
    if token:
        response.set_cookie(
            config.SESSION_COOKIE_NAME,
            token,
            max_age=config.SESSION_TTL_MINUTES * 60,
            httponly=True,
            samesite="lax",
        )
    return response


def login_view(state=None):
    error = state.auth.error if state is not None else None
    return JSONResponse(status_code=401, content={"view": LOGIN_VIEW, "error": error})


@app.exception_handler(LoginRequired)
async def handle_login_required(request: Request, exc: LoginRequired):
    return login_view()


@app.exception_handler(AdminRequired)
async def handle_admin_required(request: Request, exc: AdminRequired):
    logger.info("Non-admin request to %s redirected", request.url.path)
    return RedirectResponse(exc.redirect, status_code=303)


# Register routers
app.include_router(auth_router, tags=["Auth"])
app.include_router(tools_router, tags=["Dashboard"])
app.include_router(admin_router, tags=["Admin"])


# Everything else: redirects from the route table
@app.get("/{path:path}", include_in_schema=False)
def fallback(path: str, request: Request):
    # Redirects need no session of their own
    state = find_app_state(request)
    if state is None:
        nav = resolve("/" + path, False, False)
    else:
        with state.lock:
            nav = resolve("/" + path, state.auth.is_authenticated, state.auth.is_admin)
    if nav.redirect:
        return RedirectResponse(nav.redirect, status_code=303)
    if nav.view == LOGIN_VIEW:
        return login_view(state)
    # Known page reached through a non-canonical path, e.g. a trailing slash
    target = "/" + path.strip("/")
    if request.url.query:
        target += "?" + request.url.query
    return RedirectResponse(target, status_code=303)


def run():
    uvicorn.run("dashboard_ui.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
