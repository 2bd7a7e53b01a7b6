# dashboard_ui/admin.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from dashboard_ui.admin_store import confirm_message
from dashboard_ui.dependencies import require_page

router = APIRouter()

tools_page = require_page("admin-tools")
users_page = require_page("admin-users")


# --- Pydantic models for modal submits ---
class SearchIn(BaseModel):
    search: str = ""


class ToolIn(BaseModel):
    name: str = ""
    area: str = ""
    bay: str = ""
    criticality: str = "medium"


class UserIn(BaseModel):
    username: str = ""
    name: str = ""
    password: str = ""
    role: str = "operator"


class PasswordIn(BaseModel):
    password: str = ""


def lookup(find, fetch, item_id, kind):
    item = find(item_id)
    if item is None:
        # The list may not have been loaded in this session yet
        fetch()
        item = find(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"{kind} not found")
    return item


def tools_view(admin, **extra):
    admin.settle()
    return {**admin.tools_view(), **extra}


def users_view(admin, **extra):
    admin.settle()
    return {**admin.users_view(), **extra}


# --- Tools ---
@router.get("/admin/tools")
def admin_tools(search: Optional[str] = None, state=Depends(tools_page)):
    admin = state.admin
    admin.switch_tab("tools")
    if search is not None:
        admin.tools.search = search
    admin.fetch_tools()
    return tools_view(admin)


@router.post("/admin/tools/search")
def search_tools(data: SearchIn, state=Depends(tools_page)):
    state.admin.tools.search = data.search
    return tools_view(state.admin)


@router.post("/admin/tools/sort/{column}")
def sort_tools(column: str, state=Depends(tools_page)):
    state.admin.handle_tool_sort_click(column)
    return tools_view(state.admin)


@router.post("/admin/tools/new")
def add_tool(state=Depends(tools_page)):
    state.admin.open_add_tool_modal()
    return tools_view(state.admin)


@router.post("/admin/tools/{tool_id}/edit")
def edit_tool(tool_id: str, state=Depends(tools_page)):
    admin = state.admin
    tool = lookup(admin.find_tool, admin.fetch_tools, tool_id, "Tool")
    admin.open_edit_tool_modal(tool)
    return tools_view(admin)


@router.post("/admin/tools/modal")
def submit_tool(data: ToolIn, state=Depends(tools_page)):
    admin = state.admin
    modal = admin.tool_modal
    modal.name = data.name
    modal.area = data.area
    modal.bay = data.bay
    modal.criticality = data.criticality
    success = admin.submit_tool_modal()
    return {**admin.tools_view(), "success": success}


@router.post("/admin/tools/modal/close")
def close_tool(state=Depends(tools_page)):
    state.admin.close_tool_modal()
    return tools_view(state.admin)


@router.post("/admin/tools/{tool_id}/toggle-active")
def toggle_tool(tool_id: str, confirm: bool = False, state=Depends(tools_page)):
    admin = state.admin
    tool = lookup(admin.find_tool, admin.fetch_tools, tool_id, "Tool")
    if not confirm:
        return tools_view(admin, confirm=confirm_message(tool))
    success = admin.toggle_tool_active(tool, confirmed=True)
    return tools_view(admin, success=success)


# --- Users ---
@router.get("/admin/users")
def admin_users(search: Optional[str] = None, state=Depends(users_page)):
    admin = state.admin
    admin.switch_tab("users")
    if search is not None:
        admin.users.search = search
    admin.fetch_users()
    return users_view(admin)


@router.post("/admin/users/search")
def search_users(data: SearchIn, state=Depends(users_page)):
    state.admin.users.search = data.search
    return users_view(state.admin)


@router.post("/admin/users/sort/{column}")
def sort_users(column: str, state=Depends(users_page)):
    state.admin.handle_user_sort_click(column)
    return users_view(state.admin)


@router.post("/admin/users/new")
def add_user(state=Depends(users_page)):
    state.admin.open_add_user_modal()
    return users_view(state.admin)


@router.post("/admin/users/{user_id}/edit")
def edit_user(user_id: str, state=Depends(users_page)):
    admin = state.admin
    user = lookup(admin.find_user, admin.fetch_users, user_id, "User")
    admin.open_edit_user_modal(user)
    return users_view(admin)


@router.post("/admin/users/modal")
def submit_user(data: UserIn, state=Depends(users_page)):
    admin = state.admin
    modal = admin.user_modal
    modal.username = data.username
    modal.name = data.name
    modal.password = data.password
    modal.role = data.role
    success = admin.submit_user_modal()
    return {**admin.users_view(), "success": success}


@router.post("/admin/users/modal/close")
def close_user(state=Depends(users_page)):
    state.admin.close_user_modal()
    return users_view(state.admin)


@router.post("/admin/users/{user_id}/toggle-active")
def toggle_user(user_id: str, confirm: bool = False, state=Depends(users_page)):
    admin = state.admin
    user = lookup(admin.find_user, admin.fetch_users, user_id, "User")
    if not confirm:
        return users_view(admin, confirm=confirm_message(user))
    success = admin.toggle_user_active(user, confirmed=True)
    return users_view(admin, success=success)


# --- Password reset ---
@router.post("/admin/users/{user_id}/password")
def open_password_reset(user_id: str, state=Depends(users_page)):
    admin = state.admin
    user = lookup(admin.find_user, admin.fetch_users, user_id, "User")
    admin.open_password_modal(user)
    return users_view(admin)


@router.post("/admin/users/password")
def reset_password(data: PasswordIn, state=Depends(users_page)):
    admin = state.admin
    admin.password_modal.password = data.password
    success = admin.submit_password_modal()
    return {**admin.users_view(), "success": success}


@router.post("/admin/users/password/close")
def close_password_reset(state=Depends(users_page)):
    state.admin.close_password_modal()
    return users_view(state.admin)
