# dashboard_ui/admin_store.py
"""
Admin screens: tool and user lists with client-side search and sort, plus
the create/edit, toggle-active and password reset modals.
"""
import logging
import time
from typing import List, Optional

from dashboard_ui.api import ApiClient, SESSION_EXPIRED, UNEXPECTED_RESPONSE
from dashboard_ui.models import CRITICALITY_OPTIONS, ROLE_OPTIONS, Tool, User, parse_items, payload_object
from dashboard_ui.sorting import (
    CRITICALITY_PRIORITY,
    ROLE_PRIORITY,
    filter_items,
    sort_class,
    sort_items,
    toggle_sort,
)

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied. Admin privileges required."
# Seconds a successful modal stays open to show its message
MODAL_CLOSE_DELAY = 1.0

TOOL_COLUMNS = ("name", "area", "bay", "criticality", "is_active")
USER_COLUMNS = ("username", "name", "role", "is_active", "last_login_at")


class ListState:
    def __init__(self):
        self.items: List = []
        self.meta = {}
        self.loading = False
        self.error: Optional[str] = None
        self.search = ""
        self.sort_column = "name"
        self.sort_direction = "asc"

    def clear(self):
        self.items = []
        self.meta = {}
        self.error = None

    def sort_click(self, column: str):
        self.sort_column, self.sort_direction = toggle_sort(self.sort_column, self.sort_direction, column)

    def sort_class(self, column: str) -> str:
        return sort_class(self.sort_column, self.sort_direction, column)


class Modal:
    def __init__(self):
        self.visible = False
        self.submitting = False
        self.error: Optional[str] = None
        self.success_message: Optional[str] = None
        self.close_at: Optional[float] = None

    def open(self):
        self.error = None
        self.success_message = None
        self.close_at = None
        self.visible = True

    def close(self):
        self.visible = False
        self.error = None
        self.success_message = None
        self.close_at = None

    def succeed(self, message: str):
        self.success_message = message
        self.close_at = time.monotonic() + MODAL_CLOSE_DELAY

    def settle(self, now: float = None):
        if self.close_at is not None and (now if now is not None else time.monotonic()) >= self.close_at:
            self.close()

    def as_dict(self) -> dict:
        # Typed passwords never go back out in a view
        return {k: v for k, v in vars(self).items() if k not in ("close_at", "password")}


class ToolModal(Modal):
    def __init__(self):
        super().__init__()
        self.mode = "create"
        self.id = None
        self.name = ""
        self.area = ""
        self.bay = ""
        self.criticality = "medium"


class UserModal(Modal):
    def __init__(self):
        super().__init__()
        self.mode = "create"
        self.id = None
        self.username = ""
        self.name = ""
        self.password = ""
        self.role = "operator"


class PasswordModal(Modal):
    def __init__(self):
        super().__init__()
        self.user_id = None
        self.user_name = ""
        self.password = ""


def toggle_action(item) -> str:
    return "deactivate" if item.is_active else "activate"


def confirm_message(item) -> str:
    return f'Are you sure you want to {toggle_action(item)} "{item.name}"?'


class AdminStore:
    valid_criticalities = CRITICALITY_OPTIONS
    valid_roles = ROLE_OPTIONS

    def __init__(self, api: ApiClient):
        self.api = api
        self.current_tab = "tools"
        self.tools = ListState()
        self.users = ListState()
        self.tool_modal = ToolModal()
        self.user_modal = UserModal()
        self.password_modal = PasswordModal()

    # Derived lists

    @property
    def filtered_tools(self) -> List[Tool]:
        items = filter_items(self.tools.items, self.tools.search, ["name"])
        return sort_items(
            items,
            self.tools.sort_column,
            self.tools.sort_direction,
            priorities={"criticality": CRITICALITY_PRIORITY},
        )

    @property
    def filtered_users(self) -> List[User]:
        items = filter_items(self.users.items, self.users.search, ["username", "name"])
        return sort_items(
            items,
            self.users.sort_column,
            self.users.sort_direction,
            priorities={"role": ROLE_PRIORITY},
            timestamp_columns=("last_login_at",),
        )

    def find_tool(self, tool_id) -> Optional[Tool]:
        return next((t for t in self.tools.items if str(t.id) == str(tool_id)), None)

    def find_user(self, user_id) -> Optional[User]:
        return next((u for u in self.users.items if str(u.id) == str(user_id)), None)

    def _fetch_list(self, listing: ListState, path: str, key: str, model):
        listing.loading = True
        listing.error = None

        data, error, status = self.api.get(path)

        if status == 401:
            listing.error = SESSION_EXPIRED
        elif status == 403:
            listing.error = ACCESS_DENIED
        elif error:
            listing.error = error
        else:
            try:
                listing.items = parse_items(model, data, key)
                listing.meta = payload_object(data).get("meta") or {}
            except ValueError as exc:
                logger.warning("Bad %s listing from API: %s", key, exc)
                listing.error = UNEXPECTED_RESPONSE

        listing.loading = False

    def _submit(self, modal: Modal, method: str, path: str, payload: dict, message: str, refresh) -> bool:
        modal.submitting = True
        modal.error = None

        _, error, status = self.api.request(method, path, body=payload)

        if status == 401:
            modal.error = SESSION_EXPIRED
            modal.submitting = False
            return False
        if error:
            modal.error = error
            modal.submitting = False
            return False

        modal.succeed(message)
        refresh()
        modal.submitting = False
        return True

    def _toggle(self, listing: ListState, path: str, item, kind: str, confirmed: bool, refresh) -> bool:
        if not confirmed:
            return False

        action = toggle_action(item)
        _, error, status = self.api.post(path)

        if status == 401:
            listing.error = SESSION_EXPIRED
            return False
        if error:
            listing.error = error
            return False

        logger.info("%s %s %s", action.capitalize(), kind, item.id)
        refresh()
        return True

    def settle(self, now: float = None):
        """Close modals whose success message has been shown long enough."""
        for modal in (self.tool_modal, self.user_modal, self.password_modal):
            modal.settle(now)

    # Tools

    def fetch_tools(self):
        self._fetch_list(self.tools, "/api/admin/tools", "tools", Tool)

    def handle_tool_sort_click(self, column: str):
        self.tools.sort_click(column)

    def get_tool_sort_class(self, column: str) -> str:
        return self.tools.sort_class(column)

    def open_add_tool_modal(self):
        modal = self.tool_modal
        modal.mode = "create"
        modal.id = None
        modal.name = ""
        modal.area = ""
        modal.bay = ""
        modal.criticality = "medium"
        modal.open()

    def open_edit_tool_modal(self, tool: Tool):
        modal = self.tool_modal
        modal.mode = "edit"
        modal.id = tool.id
        modal.name = tool.name
        modal.area = tool.area
        modal.bay = tool.bay or ""
        modal.criticality = tool.criticality
        modal.open()

    def close_tool_modal(self):
        self.tool_modal.close()

    def submit_tool_modal(self) -> bool:
        modal = self.tool_modal
        if not modal.name.strip():
            modal.error = "Name is required"
            return False
        if not modal.area.strip():
            modal.error = "Area is required"
            return False

        payload = {
            "name": modal.name.strip(),
            "area": modal.area.strip(),
            "bay": (modal.bay or "").strip(),
            "criticality": modal.criticality,
        }
        if modal.mode == "create":
            return self._submit(modal, "POST", "/api/admin/tools", payload,
                                "Tool created successfully", self.fetch_tools)
        return self._submit(modal, "PUT", f"/api/admin/tools/{modal.id}", payload,
                            "Tool updated successfully", self.fetch_tools)

    def toggle_tool_active(self, tool: Tool, confirmed: bool) -> bool:
        return self._toggle(self.tools, f"/api/admin/tools/{tool.id}/toggle-active",
                            tool, "tool", confirmed, self.fetch_tools)

    # Users

    def fetch_users(self):
        self._fetch_list(self.users, "/api/admin/users", "users", User)

    def handle_user_sort_click(self, column: str):
        self.users.sort_click(column)

    def get_user_sort_class(self, column: str) -> str:
        return self.users.sort_class(column)

    def open_add_user_modal(self):
        modal = self.user_modal
        modal.mode = "create"
        modal.id = None
        modal.username = ""
        modal.name = ""
        modal.password = ""
        modal.role = "operator"
        modal.open()

    def open_edit_user_modal(self, user: User):
        modal = self.user_modal
        modal.mode = "edit"
        modal.id = user.id
        modal.username = user.username
        modal.name = user.name
        modal.password = ""
        modal.role = user.role
        modal.open()

    def close_user_modal(self):
        self.user_modal.close()

    def submit_user_modal(self) -> bool:
        modal = self.user_modal
        creating = modal.mode == "create"
        if not modal.username.strip():
            modal.error = "Username is required"
            return False
        if not modal.name.strip():
            modal.error = "Name is required"
            return False
        if creating and not modal.password.strip():
            modal.error = "Password is required"
            return False

        payload = {
            "username": modal.username.strip(),
            "name": modal.name.strip(),
            "role": modal.role,
        }
        if creating:
            # Sent as typed; only the emptiness check trims it
            payload["password"] = modal.password
            return self._submit(modal, "POST", "/api/admin/users", payload,
                                "User created successfully", self.fetch_users)
        return self._submit(modal, "PUT", f"/api/admin/users/{modal.id}", payload,
                            "User updated successfully", self.fetch_users)

    def toggle_user_active(self, user: User, confirmed: bool) -> bool:
        return self._toggle(self.users, f"/api/admin/users/{user.id}/toggle-active",
                            user, "user", confirmed, self.fetch_users)

    # Password reset

    def open_password_modal(self, user: User):
        modal = self.password_modal
        modal.user_id = user.id
        modal.user_name = user.name
        modal.password = ""
        modal.open()

    def close_password_modal(self):
        self.password_modal.close()

    def submit_password_modal(self) -> bool:
        modal = self.password_modal
        if not modal.password.strip():
            modal.error = "Password is required"
            return False
        return self._submit(modal, "POST", f"/api/admin/users/{modal.user_id}/reset-password",
                            {"password": modal.password}, "Password reset successfully", self.fetch_users)

    def switch_tab(self, tab: str):
        self.current_tab = tab

    def clear_data(self):
        self.tools.clear()
        self.users.clear()
        self.tool_modal.close()
        self.user_modal.close()
        self.password_modal.close()

    # View models

    def tools_view(self) -> dict:
        return {
            "view": "admin-tools",
            "current_tab": self.current_tab,
            "tools": [t.model_dump() for t in self.filtered_tools],
            "meta": self.tools.meta,
            "loading": self.tools.loading,
            "error": self.tools.error,
            "search": self.tools.search,
            "sort": {"column": self.tools.sort_column, "direction": self.tools.sort_direction},
            "sort_classes": {c: self.get_tool_sort_class(c) for c in TOOL_COLUMNS},
            "tool_modal": self.tool_modal.as_dict(),
            "valid_criticalities": self.valid_criticalities,
        }

    def users_view(self) -> dict:
        return {
            "view": "admin-users",
            "current_tab": self.current_tab,
            "users": [u.model_dump() for u in self.filtered_users],
            "meta": self.users.meta,
            "loading": self.users.loading,
            "error": self.users.error,
            "search": self.users.search,
            "sort": {"column": self.users.sort_column, "direction": self.users.sort_direction},
            "sort_classes": {c: self.get_user_sort_class(c) for c in USER_COLUMNS},
            "user_modal": self.user_modal.as_dict(),
            "password_modal": self.password_modal.as_dict(),
            "valid_roles": self.valid_roles,
        }
