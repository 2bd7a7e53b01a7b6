# dashboard_ui/dashboard_store.py
import logging
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode

from dashboard_ui.api import ApiClient, SESSION_EXPIRED, UNEXPECTED_RESPONSE
from dashboard_ui.models import Tool, ToolsMeta, parse_items, payload_object
from dashboard_ui.sorting import sort_class

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/vue"
DEFAULT_SORT_COLUMN = "state"
DEFAULT_SORT_DIRECTION = "asc"
ADMIN_REQUIRED = "You do not have permission to access that page. Admin access required."

# Column name -> sort key understood by GET /api/tools
SORTABLE_COLUMNS = {
    "name": "name",
    "area": "area",
    "state": "state",
    "eta": "eta",
    "updated": "updated",
}


class DashboardStore:
    def __init__(self, api: ApiClient):
        self.api = api
        self.tools: List[Tool] = []
        self.meta = ToolsMeta()
        self.loading = False
        self.error: Optional[str] = None
        self.filters = {"state": "", "area": "", "search": ""}
        self.sort = {"column": DEFAULT_SORT_COLUMN, "direction": DEFAULT_SORT_DIRECTION}

    @property
    def has_active_filters(self) -> bool:
        return bool(self.filters["state"] or self.filters["area"] or self.filters["search"].strip())

    def _keep_forbidden_error(self):
        if self.error and ADMIN_REQUIRED not in self.error:
            self.error = None

    def build_filter_query_string(self) -> str:
        params = []
        if self.filters["state"]:
            params.append(("state", self.filters["state"]))
        if self.filters["area"]:
            params.append(("area", self.filters["area"]))
        if self.filters["search"].strip():
            params.append(("search", self.filters["search"].strip()))
        # Defaults stay out of the URL
        if self.sort["column"] and self.sort["column"] != DEFAULT_SORT_COLUMN:
            params.append(("sort", self.sort["column"]))
        if self.sort["direction"] and self.sort["direction"] != DEFAULT_SORT_DIRECTION:
            params.append(("dir", self.sort["direction"]))
        query = urlencode(params)
        return f"?{query}" if query else ""

    def current_url(self) -> str:
        return DASHBOARD_PATH + self.build_filter_query_string()

    def read_filters_from_url(self, query: str) -> str:
        """
        Load filter and sort state from a query string.

        Returns the query string to show in the address bar, which differs
        from the input only when a one-shot ``error`` flag was consumed.
        """
        pairs = parse_qsl((query or "").lstrip("?"), keep_blank_values=True)
        params = dict(pairs)

        self.filters["state"] = params.get("state") or ""
        self.filters["area"] = params.get("area") or ""
        self.filters["search"] = params.get("search") or ""
        self.sort["column"] = params.get("sort") or DEFAULT_SORT_COLUMN
        self.sort["direction"] = params.get("dir") or DEFAULT_SORT_DIRECTION

        if params.get("error") == "forbidden":
            self.error = ADMIN_REQUIRED
            rest = urlencode([(k, v) for k, v in pairs if k != "error"])
            return f"?{rest}" if rest else ""
        return f"?{query.lstrip('?')}" if query and query.lstrip("?") else ""

    def fetch_tools(self):
        self.loading = True
        self._keep_forbidden_error()

        data, error, status = self.api.get("/api/tools" + self.build_filter_query_string())

        if status == 401:
            self.error = SESSION_EXPIRED
        elif error:
            self.error = error
        else:
            try:
                tools = parse_items(Tool, data, "tools")
                meta = ToolsMeta.model_validate(payload_object(data).get("meta") or {})
            except ValueError as exc:
                logger.warning("Bad tools listing from API: %s", exc)
                self.error = UNEXPECTED_RESPONSE
            else:
                self.tools = tools
                self.meta = meta
                self._keep_forbidden_error()

        self.loading = False

    def apply_filters(self) -> str:
        self.fetch_tools()
        return self.current_url()

    def clear_filters(self) -> str:
        self.filters.update(state="", area="", search="")
        self.fetch_tools()
        return self.current_url()

    def handle_sort_click(self, column: str) -> str:
        if column not in SORTABLE_COLUMNS:
            return self.current_url()

        if self.sort["column"] == column:
            self.sort["direction"] = "desc" if self.sort["direction"] == "asc" else "asc"
        else:
            self.sort["column"] = column
            self.sort["direction"] = "asc"

        self.fetch_tools()
        return self.current_url()

    def is_sortable(self, column: str) -> bool:
        return column in SORTABLE_COLUMNS

    def is_sorted_by(self, column: str) -> bool:
        return self.sort["column"] == column

    def get_sort_class(self, column: str) -> str:
        return sort_class(self.sort["column"], self.sort["direction"], column)

    def clear_data(self):
        self.tools = []
        self.meta = ToolsMeta()
        self.error = None

    def view(self) -> dict:
        return {
            "view": "dashboard",
            "url": self.current_url(),
            "tools": [t.model_dump() for t in self.tools],
            "meta": self.meta.model_dump(),
            "loading": self.loading,
            "error": self.error,
            "filters": dict(self.filters),
            "sort": dict(self.sort),
            "has_active_filters": self.has_active_filters,
            "sort_classes": {c: self.get_sort_class(c) for c in SORTABLE_COLUMNS},
        }
