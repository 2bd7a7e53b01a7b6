# dashboard_ui/tool_detail_store.py
import logging
from datetime import datetime, timezone
from typing import Optional

from dashboard_ui.api import ApiClient, SESSION_EXPIRED, UNEXPECTED_RESPONSE
from dashboard_ui.models import HistoryEvent, STATE_OPTIONS, Tool, parse_item, parse_items, payload_object

logger = logging.getLogger(__name__)

TOOL_NOT_FOUND = "Tool not found"
STATUS_REQUIRED = "Status is required"


def format_datetime_for_input(value) -> str:
    """
    Format a timestamp as ``YYYY-MM-DDTHH:MM`` in UTC, the value a
    datetime-local input expects. Anything unparseable gives "".
    """
    if not value:
        return ""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M")


class StatusForm:
    def __init__(self):
        self.visible = False
        self.submitting = False
        self.error: Optional[str] = None
        self.state = ""
        self.issue_description = ""
        self.comment = ""
        self.eta_to_up = ""

    def payload(self) -> dict:
        # Optional fields go out only when filled in
        body = {"state": self.state}
        if self.issue_description.strip():
            body["issue_description"] = self.issue_description.strip()
        if self.comment.strip():
            body["comment"] = self.comment.strip()
        if self.state != "UP" and self.eta_to_up:
            body["eta_to_up"] = self.eta_to_up
        return body

    def as_dict(self) -> dict:
        return dict(vars(self))


class HistoryState:
    def __init__(self):
        self.events = []
        self.tool_name = ""
        self.loading = False
        self.error: Optional[str] = None
        self.from_date = ""
        self.to_date = ""

    def date_params(self) -> dict:
        params = {}
        if self.from_date:
            params["from"] = self.from_date
        if self.to_date:
            params["to"] = self.to_date
        return params


class ToolDetailStore:
    valid_states = STATE_OPTIONS

    def __init__(self, api: ApiClient):
        self.api = api
        self.tool: Optional[Tool] = None
        self.loading = False
        self.error: Optional[str] = None
        self.status_form = StatusForm()
        self.history = HistoryState()

    @property
    def has_active_history_filters(self) -> bool:
        return bool(self.history.from_date or self.history.to_date)

    @property
    def should_show_eta_field(self) -> bool:
        return self.status_form.state != "UP"

    def fetch_tool(self, tool_id):
        self.loading = True
        self.error = None
        self.tool = None

        data, error, status = self.api.get(f"/api/tools/{tool_id}")

        if status == 401:
            self.error = SESSION_EXPIRED
        elif status == 404:
            self.error = TOOL_NOT_FOUND
        elif error:
            self.error = error
        else:
            try:
                self.tool = parse_item(Tool, data, "tool")
            except ValueError as exc:
                logger.warning("Bad tool %s from API: %s", tool_id, exc)
                self.error = UNEXPECTED_RESPONSE

        self.loading = False

    def open_status_form(self):
        if self.tool is None:
            return
        form = self.status_form
        form.state = self.tool.state or ""
        form.issue_description = self.tool.issue_description or ""
        form.comment = self.tool.comment or ""
        form.eta_to_up = format_datetime_for_input(self.tool.eta_to_up)
        form.error = None
        form.visible = True

    def close_status_form(self):
        self.status_form.visible = False
        self.status_form.error = None

    def submit_status_form(self, tool_id) -> bool:
        form = self.status_form
        if not form.state:
            form.error = STATUS_REQUIRED
            return False

        form.submitting = True
        form.error = None

        data, error, status = self.api.post(f"/api/tools/{tool_id}/status", form.payload())
        form.submitting = False

        if status == 401:
            form.error = SESSION_EXPIRED
            return False
        if error:
            form.error = error
            return False

        try:
            tool = parse_item(Tool, data, "tool")
        except ValueError as exc:
            # The update went through; reload so the page shows what was stored
            logger.warning("Bad status update answer for tool %s: %s", tool_id, exc)
            form.visible = False
            self.fetch_tool(tool_id)
            return True

        self.tool = tool
        form.visible = False
        logger.info("Status of tool %s set to %s", tool_id, form.state)
        return True

    def fetch_history(self, tool_id):
        history = self.history
        history.loading = True
        history.error = None
        history.events = []

        data, error, status = self.api.get(f"/api/tools/{tool_id}/history", params=history.date_params())

        if status == 401:
            history.error = SESSION_EXPIRED
        elif status == 404:
            history.error = TOOL_NOT_FOUND
        elif error:
            history.error = error
        else:
            try:
                history.events = parse_items(HistoryEvent, data, "events")
                history.tool_name = payload_object(data).get("tool_name") or ""
            except ValueError as exc:
                logger.warning("Bad history for tool %s from API: %s", tool_id, exc)
                history.error = UNEXPECTED_RESPONSE

        history.loading = False

    def apply_history_filters(self, tool_id):
        if tool_id:
            self.fetch_history(tool_id)

    def clear_history_filters(self, tool_id):
        self.history.from_date = ""
        self.history.to_date = ""
        if tool_id:
            self.fetch_history(tool_id)

    def export_history_csv(self, tool_id) -> Optional[str]:
        """Upstream URL of the CSV export for the current date range."""
        if not tool_id:
            return None
        return self.api.url_for(f"/api/tools/{tool_id}/history.csv", self.history.date_params())

    def clear_tool(self):
        self.tool = None
        self.error = None
        self.status_form.visible = False
        self.status_form.error = None

    def clear_history(self):
        history = self.history
        history.events = []
        history.tool_name = ""
        history.error = None
        history.from_date = ""
        history.to_date = ""

    def clear_data(self):
        self.clear_tool()
        self.clear_history()

    def detail_view(self) -> dict:
        return {
            "view": "tool-detail",
            "tool": self.tool.model_dump() if self.tool else None,
            "loading": self.loading,
            "error": self.error,
            "status_form": self.status_form.as_dict(),
            "valid_states": self.valid_states,
            "should_show_eta_field": self.should_show_eta_field,
        }

    def history_view(self, tool_id, export_url: str = None) -> dict:
        history = self.history
        return {
            "view": "tool-history",
            "tool_id": tool_id,
            "tool_name": history.tool_name,
            "events": [e.model_dump() for e in history.events],
            "loading": history.loading,
            "error": history.error,
            "from_date": history.from_date,
            "to_date": history.to_date,
            "has_active_filters": self.has_active_history_filters,
            "export_url": export_url or self.export_history_csv(tool_id),
        }
