# dashboard_ui/tools.py
from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from dashboard_ui.dependencies import require_page

router = APIRouter()


class FiltersIn(BaseModel):
    state: str = ""
    area: str = ""
    search: str = ""


class StatusIn(BaseModel):
    state: str = ""
    issue_description: str = ""
    comment: str = ""
    eta_to_up: str = ""


# --- Dashboard ---
@router.get("/vue")
def dashboard(request: Request, state=Depends(require_page("dashboard"))):
    store = state.dashboard
    store.read_filters_from_url(request.url.query)
    store.fetch_tools()
    return store.view()


@router.post("/vue/filters")
def apply_filters(filters: FiltersIn, state=Depends(require_page("dashboard"))):
    store = state.dashboard
    store.filters.update(state=filters.state, area=filters.area, search=filters.search)
    store.apply_filters()
    return store.view()


@router.post("/vue/filters/clear")
def clear_filters(state=Depends(require_page("dashboard"))):
    state.dashboard.clear_filters()
    return state.dashboard.view()


@router.post("/vue/sort/{column}")
def sort_tools(column: str, state=Depends(require_page("dashboard"))):
    state.dashboard.handle_sort_click(column)
    return state.dashboard.view()


# --- Tool detail and status update ---
@router.get("/vue/tools/{tool_id}")
def tool_detail(tool_id: str, state=Depends(require_page("tool-detail"))):
    store = state.tool_detail
    store.clear_tool()
    store.fetch_tool(tool_id)
    return store.detail_view()


@router.post("/vue/tools/{tool_id}/status/open")
def open_status_form(tool_id: str, state=Depends(require_page("tool-detail"))):
    store = state.tool_detail
    if store.tool is None or str(store.tool.id) != tool_id:
        store.fetch_tool(tool_id)
    store.open_status_form()
    return store.detail_view()


@router.post("/vue/tools/{tool_id}/status/close")
def close_status_form(tool_id: str, state=Depends(require_page("tool-detail"))):
    state.tool_detail.close_status_form()
    return state.tool_detail.detail_view()


@router.post("/vue/tools/{tool_id}/status")
def update_status(tool_id: str, data: StatusIn, state=Depends(require_page("tool-detail"))):
    store = state.tool_detail
    form = store.status_form
    form.state = data.state
    form.issue_description = data.issue_description
    form.comment = data.comment
    form.eta_to_up = data.eta_to_up
    success = store.submit_status_form(tool_id)
    return {**store.detail_view(), "success": success}


# --- History ---
def local_export_url(store, tool_id: str) -> str:
    """The upstream CSV link rewritten to this server, which proxies the download."""
    query = urlsplit(store.export_history_csv(tool_id)).query
    return f"/vue/tools/{tool_id}/history.csv" + (f"?{query}" if query else "")


@router.get("/vue/tools/{tool_id}/history")
def tool_history(
    tool_id: str,
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    state=Depends(require_page("tool-history")),
):
    store = state.tool_detail
    store.history.from_date = from_date or ""
    store.history.to_date = to_date or ""
    store.apply_history_filters(tool_id)
    return store.history_view(tool_id, local_export_url(store, tool_id))


@router.post("/vue/tools/{tool_id}/history/clear")
def clear_history_filters(tool_id: str, state=Depends(require_page("tool-history"))):
    store = state.tool_detail
    store.clear_history_filters(tool_id)
    return store.history_view(tool_id, local_export_url(store, tool_id))


@router.get("/vue/tools/{tool_id}/history.csv")
def export_history(
    tool_id: str,
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    state=Depends(require_page("tool-history")),
):
    params = {k: v for k, v in (("from", from_date), ("to", to_date)) if v}
    response, error, status = state.api.fetch_raw(f"/api/tools/{tool_id}/history.csv", params)
    if error:
        raise HTTPException(status_code=status or 502, detail=error)

    headers = {}
    if response.headers.get("content-disposition"):
        headers["Content-Disposition"] = response.headers["content-disposition"]
    else:
        headers["Content-Disposition"] = f'attachment; filename="tool-{tool_id}-history.csv"'

    def body():
        try:
            yield from response.iter_content(chunk_size=8192)
        finally:
            response.close()

    return StreamingResponse(
        body(),
        media_type=response.headers.get("content-type", "text/csv"),
        headers=headers,
    )
