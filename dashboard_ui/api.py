# dashboard_ui/api.py
"""
Request helper for the upstream status API.

Every call returns an ``ApiResult`` instead of raising, so state holders can
render the error string in place:

- 401 clears the auth state (through ``on_unauthorized``) and reports an
  expired session
- 403 reports a permission error
- any other non-2xx reports the server's ``error`` field or a generic message
- a connection failure reports status 0
"""
import logging
from typing import Any, Callable, NamedTuple, Optional
from urllib.parse import urlencode

import requests

from dashboard_ui import config

logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Session expired. Please log in again."
FORBIDDEN = "You do not have permission to access this resource."
CONNECTION_FAILED = "Unable to connect to server. Please try again."
UNEXPECTED_RESPONSE = "Unexpected response from server."


class ApiResult(NamedTuple):
    data: Any
    error: Optional[str]
    status: int


class ApiClient:
    def __init__(
        self,
        base_url: str = None,
        session: requests.Session = None,
        timeout: float = None,
        on_unauthorized: Callable[[], None] = None,
    ):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        # The session keeps the upstream cookies, which carry the login
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT
        self.on_unauthorized = on_unauthorized

    def url_for(self, path: str, params: dict = None) -> str:
        query = urlencode({k: v for k, v in (params or {}).items() if v})
        return f"{self.base_url}{path}" + (f"?{query}" if query else "")

    def _send(self, method: str, path: str, body=None, params=None, stream=False):
        headers = {"Accept": "application/json"}
        kwargs = {"headers": headers, "timeout": self.timeout}
        if body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = body
        if params:
            kwargs["params"] = params
        if stream:
            kwargs["stream"] = True
        return self.session.request(method, f"{self.base_url}{path}", **kwargs)

    def _unauthorized(self):
        if self.on_unauthorized is not None:
            self.on_unauthorized()
        return ApiResult(None, SESSION_EXPIRED, 401)

    def request(
        self,
        method: str,
        path: str,
        body: dict = None,
        params: dict = None,
        auth_errors: bool = True,
        fallback_error: str = None,
    ) -> ApiResult:
        """
        Send a request and normalize the outcome.

        With ``auth_errors=False`` a 401/403 is treated like any other
        failure, which is what the login and session-check calls need.
        ``fallback_error`` replaces the generic message when the server
        sends no ``error`` field.
        """
        try:
            response = self._send(method, path, body=body, params=params)
        except requests.RequestException as e:
            logger.warning("API request %s %s failed: %s", method, path, e)
            return ApiResult(None, CONNECTION_FAILED, 0)

        status = response.status_code
        if auth_errors and status == 401:
            return self._unauthorized()
        if auth_errors and status == 403:
            return ApiResult(None, FORBIDDEN, 403)

        data = parse_body(response)

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            return ApiResult(None, message or fallback_error or f"Request failed with status {status}", status)

        return ApiResult(data, None, status)

    def get(self, path: str, params: dict = None, **kwargs) -> ApiResult:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, body: dict = None, **kwargs) -> ApiResult:
        return self.request("POST", path, body=body, **kwargs)

    def put(self, path: str, body: dict = None, **kwargs) -> ApiResult:
        return self.request("PUT", path, body=body, **kwargs)

    def delete(self, path: str, **kwargs) -> ApiResult:
        return self.request("DELETE", path, **kwargs)

    def fetch_raw(self, path: str, params: dict = None):
        """
        Stream a non-JSON download (the history CSV export).
        Returns ``(response, error, status)``; ``response`` is None on failure.
        """
        try:
            response = self._send("GET", path, params=params, stream=True)
        except requests.RequestException as e:
            logger.warning("API download %s failed: %s", path, e)
            return ApiResult(None, CONNECTION_FAILED, 0)

        status = response.status_code
        if status == 401:
            response.close()
            return self._unauthorized()
        if status == 403:
            response.close()
            return ApiResult(None, FORBIDDEN, 403)
        if not response.ok:
            data = parse_body(response)
            response.close()
            message = data.get("error") if isinstance(data, dict) else None
            return ApiResult(None, message or f"Request failed with status {status}", status)
        return ApiResult(response, None, status)


def parse_body(response):
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            logger.warning("Invalid JSON body from %s", response.url)
            return None
    return response.text
