#models.py
from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional, Union

STATES = ["UP", "UP_WITH_ISSUES", "MAINTENANCE", "DOWN"]
CRITICALITIES = ["critical", "high", "medium", "low"]
ROLES = ["admin", "operator"]

# Dropdown options as shown in the forms
STATE_OPTIONS = [
    {"value": "UP", "label": "Up", "class": "status-up"},
    {"value": "UP_WITH_ISSUES", "label": "Up with Issues", "class": "status-up-with-issues"},
    {"value": "MAINTENANCE", "label": "Maintenance", "class": "status-maintenance"},
    {"value": "DOWN", "label": "Down", "class": "status-down"},
]
CRITICALITY_OPTIONS = [{"value": c, "label": c.capitalize()} for c in CRITICALITIES]
ROLE_OPTIONS = [{"value": r, "label": r.capitalize()} for r in ROLES]


class ApiModel(BaseModel):
    # The server owns these records; accept whatever extra fields it sends
    model_config = ConfigDict(extra="ignore")


class Tool(ApiModel):
    id: Union[int, str]
    name: str = ""
    area: str = ""
    bay: Optional[str] = None
    criticality: Optional[str] = None
    state: Optional[str] = None
    issue_description: Optional[str] = None
    comment: Optional[str] = None
    eta_to_up: Optional[str] = None
    status_updated_at: Optional[str] = None
    status_updated_by: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "area", mode="before")
    @classmethod
    def blank_if_null(cls, value):
        return "" if value is None else value


class User(ApiModel):
    id: Union[int, str]
    username: str = ""
    name: str = ""
    role: Optional[str] = None
    is_active: Optional[bool] = None
    last_login_at: Optional[str] = None

    # Accounts created without a display name come back with "name": null
    @field_validator("username", "name", mode="before")
    @classmethod
    def blank_if_null(cls, value):
        return "" if value is None else value


class HistoryEvent(ApiModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Union[int, str]
    created_at: Optional[str] = None
    created_by_user_name: Optional[str] = None
    state: Optional[str] = None
    issue_description: Optional[str] = None
    comment: Optional[str] = None
    eta_to_up: Optional[str] = None


class ToolsMeta(ApiModel):
    total: int = 0
    filtered: int = 0
    areas: List[str] = []
    states: List[str] = []

    @field_validator("total", "filtered", mode="before")
    @classmethod
    def zero_if_null(cls, value):
        return 0 if value is None else value

    @field_validator("areas", "states", mode="before")
    @classmethod
    def empty_if_null(cls, value):
        return [] if value is None else value


class UnexpectedPayload(ValueError):
    """A 2xx answer whose body is not the JSON object the API documents."""


def payload_object(data) -> dict:
    if not isinstance(data, dict):
        raise UnexpectedPayload(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_item(model, data, key: str):
    """Validate ``data[key]`` as ``model``. Raises ``ValueError`` on a malformed body."""
    record = payload_object(data).get(key)
    if not isinstance(record, dict):
        raise UnexpectedPayload(f"response has no {key!r} object")
    return model.model_validate(record)


def parse_items(model, data, key: str) -> list:
    records = payload_object(data).get(key) or []
    if not isinstance(records, list):
        raise UnexpectedPayload(f"response field {key!r} is not a list")
    return [model.model_validate(record) for record in records]
