# dashboard_ui/sorting.py
"""Client-side search and sort for the admin lists."""
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

CRITICALITY_PRIORITY = {"critical": 0, "high": 1, "medium": 2, "low": 3}
ROLE_PRIORITY = {"admin": 0, "operator": 1}


def field_value(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def parse_timestamp(value) -> Optional[float]:
    """Epoch seconds for an ISO-8601 string, naive values taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def matches_search(item, search: str, fields: Iterable[str]) -> bool:
    needle = (search or "").strip().lower()
    if not needle:
        return True
    return any(needle in str(field_value(item, f) or "").lower() for f in fields)


def filter_items(items, search: str, fields: Iterable[str]) -> List:
    fields = list(fields)
    return [item for item in items if matches_search(item, search, fields)]


def _plain_key(value):
    # Numbers before strings so mixed columns still have a total order
    if isinstance(value, (int, float)):
        return (0, value, "")
    if value is None:
        return (1, 0, "")
    return (1, 0, str(value).lower())


def sort_items(items, column: str, direction: str = "asc", priorities: dict = None, timestamp_columns=()) -> List:
    """
    Stable sort of ``items`` by ``column``.

    Columns listed in ``priorities`` sort by rank, unknown values after every
    known one. Timestamp columns sort chronologically with missing values last
    in both directions. Everything else compares case-insensitively.
    """
    descending = direction == "desc"
    ranks = (priorities or {}).get(column)
    missing = -math.inf if descending else math.inf

    def key(item):
        value = field_value(item, column)
        if ranks is not None:
            return ranks.get(value, len(ranks))
        if column in timestamp_columns:
            ts = parse_timestamp(value)
            return missing if ts is None else ts
        return _plain_key(value)

    # sorted() keeps equal items in input order even with reverse=True
    return sorted(items, key=key, reverse=descending)


def toggle_sort(current_column: str, current_direction: str, column: str):
    """New (column, direction) after a click on a column header."""
    if current_column == column:
        return column, "desc" if current_direction == "asc" else "asc"
    return column, "asc"


def sort_class(current_column: str, current_direction: str, column: str) -> str:
    if current_column != column:
        return "sortable"
    return "sorted-asc" if current_direction == "asc" else "sorted-desc"
