from dashboard_ui.models import Tool, User
from dashboard_ui.sorting import (
    CRITICALITY_PRIORITY,
    ROLE_PRIORITY,
    filter_items,
    matches_search,
    parse_timestamp,
    sort_class,
    sort_items,
    toggle_sort,
)


def tool(id, name, criticality="medium", area="Fab"):
    return Tool(id=id, name=name, area=area, criticality=criticality)


def names(items):
    return [i.name for i in items]


def test_criticality_priority_order_with_unknown_last():
    tools = [
        tool(1, "a", "low"),
        tool(2, "b", "bogus"),
        tool(3, "c", "critical"),
        tool(4, "d", "medium"),
        tool(5, "e", "high"),
    ]

    ordered = sort_items(tools, "criticality", "asc", priorities={"criticality": CRITICALITY_PRIORITY})

    assert [t.criticality for t in ordered] == ["critical", "high", "medium", "low", "bogus"]


def test_descending_reverses_priority_order():
    tools = [tool(1, "a", "high"), tool(2, "b", None), tool(3, "c", "critical")]

    ordered = sort_items(tools, "criticality", "desc", priorities={"criticality": CRITICALITY_PRIORITY})

    assert [t.criticality for t in ordered] == [None, "high", "critical"]


def test_sort_is_stable_in_both_directions():
    tools = [tool(1, "first", "high"), tool(2, "second", "high"), tool(3, "third", "low")]
    priorities = {"criticality": CRITICALITY_PRIORITY}

    assert names(sort_items(tools, "criticality", "asc", priorities=priorities)) == ["first", "second", "third"]
    assert names(sort_items(tools, "criticality", "desc", priorities=priorities)) == ["third", "first", "second"]


def test_strings_compare_case_insensitively():
    tools = [tool(1, "beta"), tool(2, "Alpha"), tool(3, "gamma")]

    assert names(sort_items(tools, "name")) == ["Alpha", "beta", "gamma"]
    assert names(sort_items(tools, "name", "desc")) == ["gamma", "beta", "Alpha"]


def test_role_priority():
    users = [
        User(id=1, username="z", name="Z", role="operator"),
        User(id=2, username="y", name="Y", role="auditor"),
        User(id=3, username="x", name="X", role="admin"),
    ]

    ordered = sort_items(users, "role", priorities={"role": ROLE_PRIORITY})

    assert [u.role for u in ordered] == ["admin", "operator", "auditor"]


def test_missing_timestamps_sort_last_in_both_directions():
    users = [
        User(id=1, username="never", name="Never"),
        User(id=2, username="old", name="Old", last_login_at="2024-01-01T08:00:00Z"),
        User(id=3, username="new", name="New", last_login_at="2024-03-01T08:00:00+00:00"),
    ]

    asc = sort_items(users, "last_login_at", "asc", timestamp_columns=("last_login_at",))
    desc = sort_items(users, "last_login_at", "desc", timestamp_columns=("last_login_at",))

    assert [u.username for u in asc] == ["old", "new", "never"]
    assert [u.username for u in desc] == ["new", "old", "never"]


def test_mixed_types_still_sort():
    rows = [{"v": "b"}, {"v": 2}, {"v": None}, {"v": 1}]

    assert [r["v"] for r in sort_items(rows, "v")] == [1, 2, None, "b"]


def test_parse_timestamp():
    assert parse_timestamp("2024-01-01T00:00:00Z") == parse_timestamp("2024-01-01T00:00:00")
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_search_is_case_insensitive_substring():
    item = User(id=1, username="jdoe", name="Jane Doe")

    assert matches_search(item, "DOE", ["name"])
    assert matches_search(item, "  jd ", ["username", "name"])
    assert not matches_search(item, "smith", ["username", "name"])
    assert matches_search(item, "   ", ["name"])


def test_filter_items_keeps_order():
    tools = [tool(1, "Etcher 2"), tool(2, "Stepper"), tool(3, "etcher 1")]

    assert names(filter_items(tools, "ETCH", ["name"])) == ["Etcher 2", "etcher 1"]


def test_toggle_sort_and_class():
    assert toggle_sort("name", "asc", "name") == ("name", "desc")
    assert toggle_sort("name", "desc", "name") == ("name", "asc")
    assert toggle_sort("name", "desc", "area") == ("area", "asc")
    assert sort_class("name", "asc", "area") == "sortable"
    assert sort_class("name", "asc", "name") == "sorted-asc"
    assert sort_class("name", "desc", "name") == "sorted-desc"
