import json
from datetime import date

import pytest

from engine.filtering import (
    ClientSelection,
    DateWindow,
    coerce_price,
    derive_result,
    display_records,
    distinct_clients,
    filter_records,
    format_summary,
    to_display_json,
    total_price,
)
from engine.records import FieldLabels


def fixed_today():
    return date(2026, 1, 1)


@pytest.fixture
def shipments():
    return [
        {"日期": "24.12.2024", "CLIENT": "Acme", "PRIX": "100", "NUMÉRO DE SUIVI": "TR1", "DESTINATION": "Paris", "VOLUME POIDS": 2.5},
        {"日期": "2025-01-05", "CLIENT": "Beta", "PRIX": "50", "NUMÉRO DE SUIVI": "TR2", "DESTINATION": "Lyon", "VOLUME POIDS": 4},
        {"日期": 45628, "CLIENT": "Acme", "PRIX": 12.5},
        {"日期": "01/12/2024", "CLIENT": "Gamma"},
        {"CLIENT": "Beta", "PRIX": "7"},
    ]


def test_end_to_end_window_selects_december_record():
    records = [
        {"日期": "24.12.2024", "CLIENT": "Acme", "PRIX": "100"},
        {"日期": "2025-01-05", "CLIENT": "Beta", "PRIX": "50"},
    ]
    result = derive_result(records, DateWindow(start="2024-12-01", end="2024-12-31"), [])
    assert result.records == [records[0]]
    assert result.count == 1
    assert f"{result.total_price:.2f}" == "100.00"


def test_no_window_and_no_clients_keeps_all_non_null_rows(shipments):
    records = [None] + shipments + [None]
    assert filter_records(records, DateWindow(), ClientSelection()) == shipments


def test_window_bounds_are_inclusive(shipments):
    # 45628 is 2024-12-02, "01/12/2024" is the first of December.
    result = filter_records(shipments, DateWindow(start="2024-12-01", end="2024-12-24"))
    assert [r["CLIENT"] for r in result] == ["Acme", "Acme", "Gamma"]


def test_start_only_and_end_only_windows(shipments):
    after = filter_records(shipments, DateWindow(start="2025-01-01"))
    before = filter_records(shipments, DateWindow(end=date(2024, 12, 2)))
    assert [r["CLIENT"] for r in after] == ["Beta"]
    assert [r["CLIENT"] for r in before] == ["Acme", "Gamma"]


def test_rows_without_date_are_excluded_when_window_is_active(shipments):
    result = filter_records(shipments, DateWindow(start="2000-01-01"))
    assert all("日期" in r for r in result)
    assert len(result) == 4


def test_swapped_bounds_give_empty_result(shipments):
    assert filter_records(shipments, DateWindow(start="2025-01-31", end="2024-12-01")) == []


def test_invalid_bound_is_logged_and_ignored(shipments, caplog):
    with caplog.at_level("WARNING"):
        result = filter_records(shipments, DateWindow(start="not-a-date", end="2024-12-31"))
    assert "not-a-date" in caplog.text
    assert [r["CLIENT"] for r in result] == ["Acme", "Acme", "Gamma"]


def test_invalid_bound_still_requires_a_date_field(shipments):
    result = filter_records(shipments, DateWindow(start="garbage"))
    assert len(result) == 4


def test_client_selection_is_strict_membership(shipments):
    result = filter_records(shipments, clients=["Beta"])
    assert [r["PRIX"] for r in result] == ["50", "7"]
    assert filter_records([{"PRIX": "1"}], clients=["Beta"]) == []


def test_window_and_clients_combine(shipments):
    result = filter_records(shipments, DateWindow(end="2024-12-31"), ["Acme"])
    assert [r["PRIX"] for r in result] == ["100", 12.5]


def test_filter_is_idempotent(shipments):
    window = DateWindow(start="2024-12-01", end="2025-01-31")
    once = filter_records(shipments, window, ["Acme", "Beta"])
    assert filter_records(once, window, ["Acme", "Beta"]) == once


def test_filter_does_not_mutate_input(shipments):
    snapshot = [dict(r) for r in shipments]
    derive_result(shipments, DateWindow(start="2024-12-01"), ["Acme"])
    assert shipments == snapshot


def test_total_price_ignores_non_numeric_values():
    records = [{"PRIX": "10.5"}, {"PRIX": "abc"}, {"PRIX": None}, {}]
    assert total_price(records) == 10.5


@pytest.mark.parametrize(
    "value, expected",
    [("12 €", 12.0), (" 3.5", 3.5), (".5", 0.5), (7, 7.0), (True, 0.0), (float("nan"), 0.0), ("", 0.0), ([1], 0.0), ("１２", 0.0)],
)
def test_coerce_price(value, expected):
    assert coerce_price(value) == expected


def test_distinct_clients_ignore_filters(shipments):
    result = derive_result(shipments, DateWindow(start="2030-01-01"), ["Nobody"])
    assert result.count == 0
    assert distinct_clients(shipments) == ["Acme", "Beta", "Gamma"]
    assert result.total_price == 0.0
    assert result.summary == ""


def test_distinct_clients_sort_mixed_values():
    records = [{"CLIENT": "b"}, {"CLIENT": 1001}, {"CLIENT": ""}, {"CLIENT": "b"}, {"CLIENT": "A"}]
    assert distinct_clients(records) == [1001, "A", "b"]


def test_format_summary_lines(shipments):
    summary = format_summary(shipments[:2] + [{"NUMÉRO DE SUIVI": "TR9", "PRIX": 20.0}])
    assert summary.split("\n") == [
        "TR1 Paris 2.5kg 100",
        "TR2 Lyon 4kg 50",
        "TR9  kg 20",
    ]


def test_display_records_use_hint_column_for_format():
    records = [
        {"日期": "2024-03-15", "DATE": None},
        {"日期": "2024-03-15", "DATE": "2024-03-15"},
        {"日期": 45292},
    ]
    rows = display_records(records)
    assert [r["日期"] for r in rows] == ["15.03.2024", "2024-03-15", "01.01.2024"]
    assert records[0]["日期"] == "2024-03-15"


def test_display_records_fall_back_to_today_for_missing_dates():
    rows = display_records([{"CLIENT": "Acme"}], today=fixed_today)
    assert rows == [{"CLIENT": "Acme", "日期": "01.01.2026"}]


def test_display_views_of_filtered_and_unfiltered_rows_are_independent(shipments):
    result = derive_result(shipments, DateWindow(start="2025-01-01"), today=fixed_today)
    assert len(result.display) == 1
    assert len(display_records(shipments, today=fixed_today)) == len(shipments)


def test_unhashable_client_cells_are_skipped():
    records = [
        {"日期": "24.12.2024", "CLIENT": ["Acme"], "PRIX": "1"},
        {"日期": "24.12.2024", "CLIENT": {"name": "Acme"}, "PRIX": "2"},
        {"日期": "24.12.2024", "CLIENT": "Acme", "PRIX": "3"},
    ]
    assert distinct_clients(records) == ["Acme"]
    assert derive_result(records).count == 3
    result = derive_result(records, clients=["Acme"])
    assert [r["PRIX"] for r in result.records] == ["3"]
    assert ["Acme"] not in ClientSelection.of(["Acme"])


@pytest.mark.parametrize("records", [None, "text", {"CLIENT": "Acme"}, 42])
def test_unusable_collections_behave_as_empty(records):
    result = derive_result(records, DateWindow(start="2024-01-01"), ["Acme"])
    assert result.records == []
    assert distinct_clients(records) == []
    assert result.total_price == 0.0
    assert result.summary == ""
    assert result.display == []


def test_to_display_json_is_indented_utf8():
    text = to_display_json([{"日期": "24.12.2024", "when": date(2024, 12, 24)}])
    assert '  {\n    "日期": "24.12.2024"' in text
    assert json.loads(text) == [{"日期": "24.12.2024", "when": "2024-12-24"}]


def test_to_display_json_writes_null_for_non_finite_floats():
    text = to_display_json([{"PRIX": float("nan"), "VOLUME POIDS": float("inf"), "CLIENT": "Acme"}])
    assert "NaN" not in text
    assert "Infinity" not in text
    assert json.loads(text) == [{"PRIX": None, "VOLUME POIDS": None, "CLIENT": "Acme"}]


def test_custom_labels():
    labels = FieldLabels(date="Date", client="Client", price="Price", weight_unit=" lb")
    records = [{"Date": "2024-06-01", "Client": "Acme", "Price": "5", "VOLUME POIDS": 3}]
    result = derive_result(records, DateWindow(start="2024-06-01", end="2024-06-01"), ["Acme"], labels=labels)
    assert result.count == 1
    assert result.summary == "  3 lb 5"
