"""Tests for ProcessTable ingest, filtering, sorting and derived rates."""

import math

from fakes import make_snapshot

from proctop.input import ViewState
from proctop.models import (
    ORDER_ASCENDING,
    ORDER_DESCENDING,
    SORT_CPU,
    SORT_MEMORY,
    SORT_NAME,
    InterfaceCounters,
    ProcessRecord,
    Snapshot,
)
from proctop.table import ProcessTable, matches_query, sort_records

SCENARIO_ROWS = [
    (1, "init", 0.0, 1000),
    (2, "bash", 5.5, 2000),
    (3, "init2", 0.0, 1500),
]


def _table(rows, **kwargs):
    table = ProcessTable()
    table.ingest(make_snapshot(rows, **kwargs))
    return table


def _pids(rows):
    return [record.pid for record in rows]


# --- ingest ---


def test_ingest_rotates_current_to_previous():
    table = ProcessTable()
    first = make_snapshot(SCENARIO_ROWS, taken_at=1.0)
    second = make_snapshot(SCENARIO_ROWS[:1], taken_at=2.0)

    table.ingest(first)
    assert table.current is first
    assert table.previous is None

    table.ingest(second)
    assert table.current is second
    assert table.previous is first


def test_empty_table_has_no_rows():
    table = ProcessTable()
    assert table.records == ()
    assert table.visible_rows(ViewState()) == []


def test_empty_snapshot_is_valid():
    table = ProcessTable()
    table.ingest(Snapshot.empty(taken_at=5.0))
    assert table.visible_rows(ViewState(search_active=True)) == []


# --- scenarios ---


def test_name_ascending_scenario():
    table = _table(SCENARIO_ROWS)
    view = ViewState(sort_key=SORT_NAME, sort_order=ORDER_ASCENDING)
    assert _pids(table.visible_rows(view)) == [2, 1, 3]


def test_memory_descending_scenario():
    table = _table(SCENARIO_ROWS)
    view = ViewState(sort_key=SORT_MEMORY, sort_order=ORDER_DESCENDING)
    rows = table.visible_rows(view)
    assert [(r.name, r.memory_bytes) for r in rows] == [
        ("bash", 2000),
        ("init2", 1500),
        ("init", 1000),
    ]


def test_cpu_descending_ties_broken_by_pid_ascending():
    table = _table(SCENARIO_ROWS)
    rows = table.visible_rows(ViewState(sort_key=SORT_CPU))
    assert _pids(rows) == [2, 1, 3]


def test_cpu_ascending_ties_broken_by_pid_ascending():
    table = _table(SCENARIO_ROWS)
    view = ViewState(sort_key=SORT_CPU, sort_order=ORDER_ASCENDING)
    assert _pids(table.visible_rows(view)) == [1, 3, 2]


def test_name_sort_is_case_insensitive():
    table = _table([(1, "zsh", 0.0, 1), (2, "Bash", 0.0, 1), (3, "apache", 0.0, 1)])
    view = ViewState(sort_key=SORT_NAME, sort_order=ORDER_ASCENDING)
    assert _pids(table.visible_rows(view)) == [3, 2, 1]


def test_duplicate_names_fall_back_to_pid_in_both_directions():
    rows = [(30, "worker", 1.0, 1), (10, "worker", 1.0, 1), (20, "worker", 1.0, 1)]
    table = _table(rows)
    for order in (ORDER_ASCENDING, ORDER_DESCENDING):
        view = ViewState(sort_key=SORT_NAME, sort_order=order)
        assert _pids(table.visible_rows(view)) == [10, 20, 30]


# --- properties ---


def test_empty_search_returns_every_record_once():
    rows = [(pid, "p{}".format(pid), float(pid % 3), pid * 10) for pid in range(1, 40)]
    table = _table(rows)
    result = table.visible_rows(ViewState(search_active=True, search_query=""))
    assert len(result) == len(rows)
    assert sorted(_pids(result)) == list(range(1, 40))


def test_sort_is_total_order_for_every_key_and_direction():
    rows = [
        (7, "b", 2.0, 300),
        (3, "a", 2.0, 300),
        (5, "B", 1.0, 100),
        (1, "c", 2.0, 200),
        (9, "a", 0.5, 300),
    ]
    table = _table(rows)
    for sort_key in (SORT_CPU, SORT_MEMORY, SORT_NAME):
        for order in (ORDER_ASCENDING, ORDER_DESCENDING):
            result = table.visible_rows(ViewState(sort_key=sort_key, sort_order=order))
            for a, b in zip(result, result[1:]):
                if sort_key == SORT_CPU:
                    va, vb = a.cpu_percent, b.cpu_percent
                elif sort_key == SORT_MEMORY:
                    va, vb = a.memory_bytes, b.memory_bytes
                else:
                    va, vb = a.name.lower(), b.name.lower()
                if va == vb:
                    assert a.pid < b.pid
                elif order == ORDER_ASCENDING:
                    assert va < vb
                else:
                    assert va > vb


def test_visible_rows_is_idempotent():
    table = _table(SCENARIO_ROWS)
    view = ViewState(sort_key=SORT_MEMORY, search_active=True, search_query="ini")
    assert table.visible_rows(view) == table.visible_rows(view)


def test_visible_rows_returns_fresh_list():
    table = _table(SCENARIO_ROWS)
    view = ViewState()
    first = table.visible_rows(view)
    first.clear()
    assert len(table.visible_rows(view)) == 3


def test_missing_values_sort_last_in_both_directions():
    records = (
        ProcessRecord(pid=4, name="nan", cpu_percent=float("nan"), memory_bytes=None),
        ProcessRecord(pid=2, name="none", cpu_percent=None, memory_bytes=None),
        ProcessRecord(pid=3, name="low", cpu_percent=1.0, memory_bytes=10),
        ProcessRecord(pid=1, name="high", cpu_percent=9.0, memory_bytes=90),
    )
    for order in (ORDER_ASCENDING, ORDER_DESCENDING):
        cpu_sorted = sort_records(records, SORT_CPU, order)
        assert _pids(cpu_sorted)[-2:] == [2, 4]
        mem_sorted = sort_records(records, SORT_MEMORY, order)
        assert _pids(mem_sorted)[-2:] == [2, 4]


def test_sort_records_does_not_mutate_input():
    records = [
        ProcessRecord(pid=2, name="b", cpu_percent=1.0),
        ProcessRecord(pid=1, name="a", cpu_percent=2.0),
    ]
    sort_records(records, SORT_CPU, ORDER_DESCENDING)
    assert _pids(records) == [2, 1]


# --- search ---


def test_query_matches_pid_text_substring():
    rows = [(13, "a", 0.0, 1), (130, "b", 0.0, 1), (213, "c", 0.0, 1), (31, "d", 0.0, 1)]
    table = _table(rows)
    view = ViewState(
        sort_key=SORT_NAME,
        sort_order=ORDER_ASCENDING,
        search_active=True,
        search_query="13",
    )
    assert _pids(table.visible_rows(view)) == [13, 130, 213]


def test_query_matches_name_case_insensitively():
    table = _table([(1, "Python3", 0.0, 1), (2, "bash", 0.0, 1), (3, "pip13", 0.0, 1)])
    view = ViewState(search_active=True, search_query="PY")
    assert _pids(table.visible_rows(view)) == [1]


def test_query_matching_name_digits():
    table = _table([(1, "pip13", 0.0, 1), (2, "bash", 0.0, 1)])
    view = ViewState(search_active=True, search_query="13")
    assert _pids(table.visible_rows(view)) == [1]


def test_matches_query_empty_matches_everything():
    assert matches_query(ProcessRecord(pid=1, name=""), "")


def test_search_with_no_matches_is_empty():
    table = _table(SCENARIO_ROWS)
    view = ViewState(search_active=True, search_query="zzz")
    assert table.visible_rows(view) == []


# --- network rates ---


def test_network_rates_need_two_snapshots():
    table = _table(SCENARIO_ROWS, taken_at=1.0, rx=1000, tx=500)
    assert table.network_rates() is None


def test_network_rates_are_delta_over_elapsed():
    table = ProcessTable()
    table.ingest(make_snapshot([], taken_at=10.0, rx=1000, tx=500))
    table.ingest(make_snapshot([], taken_at=12.0, rx=5000, tx=1500))
    rates = table.network_rates()
    assert math.isclose(rates.rx_bytes_per_sec, 2000.0)
    assert math.isclose(rates.tx_bytes_per_sec, 500.0)


def test_network_rates_clamp_counter_reset():
    table = ProcessTable()
    table.ingest(make_snapshot([], taken_at=1.0, rx=9000, tx=9000))
    table.ingest(make_snapshot([], taken_at=2.0, rx=100, tx=9100))
    rates = table.network_rates()
    assert rates.rx_bytes_per_sec == 0.0
    assert rates.tx_bytes_per_sec == 100.0


def test_network_rates_none_when_clock_did_not_advance():
    table = ProcessTable()
    table.ingest(make_snapshot([], taken_at=3.0, rx=1, tx=1))
    table.ingest(make_snapshot([], taken_at=3.0, rx=2, tx=2))
    assert table.network_rates() is None


def test_interface_rates_skip_new_interfaces():
    table = ProcessTable()
    table.ingest(
        make_snapshot([], taken_at=0.0, interfaces=(InterfaceCounters("eth0", 0, 0),))
    )
    table.ingest(
        make_snapshot(
            [],
            taken_at=4.0,
            interfaces=(
                InterfaceCounters("eth0", 4096, 400),
                InterfaceCounters("wlan0", 10, 10),
            ),
        )
    )
    rates = table.interface_rates()
    assert set(rates) == {"eth0"}
    assert rates["eth0"].rx_bytes_per_sec == 1024.0
    assert rates["eth0"].tx_bytes_per_sec == 100.0
