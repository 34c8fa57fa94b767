from datetime import date

import pytest
from statement_import.filters import get_included_groups
from statement_import.grouping import compute_subgroups, group_rows_by_merchant
from statement_import.models import EnrichedRow


def _row(row_id: str, key: str, amount_cents: int, day: int = 1) -> EnrichedRow:
    return EnrichedRow(
        line_number=day + 1,
        date=date(2024, 1, day),
        timestamp=0,
        amount_cents=amount_cents,
        description=key,
        original_description=key,
        raw_row={},
        id=row_id,
        duplicate_status="unique",
        merchant_key=key,
        is_selected=True,
    )


def test_recurring_amounts_get_their_own_subgroup(id_factory):
    rows = [
        _row("a", "NETFLIX", -1799, 1),
        _row("b", "NETFLIX", -1799, 2),
        _row("c", "NETFLIX", -2299, 3),
        _row("d", "NETFLIX", -1799, 4),
        _row("e", "NETFLIX", -500, 5),
    ]

    subgroups = compute_subgroups(rows, id_factory=id_factory)

    assert [(sg.label, sg.row_ids, sg.total_cents) for sg in subgroups] == [
        ("-17,99 €", ("a", "b", "d"), -5397),
        ("Varie", ("c", "e"), -2799),
    ]


def test_subgroups_sorted_by_absolute_total(id_factory):
    rows = [
        _row("a", "X", -100, 1),
        _row("b", "X", -100, 2),
        _row("c", "X", -9000, 3),
    ]

    subgroups = compute_subgroups(rows, id_factory=id_factory)

    assert [sg.label for sg in subgroups] == ["Varie", "-1,00 €"]


def test_groups_partition_rows_and_sort_by_count(id_factory):
    rows = [
        _row("1", "ESSELUNGA", -5000, 3),
        _row("2", "NETFLIX", -1799, 1),
        _row("3", "ESSELUNGA", -3000, 10),
        _row("4", "STIPENDIO", 250000, 27),
    ]

    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    assert [g.merchant_key for g in groups] == ["ESSELUNGA", "NETFLIX", "STIPENDIO"]
    esselunga = groups[0]
    assert esselunga.label == "ESSELUNGA"
    assert esselunga.row_count == 2
    assert esselunga.total_cents == -8000
    assert (esselunga.date_from, esselunga.date_to) == (date(2024, 1, 3), date(2024, 1, 10))
    assert esselunga.direction is None
    assert sorted(esselunga.row_ids) == ["1", "3"]

    all_ids = [rid for g in groups for rid in g.row_ids]
    assert sorted(all_ids) == ["1", "2", "3", "4"]


def test_sentinel_keys_are_split_by_direction(id_factory):
    rows = [
        _row("1", "UNRESOLVED", -1000, 1),
        _row("2", "UNRESOLVED", 2000, 2),
        _row("3", "UNRESOLVED", -300, 3),
        _row("4", "ALTRO", -50, 4),
    ]

    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    by_label = {g.label: g for g in groups}
    assert set(by_label) == {"UNRESOLVED (uscite)", "UNRESOLVED (entrate)", "ALTRO (uscite)"}
    assert by_label["UNRESOLVED (uscite)"].row_count == 2
    assert by_label["UNRESOLVED (uscite)"].direction == "expense"
    assert by_label["UNRESOLVED (entrate)"].direction == "income"
    assert groups[0].label == "UNRESOLVED (uscite)"


def test_threshold_filter_uses_absolute_totals(id_factory):
    rows = [
        _row("1", "ESSELUNGA", -5000, 3),
        _row("2", "NETFLIX", -1799, 1),
        _row("3", "STIPENDIO", 250000, 27),
    ]
    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    result = get_included_groups(groups, 2000)

    assert [g.merchant_key for g in result.included_groups] == ["STIPENDIO", "ESSELUNGA"]
    netflix = next(g for g in groups if g.merchant_key == "NETFLIX")
    assert result.excluded_group_ids == (netflix.id,)

    everything = get_included_groups(groups, 0)
    assert len(everything.included_groups) == 3
    assert everything.excluded_group_ids == ()

    # Exactly at the threshold is included.
    assert len(get_included_groups(groups, 5000).included_groups) == 2


def test_negative_threshold_is_rejected():
    with pytest.raises(ValueError):
        get_included_groups([], -1)
