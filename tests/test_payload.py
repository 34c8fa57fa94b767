from dataclasses import replace
from datetime import date

import pytest
from statement_import.grouping import group_rows_by_merchant
from statement_import.models import EnrichedRow, Override
from statement_import.overrides import OverrideIndex, resolve_category
from statement_import.payload import (
    PayloadContractError,
    UnknownCategoryError,
    UnknownRowError,
    ZeroAmountError,
    build_import_payload,
)


def _row(
    row_id: str,
    key: str,
    amount_cents: int,
    *,
    suggested: str | None = None,
    selected: bool = True,
) -> EnrichedRow:
    return EnrichedRow(
        line_number=2,
        date=date(2024, 1, 15),
        timestamp=0,
        amount_cents=amount_cents,
        description=f"{key} DESC",
        original_description=f"{key} DESC",
        raw_row={},
        id=row_id,
        duplicate_status="unique" if selected else "confirmed",
        merchant_key=key,
        is_selected=selected,
        suggested_category_id=suggested,
        suggested_category_source="pattern" if suggested else None,
    )


# ---- Resolution hierarchy ----------------------------------------------------


def test_resolution_precedence(id_factory):
    row = _row("r1", "NETFLIX", -1799, suggested="abbonamenti")
    (group,) = group_rows_by_merchant([row], id_factory=id_factory)
    (subgroup,) = group.subgroups

    def resolve(overrides=(), *, sg=subgroup, g=group):
        return resolve_category(row, subgroup=sg, group=g, overrides=OverrideIndex(overrides))

    assert resolve().category_id == "abbonamenti"
    assert resolve().level == "suggestion"

    group_override = Override(target_id=group.id, level="group", category_id="svago")
    sub_override = Override(target_id=subgroup.id, level="subgroup", category_id="tecnologia")
    row_override = Override(target_id="r1", level="row", category_id="regali")

    assert resolve([group_override]).category_id == "svago"
    assert resolve([group_override, sub_override]).category_id == "tecnologia"

    locked_group = group.with_locked_category("lusso")
    assert resolve([sub_override], g=locked_group).category_id == "lusso"

    locked_sub = subgroup.with_locked_category("micro-digitali")
    assert resolve([sub_override], sg=locked_sub, g=locked_group).category_id == "micro-digitali"

    everything = resolve(
        [group_override, sub_override, row_override], sg=locked_sub, g=locked_group
    )
    assert everything.category_id == "regali"
    assert everything.level == "row_override"
    assert everything.is_user_decision


def test_fallback_depends_on_direction():
    index = OverrideIndex()

    expense = resolve_category(_row("e", "XYZ", -100), subgroup=None, group=None, overrides=index)
    income = resolve_category(_row("i", "XYZ", 100), subgroup=None, group=None, overrides=index)

    assert (expense.category_id, expense.level) == ("altro", "fallback")
    assert (income.category_id, income.level) == ("entrate-occasionali", "fallback")
    assert not expense.is_user_decision


def test_later_override_for_same_target_wins():
    index = OverrideIndex(
        [
            Override(target_id="r1", level="row", category_id="svago"),
            Override(target_id="r1", level="row", category_id="regali"),
        ]
    )

    assert index.get("row", "r1") == "regali"
    assert len(index) == 1


# ---- Payload -----------------------------------------------------------------


def test_payload_records(id_factory, categories):
    rows = [
        _row("r1", "NETFLIX", -1799, suggested="abbonamenti"),
        _row("r2", "STIPENDIO", 250000, suggested="stipendio"),
        _row("r3", "XYZ", -990),
        _row("r4", "NETFLIX", -1799, suggested="abbonamenti", selected=False),
    ]
    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    payload = build_import_payload(
        groups, rows, [], categories, import_id="imp-1", now_ms=1_700_000_000_000
    )

    assert payload.import_id == "imp-1"
    assert payload.timestamp == 1_700_000_000_000
    by_desc = {t.description: t for t in payload.transactions}
    assert set(by_desc) == {"NETFLIX DESC", "STIPENDIO DESC", "XYZ DESC"}

    netflix = by_desc["NETFLIX DESC"]
    assert (netflix.amount_cents, netflix.type) == (1799, "expense")
    assert (netflix.category_id, netflix.category) == ("abbonamenti", "Abbonamenti & Media")
    assert netflix.classification_source == "ruleBased"
    assert netflix.is_superfluous is False

    salary = by_desc["STIPENDIO DESC"]
    assert (salary.amount_cents, salary.type, salary.category_id) == (250000, "income", "stipendio")

    # Fallback category "altro" is superfluous and departs from the missing suggestion.
    other = by_desc["XYZ DESC"]
    assert other.category_id == "altro"
    assert other.is_superfluous is True
    assert other.classification_source == "manual"


def test_user_decisions_are_manual(id_factory, categories):
    rows = [
        _row("r1", "NETFLIX", -1799, suggested="abbonamenti"),
        _row("r2", "STIPENDIO", 250000, suggested="stipendio"),
    ]
    groups = group_rows_by_merchant(rows, id_factory=id_factory)
    netflix_group = next(g for g in groups if g.merchant_key == "NETFLIX")
    # Locking a group to the category it already had is still a user decision.
    groups = [g.with_locked_category("abbonamenti") if g is netflix_group else g for g in groups]
    overrides = [Override(target_id="r2", level="row", category_id="bonus")]

    payload = build_import_payload(groups, rows, overrides, categories)

    sources = {t.category_id: t.classification_source for t in payload.transactions}
    assert sources == {"abbonamenti": "manual", "bonus": "manual"}
    assert payload.import_id
    assert payload.timestamp > 0


def test_unknown_category_raises(id_factory, categories):
    rows = [_row("r1", "NETFLIX", -1799, suggested="does-not-exist")]
    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    with pytest.raises(UnknownCategoryError) as exc:
        build_import_payload(groups, rows, [], categories)

    assert exc.value.category_id == "does-not-exist"
    assert isinstance(exc.value, PayloadContractError)


def test_zero_amount_raises(id_factory, categories):
    good = _row("r1", "NETFLIX", -1799)
    groups = group_rows_by_merchant([good], id_factory=id_factory)
    zero = replace(good, amount_cents=0)

    with pytest.raises(ZeroAmountError):
        build_import_payload(groups, [zero], [], categories)


def test_unknown_row_raises(id_factory, categories):
    rows = [_row("r1", "NETFLIX", -1799)]
    groups = group_rows_by_merchant(rows, id_factory=id_factory)

    with pytest.raises(UnknownRowError):
        build_import_payload(groups, [], [], categories)
