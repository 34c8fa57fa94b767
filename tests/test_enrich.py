from datetime import date

from statement_import.enrich import build_history_map, enrich_rows, suggest_category
from statement_import.merchant import default_extractor
from statement_import.models import EnrichedRow, ExistingTransaction


def _enriched(row_id: str, key: str, amount_cents: int = -1000) -> EnrichedRow:
    return EnrichedRow(
        line_number=2,
        date=date(2024, 1, 15),
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


def _hist(tx_id: str, description: str, category_id: str | None) -> ExistingTransaction:
    return ExistingTransaction(
        id=tx_id,
        amount_cents=1000,
        type="expense",
        date=date(2023, 12, 1),
        description=description,
        category_id=category_id,
    )


def test_history_map_last_entry_wins_and_skips_altro():
    history = [
        _hist("1", "NETFLIX.COM", "svago"),
        _hist("2", "NETFLIX INTERNATIONAL", "abbonamenti"),
        _hist("3", "1234567890", "altro"),
        _hist("4", "ESSELUNGA MILANO IT", None),
    ]

    mapping = build_history_map(history, default_extractor())

    assert mapping == {"NETFLIX": "abbonamenti"}


def test_history_beats_patterns():
    assert suggest_category("NETFLIX", {"NETFLIX": "svago"}) == ("svago", "history")
    assert suggest_category("NETFLIX", {}) == ("abbonamenti", "pattern")


def test_patterns_match_whole_words_only():
    assert suggest_category("BAR DA GINO", {}) == ("ristoranti", "pattern")
    # "BAR" inside a longer word must not trigger the restaurant rule.
    assert suggest_category("BARBIERE ROSSI", {}) is None
    assert suggest_category("H&M", {}) == ("shopping", "pattern")
    assert suggest_category("STIPENDIO", {}) == ("stipendio", "pattern")


def test_first_matching_rule_wins():
    # Both "amazon prime" (abbonamenti) and "amazon" (shopping) match.
    assert suggest_category("AMAZON PRIME", {}) == ("abbonamenti", "pattern")


def test_enrich_rows_sets_suggestions_without_touching_other_fields():
    rows = [_enriched("r1", "NETFLIX"), _enriched("r2", "TRATTORIA VERDE"), _enriched("r3", "XYZ")]
    history = [_hist("1", "TRATTORIA VERDE MILANO", "svago")]

    out = enrich_rows(rows, history)

    assert [(r.suggested_category_id, r.suggested_category_source) for r in out] == [
        ("abbonamenti", "pattern"),
        ("svago", "history"),
        (None, None),
    ]
    assert [r.id for r in out] == ["r1", "r2", "r3"]
    assert out[2] is rows[2]


def test_custom_pattern_rules():
    rows = [_enriched("r1", "PALESTRA FIT")]

    (row,) = enrich_rows(rows, [], pattern_rules=((("palestra",), "hobby-sport"),))

    assert row.suggested_category_id == "hobby-sport"
