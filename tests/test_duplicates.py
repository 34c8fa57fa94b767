from datetime import date

from statement_import import duplicates
from statement_import.duplicates import classify, detect_duplicates, score_pair
from statement_import.models import ExistingTransaction, ParsedRow


def _row(amount_cents: int, d: date, description: str, line: int = 2) -> ParsedRow:
    return ParsedRow(
        line_number=line,
        date=d,
        timestamp=0,
        amount_cents=amount_cents,
        description=description,
        original_description=description,
        raw_row={},
    )


def _hist(tx_id, amount_cents: int, tx_type: str, d: date, description: str, category=None):
    return ExistingTransaction(
        id=tx_id,
        amount_cents=amount_cents,
        type=tx_type,
        date=d,
        description=description,
        category_id=category,
    )


def test_score_pair_components():
    row = _row(-1799, date(2024, 1, 15), "NETFLIX.COM")

    same = _hist("h1", 1799, "expense", date(2024, 1, 15), "NETFLIX.COM")
    # 40 amount + 30 same day + 30 merchant + 20 description
    assert score_pair(row, "NETFLIX", same, "NETFLIX") == 120

    next_day = _hist("h2", 1799, "expense", date(2024, 1, 16), "NETFLIX INTERNATIONAL")
    # 40 amount + 15 adjacent day + 30 merchant
    assert score_pair(row, "NETFLIX", next_day, "NETFLIX") == 85

    near_amount = _hist("h3", 1800, "expense", date(2024, 1, 17), "OTHER")
    # 20 near amount only (two days apart, different merchant)
    assert score_pair(row, "NETFLIX", near_amount, "OTHER") == 20


def test_score_pair_disqualifiers():
    row = _row(-1799, date(2024, 1, 15), "NETFLIX.COM")

    opposite = _hist(1, 1799, "income", date(2024, 1, 15), "NETFLIX.COM")
    too_far = _hist(2, 1799, "expense", date(2024, 1, 19), "NETFLIX.COM")
    other_amount = _hist(3, 2500, "expense", date(2024, 1, 15), "NETFLIX.COM")

    for hist in (opposite, too_far, other_amount):
        assert score_pair(row, "NETFLIX", hist, "NETFLIX") == 0


def test_classify_thresholds():
    assert classify(80) == "confirmed"
    assert classify(79) == "suspected"
    assert classify(50) == "suspected"
    assert classify(49) == "unique"


def test_detect_duplicates_marks_and_deselects(id_factory):
    rows = [
        _row(-1799, date(2024, 1, 15), "NETFLIX.COM", line=2),
        _row(-5000, date(2024, 1, 16), "ESSELUNGA VIALE CERTOSA", line=3),
        _row(250000, date(2024, 1, 27), "STIPENDIO", line=4),
    ]
    history = [
        _hist(10, 1799, "expense", date(2024, 1, 15), "NETFLIX.COM"),
        # Same merchant and amount, two days off: 40 + 30 = 70 -> suspected
        _hist(11, 5000, "expense", date(2024, 1, 18), "ESSELUNGA MILANO IT"),
    ]

    out = detect_duplicates(rows, history, id_factory=id_factory)

    assert [r.id for r in out] == ["id-1", "id-2", "id-3"]
    assert [r.merchant_key for r in out] == ["NETFLIX", "ESSELUNGA", "STIPENDIO"]
    assert [r.duplicate_status for r in out] == ["confirmed", "suspected", "unique"]
    assert [r.is_selected for r in out] == [False, False, True]
    # Integer ids from storage are coerced to strings.
    assert [r.duplicate_of for r in out] == ["10", "11", None]


def test_best_candidate_keeps_first_on_ties(id_factory):
    rows = [_row(-1000, date(2024, 3, 1), "BAR CENTRALE")]
    history = [
        _hist("a", 1000, "expense", date(2024, 3, 1), "BAR CENTRALE"),
        _hist("b", 1000, "expense", date(2024, 3, 1), "BAR CENTRALE"),
    ]

    (row,) = detect_duplicates(rows, history, id_factory=id_factory)

    assert row.duplicate_of == "a"


def test_no_history_means_everything_is_unique(id_factory):
    rows = [_row(-1000, date(2024, 3, 1), "BAR CENTRALE")]

    (row,) = detect_duplicates(rows, [], id_factory=id_factory)

    assert row.duplicate_status == "unique"
    assert row.is_selected is True
    assert row.duplicate_of is None


def test_ties_follow_history_order_across_dates(id_factory):
    rows = [_row(-1000, date(2024, 3, 10), "BAR CENTRALE")]
    history = [
        # Both score 40 + 30 + 20: neither date earns proximity points.
        _hist("later", 1000, "expense", date(2024, 3, 13), "BAR CENTRALE"),
        _hist("earlier", 1000, "expense", date(2024, 3, 8), "BAR CENTRALE"),
    ]

    (row,) = detect_duplicates(rows, history, id_factory=id_factory)

    assert row.duplicate_status == "confirmed"
    assert row.duplicate_of == "later"


def test_only_nearby_same_direction_history_is_scored(monkeypatch, id_factory):
    scored = []
    original = duplicates.score_pair

    def recording(row, row_key, hist, hist_key):
        scored.append(hist.id)
        return original(row, row_key, hist, hist_key)

    monkeypatch.setattr(duplicates, "score_pair", recording)
    rows = [_row(-1000, date(2024, 3, 10), "BAR CENTRALE")]
    history = [
        _hist("near", 1000, "expense", date(2024, 3, 7), "BAR CENTRALE"),
        _hist("income", 1000, "income", date(2024, 3, 10), "BAR CENTRALE"),
        _hist("far", 1000, "expense", date(2024, 3, 20), "BAR CENTRALE"),
        _hist("edge", 1000, "expense", date(2024, 3, 13), "BAR CENTRALE"),
        _hist("outside", 1000, "expense", date(2024, 3, 14), "BAR CENTRALE"),
    ]

    (row,) = detect_duplicates(rows, history, id_factory=id_factory)

    assert scored == ["near", "edge"]
    assert row.duplicate_of == "near"
