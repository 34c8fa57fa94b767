"""Duplicate scoring against previously imported transactions.

Each incoming row is compared with history transactions of the same
direction dated within a few days of it. A weighted score (date proximity,
amount, merchant key, description) classifies the row as ``unique``,
``suspected`` or ``confirmed``. Duplicates are deselected by default but stay
in the import so the user can still opt them back in.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TypeAlias

from .logging_setup import get_logger
from .merchant import MerchantKeyExtractor, default_extractor
from .models import (
    DuplicateStatus,
    EnrichedRow,
    ExistingTransaction,
    ParsedRow,
    TransactionType,
)

_logger = get_logger("statement_import.duplicates")

# ---- Tunables (private) ------------------------------------------------------

_WINDOW_DAYS = 3
_SCORE_SAME_DAY = 30
_SCORE_ADJACENT_DAY = 15
_SCORE_EXACT_AMOUNT = 40
_SCORE_NEAR_AMOUNT = 20
_SCORE_MERCHANT = 30
_SCORE_DESCRIPTION = 20

CONFIRMED_THRESHOLD = 80
SUSPECTED_THRESHOLD = 50


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class _KeyedHistory:
    # Index in the history sequence; ties go to the lowest.
    position: int
    tx: ExistingTransaction
    merchant_key: str


_Buckets: TypeAlias = dict[tuple[TransactionType, date], list[_KeyedHistory]]


def _bucket_history(keyed: Iterable[_KeyedHistory]) -> _Buckets:
    buckets: _Buckets = defaultdict(list)
    for h in keyed:
        buckets[(h.tx.type, h.tx.date)].append(h)
    return buckets


def _candidates(row: ParsedRow, buckets: _Buckets) -> list[_KeyedHistory]:
    """History entries of the row's direction dated within the window, in history order."""

    found: list[_KeyedHistory] = []
    for offset in range(-_WINDOW_DAYS, _WINDOW_DAYS + 1):
        found.extend(buckets.get((row.direction, row.date + timedelta(days=offset)), ()))
    found.sort(key=lambda h: h.position)
    return found


def _amount_score(row_cents: int, hist_cents: int) -> int | None:
    """Score the amount match; ``None`` disqualifies the candidate."""

    if row_cents == hist_cents:
        return _SCORE_EXACT_AMOUNT
    diff = abs(row_cents - hist_cents)
    # Within 1% of the row amount, never tighter than one minor unit.
    if diff <= 1 or diff * 100 <= abs(row_cents):
        return _SCORE_NEAR_AMOUNT
    return None


def score_pair(row: ParsedRow, row_key: str, hist: ExistingTransaction, hist_key: str) -> int:
    """Return the duplicate score of ``row`` against one history transaction.

    Opposite directions, more than three days apart, or amounts further
    apart than 1% score zero.
    """

    if row.direction != hist.type:
        return 0
    days = abs((row.date - hist.date).days)
    if days > _WINDOW_DAYS:
        return 0
    amount = _amount_score(row.amount_cents, hist.signed_amount_cents)
    if amount is None:
        return 0

    score = amount
    if days == 0:
        score += _SCORE_SAME_DAY
    elif days == 1:
        score += _SCORE_ADJACENT_DAY
    if row_key == hist_key:
        score += _SCORE_MERCHANT
    if row.description == hist.description:
        score += _SCORE_DESCRIPTION
    return score


def classify(score: int) -> DuplicateStatus:
    if score >= CONFIRMED_THRESHOLD:
        return "confirmed"
    if score >= SUSPECTED_THRESHOLD:
        return "suspected"
    return "unique"


def detect_duplicates(
    rows: Iterable[ParsedRow],
    history: Sequence[ExistingTransaction],
    *,
    extractor: MerchantKeyExtractor | None = None,
    id_factory: Callable[[], str] = new_id,
) -> list[EnrichedRow]:
    """Assign ids, merchant keys and duplicate status to ``rows``.

    Parameters
    ----------
    rows:
        Normalized rows of the current import.
    history:
        Previously persisted transactions. Their merchant keys are computed
        once per call.
    extractor:
        Merchant key extractor; the shipped default when omitted.
    id_factory:
        Zero-argument callable producing row identifiers (uuid4 strings by
        default).

    Returns
    -------
    list[EnrichedRow]
        One row per input row, in input order. Suspected and confirmed
        duplicates have ``is_selected=False`` and ``duplicate_of`` set to the
        best-scoring history id (first one wins ties).
    """

    ex = extractor or default_extractor()
    keyed = [_KeyedHistory(i, tx, ex.extract(tx.description)) for i, tx in enumerate(history)]
    buckets = _bucket_history(keyed)

    out: list[EnrichedRow] = []
    counts = {"unique": 0, "suspected": 0, "confirmed": 0}
    for row in rows:
        key = ex.extract(row.description)
        best_score = 0
        best_id: str | None = None
        for h in _candidates(row, buckets):
            s = score_pair(row, key, h.tx, h.merchant_key)
            if s > best_score:
                best_score, best_id = s, h.tx.id

        status = classify(best_score)
        counts[status] += 1
        out.append(
            EnrichedRow.from_parsed(
                row,
                id=id_factory(),
                duplicate_status=status,
                merchant_key=key,
                is_selected=status == "unique",
                duplicate_of=best_id if status != "unique" else None,
            )
        )

    _logger.info(
        "dedupe:done rows=%d history=%d unique=%d suspected=%d confirmed=%d",
        len(out),
        len(keyed),
        counts["unique"],
        counts["suspected"],
        counts["confirmed"],
    )
    return out


__all__ = [
    "CONFIRMED_THRESHOLD",
    "SUSPECTED_THRESHOLD",
    "classify",
    "detect_duplicates",
    "new_id",
    "score_pair",
]
