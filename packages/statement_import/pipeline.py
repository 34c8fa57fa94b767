"""End-to-end orchestration of a statement import.

``process_statement`` turns raw export text into the reviewable
:class:`~.models.ImportState`; ``generate_payload`` turns the reviewed
groups plus user overrides into the :class:`~.models.ImportPayload` handed to
the storage collaborator. Neither function performs I/O.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence

from .duplicates import detect_duplicates, new_id
from .enrich import enrich_rows
from .filters import get_included_groups
from .grouping import group_rows_by_merchant
from .logging_setup import get_logger
from .merchant import MerchantKeyExtractor
from .models import (
    Category,
    EnrichedRow,
    ExistingTransaction,
    Group,
    ImportPayload,
    ImportState,
    ImportSummary,
    Override,
    ParseError,
)
from .normalize import normalize_rows
from .parse import parse_csv
from .payload import build_import_payload

_logger = get_logger("statement_import.pipeline")

UNASSIGNED = "UNASSIGNED"


def empty_summary(errors: Iterable[ParseError] = ()) -> ImportSummary:
    return ImportSummary(
        total_rows=0,
        selected_rows=0,
        duplicates_skipped=0,
        total_income_cents=0,
        total_expense_cents=0,
        category_breakdown={},
        date_from=None,
        date_to=None,
        parse_errors=tuple(errors),
    )


def compute_import_summary(
    rows: Sequence[EnrichedRow], errors: Iterable[ParseError] = ()
) -> ImportSummary:
    """Aggregate counts for the review screen.

    Totals and the category breakdown cover selected rows only and use the
    suggested category (before any user override); rows without a suggestion
    are counted under ``UNASSIGNED``. The date range spans every row.
    """

    if not rows:
        return empty_summary(errors)

    selected = [r for r in rows if r.is_selected]
    breakdown = Counter(r.suggested_category_id or UNASSIGNED for r in selected)
    dates = [r.date for r in rows]
    return ImportSummary(
        total_rows=len(rows),
        selected_rows=len(selected),
        duplicates_skipped=sum(
            1 for r in rows if not r.is_selected and r.duplicate_status != "unique"
        ),
        total_income_cents=sum(r.amount_cents for r in selected if r.amount_cents > 0),
        total_expense_cents=sum(-r.amount_cents for r in selected if r.amount_cents < 0),
        category_breakdown=dict(breakdown),
        date_from=min(dates),
        date_to=max(dates),
        parse_errors=tuple(errors),
    )


def process_statement(
    content: str,
    history: Sequence[ExistingTransaction] = (),
    *,
    extractor: MerchantKeyExtractor | None = None,
    id_factory: Callable[[], str] = new_id,
) -> ImportState:
    """Parse, normalize, dedupe, enrich and group one export.

    A fatal parse (empty content, no header, missing date or amount column)
    yields an :class:`~.models.ImportState` with ``fatal=True``, no rows and an
    empty summary; row-level problems are reported in ``errors`` while the
    remaining rows continue through the pipeline.
    """

    parsed = parse_csv(content)
    if parsed.fatal:
        _logger.info("pipeline:fatal errors=%d", len(parsed.errors))
        return ImportState(
            rows=(),
            groups=(),
            summary=empty_summary(parsed.errors),
            errors=parsed.errors,
            fatal=True,
        )

    normalized, normalize_errors = normalize_rows(parsed.rows)
    errors = (*parsed.errors, *normalize_errors)

    rows = detect_duplicates(normalized, history, extractor=extractor, id_factory=id_factory)
    rows = enrich_rows(rows, history, extractor=extractor)
    groups = group_rows_by_merchant(rows, id_factory=id_factory)
    summary = compute_import_summary(rows, errors)

    _logger.info(
        "pipeline:done rows=%d selected=%d groups=%d errors=%d",
        summary.total_rows,
        summary.selected_rows,
        len(groups),
        len(errors),
    )
    return ImportState(rows=tuple(rows), groups=tuple(groups), summary=summary, errors=errors)


def generate_payload(
    groups: Iterable[Group],
    rows: Iterable[EnrichedRow],
    overrides: Iterable[Override],
    categories: Mapping[str, Category],
    *,
    threshold_cents: int = 0,
    import_id: str | None = None,
    now_ms: int | None = None,
) -> ImportPayload:
    """Build the import payload from the groups that pass ``threshold_cents``.

    Uses the same filter as the review display, so excluded groups never
    reach the payload.
    """

    result = get_included_groups(groups, threshold_cents)
    if result.excluded_group_ids:
        _logger.info(
            "pipeline:threshold threshold_cents=%d excluded_groups=%d",
            threshold_cents,
            len(result.excluded_group_ids),
        )
    return build_import_payload(
        result.included_groups,
        rows,
        overrides,
        categories,
        import_id=import_id,
        now_ms=now_ms,
    )


__all__ = [
    "UNASSIGNED",
    "compute_import_summary",
    "empty_summary",
    "generate_payload",
    "process_statement",
]
