"""Import payload assembly.

Walks the included groups, resolves each selected row's category through
:mod:`statement_import.overrides` and emits one
:class:`~.models.TransactionCreateRecord` per row. Broken contracts (an
unknown category id, a zero amount, a group pointing at a row that does not
exist) raise :class:`PayloadContractError`; they indicate a bug upstream,
not bad user input.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Mapping

from .logging_setup import get_logger
from .models import (
    Category,
    ClassificationSource,
    EnrichedRow,
    Group,
    ImportPayload,
    Override,
    TransactionCreateRecord,
)
from .overrides import CategoryResolution, OverrideIndex, resolve_category

_logger = get_logger("statement_import.payload")

_SUPERFLUOUS = "superfluous"


class PayloadContractError(RuntimeError):
    """Raised when payload inputs violate an internal invariant."""


class UnknownCategoryError(PayloadContractError):
    def __init__(self, category_id: str, row_id: str) -> None:
        super().__init__(f"unknown category {category_id!r} for row {row_id}")
        self.category_id = category_id
        self.row_id = row_id


class ZeroAmountError(PayloadContractError):
    def __init__(self, row_id: str) -> None:
        super().__init__(f"row {row_id} has a zero amount")
        self.row_id = row_id


class UnknownRowError(PayloadContractError):
    def __init__(self, row_id: str, group_id: str) -> None:
        super().__init__(f"group {group_id} references unknown row {row_id}")
        self.row_id = row_id
        self.group_id = group_id


def classification_source(
    row: EnrichedRow, resolution: CategoryResolution
) -> ClassificationSource:
    """``manual`` for user decisions or a category that departs from the suggestion.

    A row without a suggestion that lands on the direction fallback departs
    from it too, so it is ``manual`` as well.
    """

    if resolution.is_user_decision or resolution.category_id != row.suggested_category_id:
        return "manual"
    return "ruleBased"


def build_import_payload(
    groups: Iterable[Group],
    rows: Iterable[EnrichedRow],
    overrides: Iterable[Override],
    categories: Mapping[str, Category],
    *,
    import_id: str | None = None,
    now_ms: int | None = None,
) -> ImportPayload:
    """Build the payload for every selected row of ``groups``.

    Parameters
    ----------
    groups:
        The groups to import, normally the ``included_groups`` of
        :func:`statement_import.filters.get_included_groups`.
    rows:
        All enriched rows of the import (looked up by id).
    overrides:
        User corrections; for the same target a later entry wins.
    categories:
        Category directory keyed by id.
    import_id, now_ms:
        Fixed identifier / epoch-millisecond timestamp, generated when
        omitted.

    Raises
    ------
    UnknownCategoryError
        When a resolved category id is missing from ``categories``.
    ZeroAmountError
        When a selected row has ``amount_cents == 0``.
    UnknownRowError
        When a subgroup lists a row id absent from ``rows``.
    """

    rows_by_id = {r.id: r for r in rows}
    index = OverrideIndex(overrides)

    records: list[TransactionCreateRecord] = []
    manual = 0
    for group in groups:
        for subgroup in group.subgroups:
            for row_id in subgroup.row_ids:
                row = rows_by_id.get(row_id)
                if row is None:
                    raise UnknownRowError(row_id, group.id)
                if not row.is_selected:
                    continue
                if row.amount_cents == 0:
                    raise ZeroAmountError(row.id)

                resolution = resolve_category(
                    row, subgroup=subgroup, group=group, overrides=index
                )
                category = categories.get(resolution.category_id)
                if category is None:
                    raise UnknownCategoryError(resolution.category_id, row.id)

                source = classification_source(row, resolution)
                manual += source == "manual"
                records.append(
                    TransactionCreateRecord(
                        description=row.description,
                        amount_cents=abs(row.amount_cents),
                        type=row.direction,
                        category_id=category.id,
                        category=category.label,
                        date=row.date,
                        is_superfluous=category.spending_nature == _SUPERFLUOUS,
                        classification_source=source,
                    )
                )

    payload = ImportPayload(
        import_id=import_id or str(uuid.uuid4()),
        timestamp=now_ms if now_ms is not None else int(time.time() * 1000),
        transactions=tuple(records),
    )
    _logger.info(
        "payload:built transactions=%d manual=%d overrides=%d",
        len(records),
        manual,
        len(index),
    )
    return payload


__all__ = [
    "PayloadContractError",
    "UnknownCategoryError",
    "UnknownRowError",
    "ZeroAmountError",
    "build_import_payload",
    "classification_source",
]
