"""Merchant grouping and amount subgrouping for the review stage.

Rows are clustered by merchant key. The sentinel keys collect unrelated
rows, so they are additionally split by direction: an unknown salary credit
never lands in the same group as an unknown card payment. Inside a group,
every amount that recurs becomes its own subgroup (a subscription, a fixed
fee) and the one-off amounts share a single ``Varie`` subgroup.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias

from .duplicates import new_id
from .logging_setup import get_logger
from .merchant import SENTINEL_KEYS
from .models import EnrichedRow, Group, Subgroup, TransactionType
from .money import format_cents

_logger = get_logger("statement_import.grouping")

MISC_SUBGROUP_LABEL = "Varie"
_DIRECTION_LABELS: dict[TransactionType, str] = {"income": "entrate", "expense": "uscite"}

GroupKey: TypeAlias = tuple[str, TransactionType | None]


def _group_key(row: EnrichedRow) -> GroupKey:
    if row.merchant_key in SENTINEL_KEYS:
        return row.merchant_key, row.direction
    return row.merchant_key, None


def compute_subgroups(
    rows: Sequence[EnrichedRow], *, id_factory: Callable[[], str] = new_id
) -> tuple[Subgroup, ...]:
    """Split one group's rows into amount subgroups.

    Returns subgroups sorted by descending absolute total. Ties keep creation
    order: recurring amounts by first occurrence, then ``Varie``.
    """

    counts = Counter(r.amount_cents for r in rows)
    recurring: dict[int, list[EnrichedRow]] = {}
    singles: list[EnrichedRow] = []
    for r in rows:
        if counts[r.amount_cents] >= 2:
            recurring.setdefault(r.amount_cents, []).append(r)
        else:
            singles.append(r)

    subgroups = [
        Subgroup(
            id=id_factory(),
            label=format_cents(amount),
            row_ids=tuple(r.id for r in members),
            total_cents=sum(r.amount_cents for r in members),
        )
        for amount, members in recurring.items()
    ]
    if singles:
        subgroups.append(
            Subgroup(
                id=id_factory(),
                label=MISC_SUBGROUP_LABEL,
                row_ids=tuple(r.id for r in singles),
                total_cents=sum(r.amount_cents for r in singles),
            )
        )
    subgroups.sort(key=lambda sg: abs(sg.total_cents), reverse=True)
    return tuple(subgroups)


def _label(key: GroupKey) -> str:
    merchant_key, direction = key
    if direction is None:
        return merchant_key
    return f"{merchant_key} ({_DIRECTION_LABELS[direction]})"


def group_rows_by_merchant(
    rows: Iterable[EnrichedRow], *, id_factory: Callable[[], str] = new_id
) -> list[Group]:
    """Cluster ``rows`` into groups sorted by descending row count.

    Every row lands in exactly one group and one subgroup; ties in row count
    keep first-occurrence order.
    """

    buckets: dict[GroupKey, list[EnrichedRow]] = {}
    for r in rows:
        buckets.setdefault(_group_key(r), []).append(r)

    groups: list[Group] = []
    for key, members in buckets.items():
        dates = [r.date for r in members]
        groups.append(
            Group(
                id=id_factory(),
                merchant_key=key[0],
                label=_label(key),
                row_count=len(members),
                total_cents=sum(r.amount_cents for r in members),
                date_from=min(dates),
                date_to=max(dates),
                subgroups=compute_subgroups(members, id_factory=id_factory),
                direction=key[1],
            )
        )
    groups.sort(key=lambda g: g.row_count, reverse=True)

    _logger.info(
        "grouping:done groups=%d rows=%d", len(groups), sum(g.row_count for g in groups)
    )
    return groups


__all__ = ["MISC_SUBGROUP_LABEL", "compute_subgroups", "group_rows_by_merchant"]
