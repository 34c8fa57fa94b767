"""Threshold filtering of merchant groups.

The same function backs the review display and payload generation, so the
groups a user sees are exactly the groups that get imported.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import FilterResult, Group


def get_included_groups(groups: Iterable[Group], threshold_cents: int) -> FilterResult:
    """Keep groups whose absolute total reaches ``threshold_cents``.

    Included groups are re-sorted by descending absolute total; every other
    group id is reported in ``excluded_group_ids`` (input order). A threshold
    of zero includes everything.
    """

    if threshold_cents < 0:
        raise ValueError(f"threshold must be non-negative: {threshold_cents}")

    included: list[Group] = []
    excluded: list[str] = []
    for g in groups:
        if abs(g.total_cents) >= threshold_cents:
            included.append(g)
        else:
            excluded.append(g.id)
    included.sort(key=lambda g: abs(g.total_cents), reverse=True)
    return FilterResult(included_groups=tuple(included), excluded_group_ids=tuple(excluded))


__all__ = ["get_included_groups"]
