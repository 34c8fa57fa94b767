"""Category resolution hierarchy for the payload builder.

User decisions are layered on top of computed suggestions. For one row the
effective category is the first one found in this order:

1. row override
2. locked subgroup category
3. locked group category
4. subgroup override
5. group override
6. suggested category
7. direction fallback (``altro`` for expenses, ``entrate-occasionali``
   for income)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, TypeAlias

from .models import EnrichedRow, Group, Override, OverrideLevel, Subgroup

FALLBACK_EXPENSE_CATEGORY = "altro"
FALLBACK_INCOME_CATEGORY = "entrate-occasionali"

ResolutionLevel: TypeAlias = Literal[
    "row_override",
    "subgroup_lock",
    "group_lock",
    "subgroup_override",
    "group_override",
    "suggestion",
    "fallback",
]

# Levels that reflect an explicit user decision.
USER_LEVELS: frozenset[ResolutionLevel] = frozenset(
    {"row_override", "subgroup_lock", "group_lock", "subgroup_override", "group_override"}
)


@dataclass(frozen=True, slots=True)
class CategoryResolution:
    category_id: str
    level: ResolutionLevel

    @property
    def is_user_decision(self) -> bool:
        return self.level in USER_LEVELS


class OverrideIndex:
    """Overrides keyed by ``(level, target_id)``; a later entry replaces an earlier one."""

    def __init__(self, overrides: Iterable[Override] = ()) -> None:
        self._by_target: dict[tuple[OverrideLevel, str], str] = {}
        for o in overrides:
            self._by_target[(o.level, o.target_id)] = o.category_id

    def get(self, level: OverrideLevel, target_id: str | None) -> str | None:
        if target_id is None:
            return None
        return self._by_target.get((level, target_id))

    def __len__(self) -> int:
        return len(self._by_target)


def resolve_category(
    row: EnrichedRow,
    *,
    subgroup: Subgroup | None,
    group: Group | None,
    overrides: OverrideIndex,
) -> CategoryResolution:
    """Return the effective category for ``row`` and the level that decided it."""

    row_override = overrides.get("row", row.id)
    subgroup_override = overrides.get("subgroup", subgroup.id if subgroup else None)
    group_override = overrides.get("group", group.id if group else None)
    subgroup_lock = subgroup.locked_category_id if subgroup else None
    group_lock = group.locked_category_id if group else None

    candidates: tuple[tuple[str | None, ResolutionLevel], ...] = (
        (row_override, "row_override"),
        (subgroup_lock, "subgroup_lock"),
        (group_lock, "group_lock"),
        (subgroup_override, "subgroup_override"),
        (group_override, "group_override"),
        (row.suggested_category_id, "suggestion"),
    )
    for category_id, level in candidates:
        if category_id is not None:
            return CategoryResolution(category_id, level)

    fallback = FALLBACK_INCOME_CATEGORY if row.direction == "income" else FALLBACK_EXPENSE_CATEGORY
    return CategoryResolution(fallback, "fallback")


__all__ = [
    "FALLBACK_EXPENSE_CATEGORY",
    "FALLBACK_INCOME_CATEGORY",
    "USER_LEVELS",
    "CategoryResolution",
    "OverrideIndex",
    "ResolutionLevel",
    "resolve_category",
]
