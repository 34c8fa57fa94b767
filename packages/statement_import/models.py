"""Data model for the statement import pipeline.

Two families of types live here:

- Internal pipeline entities (``RawRow`` → ``ParsedRow`` → ``EnrichedRow`` →
  ``Group``/``Subgroup``) are frozen, slotted dataclasses. Each stage returns
  new instances; nothing is mutated after it is produced.
- Records exchanged with collaborators (history transactions, the category
  directory, user overrides, the final payload) are pydantic models so that
  caller-supplied data is validated at the boundary.

All money values are integer minor units (cents). Positive amounts are
income, negative amounts are expenses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Literal vocabularies
# ---------------------------------------------------------------------------

Severity: TypeAlias = Literal["error", "warning"]
DuplicateStatus: TypeAlias = Literal["unique", "suspected", "confirmed"]
SuggestionSource: TypeAlias = Literal["history", "pattern"]
OverrideLevel: TypeAlias = Literal["row", "subgroup", "group"]
TransactionType: TypeAlias = Literal["income", "expense"]
SpendingNature: TypeAlias = Literal["essential", "comfort", "superfluous"]
ClassificationSource: TypeAlias = Literal["manual", "ruleBased", "ai"]


def direction_of(amount_cents: int) -> TransactionType:
    """Return ``"income"`` for positive amounts and ``"expense"`` otherwise."""

    return "income" if amount_cents > 0 else "expense"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawRow:
    """One data row as read from the export.

    ``raw`` always carries the standard keys ``date``, ``amount`` and
    ``description`` plus every non-empty cell keyed by its lowercased header.
    """

    line_number: int
    raw: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class ParseError:
    """A row-level (``line_number >= 1``) or batch-level (``0``) problem."""

    line_number: int
    message: str
    raw: str | None = None
    severity: Severity = "error"


@dataclass(frozen=True, slots=True)
class ParseResult:
    rows: tuple[RawRow, ...]
    errors: tuple[ParseError, ...]
    # True when the batch could not be read at all (no header, no amount
    # column...). Fatal results never carry rows.
    fatal: bool = False


# ---------------------------------------------------------------------------
# Normalized and enriched rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedRow:
    line_number: int
    date: date
    # Epoch milliseconds of the row's UTC midnight.
    timestamp: int
    amount_cents: int
    description: str
    original_description: str
    raw_row: Mapping[str, str]

    @property
    def direction(self) -> TransactionType:
        return direction_of(self.amount_cents)


@dataclass(frozen=True, slots=True)
class EnrichedRow(ParsedRow):
    """A parsed row after duplicate scoring, merchant keying and enrichment.

    ``is_selected`` defaults to ``False`` for suspected and confirmed
    duplicates. ``duplicate_of`` names the history transaction that produced
    the best duplicate score.
    """

    id: str
    duplicate_status: DuplicateStatus
    merchant_key: str
    is_selected: bool
    duplicate_of: str | None = None
    suggested_category_id: str | None = None
    suggested_category_source: SuggestionSource | None = None

    @classmethod
    def from_parsed(cls, row: ParsedRow, **extra: Any) -> EnrichedRow:
        base = {f.name: getattr(row, f.name) for f in fields(ParsedRow)}
        return cls(**base, **extra)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Subgroup:
    id: str
    label: str
    row_ids: tuple[str, ...]
    total_cents: int
    locked_category_id: str | None = None

    def with_locked_category(self, category_id: str | None) -> Subgroup:
        return replace(self, locked_category_id=category_id)


@dataclass(frozen=True, slots=True)
class Group:
    """Rows sharing one merchant key, split into amount subgroups.

    ``direction`` is only set for the sentinel keys (``UNRESOLVED`` and
    ``ALTRO``), which are clustered separately for income and expenses.
    """

    id: str
    merchant_key: str
    label: str
    row_count: int
    total_cents: int
    date_from: date
    date_to: date
    subgroups: tuple[Subgroup, ...]
    direction: TransactionType | None = None
    locked_category_id: str | None = None

    @property
    def row_ids(self) -> tuple[str, ...]:
        return tuple(rid for sg in self.subgroups for rid in sg.row_ids)

    def with_locked_category(self, category_id: str | None) -> Group:
        return replace(self, locked_category_id=category_id)


@dataclass(frozen=True, slots=True)
class FilterResult:
    included_groups: tuple[Group, ...]
    excluded_group_ids: tuple[str, ...]


# ---------------------------------------------------------------------------
# Summary and review state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImportSummary:
    total_rows: int
    selected_rows: int
    duplicates_skipped: int
    total_income_cents: int
    total_expense_cents: int
    category_breakdown: Mapping[str, int]
    date_from: date | None
    date_to: date | None
    parse_errors: tuple[ParseError, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ImportState:
    """Everything the review stage needs after processing one export."""

    rows: tuple[EnrichedRow, ...]
    groups: tuple[Group, ...]
    summary: ImportSummary
    errors: tuple[ParseError, ...]
    fatal: bool = False


# ---------------------------------------------------------------------------
# Collaborator records (validated at the boundary)
# ---------------------------------------------------------------------------


class ExistingTransaction(BaseModel):
    """A previously persisted transaction used for dedupe and history lookups."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    id: str
    amount_cents: int = Field(ge=0)
    type: TransactionType
    date: date
    description: str
    category_id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        # Storage backends hand out integer primary keys.
        return str(v) if isinstance(v, int) else v

    @property
    def signed_amount_cents(self) -> int:
        return self.amount_cents if self.type == "income" else -self.amount_cents


class Category(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    kind: TransactionType
    spending_nature: SpendingNature


class Override(BaseModel):
    """A user correction layered on top of the computed suggestion."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target_id: str
    level: OverrideLevel
    category_id: str


class TransactionCreateRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str
    amount_cents: int = Field(gt=0)
    type: TransactionType
    category_id: str
    category: str
    date: date
    is_superfluous: bool
    classification_source: ClassificationSource


class ImportPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    import_id: str
    # Epoch milliseconds at build time.
    timestamp: int
    transactions: tuple[TransactionCreateRecord, ...]


__all__ = [
    "ClassificationSource",
    "DuplicateStatus",
    "OverrideLevel",
    "Severity",
    "SpendingNature",
    "SuggestionSource",
    "TransactionType",
    "direction_of",
    "RawRow",
    "ParseError",
    "ParseResult",
    "ParsedRow",
    "EnrichedRow",
    "Subgroup",
    "Group",
    "FilterResult",
    "ImportSummary",
    "ImportState",
    "ExistingTransaction",
    "Category",
    "Override",
    "TransactionCreateRecord",
    "ImportPayload",
]
