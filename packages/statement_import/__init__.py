"""Public interface for the ``statement_import`` package.

This module exposes the pipeline entry points and the public models/types as
the stable import surface. There is no runtime logic here, only symbol
re-exports. Storage helpers live in ``statement_import.persistence`` and
``statement_import.db`` and are not imported here.
"""

from .categories import CategoryDirectory, load_default_categories
from .duplicates import detect_duplicates
from .enrich import enrich_rows
from .filters import get_included_groups
from .grouping import compute_subgroups, group_rows_by_merchant
from .merchant import ALTRO, UNRESOLVED, MerchantKeyExtractor, extract_merchant_key
from .models import (
    Category,
    EnrichedRow,
    ExistingTransaction,
    FilterResult,
    Group,
    ImportPayload,
    ImportState,
    ImportSummary,
    Override,
    ParsedRow,
    ParseError,
    ParseResult,
    RawRow,
    Subgroup,
    TransactionCreateRecord,
)
from .normalize import normalize_row, normalize_rows
from .parse import parse_csv
from .payload import (
    PayloadContractError,
    UnknownCategoryError,
    UnknownRowError,
    ZeroAmountError,
    build_import_payload,
)
from .pipeline import compute_import_summary, generate_payload, process_statement

__all__ = [
    # Pipeline
    "process_statement",
    "generate_payload",
    "compute_import_summary",
    # Stages
    "parse_csv",
    "normalize_row",
    "normalize_rows",
    "detect_duplicates",
    "extract_merchant_key",
    "MerchantKeyExtractor",
    "enrich_rows",
    "group_rows_by_merchant",
    "compute_subgroups",
    "get_included_groups",
    "build_import_payload",
    # Categories
    "CategoryDirectory",
    "load_default_categories",
    # Models / types
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
    # Sentinels / errors
    "ALTRO",
    "UNRESOLVED",
    "PayloadContractError",
    "UnknownCategoryError",
    "UnknownRowError",
    "ZeroAmountError",
]
