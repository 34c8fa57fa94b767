"""Merchant key extraction pipeline and its rule tables."""

from __future__ import annotations

from .pipeline import (
    ALTRO,
    SENTINEL_KEYS,
    UNRESOLVED,
    MerchantKeyExtractor,
    MerchantKeyResult,
    default_extractor,
    extract_merchant_key,
)
from .tables import DEFAULT_TABLES, MerchantTables, TextRule

__all__ = [
    "ALTRO",
    "DEFAULT_TABLES",
    "SENTINEL_KEYS",
    "UNRESOLVED",
    "MerchantKeyExtractor",
    "MerchantKeyResult",
    "MerchantTables",
    "TextRule",
    "default_extractor",
    "extract_merchant_key",
]
