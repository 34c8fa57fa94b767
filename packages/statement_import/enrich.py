"""Category suggestions for enriched rows.

Two deterministic sources, tried in order:

- history: the category last used for the same merchant key in previously
  persisted transactions;
- pattern: an ordered table of keyword sets, each mapped to a category id.

Rows matching neither keep ``suggested_category_id=None``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import TypeAlias

from .logging_setup import get_logger
from .merchant import ALTRO, MerchantKeyExtractor, default_extractor
from .models import EnrichedRow, ExistingTransaction, SuggestionSource

_logger = get_logger("statement_import.enrich")

PatternRule: TypeAlias = tuple[tuple[str, ...], str]

# First matching rule wins. Keywords match whole words of the lowercased key.
PATTERN_RULES: tuple[PatternRule, ...] = (
    (
        (
            "netflix",
            "spotify",
            "disney plus",
            "disneyplus",
            "dazn",
            "youtube",
            "apple music",
            "amazon prime",
            "now tv",
            "sky",
        ),
        "abbonamenti",
    ),
    (
        (
            "esselunga",
            "coop",
            "carrefour",
            "lidl",
            "conad",
            "unes",
            "aldi",
            "eurospin",
            "penny",
            "pam",
        ),
        "cibo",
    ),
    (
        (
            "enel",
            "a2a",
            "iren",
            "hera",
            "sorgenia",
            "acea",
            "edison",
            "fastweb",
            "tim",
            "vodafone",
            "iliad",
        ),
        "utenze",
    ),
    (
        (
            "trenitalia",
            "italo",
            "flixbus",
            "uber",
            "taxi",
            "atm",
            "atac",
            "autostrade",
            "telepass",
        ),
        "trasporti",
    ),
    (("ryanair", "easyjet", "airbnb", "booking", "hotel"), "viaggi"),
    (("amazon", "paypal", "zara", "h&m"), "shopping"),
    (("farmacia", "medico", "ospedale", "ticket"), "salute"),
    (
        (
            "bar",
            "ristorante",
            "trattoria",
            "pizzeria",
            "rosticceria",
            "mcdonald",
            "burger king",
            "old wild west",
            "starbucks",
        ),
        "ristoranti",
    ),
    (("distributore", "q8", "esso", "ip", "eni", "tamoil", "shell"), "auto"),
    (("stipendio", "emolumenti"), "stipendio"),
)


def _compile(rules: Sequence[PatternRule]) -> list[tuple[re.Pattern[str], str]]:
    compiled = []
    for keywords, category_id in rules:
        alternation = "|".join(re.escape(k) for k in keywords)
        compiled.append((re.compile(rf"(?<![\w&])(?:{alternation})(?![\w&])"), category_id))
    return compiled


_COMPILED_RULES = _compile(PATTERN_RULES)


def build_history_map(
    history: Iterable[ExistingTransaction], extractor: MerchantKeyExtractor
) -> dict[str, str]:
    """Map merchant key → category id from categorized history.

    Later entries overwrite earlier ones; the ``ALTRO`` sentinel carries no
    merchant information and is skipped.
    """

    mapping: dict[str, str] = {}
    for tx in history:
        if not tx.category_id:
            continue
        key = extractor.extract(tx.description)
        if key == ALTRO:
            continue
        mapping[key] = tx.category_id
    return mapping


def suggest_category(
    merchant_key: str,
    history_map: Mapping[str, str],
    *,
    rules: Sequence[tuple[re.Pattern[str], str]] | None = None,
) -> tuple[str, SuggestionSource] | None:
    """Return ``(category_id, source)`` for ``merchant_key`` or ``None``."""

    hit = history_map.get(merchant_key)
    if hit is not None:
        return hit, "history"
    key = merchant_key.lower()
    for pattern, category_id in rules if rules is not None else _COMPILED_RULES:
        if pattern.search(key):
            return category_id, "pattern"
    return None


def enrich_rows(
    rows: Iterable[EnrichedRow],
    history: Sequence[ExistingTransaction],
    *,
    extractor: MerchantKeyExtractor | None = None,
    pattern_rules: Sequence[PatternRule] | None = None,
) -> list[EnrichedRow]:
    """Return copies of ``rows`` carrying a suggested category when one applies."""

    ex = extractor or default_extractor()
    history_map = build_history_map(history, ex)
    rules = _compile(pattern_rules) if pattern_rules is not None else _COMPILED_RULES

    out: list[EnrichedRow] = []
    by_source = {"history": 0, "pattern": 0, "none": 0}
    for row in rows:
        suggestion = suggest_category(row.merchant_key, history_map, rules=rules)
        if suggestion is None:
            by_source["none"] += 1
            out.append(row)
            continue
        category_id, source = suggestion
        by_source[source] += 1
        out.append(
            replace(row, suggested_category_id=category_id, suggested_category_source=source)
        )

    _logger.info(
        "enrich:done rows=%d history_keys=%d from_history=%d from_pattern=%d none=%d",
        len(out),
        len(history_map),
        by_source["history"],
        by_source["pattern"],
        by_source["none"],
    )
    return out


__all__ = ["PATTERN_RULES", "build_history_map", "enrich_rows", "suggest_category"]
