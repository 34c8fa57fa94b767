"""Text transformations used by the merchant key pipeline.

Each function takes an uppercase description fragment and returns a new one;
none of them know about the overall pipeline order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .tables import MerchantTables, TextRule

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_CODES_RE = re.compile(r"(?:\s+[A-Z]{2})+$")
# Token boundaries: whitespace plus the separator characters kept by noise cleaning.
_TOKEN_SPLIT_RE = re.compile(r"[\s*/:@]+")


def collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(description: str | None) -> str:
    """Uppercase, trim and collapse internal whitespace."""

    return collapse((description or "").upper())


def apply_rules(text: str, rules: Iterable[TextRule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return collapse(text)


def _prefix_pattern(prefixes: Iterable[str]) -> re.Pattern[str]:
    ordered = sorted(prefixes, key=len, reverse=True)
    alternation = "|".join(re.escape(p) for p in ordered)
    return re.compile(rf"^(?:{alternation})(?=\s|\*|$)")


def strip_leading_prefixes(text: str, tables: MerchantTables) -> str:
    """Drop bank transaction-type prefixes and bank reference patterns.

    Prefixes are removed repeatedly ("OP. SEPA ..." loses both); the loop is
    bounded by the number of tokens.
    """

    pattern = _prefix_pattern(tables.leading_prefixes)
    for _ in range(len(text.split()) + 1):
        before = text
        text = apply_rules(text, tables.bank_patterns)
        text = collapse(pattern.sub("", text))
        if text == before:
            break
    return text


def strip_noise(text: str, tables: MerchantTables) -> str:
    """Remove dates, card fragments, amounts, digit runs and punctuation.

    After the ordered noise rules, a trailing run of two-letter tokens
    (province or country codes such as ``RM IT``) is dropped, then one
    trailing well-known city when something else remains.
    """

    text = apply_rules(text, tables.noise_rules)
    text = _TRAILING_CODES_RE.sub("", text)
    tokens = text.split()
    if len(tokens) > 1 and tokens[-1] in tables.cities:
        text = " ".join(tokens[:-1])
    return collapse(text)


def tokenize(text: str, *, drop: frozenset[str] = frozenset()) -> list[str]:
    """Split on whitespace and separator characters, skipping ``drop`` tokens."""

    tokens: list[str] = []
    for raw in _TOKEN_SPLIT_RE.split(text):
        tok = raw.strip("-&")
        if tok and tok not in drop:
            tokens.append(tok)
    return tokens


__all__ = [
    "apply_rules",
    "collapse",
    "normalize_text",
    "strip_leading_prefixes",
    "strip_noise",
    "tokenize",
]
