"""Merchant key extraction.

Reduces a noisy bank description to a short, stable merchant key
(``"PAGAMENTO POS ESSELUNGA VIA TIZIANO"`` → ``"ESSELUNGA"``). The stages run
in a fixed order and the first one that produces an answer wins:

1. normalize (uppercase, collapse whitespace); empty → ``ALTRO``
2. exact override lookup on the normalized text
3. payment-rail stripping (fixed point, longest rail first)
4. bank prefixes and reference patterns
5. noise cleaning (dates, card masks, amounts, punctuation, trailing
   province/country codes and a trailing city)
6. nothing meaningful left → ``UNRESOLVED`` when a rail was seen, else
   ``ALTRO``
7. marketplace / sub-merchant split
8. dictionary lookup of the primary, then the sub-merchant candidate
9. a surviving sub-merchant candidate is returned as-is (up to 3 tokens)
10. trigram, bigram, unigram dictionary scan over the remaining tokens
11. token scoring; otherwise the sentinel fallback of step 6

The extractor is a pure function of its input and its
:class:`~.tables.MerchantTables`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, TypeAlias

from .normalizers import normalize_text, strip_leading_prefixes, strip_noise, tokenize
from .rails import RailStripper
from .sub_merchant import SubMerchantSplitter
from .tables import DEFAULT_TABLES, MerchantTables
from .token_scorer import select_tokens

UNRESOLVED = "UNRESOLVED"
"""A payment rail was identified but no merchant text survived."""

ALTRO = "ALTRO"
"""No usable data at all (empty, numeric-only or punctuation-only text)."""

SENTINEL_KEYS = frozenset({UNRESOLVED, ALTRO})

_MIN_TEXT_LEN = 2
_MAX_SUB_TOKENS = 3
_NGRAM_SIZES = (3, 2, 1)

ResolutionStage: TypeAlias = Literal[
    "empty",
    "override",
    "sentinel",
    "dictionary",
    "sub_merchant",
    "token_score",
    "fallback",
]


@dataclass(frozen=True, slots=True)
class MerchantKeyResult:
    """A merchant key plus how it was reached, for audits and debugging."""

    key: str
    stage: ResolutionStage
    rails: tuple[str, ...] = ()
    cleaned: str = ""


class MerchantKeyExtractor:
    def __init__(self, tables: MerchantTables = DEFAULT_TABLES) -> None:
        self.tables = tables
        self._rails = RailStripper(tables.payment_rails)
        self._splitter = SubMerchantSplitter(tables)
        self._sub_drop = tables.bridge_tokens | tables.noise_tokens

    # ---- public API -----------------------------------------------------------

    def extract(self, description: str | None) -> str:
        return self.extract_with_trace(description).key

    def extract_with_trace(self, description: str | None) -> MerchantKeyResult:
        tables = self.tables
        text = normalize_text(description)
        if not text:
            return MerchantKeyResult(ALTRO, "empty")

        override = tables.overrides.get(text)
        if override is not None:
            return MerchantKeyResult(override, "override", cleaned=text)

        stripped = self._rails.strip(text)
        rails = stripped.rails
        text = strip_leading_prefixes(stripped.remainder, tables)
        text = strip_noise(text, tables)
        sentinel = UNRESOLVED if rails else ALTRO
        if len(text) < _MIN_TEXT_LEN:
            return MerchantKeyResult(sentinel, "sentinel", rails, text)

        split = self._splitter.split(text, stripped)
        if split is not None:
            hit = self._lookup(split.primary, tables.noise_tokens)
            if hit is None and split.sub:
                hit = self._lookup(split.sub, self._sub_drop)
            if hit is not None:
                return MerchantKeyResult(hit, "dictionary", rails, text)
            if split.sub:
                sub_tokens = self._sub_tokens(split.sub)
                if sub_tokens:
                    key = " ".join(sub_tokens[:_MAX_SUB_TOKENS])
                    return MerchantKeyResult(key, "sub_merchant", rails, text)

        tokens = tokenize(text, drop=tables.noise_tokens)
        hit = self._scan_ngrams(tokens)
        if hit is not None:
            return MerchantKeyResult(hit, "dictionary", rails, text)

        selected = select_tokens(tokens, tables)
        if selected:
            key = " ".join(selected)
            return MerchantKeyResult(tables.brand_dict.get(key, key), "token_score", rails, text)

        return MerchantKeyResult(sentinel, "fallback", rails, text)

    # ---- helpers --------------------------------------------------------------

    def _lookup(self, candidate: str, drop: frozenset[str]) -> str | None:
        """Whole-string, then token-by-token, brand dictionary lookup."""

        tokens = tokenize(candidate, drop=drop)
        if not tokens:
            return None
        brand_dict = self.tables.brand_dict
        whole = brand_dict.get(" ".join(tokens))
        if whole is not None:
            return whole
        for tok in tokens:
            if tok in brand_dict:
                return brand_dict[tok]
        return None

    def _sub_tokens(self, sub: str) -> list[str]:
        blacklist = self.tables.scoring_blacklist
        return [
            t for t in tokenize(sub, drop=self._sub_drop) if not t.isdigit() and t not in blacklist
        ]

    def _scan_ngrams(self, tokens: Sequence[str]) -> str | None:
        brand_dict = self.tables.brand_dict
        for n in _NGRAM_SIZES:
            for i in range(len(tokens) - n + 1):
                hit = brand_dict.get(" ".join(tokens[i : i + n]))
                if hit is not None:
                    return hit
        return None


_DEFAULT_EXTRACTOR = MerchantKeyExtractor()


def extract_merchant_key(description: str | None, *, tables: MerchantTables | None = None) -> str:
    """Return the merchant key for ``description`` using ``tables`` (defaults shipped)."""

    extractor = _DEFAULT_EXTRACTOR if tables is None else MerchantKeyExtractor(tables)
    return extractor.extract(description)


def default_extractor() -> MerchantKeyExtractor:
    return _DEFAULT_EXTRACTOR


__all__ = [
    "ALTRO",
    "SENTINEL_KEYS",
    "UNRESOLVED",
    "MerchantKeyExtractor",
    "MerchantKeyResult",
    "ResolutionStage",
    "default_extractor",
    "extract_merchant_key",
]
