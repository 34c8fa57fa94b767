"""Marketplace / sub-merchant splitting.

Aggregators print the real merchant after a separator: ``AMAZON*SHOPNAME``,
``SUMUP *BAR DA GINO``, ``AMZN MKTP IT*R83``. When a marketplace prefix sits
among the first tokens, or a removed payment rail was one of the
marketplace wallets, the text is split at the earliest separator into a
primary part (left) and a sub-merchant candidate (right).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .rails import RailStripResult
from .tables import MerchantTables

_MAX_PREFIX_TOKEN = 3

_SYMBOL_SEPARATORS: tuple[str, ...] = (
    r"\s*\*+\s*",
    r"\s+-+\s+",
    r"\s*/\s*",
    r"\s*:\s*",
    r"\s*@\s*",
)


@dataclass(frozen=True, slots=True)
class SubMerchantSplit:
    marketplace: str
    primary: str
    sub: str | None


class SubMerchantSplitter:
    def __init__(self, tables: MerchantTables) -> None:
        self._marketplace_rails = tables.marketplace_rails
        prefixes = sorted(tables.marketplace_prefixes, key=len, reverse=True)
        self._prefix_re = re.compile(
            r"(?<![^\s*])(" + "|".join(re.escape(p) for p in prefixes) + r")(?![^\s*])"
        )
        phrases = tuple(
            r"(?<!\S)" + r"\s+".join(re.escape(w) for w in phrase.split()) + r"(?!\S)"
            for phrase in tables.bridge_phrases
        )
        self._separators = tuple(re.compile(p) for p in _SYMBOL_SEPARATORS + phrases)

    def _anchor(self, text: str, rails: RailStripResult) -> tuple[str, int] | None:
        """Return ``(marketplace, end_offset)`` or ``None`` when not a marketplace."""

        spans = [m.start() for m in re.finditer(r"\S+", text)]
        limit = spans[_MAX_PREFIX_TOKEN] if len(spans) > _MAX_PREFIX_TOKEN else len(text)
        m = self._prefix_re.search(text)
        if m is not None and m.start() < limit:
            return m.group(1), m.end()
        for rail in rails.rails:
            if rail in self._marketplace_rails:
                # The wallet itself was removed; what is left starts after it.
                return rail, 0
        return None

    def split(self, text: str, rails: RailStripResult) -> SubMerchantSplit | None:
        anchor = self._anchor(text, rails)
        if anchor is None:
            return None
        marketplace, offset = anchor
        rest = text[offset:]

        best: re.Match[str] | None = None
        for pattern in self._separators:
            m = pattern.search(rest)
            if m is None:
                continue
            if best is None or (m.start(), -len(m.group())) < (best.start(), -len(best.group())):
                best = m

        if best is None:
            return SubMerchantSplit(marketplace=marketplace, primary=text.strip(), sub=None)
        primary = text[: offset + best.start()].strip()
        sub = rest[best.end() :].strip()
        return SubMerchantSplit(marketplace=marketplace, primary=primary, sub=sub or None)


__all__ = ["SubMerchantSplit", "SubMerchantSplitter"]
