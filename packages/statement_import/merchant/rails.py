"""Payment-rail stripping.

Wallets, acquirers and generic payment verbs ("APPLE PAY", "SUMUP", "POS",
"PAGAMENTO"...) wrap the real merchant name and can be stacked several deep.
They are removed as whole words, longest first, until nothing changes.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from .normalizers import collapse

_TOKEN_RE = re.compile(r"[^\s*]+")


@dataclass(frozen=True, slots=True)
class RailStripResult:
    remainder: str
    # Rails in removal order.
    rails: tuple[str, ...]


class RailStripper:
    """Compiled whole-word matcher for a fixed set of payment rails."""

    def __init__(self, rails: Iterable[str]) -> None:
        ordered = sorted(set(rails), key=lambda r: (-len(r), r))
        # A rail is bounded by start/end, whitespace or "*" ("CRV*SHOP").
        self._patterns = tuple(
            (
                rail,
                re.compile(
                    r"(?<![^\s*])" + r"\s+".join(re.escape(p) for p in rail.split()) + r"(?![^\s*])"
                ),
            )
            for rail in ordered
        )

    def strip(self, text: str) -> RailStripResult:
        removed: list[str] = []
        remainder = text
        # Every pass removes at least one token, so the token count bounds the loop.
        for _ in range(len(_TOKEN_RE.findall(text)) + 1):
            for rail, pattern in self._patterns:
                updated, n = pattern.subn(" ", remainder, count=1)
                if n:
                    removed.append(rail)
                    remainder = collapse(updated)
                    break
            else:
                break
        return RailStripResult(remainder=remainder, rails=tuple(removed))


__all__ = ["RailStripResult", "RailStripper"]
