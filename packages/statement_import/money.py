"""Shared currency-to-minor-units parsing and amount labels.

Bank exports mix European (``1.234,56``), US (``1,234.56``) and plain ISO
(``1234.56``) notations, sometimes with currency symbols, trailing minus
signs or accounting-style parentheses. :func:`parse_amount_to_cents` accepts
all of them and returns integer cents; binary floating point is never
involved.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CURRENCY_MARKERS = ("€", "$", "£", "EUR", "USD", "GBP")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMERIC_RE = re.compile(r"^\d+(?:\.\d+)?$")
_CENT = Decimal("0.01")


def _strip_markers(s: str) -> tuple[str, bool]:
    """Strip signs, currency markers and parentheses in any order."""

    negative = False
    while True:
        changed = False
        upper = s.upper()
        for marker in _CURRENCY_MARKERS:
            if upper.startswith(marker):
                s = s[len(marker) :]
                changed = True
                break
            if upper.endswith(marker):
                s = s[: -len(marker)]
                changed = True
                break
        if s.startswith("+"):
            s = s[1:]
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:]
            changed = True
        elif s.endswith("-"):
            # Some Italian exports print debits as "12,50-".
            negative = True
            s = s[:-1]
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1]
            changed = True
        if not changed:
            return s, negative


def _canonical_number(s: str) -> str:
    """Rewrite grouped/decimal separators into a plain ``1234.56`` string."""

    last_comma = s.rfind(",")
    last_dot = s.rfind(".")
    if last_comma >= 0 and last_dot >= 0:
        # Both present: whichever comes last is the decimal separator.
        if last_comma > last_dot:
            return s.replace(".", "").replace(",", ".")
        return s.replace(",", "")

    sep = "," if last_comma >= 0 else "." if last_dot >= 0 else ""
    if not sep:
        return s
    if s.count(sep) > 1:
        # "1.234.567" / "1,234,567": repeated separator can only be grouping.
        return s.replace(sep, "")
    whole, _, frac = s.partition(sep)
    if len(frac) == 3 and whole not in ("", "0"):
        # A single separator followed by exactly three digits groups thousands.
        return whole + frac
    return f"{whole or '0'}.{frac}"


def parse_amount(raw: str | None) -> Decimal:
    """Parse a localized amount string into a signed :class:`~decimal.Decimal`.

    Raises
    ------
    ValueError
        When ``raw`` is empty or not a recognizable number.
    """

    if raw is None:
        raise ValueError("amount is required")
    s = _WHITESPACE_RE.sub("", raw)
    if not s:
        raise ValueError("amount is empty")

    body, negative = _strip_markers(s)
    number = _canonical_number(body)
    if not _NUMERIC_RE.match(number):
        raise ValueError(f"invalid amount: {raw!r}")
    try:
        d = Decimal(number)
    except InvalidOperation as exc:  # pragma: no cover - regex guards this
        raise ValueError(f"invalid amount: {raw!r}") from exc
    return -d if negative else d


def parse_amount_to_cents(raw: str | None) -> int:
    """Parse ``raw`` and return integer minor units (half-up rounding)."""

    d = parse_amount(raw)
    return int((d * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(_CENT)


def format_cents(cents: int) -> str:
    """Format cents the way Italian bank statements print them: ``-1.234,56 €``."""

    sign = "-" if cents < 0 else ""
    units, rest = divmod(abs(cents), 100)
    grouped = f"{units:,}".replace(",", ".")
    return f"{sign}{grouped},{rest:02d} €"


__all__ = ["cents_to_decimal", "format_cents", "parse_amount", "parse_amount_to_cents"]
