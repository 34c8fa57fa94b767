"""Row normalization: dates, amounts and descriptions.

Turns :class:`~.models.RawRow` records into :class:`~.models.ParsedRow`
records. A bad row never aborts the batch; it becomes a
:class:`~.models.ParseError` and processing continues. Rows whose amount is
exactly zero (balance lines, blocked authorizations) are dropped without an
error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, date, datetime

from dateutil import parser as date_parser

from .logging_setup import get_logger
from .models import ParseError, ParsedRow, RawRow
from .money import parse_amount_to_cents

_logger = get_logger("statement_import.normalize")

# Explicit formats are tried in order before the generic fallback. Day-first
# variants precede the US month-first one.
_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d/%m/%y",
    "%d.%m.%y",
)
_MIN_YEAR = 2000
_MAX_YEAR = 2100
# The generic parser fills missing fields from this default, so a bare "10"
# would otherwise become a date.
_FALLBACK_MIN_LEN = 6
_FALLBACK_DEFAULT = datetime(2000, 1, 1)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_WHITESPACE_RE = re.compile(r"\s+")


def _in_range(d: date) -> bool:
    return _MIN_YEAR <= d.year <= _MAX_YEAR


def parse_date(raw: str | None) -> date:
    """Parse a statement date into a calendar date.

    Raises
    ------
    ValueError
        ``"Invalid date format: ..."`` when no format matches or the year is
        outside the accepted range.
    """

    s = (raw or "").strip()
    if not s:
        raise ValueError(f"Invalid date format: {raw!r}")
    # Some exports append a time ("2024-01-15 10:32" or ISO "T10:32:00").
    head = s.split()[0].split("T")[0]

    for fmt in _DATE_FORMATS:
        try:
            d = datetime.strptime(head, fmt).date()
        except ValueError:
            continue
        if _in_range(d):
            return d

    if len(s) >= _FALLBACK_MIN_LEN:
        try:
            d = date_parser.parse(s, dayfirst=True, default=_FALLBACK_DEFAULT).date()
        except (ValueError, OverflowError):
            pass
        else:
            if _in_range(d):
                return d
    raise ValueError(f"Invalid date format: {raw!r}")


def clean_description(raw: str | None) -> str:
    """Strip control characters, collapse whitespace and trim."""

    s = _WHITESPACE_RE.sub(" ", raw or "")
    s = _CONTROL_CHARS_RE.sub("", s)
    return _WHITESPACE_RE.sub(" ", s).strip()


def _epoch_ms(d: date) -> int:
    return int(datetime(d.year, d.month, d.day, tzinfo=UTC).timestamp() * 1000)


def normalize_row(row: RawRow) -> ParsedRow | None:
    """Normalize a single row; ``None`` means the row carries no movement.

    Raises ``ValueError`` with a user-facing message for unreadable dates or
    amounts.
    """

    raw_date = row.raw.get("date", "")
    raw_amount = row.raw.get("amount", "")
    original = row.raw.get("description", "")

    d = parse_date(raw_date)
    try:
        cents = parse_amount_to_cents(raw_amount)
    except ValueError as exc:
        raise ValueError(f"Invalid amount format: {raw_amount!r}") from exc
    if cents == 0:
        return None

    return ParsedRow(
        line_number=row.line_number,
        date=d,
        timestamp=_epoch_ms(d),
        amount_cents=cents,
        description=clean_description(original),
        original_description=original,
        raw_row=row.raw,
    )


def normalize_rows(rows: Iterable[RawRow]) -> tuple[list[ParsedRow], list[ParseError]]:
    """Normalize ``rows`` and collect one error per rejected row."""

    parsed: list[ParsedRow] = []
    errors: list[ParseError] = []
    dropped = 0
    for row in rows:
        try:
            result = normalize_row(row)
        except ValueError as exc:
            errors.append(ParseError(row.line_number, str(exc), row.raw.get("description")))
            continue
        if result is None:
            dropped += 1
            continue
        parsed.append(result)

    _logger.info(
        "normalize:done rows=%d errors=%d zero_dropped=%d", len(parsed), len(errors), dropped
    )
    return parsed, errors


__all__ = ["clean_description", "normalize_row", "normalize_rows", "parse_date"]
