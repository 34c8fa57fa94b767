"""Tabular parser for bank-exported transaction files.

The parser knows nothing about a particular bank. It detects the delimiter,
finds the header row by keyword, maps the logical columns (date, amount or
debit/credit pair, description) and emits one :class:`~.models.RawRow` per
data row. Records are read with the stdlib :mod:`csv` module, so quoted
fields may contain the delimiter and doubled quotes are literal quotes.

Nothing here raises for bad input: batch-level problems produce a fatal
:class:`~.models.ParseResult` with a single line-0 error and row-level
problems are reported next to the rows that did parse.
"""

from __future__ import annotations

import csv
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from io import StringIO

from .logging_setup import get_logger
from .models import ParseError, ParseResult, RawRow
from .money import parse_amount

_logger = get_logger("statement_import.parse")

# ---- Tunables (private) ------------------------------------------------------

_DELIMITER_CANDIDATES: tuple[str, ...] = (",", ";", "\t")
_SNIFF_LINES = 5

_DATE_KEYWORDS = ("data", "date", "valuta", "giorno")
_AMOUNT_KEYWORDS = ("importo", "amount", "ammontare", "valore")
_DEBIT_KEYWORDS = ("dare", "uscite", "debit", "prelievi")
_CREDIT_KEYWORDS = ("avere", "entrate", "credit", "versamenti")
_DESCRIPTION_KEYWORDS = (
    "descrizione",
    "description",
    "causale",
    "dettagli",
    "note",
    "controparte",
    "merchant",
    "beneficiario",
    "payee",
    "memo",
)
# Running balances look like amounts but must never be imported as one.
_BALANCE_KEYWORDS = ("saldo", "balance", "disponibile")

_MSG_EMPTY = "Empty CSV content"
_MSG_NO_HEADER = "Could not detect header row"
_MSG_NO_DATE = "Missing date column"
_MSG_NO_AMOUNT = "Missing amount column"
_MSG_SHORT_ROW = "Row has insufficient columns"
_MSG_DEBIT_AND_CREDIT = "Both debit and credit are filled; using net amount"


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Column indices of the logical fields found in the header."""

    date: int
    amount: int | None
    debit: int | None
    credit: int | None
    description: int | None

    @property
    def required(self) -> tuple[int, ...]:
        cols = (self.date, self.amount, self.debit, self.credit)
        return tuple(i for i in cols if i is not None)

    @property
    def numeric(self) -> frozenset[int]:
        return frozenset(i for i in (self.amount, self.debit, self.credit) if i is not None)


# ---------------------------------------------------------------------------
# Detection helpers
# ---------------------------------------------------------------------------


def _split(line: str, delimiter: str) -> list[str]:
    return next(csv.reader([line], delimiter=delimiter), [])


def detect_delimiter(lines: Sequence[str]) -> str:
    """Pick the delimiter that yields a consistent column count above one.

    Only the first few non-blank lines are inspected. When several
    delimiters are consistent the one producing the most columns wins; when
    none is, the delimiter with the most separators overall wins, and ``,``
    is the final default.
    """

    sample = [ln for ln in lines if ln.strip()][:_SNIFF_LINES]
    if not sample:
        return ","

    best: str | None = None
    best_cols = 1
    for delim in _DELIMITER_CANDIDATES:
        counts = {len(_split(ln, delim)) for ln in sample}
        if len(counts) == 1:
            (cols,) = counts
            if cols > best_cols:
                best, best_cols = delim, cols
    if best is not None:
        return best

    totals = {d: sum(len(_split(ln, d)) - 1 for ln in sample) for d in _DELIMITER_CANDIDATES}
    delim, total = max(totals.items(), key=lambda kv: kv[1])
    return delim if total > 0 else ","


def _matches(header: str, keywords: Sequence[str]) -> bool:
    return any(k in header for k in keywords)


def _is_header(cells: Sequence[str]) -> bool:
    keywords = _DATE_KEYWORDS + _AMOUNT_KEYWORDS + _DEBIT_KEYWORDS + _CREDIT_KEYWORDS
    return any(_matches(c.strip().lower(), keywords) for c in cells)


def _find_column(
    headers: Sequence[str],
    keywords: Sequence[str],
    *,
    taken: set[int],
    exclude: Sequence[str] = (),
) -> int | None:
    for idx, h in enumerate(headers):
        if idx in taken or not h:
            continue
        if exclude and _matches(h, exclude):
            continue
        if _matches(h, keywords):
            taken.add(idx)
            return idx
    return None


def map_columns(headers: Sequence[str]) -> tuple[ColumnMapping | None, list[str]]:
    """Map lowercased ``headers`` to logical columns.

    Returns ``(mapping, missing)`` where ``missing`` lists the fatal messages
    for required columns that could not be found.
    """

    taken: set[int] = set()
    date_idx = _find_column(headers, _DATE_KEYWORDS, taken=taken)
    not_amount = _BALANCE_KEYWORDS + _DATE_KEYWORDS
    amount_idx = _find_column(headers, _AMOUNT_KEYWORDS, taken=taken, exclude=not_amount)
    debit_idx = credit_idx = None
    if amount_idx is None:
        debit_idx = _find_column(headers, _DEBIT_KEYWORDS, taken=taken, exclude=not_amount)
        credit_idx = _find_column(headers, _CREDIT_KEYWORDS, taken=taken, exclude=not_amount)
    desc_idx = _find_column(headers, _DESCRIPTION_KEYWORDS, taken=taken)

    missing: list[str] = []
    if date_idx is None:
        missing.append(_MSG_NO_DATE)
    if amount_idx is None and debit_idx is None and credit_idx is None:
        missing.append(_MSG_NO_AMOUNT)
    if missing:
        return None, missing
    assert date_idx is not None
    return (
        ColumnMapping(
            date=date_idx,
            amount=amount_idx,
            debit=debit_idx,
            credit=credit_idx,
            description=desc_idx,
        ),
        missing,
    )


# ---------------------------------------------------------------------------
# Row assembly
# ---------------------------------------------------------------------------


def _cell(values: Sequence[str], idx: int | None) -> str:
    if idx is None or idx >= len(values):
        return ""
    return values[idx]


def _debit_credit_amount(
    debit_raw: str, credit_raw: str, *, line_number: int, raw_line: str
) -> tuple[str | None, ParseError | None]:
    """Fold a debit/credit pair into one signed amount string.

    Returns ``(amount, issue)``. ``amount`` is ``None`` when a value cannot be
    read (the row is skipped); a warning ``issue`` accompanies a usable
    amount when both sides are filled.
    """

    try:
        debit = abs(parse_amount(debit_raw)) if debit_raw else Decimal(0)
        credit = abs(parse_amount(credit_raw)) if credit_raw else Decimal(0)
    except ValueError as exc:
        return None, ParseError(line_number, f"Invalid debit/credit amount: {exc}", raw_line)

    if debit and credit:
        net = credit - debit
        warning = ParseError(line_number, _MSG_DEBIT_AND_CREDIT, raw_line, severity="warning")
        return f"{net:.2f}", warning
    if debit:
        return "-" + debit_raw.lstrip("+-").strip(), None
    if credit:
        return credit_raw.lstrip("+-").strip(), None
    # Neither side moved money; the normalizer drops zero rows.
    return "0", None


def _description(values: Sequence[str], mapping: ColumnMapping) -> str:
    if mapping.description is not None:
        return _cell(values, mapping.description)
    skip = {mapping.date, *mapping.numeric}
    return " ".join(v for i, v in enumerate(values) if i not in skip and v)


def parse_csv(content: str) -> ParseResult:
    """Parse raw export text into :class:`~.models.RawRow` records.

    Parameters
    ----------
    content:
        Full text of the export (any of ``,`` ``;`` or tab delimited).

    Returns
    -------
    ParseResult
        ``fatal`` is set, with no rows, when the content is empty, has no
        recognizable header, or lacks a date or amount column. Otherwise the
        result carries every readable row plus row-level errors and warnings.
    """

    text = content.lstrip("\ufeff") if content else ""
    if not text.strip():
        return ParseResult(rows=(), errors=(ParseError(0, _MSG_EMPTY),), fatal=True)

    delimiter = detect_delimiter(text.splitlines())
    physical_lines = text.splitlines()

    rows: list[RawRow] = []
    errors: list[ParseError] = []
    headers: list[str] | None = None
    mapping: ColumnMapping | None = None

    reader = csv.reader(StringIO(text), delimiter=delimiter)
    try:
        for record in reader:
            line_number = reader.line_num
            values = [v.strip() for v in record]
            if not any(values):
                continue

            if headers is None:
                if not _is_header(values):
                    continue
                headers = [v.lower() for v in values]
                mapping, missing = map_columns(headers)
                if mapping is None:
                    fatal = tuple(ParseError(0, msg) for msg in missing)
                    _logger.info("parse:fatal reason=%s", "missing_columns")
                    return ParseResult(rows=(), errors=fatal, fatal=True)
                continue

            assert mapping is not None
            raw_line = physical_lines[line_number - 1] if line_number <= len(physical_lines) else ""
            if len(values) <= max(mapping.required):
                errors.append(ParseError(line_number, _MSG_SHORT_ROW, raw_line))
                continue

            if mapping.amount is not None:
                amount = _cell(values, mapping.amount)
            else:
                amount, issue = _debit_credit_amount(
                    _cell(values, mapping.debit),
                    _cell(values, mapping.credit),
                    line_number=line_number,
                    raw_line=raw_line,
                )
                if issue is not None:
                    errors.append(issue)
                if amount is None:
                    continue

            raw: dict[str, str] = {
                h: v for h, v in zip(headers, values, strict=False) if h and v
            }
            raw["date"] = _cell(values, mapping.date)
            raw["amount"] = amount
            raw["description"] = _description(values, mapping)
            rows.append(RawRow(line_number=line_number, raw=raw))
    except csv.Error as exc:
        _logger.info("parse:fatal reason=%s", "malformed")
        return ParseResult(
            rows=(), errors=(ParseError(0, f"Malformed CSV content: {exc}"),), fatal=True
        )

    if headers is None:
        _logger.info("parse:fatal reason=%s", "no_header")
        return ParseResult(rows=(), errors=(ParseError(0, _MSG_NO_HEADER),), fatal=True)

    _logger.info(
        "parse:done delimiter=%r rows=%d errors=%d", delimiter, len(rows), len(errors)
    )
    return ParseResult(rows=tuple(rows), errors=tuple(errors))


__all__ = ["ColumnMapping", "detect_delimiter", "map_columns", "parse_csv"]
