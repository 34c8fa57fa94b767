"""Persistence integration for statement imports.

Functions here read history and categories from, and write import payloads
to, the tables declared in :mod:`statement_import.db.models`. Every function
takes an open :class:`~sqlalchemy.orm.Session`; transaction boundaries belong
to the caller (see :func:`statement_import.db.client.session_scope`).

The processing pipeline never imports this module.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from .categories import CategoryDirectory
from .db.models import SiCategory, SiTransaction
from .logging_setup import get_logger
from .models import Category, ExistingTransaction, ImportPayload

_logger = get_logger("statement_import.persistence")


def load_history(session: Session, *, since: date | None = None) -> list[ExistingTransaction]:
    """Return persisted transactions (oldest first) for dedupe and suggestions.

    ``since`` limits the result to transactions dated on or after it.
    """

    stmt = select(SiTransaction).order_by(SiTransaction.date, SiTransaction.id)
    if since is not None:
        stmt = stmt.where(SiTransaction.date >= since)
    history = [
        ExistingTransaction(
            id=tx.id,
            amount_cents=tx.amount_cents,
            type=tx.type,
            date=tx.date,
            description=tx.description,
            category_id=tx.category_id,
        )
        for tx in session.scalars(stmt)
    ]
    _logger.info("persistence:history_loaded rows=%d", len(history))
    return history


def load_category_directory(session: Session) -> CategoryDirectory:
    stmt = select(SiCategory).order_by(SiCategory.sort_order, SiCategory.id)
    return CategoryDirectory(
        Category(
            id=c.id,
            label=c.label,
            kind=c.kind,
            spending_nature=c.spending_nature,
        )
        for c in session.scalars(stmt)
    )


def seed_categories(session: Session, categories: Iterable[Category]) -> int:
    """Insert or update ``categories``, keeping their order in ``sort_order``.

    Existing rows with the same id are updated in place; categories not in
    ``categories`` are left untouched. Returns the number of categories
    written.
    """

    written = 0
    for order, c in enumerate(categories):
        session.merge(
            SiCategory(
                id=c.id,
                label=c.label,
                kind=c.kind,
                spending_nature=c.spending_nature,
                sort_order=order,
            )
        )
        written += 1
    session.flush()
    _logger.info("persistence:categories_seeded count=%d", written)
    return written


def create_transactions(session: Session, payload: ImportPayload) -> int:
    """Insert one ``si_transactions`` row per payload record and return the count."""

    rows = [
        SiTransaction(
            import_id=payload.import_id,
            description=rec.description,
            amount_cents=rec.amount_cents,
            type=rec.type,
            category_id=rec.category_id,
            category_label=rec.category,
            date=rec.date,
            is_superfluous=rec.is_superfluous,
            classification_source=rec.classification_source,
        )
        for rec in payload.transactions
    ]
    session.add_all(rows)
    session.flush()
    _logger.info(
        "persistence:transactions_created import_id=%s count=%d", payload.import_id, len(rows)
    )
    return len(rows)


__all__ = [
    "create_transactions",
    "load_category_directory",
    "load_history",
    "seed_categories",
]
