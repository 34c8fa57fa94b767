from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_BIGINT_PK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: si_categories
# ---------------------------


class SiCategory(Base):
    __tablename__ = "si_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    label: Mapped[str] = mapped_column(String, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    spending_nature: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("kind IN ('income','expense')", name="ck_si_categories_kind"),
    )


# ---------------------------
# Core: si_transactions
# ---------------------------


class SiTransaction(Base):
    __tablename__ = "si_transactions"

    id: Mapped[int] = mapped_column(_BIGINT_PK, primary_key=True, autoincrement=True)
    import_id: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Always positive; the sign lives in ``type``.
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("si_categories.id"), nullable=True
    )
    category_label: Mapped[str | None] = mapped_column(String, nullable=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    is_superfluous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    classification_source: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_si_transactions_amount_positive"),
        CheckConstraint("type IN ('income','expense')", name="ck_si_transactions_type"),
        Index("ix_si_transactions_date", "date"),
        Index("ix_si_transactions_import_id", "import_id"),
    )


__all__ = ["Base", "SiCategory", "SiTransaction"]
