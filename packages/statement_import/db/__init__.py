"""db: SQLAlchemy storage collaborator for statement imports.

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``statement_import.db.models`` (re-exported for convenience)
- Engine/session helpers live in ``statement_import.db.client``
"""

from __future__ import annotations

from .models import Base, SiCategory, SiTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "SiCategory",
    "SiTransaction",
]
