"""Category directory: the read-only lookup the payload builder validates against.

The directory is supplied by a collaborator (the database, see
:mod:`statement_import.persistence`) or built from the bundled seed file
``seeds/categories.v1.json``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from importlib import resources
from pathlib import Path
from typing import Any

from .models import Category

_SEED_PACKAGE = "statement_import.seeds"
_SEED_FILE = "categories.v1.json"


class CategoryDirectory(Mapping[str, Category]):
    """Immutable mapping of category id → :class:`~.models.Category`.

    Iteration preserves the order the categories were supplied in.
    """

    def __init__(self, categories: Iterable[Category]) -> None:
        by_id: dict[str, Category] = {}
        for c in categories:
            if c.id in by_id:
                raise ValueError(f"duplicate category id: {c.id!r}")
            by_id[c.id] = c
        self._by_id = by_id

    def __getitem__(self, category_id: str) -> Category:
        return self._by_id[category_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def __repr__(self) -> str:
        return f"CategoryDirectory({len(self)} categories)"

    def of_kind(self, kind: str) -> list[Category]:
        return [c for c in self._by_id.values() if c.kind == kind]


def _parse_seed(data: Any) -> list[Category]:
    if not isinstance(data, list):
        raise ValueError("Category seed JSON must be a list of objects")
    return [Category.model_validate(item) for item in data]


def load_categories_from_json(path: Path) -> CategoryDirectory:
    with path.open("r", encoding="utf-8") as f:
        return CategoryDirectory(_parse_seed(json.load(f)))


def load_default_categories() -> CategoryDirectory:
    """Return the category directory bundled with the package."""

    text = resources.files(_SEED_PACKAGE).joinpath(_SEED_FILE).read_text(encoding="utf-8")
    return CategoryDirectory(_parse_seed(json.loads(text)))


__all__ = ["CategoryDirectory", "load_categories_from_json", "load_default_categories"]
