import json

import pytest
from pydantic import ValidationError
from statement_import.categories import (
    CategoryDirectory,
    load_categories_from_json,
    load_default_categories,
)
from statement_import.models import Category


def test_default_directory_covers_fallbacks():
    directory = load_default_categories()

    assert len(directory) == 41
    assert directory["altro"].kind == "expense"
    assert directory["entrate-occasionali"].kind == "income"
    assert len(directory.of_kind("income")) == 11


def test_duplicate_ids_are_rejected():
    cat = Category(id="cibo", label="Cibo", kind="expense", spending_nature="essential")

    with pytest.raises(ValueError, match="duplicate category id"):
        CategoryDirectory([cat, cat])


def test_load_from_json_validates_entries(tmp_path):
    good = tmp_path / "good.json"
    good.write_text(
        json.dumps([{"id": "x", "label": "X", "kind": "expense", "spending_nature": "comfort"}]),
        encoding="utf-8",
    )
    bad = tmp_path / "bad.json"
    bad.write_text(
        json.dumps([{"id": "x", "label": "X", "kind": "gift", "spending_nature": "comfort"}]),
        encoding="utf-8",
    )

    assert list(load_categories_from_json(good)) == ["x"]
    with pytest.raises(ValidationError):
        load_categories_from_json(bad)
