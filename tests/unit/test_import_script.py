"""
Unit tests for the command line importer's argument handling.

Run: pytest tests/unit/test_import_script.py -v
"""

import pytest

from scripts.import_products import parse_mapping


class TestParseMapping:
    """Tests for parse_mapping()"""

    def test_pairs(self):
        mapping = parse_mapping(["name=Produto", "price=Preço (R$)"])

        assert mapping.name == "Produto"
        assert mapping.price == "Preço (R$)"
        assert mapping.category is None

    def test_no_pairs_is_automatic(self):
        """Should give an all-empty mapping when nothing is pinned."""
        assert parse_mapping([]).is_empty

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field 'sku'"):
            parse_mapping(["sku=Código"])

    def test_missing_separator(self):
        with pytest.raises(ValueError, match="expected field=Column"):
            parse_mapping(["Produto"])
