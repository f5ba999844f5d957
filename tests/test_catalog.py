"""Tests for the catalog store."""

import dataclasses
import json

import pytest

from catalog import CatalogItem, CatalogStore, ClothingType, load_catalog


class TestClothingType:

    def test_parse_known(self):
        assert ClothingType.parse("Shoes") is ClothingType.SHOES
        assert ClothingType.parse(ClothingType.DRESS) is ClothingType.DRESS

    def test_parse_unknown(self):
        assert ClothingType.parse("cape") is ClothingType.UNKNOWN


class TestCatalogStore:

    def test_default_catalog(self):
        store = CatalogStore.default()

        assert len(store) == 5
        assert [item.id for item in store] == [1, 2, 3, 4, 5]
        assert store.get(3).type is ClothingType.SHOES
        assert store.get(4).price == 150

    def test_items_are_immutable(self):
        store = CatalogStore.default()
        with pytest.raises(dataclasses.FrozenInstanceError):
            store.get(1).price = 1
        assert isinstance(store.items, tuple)

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            CatalogStore.from_records([
                {"id": 1, "type": "shirt", "price": 10},
                {"id": 1, "type": "pants", "price": 20},
            ])

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            CatalogStore.from_records([{"id": 1, "type": "shirt", "price": -1}])

    def test_missing_field_rejected(self):
        with pytest.raises(ValueError, match="Invalid catalog entry"):
            CatalogItem.from_dict({"id": 1, "type": "shirt"})

    def test_get_missing(self):
        assert CatalogStore.default().get(99) is None


class TestLoadCatalog:

    def test_from_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([
            {"id": 10, "type": "jacket", "colors": ["green"], "brands": ["Uniqlo"], "price": 99.5},
        ]))

        store = load_catalog(str(path))

        assert len(store) == 1
        item = store.get(10)
        assert item.colors == frozenset({"green"})
        assert item.to_dict()["brands"] == ["Uniqlo"]

    def test_json_must_be_list(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"id": 1}))

        with pytest.raises(ValueError):
            load_catalog(str(path))

    def test_empty_path_uses_default(self):
        assert len(load_catalog("")) == 5
