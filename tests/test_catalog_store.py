import json

import pytest
import requests

from conftest import PRODUCTS, FakeResponse, FakeSession
from routine_builder.catalog_store import CatalogStore, parse_catalog
from routine_builder.errors import CatalogLoadError


def test_load_accepts_object_with_products_field(catalog_file):
    store = CatalogStore()
    products = store.load(catalog_file)
    assert [p.id for p in products] == [1, 2, 3]
    assert len(store) == 3


def test_load_accepts_bare_array(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps(PRODUCTS), encoding="utf-8")
    store = CatalogStore()
    assert [p.name for p in store.load(path)] == ["Serum", "Foaming Facial Cleanser", "Sky High Mascara"]


@pytest.mark.parametrize("document", [{"items": PRODUCTS}, {"products": "nope"}, "text", 42, None])
def test_other_shapes_yield_empty_catalog(document):
    assert parse_catalog(document) == []


def test_invalid_entries_are_skipped():
    entries = [PRODUCTS[0], "garbage", {"id": 9, "name": "No brand"}, dict(PRODUCTS[0]), PRODUCTS[1]]
    assert [p.id for p in parse_catalog(entries)] == [1, 2]


def test_malformed_json_raises_and_empties_store(tmp_path, catalog_file):
    store = CatalogStore()
    store.load(catalog_file)
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogLoadError):
        store.load(bad)
    assert store.products == ()


def test_missing_file_raises(tmp_path):
    with pytest.raises(CatalogLoadError):
        CatalogStore().load(tmp_path / "missing.json")


def test_load_from_url_uses_session():
    session = FakeSession(FakeResponse(200, PRODUCTS))
    store = CatalogStore(session=session)
    store.load("https://cdn.example.com/products.json")
    assert session.gets == ["https://cdn.example.com/products.json"]
    assert store.find_by_id(2).brand == "CeraVe"


def test_url_network_failure_raises():
    session = FakeSession(requests.ConnectionError("refused"))
    with pytest.raises(CatalogLoadError):
        CatalogStore(session=session).load("https://cdn.example.com/products.json")


def test_find_by_id_and_categories(catalog):
    assert catalog.find_by_id(3).name == "Sky High Mascara"
    assert catalog.find_by_id(404) is None
    assert catalog.categories() == ["cleanser", "Makeup", "skincare"]


def test_products_are_immutable(catalog):
    product = catalog.find_by_id(1)
    with pytest.raises(Exception):
        product.name = "Changed"


def test_module_docstring_is_set():
    import routine_builder.catalog_store as module

    assert module.__doc__ and module.__doc__.startswith("Catalog store")
