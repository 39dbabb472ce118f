import threading

import pytest

from routine_builder.filter_engine import Debouncer, LiveFilter, filter_products


@pytest.mark.parametrize("category", ["", "all", None])
def test_no_category_returns_catalog_unchanged(catalog, category):
    assert filter_products(catalog.products, "", category) == list(catalog.products)


def test_category_is_case_insensitive_exact(catalog):
    assert [p.id for p in filter_products(catalog.products, "", "makeup")] == [3]
    assert [p.id for p in filter_products(catalog.products, "", "SKINCARE")] == [1]
    assert filter_products(catalog.products, "", "skin") == []


@pytest.mark.parametrize(
    "query,expected",
    [
        ("serum", [1]),
        ("CERAVE", [2]),
        ("cleanser", [2]),
        ("bamboo", [3]),
        ("skin", [1, 2]),
        ("zzz", []),
    ],
)
def test_query_matches_any_text_field(catalog, query, expected):
    assert [p.id for p in filter_products(catalog.products, query, "all")] == expected


def test_surrounding_whitespace_is_not_stripped(catalog):
    assert filter_products(catalog.products, "  skin", "all") == []
    assert filter_products(catalog.products, "", " skincare ") == []
    assert [p.id for p in filter_products(catalog.products, " skin", "all")] == [1, 2]


def test_query_and_category_are_anded(catalog):
    assert filter_products(catalog.products, "skin", "cleanser")[0].id == 2
    assert filter_products(catalog.products, "serum", "cleanser") == []


def test_filter_does_not_mutate_input(catalog):
    products = list(catalog.products)
    filter_products(products, "serum", "skincare")
    assert products == list(catalog.products)


def test_debouncer_flush_runs_only_latest_call():
    calls = []
    debouncer = Debouncer(calls.append, wait_seconds=60)
    debouncer.call("s")
    debouncer.call("se")
    debouncer.call("ser")
    assert debouncer.pending
    debouncer.flush()
    assert calls == ["ser"]
    assert not debouncer.pending
    assert debouncer.flush() is None


def test_debouncer_cancel_drops_pending_call():
    calls = []
    debouncer = Debouncer(calls.append, wait_seconds=60)
    debouncer.call("x")
    debouncer.cancel()
    assert calls == []
    assert not debouncer.pending


def test_debouncer_fires_after_quiescence():
    fired = threading.Event()
    calls = []

    def record(value):
        calls.append(value)
        fired.set()

    debouncer = Debouncer(record, wait_seconds=0.05)
    debouncer.call("a")
    debouncer.call("b")
    assert fired.wait(5)
    assert calls == ["b"]


def test_live_filter_debounces_query_but_not_category(catalog):
    renders = []
    live = LiveFilter(lambda: catalog.products, renders.append, debounce_seconds=60)

    live.set_query("serum")
    assert renders == []

    live.flush()
    assert [p.id for p in renders[-1]] == [1]

    visible = live.set_category("cleanser")
    assert visible == []
    assert len(renders) == 2

    live.set_query("")
    live.flush()
    assert [p.id for p in live.visible] == [2]
    live.close()
