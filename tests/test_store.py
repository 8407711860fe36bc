# File: tests/test_store.py
import pytest
from doc_scout.store import Item, ItemStore, Source


def test_first_sighting_wins(clock):
    store = ItemStore(clock=clock)
    assert store.add("https://a.com/x.pdf", Source.DOM)
    clock.advance(5)
    assert not store.add("https://a.com/x.pdf", Source.FETCH)

    item = store.get("https://a.com/x.pdf")
    assert item == Item(url="https://a.com/x.pdf", source=Source.DOM, discovered_at=1000.0)
    assert len(store) == 1


def test_insertion_order_is_kept():
    store = ItemStore()
    urls = [f"https://a.com/{n}.pptx" for n in ("c", "a", "b")]
    for url in urls:
        store.add(url, Source.RESOURCE)
    store.add(urls[0], Source.DOM)

    assert store.urls() == urls
    assert [i.url for i in store] == urls
    assert "https://a.com/a.pptx" in store
    assert "https://a.com/z.pptx" not in store


@pytest.mark.parametrize("url", ["", None])
def test_empty_urls_are_ignored(url):
    calls = []
    store = ItemStore(on_change=calls.append)
    assert not store.add(url, Source.DOM)
    assert len(store) == 0
    assert calls == []


def test_on_change_fires_once_per_insert():
    seen = []
    store = ItemStore(on_change=lambda s: seen.append(len(s)))
    store.add("https://a.com/1.pdf", Source.DOM)
    store.add("https://a.com/1.pdf", Source.XHR)
    store.add("https://a.com/2.pdf", "xhr")

    assert seen == [1, 2]
    assert store.get("https://a.com/2.pdf").source is Source.XHR


def test_item_as_dict(clock):
    store = ItemStore(clock=clock)
    store.add("https://a.com/1.pdf", Source.PREVIEW)
    assert store.all()[0].as_dict() == {
        "url": "https://a.com/1.pdf",
        "source": "preview",
        "discovered_at": 1000.0,
    }
