from __future__ import annotations

import pytest

from pivot_engine.annotations import AnnotationStore, InMemoryAnnotationStore


def test_set_get_delete() -> None:
    store: AnnotationStore = InMemoryAnnotationStore()
    store.set("leads.month-on-month", "• Referral conversions doubled")
    assert store.get("leads.month-on-month") == "• Referral conversions doubled"
    assert store.get("sales.year-on-year") is None
    assert store.get("sales.year-on-year", "") == ""
    store.delete("leads.month-on-month")
    assert store.items() == []


def test_blank_text_clears_annotation() -> None:
    store = InMemoryAnnotationStore({"trainers": "old note"})
    store.set("trainers", "   ")
    assert store.get("trainers") is None


def test_items_are_sorted_and_view_id_required() -> None:
    store = InMemoryAnnotationStore({"b": "2", "a": "1"})
    assert store.items() == [("a", "1"), ("b", "2")]
    with pytest.raises(ValueError):
        store.set("", "x")
