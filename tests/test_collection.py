from __future__ import annotations

from crm_console.collection import KeyedCollection, by_sort_order_then_name
from crm_console.envelope import Pagination


def _contacts() -> KeyedCollection:
    return KeyedCollection("contact_id")


def test_insert_then_replace_and_remove_by_key() -> None:
    collection = _contacts()
    collection.insert({"contact_id": "a", "first_name": "Avery"})
    collection.insert({"contact_id": "b", "first_name": "Blake"})

    assert collection.keys() == ["b", "a"]
    assert collection.replace({"contact_id": "a", "first_name": "Avery M."}) is True
    assert collection.find("a") == {"contact_id": "a", "first_name": "Avery M."}

    removed = collection.remove("a")
    assert removed == {"contact_id": "a", "first_name": "Avery M."}
    assert "a" not in collection
    assert len(collection) == 1


def test_insert_existing_key_keeps_one_entry() -> None:
    collection = _contacts()
    collection.insert({"contact_id": "a", "v": 1})
    collection.insert({"contact_id": "b", "v": 1})
    collection.insert({"contact_id": "a", "v": 2})

    assert collection.keys() == ["a", "b"]
    assert collection.find("a") == {"contact_id": "a", "v": 2}


def test_append_mode_keeps_insertion_order() -> None:
    phones = KeyedCollection("id", insert_at="end")
    for key in ("p1", "p2", "p3"):
        phones.insert({"id": key})

    assert phones.keys() == ["p1", "p2", "p3"]


def test_replace_never_moves_or_inserts() -> None:
    collection = _contacts()
    collection.replace_all([{"contact_id": key} for key in ("a", "b", "c")])

    collection.replace({"contact_id": "b", "first_name": "Updated"})
    assert collection.keys() == ["a", "b", "c"]

    assert collection.replace({"contact_id": "zzz"}) is False
    assert "zzz" not in collection


def test_replace_with_merge_overlays_fields() -> None:
    follow_ups = KeyedCollection("id")
    follow_ups.replace_all([{"id": "f1", "status": "scheduled", "case_title": "Housing"}])
    follow_ups.select(follow_ups.find("f1"))

    follow_ups.replace({"id": "f1", "status": "completed"}, merge=True)

    assert follow_ups.find("f1") == {"id": "f1", "status": "completed", "case_title": "Housing"}
    assert follow_ups.selected == follow_ups.find("f1")


def test_selection_follows_insert_and_replace() -> None:
    collection = _contacts()
    collection.insert({"contact_id": "a", "first_name": "A"})
    collection.select({"contact_id": "a", "first_name": "A"})

    collection.replace({"contact_id": "a", "first_name": "B"})

    assert collection.find("a") == {"contact_id": "a", "first_name": "B"}
    assert collection.selected == {"contact_id": "a", "first_name": "B"}


def test_remove_clears_matching_selection_only() -> None:
    collection = _contacts()
    collection.replace_all([{"contact_id": "a"}, {"contact_id": "b"}])
    collection.select_key("a")

    collection.remove("b")
    assert collection.selected == {"contact_id": "a"}

    collection.remove("a")
    assert collection.selected is None


def test_remove_returns_selection_when_not_listed() -> None:
    collection = _contacts()
    collection.select({"contact_id": "detail-only"})

    assert collection.remove("detail-only") == {"contact_id": "detail-only"}
    assert collection.selected is None


def test_replace_all_refreshes_selection_without_clearing_it() -> None:
    collection = _contacts()
    collection.select({"contact_id": "a", "first_name": "Old"})

    collection.replace_all([{"contact_id": "a", "first_name": "New"}], Pagination(total=1))
    assert collection.selected == {"contact_id": "a", "first_name": "New"}
    assert collection.pagination.total == 1

    collection.replace_all([{"contact_id": "b"}])
    assert collection.selected == {"contact_id": "a", "first_name": "New"}
    assert collection.pagination.total == 1


def test_patch_does_not_alias_list_entry_and_selection() -> None:
    collection = _contacts()
    record = {"contact_id": "a", "note_count": 1}
    collection.insert(record)
    collection.select(record)

    def bump(item):  # type: ignore[no-untyped-def]
        item["note_count"] += 1
        return item

    assert collection.patch("a", bump) is True
    assert collection.find("a")["note_count"] == 2
    assert collection.selected["note_count"] == 2
    assert record["note_count"] == 1


def test_ordered_collection_sorts_by_order_then_name() -> None:
    outcomes = KeyedCollection("id", order_by=by_sort_order_then_name)
    outcomes.insert({"id": "1", "name": "zeta", "sort_order": 1})
    outcomes.insert({"id": "2", "name": "Alpha", "sort_order": 1})
    outcomes.insert({"id": "3", "name": "first", "sort_order": 0})

    assert outcomes.keys() == ["3", "2", "1"]

    outcomes.replace({"id": "3", "name": "first", "sort_order": 5})
    assert outcomes.keys() == ["2", "1", "3"]


def test_reset_keeps_page_size() -> None:
    collection = _contacts()
    collection.replace_all([{"contact_id": "a"}], Pagination(total=1, limit=50))
    collection.select_key("a")

    collection.reset()

    assert len(collection) == 0
    assert collection.selected is None
    assert collection.pagination == Pagination(limit=50)
