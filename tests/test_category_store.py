import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    CategoryHasChildrenError,
    CategoryNotFoundError,
    DuplicateSlugError,
    StoreFailureError
)


def test_insert_assigns_id_and_timestamps(store):
    category = store.insert({"name": "Widget", "slug": "widget", "is_active": True})

    assert category.id
    assert category.created_at is not None
    assert category.updated_at is not None


def test_unique_constraint_catches_racing_insert(store):
    # Two writers that both passed the pre-check; the constraint stops the second
    store.insert({"name": "Widget", "slug": "widget", "is_active": True})

    with pytest.raises(DuplicateSlugError):
        store.insert({"name": "Widget Again", "slug": "widget", "is_active": True})

    assert store.count() == 1


def test_unique_constraint_catches_racing_update(store):
    store.insert({"name": "Widget", "slug": "widget", "is_active": True})
    gadget = store.insert({"name": "Gadget", "slug": "gadget", "is_active": True})

    with pytest.raises(DuplicateSlugError):
        store.update(gadget.id, {"slug": "widget"})

    assert store.find_by_id(gadget.id).slug == "gadget"


def test_update_of_vanished_row(store):
    with pytest.raises(CategoryNotFoundError):
        store.update("nonexistent-id", {"name": "X"})


def test_find_by_slug_excluding_own_row(store):
    widget = store.insert({"name": "Widget", "slug": "widget", "is_active": True})

    assert store.find_by_slug("widget").id == widget.id
    assert store.find_by_slug("widget", exclude_id=widget.id) is None


def test_parent_links_and_children(store):
    root = store.insert({"name": "Root", "slug": "root", "is_active": True})
    leaf = store.insert({"name": "Leaf", "slug": "leaf", "parent_id": root.id, "is_active": True})

    assert store.parent_links() == {root.id: None, leaf.id: root.id}
    assert store.count_children(root.id) == 1
    assert store.count_children(leaf.id) == 0


def test_read_failure_is_wrapped(store, db_session, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(db_session, "query", broken_query)

    with pytest.raises(StoreFailureError) as exc_info:
        store.find_by_id("anything")

    assert exc_info.value.operation == "find_by_id"
    assert "connection reset" not in exc_info.value.message


def test_parent_constraint_blocks_delete_of_parent(store):
    # A child attached after the caller counted children; the foreign key stops the delete
    root = store.insert({"name": "Root", "slug": "root", "is_active": True})
    leaf = store.insert({"name": "Leaf", "slug": "leaf", "parent_id": root.id, "is_active": True})

    with pytest.raises(CategoryHasChildrenError) as exc_info:
        store.delete(root.id)

    assert exc_info.value.details["children"] == 1
    assert store.find_by_id(root.id) is not None
    assert store.find_by_id(leaf.id).parent_id == root.id
