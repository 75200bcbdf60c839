"""
Category tree maintenance.

Create and update keep four things true for every stored category: slugs are
unique, a parent reference points at an existing row, no category is its own
parent, and following parent links always ends at a root.
"""
from typing import Any, Dict, List, Optional
import logging

from core.exceptions import (
    BaseCustomException,
    CategoryHasChildrenError,
    CategoryNotFoundError,
    CircularReferenceError,
    DuplicateSlugError,
    ParentNotFoundError,
    SelfParentError
)
from database.category_store import CategoryStore
from models.category import Category
from schemas.category import (
    CategoryCreate,
    CategoryTreeNode,
    CategoryUpdate,
    normalize_slug,
    to_category_response
)

logger = logging.getLogger(__name__)


def _normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Trim text fields and lower-case the slug; empty optionals become None."""
    normalized = dict(fields)
    if normalized.get("name") is not None:
        normalized["name"] = normalized["name"].strip()
    if normalized.get("slug") is not None:
        normalized["slug"] = normalize_slug(normalized["slug"])
    for key in ("description", "image_url", "parent_id"):
        if key in normalized and normalized[key] is not None:
            normalized[key] = normalized[key].strip() or None
    return normalized


def find_cycle(links: Dict[str, Optional[str]], category_id: str, parent_id: str) -> bool:
    """Return True if hanging ``category_id`` under ``parent_id`` closes a loop.

    Walks upward from ``parent_id`` through ``links`` (id -> parent id). The
    walk stops at a root, at a dangling reference, or after visiting every
    known node once.
    """
    visited = set()
    current = parent_id
    while current is not None and current not in visited:
        if current == category_id:
            return True
        visited.add(current)
        if current not in links:
            break
        current = links[current]
    return False


def get_category(store: CategoryStore, category_id: str) -> Category:
    category = store.find_by_id(category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


def list_categories(
    store: CategoryStore,
    active_only: bool = False,
    parent_id: Optional[str] = None,
    roots_only: bool = False
) -> List[Category]:
    """Categories ordered by name"""
    return store.list_all(active_only=active_only, parent_id=parent_id, roots_only=roots_only)


def create_category(store: CategoryStore, category_data: CategoryCreate) -> Category:
    """Create a category after checking slug uniqueness and parent existence."""
    values = _normalize_fields(category_data.dict())
    if values.get("is_active") is None:
        values["is_active"] = True

    try:
        if store.find_by_slug(values["slug"]) is not None:
            logger.warning(f"Attempt to create category with existing slug: {values['slug']}")
            raise DuplicateSlugError(values["slug"])

        parent_id = values.get("parent_id")
        if parent_id is not None and store.find_by_id(parent_id) is None:
            logger.warning(f"Attempt to create category under missing parent: {parent_id}")
            raise ParentNotFoundError(parent_id)
    except BaseCustomException:
        store.rollback()
        raise

    category = store.insert(values)
    logger.info(f"Category created: {category.slug} ({category.id})")
    return category


def update_category(store: CategoryStore, category_id: str, category_data: CategoryUpdate) -> Category:
    """Apply a partial update, rejecting slug clashes and parent cycles."""
    changes = _normalize_fields(category_data.dict(exclude_unset=True))

    try:
        category = get_category(store, category_id)

        new_slug = changes.get("slug")
        if new_slug is not None and new_slug != category.slug:
            if store.find_by_slug(new_slug, exclude_id=category_id) is not None:
                logger.warning(f"Attempt to reuse slug {new_slug} for category {category_id}")
                raise DuplicateSlugError(new_slug)

        if "parent_id" in changes and changes["parent_id"] != category.parent_id:
            _check_new_parent(store, category_id, changes["parent_id"])
    except BaseCustomException:
        store.rollback()
        raise

    updated = store.update(category_id, changes)
    logger.info(f"Category updated: {updated.slug} ({updated.id}) fields={sorted(changes)}")
    return updated


def _check_new_parent(store: CategoryStore, category_id: str, parent_id: Optional[str]):
    if parent_id is None:
        return

    if parent_id == category_id:
        logger.warning(f"Attempt to make category {category_id} its own parent")
        raise SelfParentError(category_id)

    if store.find_by_id(parent_id) is None:
        logger.warning(f"Attempt to move category {category_id} under missing parent {parent_id}")
        raise ParentNotFoundError(parent_id)

    if find_cycle(store.parent_links(), category_id, parent_id):
        logger.warning(f"Rejected circular reference: {category_id} under {parent_id}")
        raise CircularReferenceError(category_id, parent_id)


def delete_category(store: CategoryStore, category_id: str) -> None:
    """Delete a leaf category"""
    try:
        get_category(store, category_id)
        children = store.count_children(category_id)
        if children:
            logger.warning(f"Attempt to delete category {category_id} with {children} children")
            raise CategoryHasChildrenError(category_id, children)
    except BaseCustomException:
        store.rollback()
        raise

    store.delete(category_id)
    logger.info(f"Category deleted: {category_id}")


def build_category_tree(store: CategoryStore, active_only: bool = False) -> List[CategoryTreeNode]:
    """Nest categories under their parents; roots and siblings sorted by name.

    A category whose parent is filtered out (inactive) is listed as a root.
    """
    categories = store.list_all(active_only=active_only)
    nodes = {
        category.id: CategoryTreeNode(**to_category_response(category).dict())
        for category in categories
    }

    roots = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id) if category.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots
