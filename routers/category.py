from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from database.connection import get_db
from database.category_store import CategoryStore
from core.response import success_response
from core.exceptions import BaseCustomException
from services.category import (
    create_category,
    get_category,
    list_categories,
    update_category,
    delete_category,
    build_category_tree
)
from schemas.category import CategoryCreate, CategoryUpdate, to_category_response

logger = logging.getLogger(__name__)

router = APIRouter()

def get_category_store(db: Session = Depends(get_db)) -> CategoryStore:
    return CategoryStore(db)

def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error while trying to {action}: {str(e)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )

@router.post("", status_code=status.HTTP_201_CREATED)
def create(category_data: CategoryCreate, store: CategoryStore = Depends(get_category_store)):
    """Create a new category"""
    try:
        category = create_category(store, category_data)
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("create category", e)

    return success_response(
        data={"category": to_category_response(category)},
        message="Category created successfully"
    )

@router.get("")
def list_all(
    active_only: bool = Query(False),
    parent_id: Optional[str] = Query(None, description="Only direct children of this category"),
    roots_only: bool = Query(False),
    store: CategoryStore = Depends(get_category_store)
):
    """List categories ordered by name"""
    try:
        categories = list_categories(
            store, active_only=active_only, parent_id=parent_id, roots_only=roots_only
        )
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("fetch categories", e)

    return success_response(
        data={"categories": [to_category_response(c) for c in categories]},
        message="Categories retrieved successfully",
        meta={"total": len(categories)}
    )

@router.get("/tree")
def tree(
    active_only: bool = Query(False),
    store: CategoryStore = Depends(get_category_store)
):
    """Categories nested under their parents"""
    try:
        roots = build_category_tree(store, active_only=active_only)
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("build category tree", e)

    return success_response(data={"tree": roots}, message="Category tree retrieved successfully")

@router.get("/{category_id}")
def get_one(category_id: str, store: CategoryStore = Depends(get_category_store)):
    try:
        category = get_category(store, category_id)
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("fetch category", e)

    return success_response(
        data={"category": to_category_response(category)},
        message="Category retrieved successfully"
    )

@router.patch("/{category_id}")
def update(
    category_id: str,
    category_data: CategoryUpdate,
    store: CategoryStore = Depends(get_category_store)
):
    """Update an existing category; only the fields sent are changed"""
    try:
        category = update_category(store, category_id, category_data)
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("update category", e)

    return success_response(
        data={"category": to_category_response(category)},
        message="Category updated successfully"
    )

@router.delete("/{category_id}")
def delete(category_id: str, store: CategoryStore = Depends(get_category_store)):
    """Delete a category that has no children"""
    try:
        delete_category(store, category_id)
    except BaseCustomException:
        raise
    except Exception as e:
        raise _unexpected("delete category", e)

    return success_response(data={"id": category_id}, message="Category deleted successfully")
