"""
Record store for the categories table.

Every call that touches the database is wrapped so that SQLAlchemy errors
surface as StoreFailureError; a unique-constraint hit on the slug column
surfaces as DuplicateSlugError. Writes commit immediately, so each insert,
update or delete is a single atomic step.
"""
from typing import Any, Dict, List, Optional
from contextlib import contextmanager
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import (
    CategoryHasChildrenError,
    CategoryNotFoundError,
    DuplicateSlugError,
    ParentNotFoundError,
    StoreFailureError
)
from models.category import Category

logger = logging.getLogger(__name__)


class CategoryStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Category store {operation} failed: {str(e)}")
            raise StoreFailureError(operation, cause=e) from e

    def find_by_id(self, category_id: str) -> Optional[Category]:
        with self._guard("find_by_id"):
            return self.db.query(Category).filter(Category.id == category_id).first()

    def find_by_slug(self, slug: str, exclude_id: Optional[str] = None) -> Optional[Category]:
        with self._guard("find_by_slug"):
            query = self.db.query(Category).filter(Category.slug == slug)
            if exclude_id is not None:
                query = query.filter(Category.id != exclude_id)
            return query.first()

    def list_all(
        self,
        active_only: bool = False,
        parent_id: Optional[str] = None,
        roots_only: bool = False
    ) -> List[Category]:
        with self._guard("list_all"):
            query = self.db.query(Category)
            if active_only:
                query = query.filter(Category.is_active.is_(True))
            if roots_only:
                query = query.filter(Category.parent_id.is_(None))
            elif parent_id is not None:
                query = query.filter(Category.parent_id == parent_id)
            return query.order_by(Category.name.asc()).all()

    def count(self) -> int:
        with self._guard("count"):
            return self.db.query(func.count(Category.id)).scalar()

    def parent_links(self) -> Dict[str, Optional[str]]:
        """Map every category id to its parent id.

        Rows are read FOR UPDATE where the backend supports it, so two
        re-parenting operations cannot both pass the cycle check on stale data.
        """
        with self._guard("parent_links"):
            rows = self.db.query(Category.id, Category.parent_id).with_for_update().all()
            return {row.id: row.parent_id for row in rows}

    def count_children(self, category_id: str) -> int:
        with self._guard("count_children"):
            return self.db.query(func.count(Category.id)).filter(
                Category.parent_id == category_id
            ).scalar()

    def insert(self, values: Dict[str, Any]) -> Category:
        category = Category(**values)
        with self._guard("insert"):
            try:
                self.db.add(category)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                self._raise_integrity(e, values)
            self.db.refresh(category)
            return category

    def update(self, category_id: str, values: Dict[str, Any]) -> Category:
        with self._guard("update"):
            category = self.db.query(Category).filter(Category.id == category_id).first()
            if category is None:
                raise CategoryNotFoundError(category_id)
            for field, value in values.items():
                setattr(category, field, value)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                self._raise_integrity(e, values)
            self.db.refresh(category)
            return category

    def delete(self, category_id: str) -> None:
        with self._guard("delete"):
            category = self.db.query(Category).filter(Category.id == category_id).first()
            if category is None:
                return
            try:
                self.db.delete(category)
                self.db.commit()
            except IntegrityError as e:
                # A child was attached after the caller counted children
                self.db.rollback()
                logger.warning(f"Parent constraint blocked delete of category {category_id}")
                raise CategoryHasChildrenError(category_id, self.count_children(category_id)) from e

    def rollback(self) -> None:
        """End the read transaction left open by a rejected operation."""
        with self._guard("rollback"):
            self.db.rollback()

    def _raise_integrity(self, error: IntegrityError, values: Dict[str, Any]):
        text = str(error.orig).lower()
        if "slug" in text:
            logger.warning(f"Slug constraint rejected write: {values.get('slug')}")
            raise DuplicateSlugError(values.get("slug", ""))
        if "foreign key" in text and values.get("parent_id"):
            logger.warning(f"Parent constraint rejected write: {values.get('parent_id')}")
            raise ParentNotFoundError(values["parent_id"])
        logger.error(f"Integrity error in category store: {str(error)}")
        raise StoreFailureError("write", cause=error) from error
