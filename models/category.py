import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship, backref
from database.base import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    parent_id = Column(String, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    # Deleting a parent never rewrites its children; the RESTRICT rule decides
    parent = relationship(
        "Category",
        remote_side=[id],
        backref=backref("children", passive_deletes="all")
    )

    def __repr__(self):
        return f"<Category {self.slug} parent={self.parent_id}>"
