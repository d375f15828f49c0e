"""
Categories SQLAlchemy model.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from storefront.db.postgres_bootstrap import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)  # Category name must be unique

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"
