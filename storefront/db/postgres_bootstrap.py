"""
Declarative base shared by every model.
Kept apart from the connection module so models can import it without circular imports."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
