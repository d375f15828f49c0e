"""
Users SQLAlchemy model. Only administrative accounts log in.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from storefront.db.postgres_bootstrap import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(String(32), nullable=False, default="admin")

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
