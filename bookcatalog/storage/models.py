"""
Database models for the book catalog.
"""

from datetime import datetime
from enum import IntEnum

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserRole(IntEnum):
    """Stored as its integer value."""
    UNKNOWN = 0
    ADMIN = 1


class BookModel(Base):
    """SQLAlchemy model for books."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ISBN uniqueness is enforced by the store, not only by the service
    isbn = Column(String(32), unique=True, nullable=False, index=True)

    title = Column(String(500), nullable=False)
    author = Column(String(500), nullable=False)
    publication_year = Column(Integer, nullable=False, index=True)
    language = Column(String(50), nullable=False)

    # Generated on create, never user supplied
    summary = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserModel(Base):
    """User account. Password handling is left to the caller."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    user_role = Column(Integer, nullable=False, default=int(UserRole.UNKNOWN))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def role(self) -> UserRole:
        return UserRole(self.user_role)
