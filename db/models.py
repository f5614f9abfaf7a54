"""
YAO - SQLAlchemy ORM Models

The journaling product stores every user document, books included, in one
table. Books are the rows with document_type 'iching_book' (older rows
may only carry tool_slug 'iching'); their content lives in document_data.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

BOOK_DOCUMENT_TYPE = "iching_book"
BOOK_TOOL_SLUG = "iching"

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserDocument(Base):
    """A user-owned document; I Ching books are one kind of document."""
    __tablename__ = "user_documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tool_slug: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    document_data: Mapped[Dict[str, Any]] = mapped_column(DocumentJSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=True
    )

    __table_args__ = (
        Index("ix_user_documents_user_type", "user_id", "document_type"),
        Index("ix_user_documents_public_created", "is_public", "created_at"),
    )

    @property
    def is_book(self) -> bool:
        return self.document_type == BOOK_DOCUMENT_TYPE or self.tool_slug == BOOK_TOOL_SLUG

    def __repr__(self) -> str:
        return f"<UserDocument(id={self.id}, user_id={self.user_id}, type={self.document_type})>"
