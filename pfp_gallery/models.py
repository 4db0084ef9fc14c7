"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, JSON
from pfp_gallery.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Pfp(Base):
    """
    Gallery entry model.
    Stores title, author, image URL, category and tags of one profile picture.
    """
    __tablename__ = "pfps"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False, default="unknown")
    url = Column(String, nullable=False)
    cat = Column(String, nullable=False, default="top", index=True)
    tags = Column(JSON, nullable=False, default=list)
    # Microsecond resolution; listings are ordered by this column
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
