"""Declarative base, ULID keys and timestamps shared by every table."""

from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import JSON, String, DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """26-char ULID; lexical order follows creation order."""
    return str(ULID())


class Base(DeclarativeBase):
    # Embedded documents (history, queue, skills, quote) are JSON columns.
    type_annotation_map = {dict: JSON, list: JSON}


class ULIDMixin:
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
