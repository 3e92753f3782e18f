"""SQLAlchemy ORM models — single source of truth for the database schema.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Enum-valued columns are stored as plain strings; the str-based enums
below compare equal to the stored values, so `user.role == Role.USER`
works on freshly loaded rows.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════
# Enumerations
# ══════════════════════════════════════════════════════════════


class Role(str, enum.Enum):
    ADMIN = "ADMIN"      # account administration
    MANAGER = "MANAGER"  # task creation, assignment, oversight
    USER = "USER"        # task execution


class TaskStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AssignmentType(str, enum.Enum):
    """Names under which assignment strategies are registered."""

    MANUAL = "MANUAL"
    RANDOM = "RANDOM"
    LEAST_LOADED = "LEAST_LOADED"


# ══════════════════════════════════════════════════════════════
# Tables
# ══════════════════════════════════════════════════════════════


class User(Base):
    """An account — the identity behind every authenticated request.

    Users are never hard-deleted; admins deactivate them instead.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Task(Base):
    """A unit of work created by a manager and worked by a USER-role assignee.

    Invariant: assigned_to, when set, is a user whose role is USER.
    Every assignment path (create, assign) enforces it.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_assignee_status", "assigned_to_id", "status"),
        Index("idx_tasks_status_priority", "status", "priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskStatus.OPEN.value
    )
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=TaskPriority.MEDIUM.value
    )

    created_by_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    assigned_to_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    updated_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Eager-loaded: async sessions cannot lazy-load on attribute access.
    created_by: Mapped["User"] = relationship(
        foreign_keys=[created_by_id], lazy="selectin"
    )
    assigned_to: Mapped[Optional["User"]] = relationship(
        foreign_keys=[assigned_to_id], lazy="selectin"
    )
    updated_by: Mapped[Optional["User"]] = relationship(
        foreign_keys=[updated_by_id], lazy="selectin"
    )


class Comment(Base):
    """A message left on a task by a manager or its assignee."""

    __tablename__ = "comments"
    __table_args__ = (
        Index("idx_comments_task", "task_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    commented_by_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    commented_by: Mapped["User"] = relationship(lazy="selectin")
