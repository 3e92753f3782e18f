"""Pydantic schemas for tasks.

- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT to modify a task (all optional)
- TaskRead: what the API returns, with the related users flattened
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskdesk.db.models import Task, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(default="")
    priority: TaskPriority
    assigned_to_user_id: Optional[int] = Field(None, alias="assignedToUserId")

    model_config = {"populate_by_name": True}


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the request are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None

    # Undeclared keys (e.g. an assignee) are rejected, not dropped.
    model_config = {"extra": "forbid"}

    def changes(self) -> dict:
        """Fields the client supplied with a non-null value."""
        return self.model_dump(exclude_none=True)


class TaskRead(BaseModel):
    id: int
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime
    assigned_user_id: Optional[int] = None
    assigned_user_name: Optional[str] = None
    created_by_user_id: Optional[int] = None
    created_by_user_name: Optional[str] = None
    updated_by_user_id: Optional[int] = None
    updated_by_user_name: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskRead":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            created_at=task.created_at,
            updated_at=task.updated_at,
            assigned_user_id=task.assigned_to.id if task.assigned_to else None,
            assigned_user_name=task.assigned_to.name if task.assigned_to else None,
            created_by_user_id=task.created_by.id if task.created_by else None,
            created_by_user_name=task.created_by.name if task.created_by else None,
            updated_by_user_id=task.updated_by.id if task.updated_by else None,
            updated_by_user_name=task.updated_by.name if task.updated_by else None,
        )
