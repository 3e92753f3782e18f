"""Pydantic schemas for task comments."""

from datetime import datetime

from pydantic import BaseModel, Field

from taskdesk.db.models import Comment


class CommentCreate(BaseModel):
    message: str = Field(..., min_length=1)


class CommentRead(BaseModel):
    id: int
    task_id: int
    message: str
    commented_by_id: int
    commented_by: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentRead":
        return cls(
            id=comment.id,
            task_id=comment.task_id,
            message=comment.message,
            commented_by_id=comment.commented_by_id,
            commented_by=comment.commented_by.name,
            created_at=comment.created_at,
        )
