"""Data-store façade — the find/save/delete surface the services use.

Each store wraps the request's AsyncSession. Stores only add/flush/delete;
committing is the caller's job, so one use case = one transaction.
"""

from typing import Optional, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.db.models import Comment, Role, Task, TaskStatus, User

# Public sort keys for task listings → mapped columns.
TASK_SORT_COLUMNS = {
    "id": Task.id,
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
    "createdAt": Task.created_at,
    "created_at": Task.created_at,
    "updatedAt": Task.updated_at,
    "updated_at": Task.updated_at,
}


async def _paginate(
    db: AsyncSession, query: Select, page: int, size: int
) -> tuple[list, int]:
    """Run `query` for one zero-based page and return (rows, total_count)."""
    total = await db.scalar(
        select(func.count()).select_from(query.order_by(None).subquery())
    )
    result = await db.execute(query.limit(size).offset(page * size))
    return list(result.scalars().all()), int(total or 0)


class UserStore:
    """Credential store — user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def list_active_by_role(self, role: Role) -> list[User]:
        """Active accounts with `role`, in ascending id order."""
        result = await self.db.execute(
            select(User)
            .where(User.role == role.value, User.is_active.is_(True))
            .order_by(User.id)
        )
        return list(result.scalars().all())

    async def any_with_role(self, role: Role) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.role == role.value).limit(1)
        )
        return result.first() is not None

    async def find_filtered(
        self,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        page: int = 0,
        size: int = 10,
    ) -> tuple[list[User], int]:
        """Filters are applied only when the caller provides them."""
        query = select(User).order_by(User.id)
        if role is not None:
            query = query.where(User.role == role.value)
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))
        return await _paginate(self.db, query, page, size)

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()  # get the auto-generated id
        return user


class TaskStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, task_id: int) -> Optional[Task]:
        return await self.db.get(Task, task_id)

    async def find_filtered(
        self,
        status: Optional[TaskStatus] = None,
        priority=None,
        assigned_to_id: Optional[int] = None,
        page: int = 0,
        size: int = 10,
        sort_by: str = "id",
    ) -> tuple[list[Task], int]:
        sort_column = TASK_SORT_COLUMNS[sort_by]
        query = select(Task).order_by(sort_column, Task.id)
        if status is not None:
            query = query.where(Task.status == status.value)
        if priority is not None:
            query = query.where(Task.priority == priority.value)
        if assigned_to_id is not None:
            query = query.where(Task.assigned_to_id == assigned_to_id)
        return await _paginate(self.db, query, page, size)

    async def open_task_counts(self, user_ids: Sequence[int]) -> dict[int, int]:
        """Count assigned tasks not yet DONE, per user id.

        Users without any open task are absent from the result.
        """
        if not user_ids:
            return {}
        result = await self.db.execute(
            select(Task.assigned_to_id, func.count(Task.id))
            .where(
                Task.assigned_to_id.in_(list(user_ids)),
                Task.status != TaskStatus.DONE.value,
            )
            .group_by(Task.assigned_to_id)
        )
        return {user_id: count for user_id, count in result.all()}

    async def has_assigned_tasks(self, user_id: int) -> bool:
        result = await self.db.execute(
            select(Task.id).where(Task.assigned_to_id == user_id).limit(1)
        )
        return result.first() is not None

    async def add(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.flush()
        return task


class CommentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, comment_id: int) -> Optional[Comment]:
        return await self.db.get(Comment, comment_id)

    async def list_for_task(
        self, task_id: int, page: int = 0, size: int = 10
    ) -> tuple[list[Comment], int]:
        query = (
            select(Comment)
            .where(Comment.task_id == task_id)
            .order_by(Comment.created_at, Comment.id)
        )
        return await _paginate(self.db, query, page, size)

    async def add(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self.db.flush()
        return comment

    async def delete(self, comment: Comment) -> None:
        await self.db.delete(comment)
        await self.db.flush()
