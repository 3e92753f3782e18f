"""Comment service — task discussion threads.

A task's thread is open to admins, the task's creator and its assignee.
Posting additionally requires a MANAGER or USER role; deleting requires
being the author or an admin.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth import policy
from taskdesk.auth.dependencies import CurrentIdentity
from taskdesk.db.models import Comment, Task
from taskdesk.db.store import CommentStore, TaskStore, UserStore
from taskdesk.errors import BadRequest, NotFound

logger = structlog.get_logger()


class CommentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.comments = CommentStore(db)
        self.tasks = TaskStore(db)
        self.users = UserStore(db)

    async def _task_or_404(self, task_id: int) -> Task:
        task = await self.tasks.get(task_id)
        if task is None:
            raise NotFound.for_resource("Task", "id", task_id)
        return task

    @staticmethod
    def _thread_access(identity: CurrentIdentity, task: Task) -> policy.Decision:
        return policy.can_access_task_comments(
            identity.actor,
            creator_id=task.created_by.id if task.created_by else None,
            assignee_id=task.assigned_to.id if task.assigned_to else None,
        )

    async def create_comment(
        self, identity: CurrentIdentity, task_id: int, message: str
    ) -> Comment:
        task = await self._task_or_404(task_id)
        policy.can_create_comment(identity.actor).enforce()
        self._thread_access(identity, task).enforce()

        comment = Comment(
            message=message,
            task_id=task.id,
            commented_by=await self.users.get(identity.user_id),
        )
        await self.comments.add(comment)
        await self.db.commit()
        logger.info("comment.created", comment_id=comment.id, task_id=task.id)
        return comment

    async def list_comments(
        self,
        identity: CurrentIdentity,
        task_id: int,
        page: int = 0,
        size: int = 10,
    ) -> tuple[list[Comment], int]:
        """One page of a task's comments, oldest first."""
        task = await self._task_or_404(task_id)
        self._thread_access(identity, task).enforce()
        return await self.comments.list_for_task(task.id, page=page, size=size)

    async def delete_comment(
        self, identity: CurrentIdentity, task_id: int, comment_id: int
    ) -> None:
        comment = await self.comments.get(comment_id)
        if comment is None:
            raise NotFound.for_resource("Comment", "id", comment_id)
        if comment.task_id != task_id:
            raise BadRequest("Comment does not belong to this task")

        policy.can_delete_comment(identity.actor, comment.commented_by_id).enforce()

        await self.comments.delete(comment)
        await self.db.commit()
        logger.info(
            "comment.deleted",
            comment_id=comment_id,
            task_id=task_id,
            by=identity.user_id,
        )
