"""Task service — creation, assignment, reads and updates.

Each use case runs the same sequence:
1. Existence check (NotFound)
2. Policy check against the caller's identity (Forbidden)
3. Strategy selection, where relevant
4. Field mutation
5. A single commit
"""

import random
from typing import Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth import policy
from taskdesk.auth.dependencies import CurrentIdentity
from taskdesk.db.models import (
    AssignmentType,
    Role,
    Task,
    TaskPriority,
    TaskStatus,
)
from taskdesk.db.store import TASK_SORT_COLUMNS, TaskStore, UserStore
from taskdesk.errors import BadRequest, NotFound
from taskdesk.services.assignment import StrategyRegistry

logger = structlog.get_logger()


def _assignee_id(task: Task) -> Optional[int]:
    return task.assigned_to.id if task.assigned_to is not None else None


class TaskService:
    """Business logic for task CRUD and assignment."""

    def __init__(
        self,
        db: AsyncSession,
        strategies: Optional[StrategyRegistry] = None,
        rng: Optional[random.Random] = None,
    ):
        self.db = db
        self.tasks = TaskStore(db)
        self.users = UserStore(db)
        self.strategies = strategies or StrategyRegistry.build(db, rng=rng)

    async def _get_or_404(self, task_id: int) -> Task:
        task = await self.tasks.get(task_id)
        if task is None:
            raise NotFound.for_resource("Task", "id", task_id)
        return task

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        identity: CurrentIdentity,
        title: str,
        priority: TaskPriority,
        description: str = "",
        assigned_to_user_id: Optional[int] = None,
    ) -> Task:
        """Create a task in OPEN status, optionally assigned straight away."""
        policy.can_create_task(identity.actor).enforce()

        creator = await self.users.get(identity.user_id)
        task = Task(
            title=title,
            description=description or "",
            priority=TaskPriority(priority).value,
            status=TaskStatus.OPEN.value,
            created_by=creator,
        )

        if assigned_to_user_id is not None:
            assignee = await self.users.get(assigned_to_user_id)
            if assignee is None:
                raise NotFound.for_resource("User", "id", assigned_to_user_id)
            if assignee.role != Role.USER:
                raise BadRequest("Tasks can only be assigned to a user")
            task.assigned_to = assignee

        await self.tasks.add(task)
        await self.db.commit()
        logger.info(
            "task.created",
            task_id=task.id,
            created_by=identity.user_id,
            assigned_to=assigned_to_user_id,
        )
        return task

    # ─── Assign ──────────────────────────────────────────

    async def assign_task(
        self,
        identity: CurrentIdentity,
        task_id: int,
        assignment_type: Union[AssignmentType, str, None],
        user_id: Optional[int] = None,
    ) -> Task:
        """Assign a task using the named strategy."""
        task = await self._get_or_404(task_id)
        policy.can_assign_task(identity.actor).enforce()

        strategy = self.strategies.get(assignment_type)
        assignee = await strategy.select(task, user_id)

        task.assigned_to = assignee
        task.updated_by = await self.users.get(identity.user_id)
        await self.db.commit()

        logger.info(
            "task.assigned",
            task_id=task.id,
            assignee_id=assignee.id,
            strategy=strategy.kind.value,
            by=identity.user_id,
        )
        return task

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, identity: CurrentIdentity, task_id: int) -> Task:
        task = await self._get_or_404(task_id)
        policy.can_view_task(identity.actor, _assignee_id(task)).enforce()
        return task

    async def list_tasks(
        self,
        identity: CurrentIdentity,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assigned_to_user_id: Optional[int] = None,
        page: int = 0,
        size: int = 10,
        sort_by: str = "id",
    ) -> tuple[list[Task], int]:
        """List tasks visible to the caller, one page at a time.

        ADMIN and MANAGER see every task (all filters honoured). USER sees
        only tasks assigned to them; an explicit assignee filter is
        overridden by their own id.
        """
        if sort_by not in TASK_SORT_COLUMNS:
            raise BadRequest(f"Unsupported sort field: {sort_by}")

        if policy.task_list_scope(identity.actor) == policy.TaskListScope.ASSIGNED_ONLY:
            assigned_to_user_id = identity.user_id

        return await self.tasks.find_filtered(
            status=status,
            priority=priority,
            assigned_to_id=assigned_to_user_id,
            page=page,
            size=size,
            sort_by=sort_by,
        )

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        identity: CurrentIdentity,
        task_id: int,
        changes: dict,
    ) -> Task:
        """Apply a partial update.

        `changes` holds only the fields the client supplied. The request
        is authorized as a whole before anything is touched: a USER
        sending status together with any other field is rejected and the
        task is left exactly as it was.
        """
        task = await self._get_or_404(task_id)

        unknown = set(changes) - policy.TASK_CONTENT_FIELDS - {policy.TASK_STATUS_FIELD}
        if unknown:
            raise BadRequest(f"Unknown task fields: {', '.join(sorted(unknown))}")

        policy.can_update_task(
            identity.actor, _assignee_id(task), set(changes)
        ).enforce()

        if "title" in changes:
            task.title = changes["title"]
        if "description" in changes:
            task.description = changes["description"]
        if "priority" in changes:
            task.priority = TaskPriority(changes["priority"]).value
        if "status" in changes:
            task.status = TaskStatus(changes["status"]).value

        if changes:
            task.updated_by = await self.users.get(identity.user_id)
        await self.db.commit()

        logger.info(
            "task.updated",
            task_id=task.id,
            fields=sorted(changes),
            by=identity.user_id,
        )
        return task
