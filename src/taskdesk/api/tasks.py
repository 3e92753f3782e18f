"""Task API routes.

The service layer handles all authorization and validation; routes just
translate HTTP to service calls and wrap results in the ApiResponse
envelope. Errors propagate to the app-level exception handlers.

- POST /tasks               → create (MANAGER)
- GET  /tasks               → paged, filtered list (scoped by role)
- GET  /tasks/{id}          → one task
- PUT  /tasks/{id}          → partial update (role-dependent fields)
- PUT  /tasks/{id}/assign   → assign with a named strategy (MANAGER)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.config import settings
from taskdesk.db.engine import get_db
from taskdesk.db.models import AssignmentType, TaskPriority, TaskStatus
from taskdesk.schemas.common import ApiResponse, PagedResponse
from taskdesk.schemas.task import TaskCreate, TaskRead, TaskUpdate
from taskdesk.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


@router.post("", response_model=ApiResponse[TaskRead], status_code=201)
async def create_task(
    body: TaskCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    task = await svc.create_task(
        identity,
        title=body.title,
        description=body.description,
        priority=body.priority,
        assigned_to_user_id=body.assigned_to_user_id,
    )
    return ApiResponse.ok("Task created successfully", TaskRead.from_task(task))


@router.get("", response_model=ApiResponse[PagedResponse[TaskRead]])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    priority: Optional[TaskPriority] = Query(None, description="Filter by priority"),
    assigned_to_user_id: Optional[int] = Query(
        None, alias="assignedToUserId", description="Filter by assignee"
    ),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort_by: str = Query("id", alias="sortBy"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """List tasks. USERs only ever see tasks assigned to them."""
    tasks, total = await svc.list_tasks(
        identity,
        status=status,
        priority=priority,
        assigned_to_user_id=assigned_to_user_id,
        page=page,
        size=size,
        sort_by=sort_by,
    )
    content = [TaskRead.from_task(t) for t in tasks]
    return ApiResponse.ok(
        "Tasks retrieved successfully",
        PagedResponse.build(content, total, page, size),
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskRead])
async def get_task(
    task_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    task = await svc.get_task(identity, task_id)
    return ApiResponse.ok("Task retrieved successfully", TaskRead.from_task(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskRead])
async def update_task(
    task_id: int,
    body: TaskUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task.

    MANAGERs may change any field; USERs may change only the status of
    tasks assigned to them, and a request mixing status with other
    fields is rejected as a whole.
    """
    task = await svc.update_task(identity, task_id, body.changes())
    return ApiResponse.ok("Task updated successfully", TaskRead.from_task(task))


@router.put("/{task_id}/assign", response_model=ApiResponse[TaskRead])
async def assign_task(
    task_id: int,
    assignment_type: AssignmentType = Query(..., alias="assignmentType"),
    user_id: Optional[int] = Query(None, alias="userId"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Assign a task using MANUAL, RANDOM or LEAST_LOADED selection."""
    task = await svc.assign_task(identity, task_id, assignment_type, user_id)
    return ApiResponse.ok(
        f"Task assigned successfully using {assignment_type.value} strategy",
        TaskRead.from_task(task),
    )
