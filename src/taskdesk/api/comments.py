"""Comment API routes, nested under their task.

- POST   /tasks/{task_id}/comments
- GET    /tasks/{task_id}/comments
- DELETE /tasks/{task_id}/comments/{comment_id}
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.auth.dependencies import CurrentIdentity, get_current_user
from taskdesk.config import settings
from taskdesk.db.engine import get_db
from taskdesk.schemas.comment import CommentCreate, CommentRead
from taskdesk.schemas.common import ApiResponse, PagedResponse
from taskdesk.services.comment_service import CommentService

router = APIRouter(prefix="/tasks/{task_id}/comments")


def _comment_svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.post("", response_model=ApiResponse[CommentRead], status_code=201)
async def create_comment(
    task_id: int,
    body: CommentCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_comment_svc),
):
    comment = await svc.create_comment(identity, task_id, body.message)
    return ApiResponse.ok(
        "Comment created successfully", CommentRead.from_comment(comment)
    )


@router.get("", response_model=ApiResponse[PagedResponse[CommentRead]])
async def list_comments(
    task_id: int,
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_comment_svc),
):
    comments, total = await svc.list_comments(identity, task_id, page=page, size=size)
    content = [CommentRead.from_comment(c) for c in comments]
    return ApiResponse.ok(
        "Comments retrieved successfully",
        PagedResponse.build(content, total, page, size),
    )


@router.delete("/{comment_id}", response_model=ApiResponse)
async def delete_comment(
    task_id: int,
    comment_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: CommentService = Depends(_comment_svc),
):
    await svc.delete_comment(identity, task_id, comment_id)
    return ApiResponse.ok("Comment deleted successfully")
