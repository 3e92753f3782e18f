"""Authorization policy — who may do what.

Every rule is a pure function of the caller (role + id) and, where it
matters, the ids of the resource's creator / assignee / author. Rules
return a Decision rather than raising; services call `.enforce()` at
their boundary, which turns a denial into Forbidden.

    ┌─────────────────────────┬────────┬──────────────┬────────────────┐
    │ operation               │ ADMIN  │ MANAGER      │ USER           │
    ├─────────────────────────┼────────┼──────────────┼────────────────┤
    │ register account        │ allow  │ deny         │ deny           │
    │ create / assign task    │ deny   │ allow        │ deny           │
    │ view task               │ allow  │ allow        │ assignee only  │
    │ update title/desc/prio  │ deny   │ allow        │ deny           │
    │ update status           │ deny   │ allow        │ assignee only  │
    │ list tasks              │ all    │ all          │ own only       │
    │ create comment          │ deny   │ allow        │ allow          │
    │ delete comment          │ allow  │ author only  │ author only    │
    │ task comments access    │ admin / task creator / task assignee   │
    │ list users              │ full   │ summary      │ deny           │
    │ change role / status    │ allow  │ deny         │ deny           │
    │ change own password     │ allow  │ allow        │ allow          │
    └─────────────────────────┴────────┴──────────────┴────────────────┘
"""

import enum
from dataclasses import dataclass
from typing import Optional

from taskdesk.db.models import Role
from taskdesk.errors import Forbidden

# Fields a MANAGER may change on a task; USERs may only touch "status".
TASK_CONTENT_FIELDS = frozenset({"title", "description", "priority"})
TASK_STATUS_FIELD = "status"


@dataclass(frozen=True)
class Actor:
    """The caller, as far as the policy is concerned."""

    user_id: int
    role: Role


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed

    def enforce(self) -> None:
        """Raise Forbidden if this decision is a denial."""
        if not self.allowed:
            raise Forbidden(self.reason)


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, f"Access denied: {reason}")


class TaskListScope(str, enum.Enum):
    ALL = "all"
    ASSIGNED_ONLY = "assigned_only"


class UserListView(str, enum.Enum):
    FULL = "full"        # every account, admin detail
    SUMMARY = "summary"  # active USER-role accounts, id/name/email only
    NONE = "none"


# ─── Accounts ────────────────────────────────────────────


def can_register_user(actor: Actor) -> Decision:
    if actor.role == Role.ADMIN:
        return ALLOW
    return deny("Only admins can register new accounts")


def can_manage_users(actor: Actor) -> Decision:
    """Changing another account's role or active status."""
    if actor.role == Role.ADMIN:
        return ALLOW
    return deny("Only admins can change user roles or status")


def can_update_own_password(actor: Actor) -> Decision:
    # Any authenticated role; the current password is checked separately.
    return ALLOW


def user_list_view(actor: Actor) -> UserListView:
    if actor.role == Role.ADMIN:
        return UserListView.FULL
    if actor.role == Role.MANAGER:
        return UserListView.SUMMARY
    return UserListView.NONE


# ─── Tasks ───────────────────────────────────────────────


def can_create_task(actor: Actor) -> Decision:
    if actor.role == Role.MANAGER:
        return ALLOW
    return deny("Only managers can create tasks")


def can_assign_task(actor: Actor) -> Decision:
    if actor.role == Role.MANAGER:
        return ALLOW
    return deny("Only managers can assign tasks")


def can_view_task(actor: Actor, assignee_id: Optional[int]) -> Decision:
    if actor.role in (Role.ADMIN, Role.MANAGER):
        return ALLOW
    if assignee_id is not None and assignee_id == actor.user_id:
        return ALLOW
    return deny("Users can only view tasks assigned to them")


def can_update_task_fields(actor: Actor) -> Decision:
    """Title, description and priority."""
    if actor.role == Role.MANAGER:
        return ALLOW
    if actor.role == Role.ADMIN:
        return deny("Admin cannot update tasks")
    return deny("Users can only update task status")


def can_update_task_status(actor: Actor, assignee_id: Optional[int]) -> Decision:
    if actor.role == Role.MANAGER:
        return ALLOW
    if actor.role == Role.ADMIN:
        return deny("Admin cannot update tasks")
    if assignee_id is not None and assignee_id == actor.user_id:
        return ALLOW
    return deny("Users can only update tasks assigned to them")


def can_update_task(
    actor: Actor, assignee_id: Optional[int], fields: set[str]
) -> Decision:
    """Decide a whole update request.

    The request is judged as a unit: if any field in it is not allowed
    for the caller, the entire update is denied, even when other fields
    (e.g. status) would be acceptable on their own.
    """
    if actor.role == Role.ADMIN:
        return deny("Admin cannot update tasks")

    if actor.role == Role.USER:
        # Ownership first, so a non-assignee gets the ownership message.
        status_decision = can_update_task_status(actor, assignee_id)
        if not status_decision:
            return status_decision

    if fields & TASK_CONTENT_FIELDS:
        content_decision = can_update_task_fields(actor)
        if not content_decision:
            return content_decision

    if TASK_STATUS_FIELD in fields:
        return can_update_task_status(actor, assignee_id)
    return ALLOW


def task_list_scope(actor: Actor) -> TaskListScope:
    if actor.role in (Role.ADMIN, Role.MANAGER):
        return TaskListScope.ALL
    return TaskListScope.ASSIGNED_ONLY


# ─── Comments ────────────────────────────────────────────


def can_create_comment(actor: Actor) -> Decision:
    if actor.role in (Role.MANAGER, Role.USER):
        return ALLOW
    return deny("Admins cannot comment on tasks")


def can_access_task_comments(
    actor: Actor, creator_id: Optional[int], assignee_id: Optional[int]
) -> Decision:
    """Reading (and posting to) a task's comment thread."""
    if actor.role == Role.ADMIN:
        return ALLOW
    if actor.user_id in (creator_id, assignee_id):
        return ALLOW
    return deny("You don't have permission to access this task")


def can_delete_comment(actor: Actor, author_id: int) -> Decision:
    if actor.role == Role.ADMIN or actor.user_id == author_id:
        return ALLOW
    return deny("Only comment author or admin can delete")
