"""Task assignment strategies and their registry.

A strategy picks the user a task should go to; it never mutates or
saves the task. TaskService applies the choice and commits, so lookup,
mutation and save share one transaction.

Strategies are registered by AssignmentType in a StrategyRegistry built
from an explicit list. Adding a strategy = one new class + one entry in
STRATEGIES; the dispatch site (TaskService.assign_task) does not change.

Candidate pools (RANDOM, LEAST_LOADED) are active USER-role accounts in
ascending id order. LEAST_LOADED breaks ties in favour of the earliest
candidate in that order, i.e. the lowest user id.
"""

import random
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.db.models import AssignmentType, Role, Task, User
from taskdesk.db.store import TaskStore, UserStore
from taskdesk.errors import BadRequest, NotFound


class AssignmentStrategy:
    """Base class — subclasses set `kind` and implement `select`."""

    kind: AssignmentType

    def __init__(self, db: AsyncSession, rng: Optional[random.Random] = None):
        self.users = UserStore(db)
        self.tasks = TaskStore(db)
        self.rng = rng or random.Random()

    async def select(self, task: Task, user_id: Optional[int]) -> User:
        raise NotImplementedError

    async def _candidates(self) -> list[User]:
        candidates = await self.users.list_active_by_role(Role.USER)
        if not candidates:
            raise BadRequest("No active users available for assignment")
        return candidates


class ManualAssignment(AssignmentStrategy):
    """The manager names the assignee explicitly."""

    kind = AssignmentType.MANUAL

    async def select(self, task: Task, user_id: Optional[int]) -> User:
        if user_id is None:
            raise BadRequest("userId is required for MANUAL assignment")
        user = await self.users.get(user_id)
        if user is None:
            raise NotFound.for_resource("User", "id", user_id)
        if user.role != Role.USER:
            raise BadRequest("Tasks can only be assigned to users with USER role")
        return user


class RandomAssignment(AssignmentStrategy):
    """Uniform pick among active USER accounts. `user_id` is ignored."""

    kind = AssignmentType.RANDOM

    async def select(self, task: Task, user_id: Optional[int]) -> User:
        candidates = await self._candidates()
        return self.rng.choice(candidates)


class LeastLoadedAssignment(AssignmentStrategy):
    """Pick the active USER with the fewest tasks not yet DONE."""

    kind = AssignmentType.LEAST_LOADED

    async def select(self, task: Task, user_id: Optional[int]) -> User:
        candidates = await self._candidates()
        load = await self.tasks.open_task_counts([u.id for u in candidates])
        # min() keeps the first minimal element → lowest id wins ties.
        return min(candidates, key=lambda u: load.get(u.id, 0))


STRATEGIES: tuple[type[AssignmentStrategy], ...] = (
    ManualAssignment,
    RandomAssignment,
    LeastLoadedAssignment,
)


class StrategyRegistry:
    """Strategy lookup by name, resolved at call time."""

    def __init__(self, strategies: dict[AssignmentType, AssignmentStrategy]):
        self._strategies = dict(strategies)

    @classmethod
    def build(
        cls,
        db: AsyncSession,
        rng: Optional[random.Random] = None,
        strategies=STRATEGIES,
    ) -> "StrategyRegistry":
        return cls({s.kind: s(db, rng=rng) for s in strategies})

    @property
    def names(self) -> list[str]:
        return [t.value for t in self._strategies]

    def get(self, name: Union[AssignmentType, str, None]) -> AssignmentStrategy:
        if name is None:
            raise BadRequest("Assignment type cannot be null")
        try:
            key = AssignmentType(name)
        except ValueError:
            raise BadRequest(f"Invalid or unsupported assignment type: {name}")
        strategy = self._strategies.get(key)
        if strategy is None:
            raise BadRequest(f"Invalid or unsupported assignment type: {name}")
        return strategy
