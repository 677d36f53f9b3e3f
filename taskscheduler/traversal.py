from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .errors import InvalidInput
from .models import Category, Task, User

logger = logging.getLogger(__name__)


class Traversal(str, Enum):
    BFS = "bfs"
    DFS = "dfs"

    @classmethod
    def parse(cls, raw: str) -> Traversal:
        try:
            return cls(raw.strip().lower())
        except ValueError as e:
            raise InvalidInput(f"Unknown traversal '{raw}'. Use bfs or dfs.") from e


def _category_id(category: Optional[Category]) -> Optional[int]:
    return category.id if category is not None else None


def _same_category(task: Task, start_category_id: Optional[int], match_uncategorized: bool) -> bool:
    cid = _category_id(task.category)
    if start_category_id is None:
        return match_uncategorized and cid is None
    return cid == start_category_id


def find_similar_users(
    tasks: Mapping[int, Task],
    users: Mapping[int, User],
    start_task_id: int,
    method: Traversal = Traversal.BFS,
    *,
    match_uncategorized: bool = True,
) -> List[User]:
    """
    Owners of every task reachable from start_task_id, where two tasks are
    adjacent when they share the start task's category. Owners are listed in
    discovery order, each once (compared by user id).

    With match_uncategorized=True an uncategorized start task reaches every
    other uncategorized task; with False it reaches nothing but itself.

    Returns [] when the start task is unknown or fewer than 2 tasks/users exist.
    """
    if start_task_id not in tasks:
        logger.debug("Start task #%s not found", start_task_id)
        return []
    if len(tasks) < 2 or len(users) < 2:
        return []

    start_category_id = _category_id(tasks[start_task_id].category)
    lifo = Traversal(method) is Traversal.DFS

    frontier = deque([start_task_id])
    visited = {start_task_id}
    found: Dict[int, User] = {}

    while frontier:
        tid = frontier.pop() if lifo else frontier.popleft()
        owner = tasks[tid].owner
        if owner.id not in found:
            found[owner.id] = owner

        # Adjacency is re-derived from the whole task map on every visit.
        for other_id, other in tasks.items():
            if other_id in visited:
                continue
            if _same_category(other, start_category_id, match_uncategorized):
                visited.add(other_id)
                frontier.append(other_id)

    return list(found.values())


def bfs_similar_users(
    tasks: Mapping[int, Task], users: Mapping[int, User], start_task_id: int, **kwargs
) -> List[User]:
    return find_similar_users(tasks, users, start_task_id, Traversal.BFS, **kwargs)


def dfs_similar_users(
    tasks: Mapping[int, Task], users: Mapping[int, User], start_task_id: int, **kwargs
) -> List[User]:
    return find_similar_users(tasks, users, start_task_id, Traversal.DFS, **kwargs)
