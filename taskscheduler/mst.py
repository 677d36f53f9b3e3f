from __future__ import annotations

import logging
import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .models import Task
from .network import CostFn, CostTable, build_cost_table

logger = logging.getLogger(__name__)

NO_PARENT = -1


class MSTResult(NamedTuple):
    parent: List[int]  # parent[root] == NO_PARENT
    key: List[float]  # key[i] = cost of edge (parent[i], i)
    root: int


def prim(cost: CostTable, root: int = 0) -> MSTResult:
    """
    Prim's algorithm over a complete graph given as a symmetric cost table.
    O(n^2): the next node is picked by a linear scan, the first minimum wins.
    """
    n = len(cost)
    if not 0 <= root < n:
        raise IndexError(f"root {root} out of range for {n} nodes")

    key = [math.inf] * n
    parent = [NO_PARENT] * n
    in_tree = [False] * n
    key[root] = 0.0

    for _ in range(n):
        u = NO_PARENT
        best = math.inf
        for v in range(n):
            if not in_tree[v] and key[v] < best:
                best = key[v]
                u = v
        if u == NO_PARENT:
            break
        in_tree[u] = True

        for v in range(n):
            if v != u and not in_tree[v] and cost[u][v] < key[v]:
                key[v] = cost[u][v]
                parent[v] = u

    return MSTResult(parent, key, root)


def compute_mst(
    tasks: Sequence[Task], cost_fn: Optional[CostFn] = None, root: int = 0
) -> Optional[MSTResult]:
    """
    Minimum spanning tree over the complete graph of tasks. Node i is tasks[i].
    Returns None when there are fewer than 2 tasks.
    """
    if len(tasks) < 2:
        return None
    result = prim(build_cost_table(tasks, cost_fn), root=root)
    logger.debug("MST over %d tasks, weight %.3f", len(tasks), total_weight(result))
    return result


def mst_edges(result: MSTResult) -> List[Tuple[int, int, float]]:
    return [
        (p, i, result.key[i])
        for i, p in enumerate(result.parent)
        if i != result.root and p != NO_PARENT
    ]


def total_weight(result: MSTResult) -> float:
    return sum(w for _, _, w in mst_edges(result))
