from __future__ import annotations

import logging
import math
import random
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence

from .errors import InvalidInput
from .models import Category, Edge, Task

logger = logging.getLogger(__name__)

CostFn = Callable[[Task, Task], float]
CostTable = List[List[float]]


class FlowNetwork(NamedTuple):
    edges: List[Edge]
    source: int
    sink: int

    @property
    def node_count(self) -> int:
        return self.sink + 1


def check_cost(value: float, what: str = "cost") -> float:
    value = float(value)
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidInput(f"Invalid {what} {value!r}: must be a finite number >= 0.")
    return value


def validate_tasks(tasks: Iterable[Task]) -> None:
    for t in tasks:
        check_cost(t.cost, what=f"cost for task #{t.id}")


def add_edge(edges: List[Edge], src: int, dst: int, capacity: float) -> int:
    """
    Append src -> dst with the given capacity plus its zero-capacity reverse.
    Returns the index of the forward edge; the reverse sits at index ^ 1.
    """
    idx = len(edges)
    edges.append(Edge(src, dst, capacity))
    edges.append(Edge(dst, src, 0.0))
    return idx


def build_flow_network(tasks: Sequence[Task]) -> FlowNetwork:
    """
    Source is node 0, task i (in input order) is node i + 1, sink is n + 1.
    Each task gets source -> task and task -> sink edges with capacity = cost.
    """
    validate_tasks(tasks)
    n = len(tasks)
    source, sink = 0, n + 1
    edges: List[Edge] = []
    for i, t in enumerate(tasks, start=1):
        add_edge(edges, source, i, t.cost)
        add_edge(edges, i, sink, t.cost)
    logger.debug("Built flow network: %d task nodes, %d edges", n, len(edges))
    return FlowNetwork(edges, source, sink)


def random_cost(rng: Optional[random.Random] = None) -> CostFn:
    """
    Cost function drawing an integer weight in [1, 10) for every pair.
    Pass a seeded Random to make the result reproducible.
    """
    r = rng if rng is not None else random.Random()

    def cost(a: Task, b: Task) -> float:
        return float(r.randrange(1, 10))

    return cost


def build_cost_table(tasks: Sequence[Task], cost_fn: Optional[CostFn] = None) -> CostTable:
    """
    Symmetric n x n table of pairwise costs for the complete graph over tasks.
    cost_fn is called once per unordered pair (i < j); the diagonal is 0.
    """
    fn = cost_fn if cost_fn is not None else random_cost()
    n = len(tasks)
    table: CostTable = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            c = check_cost(fn(tasks[i], tasks[j]), what=f"edge cost ({tasks[i].id}, {tasks[j].id})")
            table[i][j] = c
            table[j][i] = c
    return table


def category_text(categories: Iterable[Category]) -> str:
    return "".join(c.name for c in sorted(categories, key=lambda c: c.id))
