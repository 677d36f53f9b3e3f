from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from .errors import InvalidInput
from .models import Edge, Task
from .network import add_edge, build_flow_network

logger = logging.getLogger(__name__)

# Residual cutoff, relative to the largest capacity in the network.
REL_EPS = 1e-12
CHECK_EPS = 1e-9

__all__ = [
    "FlowAlgorithm",
    "add_edge",
    "check_flow",
    "dinic",
    "edmonds_karp",
    "ford_fulkerson",
    "max_flow",
]


class FlowAlgorithm(str, Enum):
    FORD_FULKERSON = "ford-fulkerson"
    EDMONDS_KARP = "edmonds-karp"
    DINIC = "dinic"

    @classmethod
    def parse(cls, raw: str) -> FlowAlgorithm:
        key = raw.strip().lower().replace("_", "-")
        for alg in cls:
            if alg.value == key or alg.name.lower().replace("_", "-") == key:
                return alg
        raise InvalidInput(f"Unknown flow algorithm '{raw}'. Use one of: {', '.join(a.value for a in cls)}.")


def _node_count(edges: Sequence[Edge], source: int, sink: int) -> int:
    hi = max(source, sink)
    for e in edges:
        hi = max(hi, e.src, e.dst)
    return hi + 1


def _adjacency(edges: Sequence[Edge], n: int) -> List[List[int]]:
    """
    adj[node] = indices of edges leaving node (forward and reverse alike).
    """
    adj: List[List[int]] = [[] for _ in range(n)]
    for i, e in enumerate(edges):
        adj[e.src].append(i)
    return adj


def _tolerance(edges: Sequence[Edge]) -> float:
    return REL_EPS * max((e.capacity for e in edges), default=0.0)


def _bfs_path(
    edges: Sequence[Edge], adj: List[List[int]], source: int, sink: int, tol: float
) -> Optional[List[int]]:
    """
    BFS over edges with residual capacity above tol. Returns edge indices
    source -> sink, or None if the sink is unreachable.
    """
    pred: Dict[int, int] = {}
    seen = {source}
    q = deque([source])
    while q and sink not in seen:
        u = q.popleft()
        for ei in adj[u]:
            e = edges[ei]
            if e.dst not in seen and e.residual > tol:
                seen.add(e.dst)
                pred[e.dst] = ei
                q.append(e.dst)

    if sink not in seen:
        return None
    path: List[int] = []
    node = sink
    while node != source:
        ei = pred[node]
        path.append(ei)
        node = edges[ei].src
    path.reverse()
    return path


def _augment(edges: List[Edge], path: List[int], amount: float) -> None:
    for ei in path:
        edges[ei].flow += amount
        edges[ei ^ 1].flow -= amount


def _augmenting_paths(edges: List[Edge], source: int, sink: int, name: str) -> float:
    if source == sink:
        return 0.0
    adj = _adjacency(edges, _node_count(edges, source, sink))
    tol = _tolerance(edges)
    total = 0.0
    rounds = 0
    while True:
        path = _bfs_path(edges, adj, source, sink, tol)
        if path is None:
            break
        bottleneck = min(edges[ei].residual for ei in path)
        _augment(edges, path, bottleneck)
        total += bottleneck
        rounds += 1
    logger.debug("%s: %d augmenting paths, flow %.3f", name, rounds, total)
    return total


def ford_fulkerson(edges: List[Edge], source: int, sink: int) -> float:
    """
    Ford-Fulkerson with breadth-first path discovery. This makes it the same
    procedure as edmonds_karp; both names are kept for callers that pick by name.
    """
    return _augmenting_paths(edges, source, sink, "ford-fulkerson")


def edmonds_karp(edges: List[Edge], source: int, sink: int) -> float:
    """
    Repeatedly augment along the shortest residual path (BFS) until the sink
    is unreachable. Mutates edge flows in place and returns the flow value.
    """
    return _augmenting_paths(edges, source, sink, "edmonds-karp")


def _levels(edges: Sequence[Edge], adj: List[List[int]], source: int, tol: float) -> List[int]:
    level = [-1] * len(adj)
    level[source] = 0
    q = deque([source])
    while q:
        u = q.popleft()
        for ei in adj[u]:
            e = edges[ei]
            if level[e.dst] < 0 and e.residual > tol:
                level[e.dst] = level[u] + 1
                q.append(e.dst)
    return level


def _level_path(
    edges: Sequence[Edge],
    adj: List[List[int]],
    level: List[int],
    next_edge: List[int],
    source: int,
    sink: int,
    tol: float,
) -> Optional[List[int]]:
    """
    Iterative DFS for one source -> sink path in the level graph. A dead end
    is retreated from by advancing the predecessor's next_edge pointer past it.
    """
    path: List[int] = []
    u = source
    while u != sink:
        while next_edge[u] < len(adj[u]):
            e = edges[adj[u][next_edge[u]]]
            if level[e.dst] == level[u] + 1 and e.residual > tol:
                break
            next_edge[u] += 1
        else:
            if u == source:
                return None
            u = edges[path.pop()].src
            next_edge[u] += 1
            continue
        ei = adj[u][next_edge[u]]
        path.append(ei)
        u = edges[ei].dst
    return path


def dinic(edges: List[Edge], source: int, sink: int) -> float:
    """
    Dinic's algorithm: build a BFS level graph, push blocking flow along
    edges going from level L to L + 1, repeat until the sink drops out of the
    level graph. next_edge[u] remembers the first edge of u not yet exhausted.
    """
    if source == sink:
        return 0.0
    adj = _adjacency(edges, _node_count(edges, source, sink))
    tol = _tolerance(edges)
    total = 0.0
    phases = 0

    while True:
        level = _levels(edges, adj, source, tol)
        if level[sink] < 0:
            break
        phases += 1
        next_edge = [0] * len(adj)

        while True:
            path = _level_path(edges, adj, level, next_edge, source, sink, tol)
            if path is None:
                break
            bottleneck = min(edges[ei].residual for ei in path)
            _augment(edges, path, bottleneck)
            total += bottleneck

    logger.debug("dinic: %d phases, flow %.3f", phases, total)
    return total


_ALGORITHMS: Dict[FlowAlgorithm, Callable[[List[Edge], int, int], float]] = {
    FlowAlgorithm.FORD_FULKERSON: ford_fulkerson,
    FlowAlgorithm.EDMONDS_KARP: edmonds_karp,
    FlowAlgorithm.DINIC: dinic,
}


def max_flow(
    tasks: Sequence[Task], algorithm: Union[FlowAlgorithm, str] = FlowAlgorithm.EDMONDS_KARP
) -> float:
    """
    Max flow from a virtual source through every task to a virtual sink,
    each task bounded by its cost on both sides.

    Residuals at or below 1e-12 times the largest cost count as exhausted, so
    a cost that small next to the largest one carries no flow.
    """
    if not isinstance(algorithm, FlowAlgorithm):
        algorithm = FlowAlgorithm.parse(algorithm)
    net = build_flow_network(tasks)
    return _ALGORITHMS[algorithm](net.edges, net.source, net.sink)


def check_flow(edges: Sequence[Edge], source: int, sink: int) -> List[str]:
    """
    Validate a flow assignment over paired edges. Returns a list of problems;
    empty means capacity, antisymmetry and conservation all hold.
    """
    tol = CHECK_EPS * max(1.0, max((e.capacity for e in edges), default=0.0))
    problems: List[str] = []
    balance = [0.0] * _node_count(edges, source, sink)
    for i in range(0, len(edges), 2):
        fwd, rev = edges[i], edges[i + 1]
        if fwd.flow < -tol or fwd.flow > fwd.capacity + tol:
            problems.append(f"edge {fwd.src}->{fwd.dst}: flow {fwd.flow} outside [0, {fwd.capacity}]")
        if abs(rev.flow + fwd.flow) > tol:
            problems.append(f"edge {fwd.src}->{fwd.dst}: reverse flow {rev.flow} != {-fwd.flow}")
        balance[fwd.src] -= fwd.flow
        balance[fwd.dst] += fwd.flow
    for node, b in enumerate(balance):
        if node not in (source, sink) and abs(b) > tol:
            problems.append(f"node {node}: inflow - outflow = {b}")
    return problems
