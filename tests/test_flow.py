import random

import networkx as nx
import pytest

from taskscheduler.errors import InvalidInput
from taskscheduler.flow import (
    FlowAlgorithm,
    add_edge,
    check_flow,
    dinic,
    edmonds_karp,
    ford_fulkerson,
    max_flow,
)
from taskscheduler.models import Task, User
from taskscheduler.network import build_flow_network

OWNER = User(id=1, email="a@example.com", password_hash="x")
ALGORITHMS = [ford_fulkerson, edmonds_karp, dinic]

# s=0, t=5; classic textbook network with max flow 23
CLASSIC = [
    (0, 1, 16),
    (0, 2, 13),
    (1, 2, 10),
    (2, 1, 4),
    (1, 3, 12),
    (3, 2, 9),
    (2, 4, 14),
    (4, 3, 7),
    (3, 5, 20),
    (4, 5, 4),
]


def _tasks(*costs: float) -> list:
    return [Task(id=i + 1, name=f"t{i + 1}", description="", owner=OWNER, cost=c) for i, c in enumerate(costs)]


def _edges(triples) -> list:
    edges = []
    for u, v, c in triples:
        add_edge(edges, u, v, c)
    return edges


@pytest.mark.parametrize("algorithm", list(FlowAlgorithm))
def test_task_costs_bound_the_flow(algorithm):
    assert max_flow(_tasks(10, 20), algorithm) == 30


@pytest.mark.parametrize("algorithm", list(FlowAlgorithm))
def test_no_tasks_means_no_flow(algorithm):
    assert max_flow([], algorithm) == 0


@pytest.mark.parametrize("solve", ALGORITHMS)
def test_every_task_edge_saturated(solve):
    net = build_flow_network(_tasks(3, 0, 7.5))
    assert solve(net.edges, net.source, net.sink) == pytest.approx(10.5)
    assert [e.flow for e in net.edges[0::2]] == pytest.approx([3, 3, 0, 0, 7.5, 7.5])
    assert check_flow(net.edges, net.source, net.sink) == []


@pytest.mark.parametrize("solve", ALGORITHMS)
def test_classic_network(solve):
    edges = _edges(CLASSIC)
    assert solve(edges, 0, 5) == pytest.approx(23)
    assert check_flow(edges, 0, 5) == []
    for i in range(0, len(edges), 2):
        assert edges[i + 1].flow == -edges[i].flow


@pytest.mark.parametrize("seed", range(8))
def test_algorithms_agree_with_networkx(seed):
    rng = random.Random(seed)
    n = 8
    triples = []
    g = nx.DiGraph()
    g.add_nodes_from(range(n))
    for u in range(n):
        for v in range(n):
            if u != v and rng.random() < 0.35:
                c = rng.randint(1, 20)
                triples.append((u, v, c))
                g.add_edge(u, v, capacity=c)
    expected = nx.maximum_flow_value(g, 0, n - 1)

    for solve in ALGORITHMS:
        edges = _edges(triples)
        assert solve(edges, 0, n - 1) == pytest.approx(expected)
        assert check_flow(edges, 0, n - 1) == []


def test_source_equals_sink():
    edges = _edges([(0, 1, 5)])
    assert dinic(edges, 0, 0) == 0
    assert edmonds_karp(edges, 1, 1) == 0


def test_check_flow_reports_violations():
    edges = _edges([(0, 1, 5), (1, 2, 5)])
    edges[0].flow = 6
    edges[1].flow = -6
    problems = check_flow(edges, 0, 2)
    assert any("outside" in p for p in problems)
    assert any("node 1" in p for p in problems)


def test_negative_cost_rejected():
    with pytest.raises(InvalidInput):
        max_flow(_tasks(5, -1), FlowAlgorithm.DINIC)


def test_parse_algorithm_names():
    assert FlowAlgorithm.parse("Dinic") is FlowAlgorithm.DINIC
    assert FlowAlgorithm.parse("edmonds_karp") is FlowAlgorithm.EDMONDS_KARP
    assert FlowAlgorithm.parse("ford-fulkerson") is FlowAlgorithm.FORD_FULKERSON
    with pytest.raises(InvalidInput):
        FlowAlgorithm.parse("push-relabel")


@pytest.mark.parametrize("algorithm", list(FlowAlgorithm))
def test_tiny_positive_cost_still_flows(algorithm):
    assert max_flow(_tasks(1e-10), algorithm) == pytest.approx(1e-10, rel=1e-9, abs=0)
    assert max_flow(_tasks(1e-10, 3e-10), algorithm) == pytest.approx(4e-10, rel=1e-9, abs=0)


def test_max_flow_accepts_algorithm_names():
    assert max_flow(_tasks(10, 20), "Dinic") == 30
    assert max_flow(_tasks(10, 20), "edmonds_karp") == 30
    with pytest.raises(InvalidInput):
        max_flow(_tasks(10, 20), "simplex")


@pytest.mark.parametrize("solve", ALGORITHMS)
def test_long_chain_has_no_depth_limit(solve):
    n = 3000
    edges = _edges((i, i + 1, 5 + (i * 7) % 11) for i in range(n - 1))
    assert solve(edges, 0, n - 1) == 5
    assert check_flow(edges, 0, n - 1) == []
