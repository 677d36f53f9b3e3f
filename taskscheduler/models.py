from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class User:
    id: int
    email: str
    password_hash: str


@dataclass(frozen=True)
class Category:
    id: int
    name: str


@dataclass
class Task:
    id: int
    name: str
    description: str
    owner: User
    cost: float = 0.0
    deadline: Optional[date] = None
    priority: Optional[int] = None  # 1..5
    category: Optional[Category] = None


@dataclass
class Edge:
    """
    Directed residual edge. Edges are stored in pairs: edges[i ^ 1] is the
    reverse of edges[i], created with capacity 0.
    """

    src: int
    dst: int
    capacity: float
    flow: float = 0.0

    @property
    def residual(self) -> float:
        return self.capacity - self.flow


@dataclass
class HuffmanNode:
    freq: int
    char: Optional[str] = None  # set on leaves only
    left: Optional[HuffmanNode] = None
    right: Optional[HuffmanNode] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None
