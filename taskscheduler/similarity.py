from __future__ import annotations

import logging
from itertools import combinations
from typing import List, Sequence, Tuple

from .models import Task

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5


def lcs_length(a: str, b: str) -> int:
    """
    Longest common subsequence length, classic (len(a)+1) x (len(b)+1) DP table.
    """
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])
    return table[len(a)][len(b)]


def similarity(a: str, b: str) -> float:
    """
    LCS length divided by the longer length. Two empty strings count as identical.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return lcs_length(a, b) / longest


def find_similar_task_pairs(
    tasks: Sequence[Task], threshold: float = DEFAULT_THRESHOLD
) -> List[Tuple[Task, Task, float]]:
    pairs: List[Tuple[Task, Task, float]] = []
    for a, b in combinations(tasks, 2):
        ratio = similarity(a.name, b.name)
        if ratio >= threshold:
            pairs.append((a, b, ratio))
    logger.debug("%d of %d task pairs at or above %.2f", len(pairs), len(tasks) * (len(tasks) - 1) // 2, threshold)
    return pairs
