import logging
import math
from collections import deque
from typing import Callable, Iterator, Optional, Protocol, Sequence, Tuple

import numpy as np

import settings

logger = logging.getLogger(__name__)


# Held-Karp TSP: exact optimal closed tour over a small set of nodes.
# Distances may be asymmetric. O(2^n * n^2) time, O(2^n * n) space.


class Locatable(Protocol):
    """Something that can be located relative to another object of the same type."""

    def distance_to(self, other) -> float:
        """Distance from self to ``other``: >= 0, possibly ``inf``, not necessarily symmetric."""
        ...


DistanceFn = Callable[[object, object], float]


class CapacityExceededError(RuntimeError):
    pass


class Result:
    """The optimal closed tour.

    Iterating yields the nodes in visiting order. The start node is not repeated
    at the front; it is the last element, closing the cycle.
    """

    __slots__ = ("_total_distance", "_path")

    def __init__(self, total_distance: float, path: Sequence):
        self._total_distance = float(total_distance)
        self._path = tuple(path)

    @property
    def total_distance(self) -> float:
        return self._total_distance

    @property
    def is_feasible(self) -> bool:
        return math.isfinite(self._total_distance)

    def as_tuple(self) -> tuple:
        return self._path

    def __iter__(self) -> Iterator:
        return iter(self._path)

    def __len__(self) -> int:
        return len(self._path)

    def __getitem__(self, index):
        return self._path[index]

    def __repr__(self) -> str:
        return f"Result(total_distance={self._total_distance!r}, path={list(self._path)!r})"


def _distance_to(a: Locatable, b: Locatable) -> float:
    return a.distance_to(b)


def compute_adjacency_matrix(nodes: Sequence, distance: Optional[DistanceFn] = None) -> np.ndarray:
    """adjacency[i, j] is the distance from node i to node j, each pair evaluated once."""
    distance = distance or _distance_to
    n = len(nodes)
    adjacency = np.empty((n, n), dtype=float)
    for i in range(n):
        for j in range(n):
            adjacency[i, j] = distance(nodes[i], nodes[j])
    return adjacency


# Subsets handled per vectorised step; bounds the (chunk, s, s) candidate array.
_CHUNK = 4096


def _fill_tables(adjacency: np.ndarray, start: int) -> Tuple[np.ndarray, np.ndarray]:
    n = adjacency.shape[0]
    # cost[S, k]: shortest path leaving `start`, visiting exactly S, ending in k.
    # predecessor[S, k]: the node visited right before k on that path.
    cost = np.full((1 << n, n), np.inf)
    predecessor = np.zeros((1 << n, n), dtype=np.intp)
    nodes = np.arange(n)
    cost[1 << nodes, nodes] = adjacency[start, nodes]

    subsets = np.arange(1 << n)
    sizes = np.zeros(1 << n, dtype=np.intp)
    for node in range(n):
        sizes += (subsets >> node) & 1
    without_start = ((subsets >> start) & 1) == 0

    # Every row of size s depends only on rows of size s - 1.
    for size in range(2, n + 1):
        # Partial paths never pass through start; only the full set closes the cycle there.
        batch = subsets[(sizes == size) & (without_start | (size == n))]
        diagonal = np.arange(size)
        for lo in range(0, len(batch), _CHUNK):
            chunk = batch[lo:lo + _CHUNK]
            # members[b, i]: i-th node of chunk[b], ascending
            members = np.nonzero((chunk[:, None] >> nodes) & 1)[1].reshape(-1, size)
            rest = chunk[:, None] & ~(1 << members)
            # candidates[b, i, j]: reach members[b, i] last, coming from members[b, j]
            candidates = (cost[rest[:, :, None], members[:, None, :]] +
                          adjacency[members[:, None, :], members[:, :, None]])
            candidates[:, diagonal, diagonal] = np.inf
            # argmin returns the first minimum, so the lowest m wins ties.
            best = np.argmin(candidates, axis=2)
            best_cost = np.take_along_axis(candidates, best[:, :, None], axis=2)[:, :, 0]
            found = best_cost < np.inf
            rows = np.broadcast_to(chunk[:, None], members.shape)[found]
            cost[rows, members[found]] = best_cost[found]
            predecessor[rows, members[found]] = np.take_along_axis(members, best, axis=1)[found]
    return cost, predecessor


def _reconstruct(nodes: Sequence, start: int, cost: np.ndarray, predecessor: np.ndarray) -> Result:
    subset = (1 << len(nodes)) - 1
    node = start
    total_distance = cost[subset, node]
    path = deque()
    for _ in range(len(nodes)):
        path.appendleft(nodes[node])
        previous = subset
        subset &= ~(1 << node)
        node = int(predecessor[previous, node])
    return Result(total_distance, path)


def solve(nodes: Sequence, start: int = 0, distance: Optional[DistanceFn] = None,
          max_nodes: Optional[int] = None) -> Result:
    """
    Find the optimal closed tour over ``nodes`` beginning and ending at ``nodes[start]``.

    nodes: the locations; each must implement ``distance_to`` unless ``distance`` is given.
    start: index of the start node.
    distance: optional ``(a, b) -> float`` used instead of ``a.distance_to(b)``.
    max_nodes: capacity ceiling; defaults to ``settings.TSP_MAX_NODES``.

    Returns a Result whose total distance is ``inf`` when no feasible tour exists.
    Raises ValueError for an empty node list or an out-of-range start index, and
    CapacityExceededError when there are more nodes than the ceiling allows.
    """
    nodes = list(nodes)
    n = len(nodes)
    if n == 0:
        raise ValueError("At least one node is required.")
    if isinstance(start, bool) or not isinstance(start, (int, np.integer)):
        raise ValueError(f"Start index must be an integer, got {start!r}.")
    if not 0 <= start < n:
        raise ValueError(f"Start index {start} is out of range for {n} nodes.")
    ceiling = settings.TSP_MAX_NODES if max_nodes is None else max_nodes
    if n > ceiling:
        raise CapacityExceededError(
            f"{n} nodes exceed the limit of {ceiling}; the tables would need 2^{n} rows.")

    adjacency = compute_adjacency_matrix(nodes, distance)
    logger.debug("solving %d nodes from start %d, table shape (%d, %d)", n, start, 1 << n, n)
    cost, predecessor = _fill_tables(adjacency, int(start))
    result = _reconstruct(nodes, int(start), cost, predecessor)
    logger.debug("optimal tour length %s", result.total_distance)
    return result
