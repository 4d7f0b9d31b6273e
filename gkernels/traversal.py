"""Breadth-first search and single-source shortest paths, with serial verifiers."""

from __future__ import annotations

import heapq
import logging
import math
from collections import deque
from typing import Sequence

import numpy as np

from gkernels.graph import CSRGraph

logger = logging.getLogger(__name__)

INFINITY = 2**31 - 1
"""Depth reported for a vertex that the search never reaches."""

DIST_INF = math.inf
"""Distance reported for a vertex that has no path from the source."""

ALPHA = 15
BETA = 18


def _check_source(graph: CSRGraph, source: int) -> None:
    if not 0 <= source < graph.num_vertices:
        raise ValueError(f"source vertex {source} out of range")


def _adjacency(graph: CSRGraph) -> list[list[int]]:
    return [graph.neighbors(v).tolist() for v in range(graph.num_vertices)]


def bfs(graph: CSRGraph, source: int) -> list[int]:
    """Level-synchronous top-down BFS; returns the depth of every vertex."""
    _check_source(graph, source)
    adjacency = _adjacency(graph)
    depth = [INFINITY] * graph.num_vertices
    depth[source] = 0
    frontier = [source]
    iteration = 0
    while frontier:
        iteration += 1
        logger.debug("iteration=%d, frontier_size=%d", iteration, len(frontier))
        next_frontier: list[int] = []
        for src in frontier:
            for dst in adjacency[src]:
                if depth[dst] == INFINITY:
                    depth[dst] = depth[src] + 1
                    next_frontier.append(dst)
        frontier = next_frontier
    return depth


def _top_down_step(
    adjacency: list[list[int]], depths: list[int], queue: list[int]
) -> tuple[int, list[int]]:
    scout_count = 0
    next_queue: list[int] = []
    for src in queue:
        for dst in adjacency[src]:
            current = depths[dst]
            if current < 0:
                depths[dst] = depths[src] + 1
                next_queue.append(dst)
                scout_count += -current
    return scout_count, next_queue


def _bottom_up_step(
    in_adjacency: list[list[int]], depths: list[int], front: list[bool]
) -> tuple[int, list[bool]]:
    awake_count = 0
    nxt = [False] * len(depths)
    for dst, sources in enumerate(in_adjacency):
        if depths[dst] >= 0:
            continue
        for src in sources:
            if front[src]:
                depths[dst] = depths[src] + 1
                awake_count += 1
                nxt[dst] = True
                break
    return awake_count, nxt


def bfs_direction_optimizing(
    graph: CSRGraph, source: int, alpha: int = ALPHA, beta: int = BETA
) -> list[int]:
    """BFS switching between top-down and bottom-up steps by frontier size."""
    if not graph.has_reverse():
        raise ValueError("direction-optimizing BFS requires the reverse graph")
    _check_source(graph, source)
    nv = graph.num_vertices
    adjacency = _adjacency(graph)
    in_adjacency = [graph.in_neighbors(v).tolist() for v in range(nv)]
    # Unvisited vertices hold minus their degree so the top-down step can
    # count the edges it will have to scout next.
    depths = [-len(adj) if adj else -1 for adj in adjacency]
    depths[source] = 0

    queue = [source]
    edges_to_check = graph.num_edges
    scout_count = len(adjacency[source])
    iteration = 0
    while queue:
        if scout_count > edges_to_check // alpha:
            front = [False] * nv
            for v in queue:
                front[v] = True
            awake_count = len(queue)
            while True:
                iteration += 1
                old_awake_count = awake_count
                awake_count, front = _bottom_up_step(in_adjacency, depths, front)
                logger.debug("BU: iteration=%d, num_frontier=%d", iteration, awake_count)
                if not (awake_count >= old_awake_count or awake_count > nv // beta):
                    break
            queue = [v for v, on in enumerate(front) if on]
            scout_count = 1
        else:
            iteration += 1
            edges_to_check -= scout_count
            scout_count, queue = _top_down_step(adjacency, depths, queue)
            logger.debug("TD: iteration=%d, num_frontier=%d", iteration, len(queue))
    return [d if d >= 0 else INFINITY for d in depths]


def _weights(graph: CSRGraph) -> list:
    if graph.weights is None:
        raise ValueError("shortest paths require edge weights")
    return graph.weights.tolist()


def delta_stepping(graph: CSRGraph, source: int, delta: float) -> list:
    """Delta-stepping SSSP; returns the distance of every vertex from ``source``."""
    if delta <= 0:
        raise ValueError("delta must be positive")
    _check_source(graph, source)
    weights = _weights(graph)
    rowptr = graph.rowptr.tolist()
    colidx = graph.colidx.tolist()
    dist: list = [DIST_INF] * graph.num_vertices
    dist[source] = 0
    frontier = [source]
    bins: list[list[int]] = []
    current_bin = 0
    while True:
        for src in frontier:
            if dist[src] < delta * current_bin:
                continue
            for e in range(rowptr[src], rowptr[src + 1]):
                dst = colidx[e]
                new_dist = dist[src] + weights[e]
                if new_dist < dist[dst]:
                    dist[dst] = new_dist
                    dest_bin = int(new_dist // delta)
                    if dest_bin >= len(bins):
                        bins.extend([] for _ in range(dest_bin + 1 - len(bins)))
                    bins[dest_bin].append(dst)
        next_bin = next(
            (i for i in range(current_bin, len(bins)) if bins[i]), None
        )
        if next_bin is None:
            break
        frontier, bins[next_bin] = bins[next_bin], []
        current_bin = next_bin
    return dist


def bfs_reference(graph: CSRGraph, source: int) -> list[int]:
    """Serial queue-based BFS used as the oracle for verification."""
    _check_source(graph, source)
    depth = [INFINITY] * graph.num_vertices
    depth[source] = 0
    to_visit = deque([source])
    while to_visit:
        src = to_visit.popleft()
        for dst in graph.neighbors(src).tolist():
            if depth[dst] == INFINITY:
                depth[dst] = depth[src] + 1
                to_visit.append(dst)
    return depth


def dijkstra(graph: CSRGraph, source: int) -> list:
    """Serial Dijkstra used as the oracle for shortest-path verification."""
    _check_source(graph, source)
    weights = _weights(graph)
    rowptr = graph.rowptr.tolist()
    colidx = graph.colidx.tolist()
    dist: list = [DIST_INF] * graph.num_vertices
    dist[source] = 0
    heap = [(0, source)]
    while heap:
        td, src = heapq.heappop(heap)
        if td != dist[src]:
            continue
        for e in range(rowptr[src], rowptr[src + 1]):
            dst = colidx[e]
            candidate = td + weights[e]
            if candidate < dist[dst]:
                dist[dst] = candidate
                heapq.heappush(heap, (candidate, dst))
    return dist


def verify_bfs(graph: CSRGraph, source: int, depths: Sequence[int]) -> bool:
    """True if ``depths`` matches a serial BFS from ``source``."""
    expected = bfs_reference(graph, source)
    return len(depths) == len(expected) and all(
        int(a) == b for a, b in zip(depths, expected)
    )


def verify_sssp(graph: CSRGraph, source: int, distances: Sequence) -> bool:
    """True if ``distances`` matches serial Dijkstra from ``source``."""
    expected = dijkstra(graph, source)
    return len(distances) == len(expected) and all(
        np.asarray(a).item() == b for a, b in zip(distances, expected)
    )